import numpy as np
import pytest

from xatu.davidson import davidson


def _hermitian(size, seed=7, scale=0.05):
    rng = np.random.default_rng(seed)
    noise = rng.normal(size=(size, size)) + 1j * rng.normal(size=(size, size))
    return np.diag(np.arange(1.0, size + 1.0)) + scale * (noise + noise.conj().T)


@pytest.mark.parametrize("size, neigval", [(12, 2), (20, 3), (16, 4)])
def test_eigenvalues_match_dense_solver(size, neigval):
    matrix = _hermitian(size)
    eigval, _ = davidson(matrix, neigval, 1e-10)
    assert eigval.shape == (neigval,)
    assert np.allclose(eigval, np.linalg.eigvalsh(matrix)[:neigval], atol=1e-6)


def test_ritz_vectors_are_orthonormal_with_rayleigh_quotients():
    matrix = _hermitian(20)
    eigval, eigvec = davidson(matrix, 2, 1e-10)
    assert eigvec.shape == (20, 4)
    gram = eigvec.conj().T @ eigvec
    assert np.allclose(gram, np.eye(4), atol=1e-8)
    rayleigh = np.real(np.einsum("ij,ij->j", eigvec.conj(), matrix @ eigvec))
    assert np.allclose(rayleigh[:2], eigval, atol=1e-8)


def test_real_symmetric_input():
    matrix = np.real(_hermitian(14, seed=2))
    matrix = (matrix + matrix.T) / 2
    eigval, _ = davidson(matrix, 3)
    assert np.allclose(eigval, np.linalg.eigvalsh(matrix)[:3], atol=1e-6)


def test_rejects_non_hermitian():
    matrix = _hermitian(10)
    matrix[0, 1] += 1.0
    with pytest.raises(ValueError):
        davidson(matrix, 2)


@pytest.mark.parametrize("neigval", [0, 6])
def test_rejects_bad_neigval(neigval):
    with pytest.raises(ValueError):
        davidson(_hermitian(10), neigval)


def test_rejects_non_square():
    with pytest.raises(ValueError):
        davidson(np.zeros((4, 6)), 1)