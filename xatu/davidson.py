"""Davidson iteration for the lowest eigenpairs of a Hermitian matrix."""

from __future__ import annotations

import warnings

import numpy as np


def davidson(matrix, neigval: int = 4, tol: float = 1e-8) -> tuple[np.ndarray, np.ndarray]:
    """Lowest ``neigval`` eigenvalues of a Hermitian matrix by the Davidson method.

    Returns the eigenvalues and the ``2 * neigval`` Ritz vectors of the last
    iteration, by columns; the first ``neigval`` of them belong to the returned
    eigenvalues.
    """
    mat = np.asarray(matrix, dtype=complex)
    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        raise ValueError("davidson: provided matrix must be square")
    if not np.allclose(mat, mat.conj().T):
        raise ValueError("davidson: provided matrix must be hermitian")
    size = mat.shape[0]
    block = 2 * neigval
    if neigval < 1 or block > size:
        raise ValueError("davidson: neigval must be positive and at most half the matrix dimension")

    max_iterations = size // 2
    identity = np.eye(size, dtype=complex)
    guess = np.eye(size, block, dtype=complex)
    previous = np.ones(neigval)
    eigval = np.empty(0)
    eigvec = np.empty((size, 0), dtype=complex)

    for iteration in range(max_iterations):
        basis, _ = np.linalg.qr(guess, mode="reduced")
        eigval, ritz = np.linalg.eigh(basis.conj().T @ mat @ basis)
        eigvec = basis[:, : (iteration + 1) * block] @ ritz[:, :block]

        corrections = [
            ((mat - eigval[j] * identity) @ eigvec[:, j]) / (eigval[j] - mat[j, j])
            for j in range(block)
        ]
        expanded = np.column_stack([basis, *corrections])

        if np.linalg.norm(eigval[:neigval] - previous) < tol:
            break

        previous = eigval[:neigval].copy()
        guess = expanded

        if iteration == max_iterations - 1:
            warnings.warn("Reached maximum number of iterations", RuntimeWarning, stacklevel=2)

    return eigval[:neigval], eigvec