"""Output helpers, density of states and small numerical utilities."""

from __future__ import annotations

from typing import IO, Iterable

import numpy as np

PI = 3.141592653589793
EC = 1.6021766e-19
EPS0 = 8.8541878e-12

_TABLE_RULE = "+---------------+-----------------------------+-----------------------------+"
_TABLE_HEADER = "|       N       |          Eigval (eV)        |          Degeneracy         |"
_DOS_MESH_POINTS = 2000


def write_vector(vector: Iterable[float], file: IO[str]) -> None:
    """Write the values of a vector on one tab-separated line."""
    file.write("".join(f"{float(value):f}\t" for value in np.ravel(vector)))
    file.write("\n")


def write_vectors(vectors, file: IO[str], mode: str = "row") -> None:
    """Write every row (``mode="row"``) or column (``mode="col"``) of a matrix as one line."""
    matrix = np.atleast_2d(np.asarray(vectors, dtype=float))
    if mode == "row":
        lines = matrix
    elif mode == "col":
        lines = matrix.T
    else:
        raise ValueError(f"write_vectors: mode not recognized: {mode!r}")
    for line in lines:
        write_vector(line, file)


def read_vector(filename) -> np.ndarray:
    """Read every number of a text file into one flat vector.

    Each line is read up to its first token that is not a number.
    """
    values: list[float] = []
    with open(filename, encoding="utf-8") as handle:
        for line in handle:
            for token in line.split():
                try:
                    values.append(float(token))
                except ValueError:
                    break
    return np.array(values, dtype=float)


def retarded_green(energy: float, delta: float, eigen_energy: float) -> complex:
    """Non-interacting retarded Green function at ``energy`` for one level."""
    return 1.0 / ((energy + 1j * delta) - eigen_energy)


def _as_energy_matrix(energies) -> np.ndarray:
    matrix = np.asarray(energies, dtype=float)
    if matrix.ndim == 1:
        # A flat vector is a single column, one k point.
        matrix = matrix.reshape(-1, 1)
    if matrix.ndim != 2 or matrix.size == 0:
        raise ValueError("energies must be a non-empty vector or matrix")
    return matrix


def density_of_states(energy: float, delta: float, energies) -> float:
    """Unnormalised density of states at ``energy``, averaged over the columns (k points)."""
    matrix = _as_energy_matrix(energies)
    green = 1.0 / ((energy + 1j * delta) - matrix)
    return float(np.sum(-PI * green.imag) / matrix.shape[1])


def write_density_of_states(energies, delta: float, file: IO[str]) -> None:
    """Write the density of states, normalised to unit integral, on a 2000-point mesh."""
    matrix = _as_energy_matrix(energies)
    mesh = np.linspace(matrix.min() - 0.5, matrix.max() + 0.5, _DOS_MESH_POINTS)
    step = mesh[1] - mesh[0]
    dos = np.array([density_of_states(energy, delta, matrix) for energy in mesh])
    total = dos.sum() * step
    for energy, value in zip(mesh, dos / total):
        file.write(f"{energy:f}\t{value:f}\n")


def detect_degeneracies(eigval, n: int, precision: int) -> list[tuple[float, int]]:
    """Group the first ``n`` sorted energies into (energy, degeneracy) pairs.

    Two consecutive energies are degenerate when they differ by less than
    ``10**-precision``.
    """
    values = np.ravel(np.asarray(eigval, dtype=float))
    if n < 0:
        raise ValueError("detect_degeneracies: n must be a positive integer")
    if n > values.size:
        raise ValueError("detect_degeneracies: n must be lower than total number of eigenstates")

    threshold = 10.0 ** (-precision)
    pairs: list[tuple[float, int]] = []
    previous = float(values[0])
    degeneracy = 1
    for energy in values[1:n]:
        energy = float(energy)
        if abs(energy - previous) < threshold:
            degeneracy += 1
        else:
            pairs.append((previous, degeneracy))
            degeneracy = 1
        previous = energy
    pairs.append((previous, degeneracy))
    return pairs


def format_energies(eigval, n: int = 8, precision: int = 6) -> str:
    """Return a table of the first ``n`` energies with their degeneracies."""
    lines = [_TABLE_RULE, _TABLE_HEADER, _TABLE_RULE]
    for index, (energy, degeneracy) in enumerate(detect_degeneracies(eigval, n, precision), start=1):
        lines.append(f"|{index:15d}|{energy:29.{precision}f}|{degeneracy:29d}|")
        lines.append(_TABLE_RULE)
    return "\n".join(lines) + "\n"


def _is_upper(matrix: np.ndarray) -> bool:
    return matrix.shape[0] == matrix.shape[1] and not np.any(np.tril(matrix, -1))


def _is_lower(matrix: np.ndarray) -> bool:
    return matrix.shape[0] == matrix.shape[1] and not np.any(np.triu(matrix, 1))


def check_if_triangular(matrix) -> bool:
    """True when the matrix is upper or lower triangular, but not both (not diagonal)."""
    array = np.asarray(matrix)
    if array.ndim != 2:
        raise ValueError("check_if_triangular expects a matrix")
    return _is_upper(array) != _is_lower(array)


def array_hash(array) -> float:
    """Scalar fingerprint of a matrix, used to compare parsed or computed arrays.

    A one-dimensional input is taken as a row vector; pass an ``(n, 1)``
    array to hash a column vector.
    """
    values = np.asarray(array, dtype=complex)
    if values.ndim == 1:
        values = values[np.newaxis, :]
    if values.ndim != 2:
        raise ValueError("array_hash expects a vector or a matrix")
    if values.size == 0:
        raise ValueError("array_hash expects a non-empty array")
    rows, cols = np.indices(values.shape)
    weighted = values * (rows * cols + cols + 1)
    total = (
        np.abs(values).sum()
        + np.count_nonzero(values)
        + 1.5 * weighted.real.sum()
        + 1.5 * weighted.imag.sum()
        + (weighted.imag * weighted.real).sum()
    )
    return float(total / values.size)