"""Reading of tight-binding models written in the Wannier90 ``tb.dat`` format."""

from __future__ import annotations

import os
from typing import Callable, Iterator, Sequence

import numpy as np

from xatu.system_configuration import ConfigurationError, SystemInfo

_DEGENERACIES_PER_LINE = 15


class _LineReader:
    """Hands out the non-blank lines of a file, one at a time."""

    def __init__(self, lines: Sequence[str]):
        self._lines: Iterator[str] = iter(lines)

    def take(self, what: str) -> str:
        try:
            return next(self._lines)
        except StopIteration:
            raise ConfigurationError(f"Unexpected end of file while reading {what}") from None

    def numbers(self, what: str, count: int, convert: Callable[[str], float]) -> list:
        tokens = self.take(what).split()
        if len(tokens) < count:
            raise ConfigurationError(f"Expected {count} values while reading {what}")
        try:
            return [convert(token) for token in tokens[:count]]
        except ValueError:
            raise ConfigurationError(f"Malformed number while reading {what}") from None


class Wannier90Configuration:
    """A tight-binding system read from a Wannier90 ``tb.dat`` file.

    The file gives the lattice, the degeneracies of the Wigner-Seitz points,
    the Hamiltonian H(R) and the position matrix elements r(R). The motif is
    taken from the diagonal of r(R = 0), with one orbital per Wannier function.
    The number of electrons is not in the file and is given as ``electron_num``.
    """

    def __init__(self, filename, electron_num: int = 1):
        self.filename = os.fspath(filename)
        with open(self.filename, encoding="utf-8") as handle:
            self.header = handle.readline().strip()
            lines = [line for line in handle if line.strip()]
        self.filling = int(electron_num)
        self._parse(_LineReader(lines))
        self.system_info = self._map_content()

    def _parse(self, reader: _LineReader) -> None:
        self.rn = np.array(
            [reader.numbers("Rn matrix", 3, float) for _ in range(3)], dtype=float
        )
        (self.m_size,) = reader.numbers("number of Wannier functions", 1, int)
        (self.n_fock,) = reader.numbers("number of Wigner-Seitz points", 1, int)
        if self.m_size <= 0 or self.n_fock <= 0:
            raise ConfigurationError("Matrix size and number of Fock matrices must be positive")

        self.degeneracies = self._parse_degeneracies(reader)
        self.irn = np.zeros((self.n_fock, 3), dtype=int)
        self.fock_matrices = np.zeros((self.n_fock, self.m_size, self.m_size), dtype=complex)
        for index in range(self.n_fock):
            self.irn[index] = reader.numbers("lattice point", 3, int)
            for _ in range(self.m_size**2):
                row, col, real, imag = reader.numbers("Hamiltonian element", 4, float)
                self.fock_matrices[(index, *self._position(row, col))] = complex(real, imag)

        self.rhop: list[np.ndarray] = []
        for _ in range(self.n_fock):
            reader.take("position lattice point")
            components = np.zeros((3, self.m_size, self.m_size), dtype=complex)
            for _ in range(self.m_size**2):
                row, col, *values = reader.numbers("position element", 8, float)
                i, j = self._position(row, col)
                components[:, i, j] = [
                    complex(re, im) for re, im in zip(values[::2], values[1::2])
                ]
            self.rhop.append(components)

        self.bravais_vectors = self.irn @ self.rn
        if np.any(self.irn[:, 2]):
            self.ndim = 3
        elif np.any(self.irn[:, 1]):
            self.ndim = 2
        else:
            self.ndim = 1
        self.lattice = self.rn[: self.ndim].copy()

        origin = np.flatnonzero(~self.irn.any(axis=1))
        diag = int(origin[0]) if origin.size else 0
        self.motif = np.zeros((self.m_size, 4))
        self.motif[:, :3] = np.diagonal(self.rhop[diag], axis1=1, axis2=2).real.T
        self.motif[:, 3] = np.arange(self.m_size)

    def _parse_degeneracies(self, reader: _LineReader) -> np.ndarray:
        values: list[int] = []
        while len(values) < self.n_fock:
            try:
                values.extend(int(token) for token in reader.take("degeneracies").split())
            except ValueError:
                raise ConfigurationError("Malformed degeneracy value") from None
        if len(values) != self.n_fock:
            raise ConfigurationError(
                f"Expected {self.n_fock} degeneracies, found {len(values)}"
            )
        return np.array(values, dtype=int)

    def _position(self, row: float, col: float) -> tuple[int, int]:
        i, j = int(row) - 1, int(col) - 1
        if not (0 <= i < self.m_size and 0 <= j < self.m_size):
            raise ConfigurationError(f"Matrix index ({int(row)}, {int(col)}) out of range")
        return i, j

    def _map_content(self) -> SystemInfo:
        return SystemInfo(
            ndim=self.ndim,
            filling=self.filling,
            bravais_lattice=self.lattice,
            motif=self.motif,
            hamiltonian=self.fock_matrices,
            overlap=None,
            bravais_vectors=self.bravais_vectors,
            norbitals=np.ones(self.m_size, dtype=int),
            rhop=self.rhop,
        )

    def summary(self) -> str:
        """Human-readable report of the parsed values."""
        rule = "-------------------"
        lines = [
            "========================",
            "||     PARSED VALUES  ||",
            "========================",
            f"Matrix size (mSize): {self.m_size}",
            f"No. of Fock matrices: {self.n_fock}",
            "Degeneracies: ",
            str(self.degeneracies),
            rule,
            rule,
            "bravaisVectors: ",
            str(self.bravais_vectors),
            rule,
            f"System Dimension: {self.ndim}",
            f"Filling: {self.filling}",
            rule,
            "Motif: ",
            str(self.motif),
            rule,
            np.array2string(self.fock_matrices[0], precision=15),
        ]
        return "\n".join(lines) + "\n"