"""Parsing and validation of tight-binding system descriptions."""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass, field
from typing import Mapping, Sequence

import numpy as np

EXPECTED_ARGUMENTS = (
    "dimension",
    "bravaislattice",
    "motif",
    "norbitals",
    "filling",
    "bravaisvectors",
    "hamiltonian",
)

_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")


class ConfigurationError(ValueError):
    """Raised when a configuration is malformed or inconsistent."""


@dataclass
class SystemInfo:
    """Structured description of a periodic system.

    Matrices are stacked along the first axis: ``hamiltonian[i]`` is the Fock
    matrix for the Bravais vector ``bravais_vectors[i]``.
    """

    ndim: int = 0
    filling: int = 0
    bravais_lattice: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    motif: np.ndarray = field(default_factory=lambda: np.zeros((0, 4)))
    hamiltonian: np.ndarray = field(default_factory=lambda: np.zeros((0, 0, 0), dtype=complex))
    overlap: np.ndarray | None = None
    bravais_vectors: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    norbitals: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    rhop: list[np.ndarray] | None = None


def _parse_numbers(line: str, pattern: re.Pattern, convert) -> list:
    """Read numbers from the start of a line until the first one that cannot be read."""
    values = []
    for token in line.split():
        match = pattern.match(token)
        if match is None:
            break
        values.append(convert(match.group()))
        if match.end() != len(token):
            break
    return values


def _floats(line: str) -> list[float]:
    return _parse_numbers(line, _FLOAT_PREFIX, float)


def _ints(line: str) -> list[int]:
    return _parse_numbers(line, _INT_PREFIX, int)


def _leading_float(token: str) -> float:
    match = _FLOAT_PREFIX.match(token)
    if match is None:
        raise ConfigurationError(f"Could not read a number from {token!r}")
    return float(match.group())


def parse_vectors(lines: Sequence[str]) -> np.ndarray:
    """Parse three-component vectors, one per line, into the rows of a matrix."""
    vectors = np.zeros((len(lines), 3))
    for row, line in enumerate(lines):
        values = _floats(line)
        if len(values) != 3:
            raise ConfigurationError("Bravais vectors must have three components")
        vectors[row] = values
    return vectors


def parse_motif(lines: Sequence[str]) -> np.ndarray:
    """Parse atoms given as ``x y z species`` into an ``(natoms, 4)`` matrix."""
    motif = np.zeros((len(lines), 4))
    for row, line in enumerate(lines):
        values = _floats(line)
        if len(values) < 4:
            raise ConfigurationError("Motif must be of shape (x,y,z,'species')")
        motif[row] = values[:4]
    return motif


def parse_orbitals(lines: Sequence[str]) -> np.ndarray:
    """Parse the single line giving the number of orbitals of each chemical species."""
    if len(lines) != 1:
        raise ConfigurationError("Error: Orbital information must be one line only")
    return np.array(_ints(lines[0]), dtype=int)


def parse_matrices(lines: Sequence[str]) -> np.ndarray:
    """Parse dense real or complex matrices, each closed by a line holding ``&``.

    The values are complex when the first line contains ``i`` or ``j``; every
    entry is then written as a real and an imaginary part. Rows after the last
    ``&`` are discarded. Returns an array of shape ``(n_matrices, dim, dim)``.
    """
    if not lines:
        raise ConfigurationError("Matrix block is empty")
    is_complex = "i" in lines[0] or "j" in lines[0]

    dim = 0
    for line in lines:
        if "&" in line:
            break
        dim += 1

    matrices: list[np.ndarray] = []
    matrix = np.zeros((dim, dim), dtype=complex)
    row_index = 0
    for line in lines:
        if "&" in line:
            matrices.append(matrix)
            matrix = np.zeros((dim, dim), dtype=complex)
            row_index = 0
            continue

        tokens = line.split()
        if is_complex:
            if len(tokens) % 2:
                raise ConfigurationError("Complex entries need a real and an imaginary part")
            values = [
                complex(_leading_float(re_token), _leading_float(im_token))
                for re_token, im_token in zip(tokens[::2], tokens[1::2])
            ]
        else:
            values = [complex(_leading_float(token), 0.0) for token in tokens]

        if len(values) > dim or row_index >= dim:
            raise ConfigurationError(f"Matrix rows exceed the dimension {dim}")
        matrix[row_index, : len(values)] = values
        row_index += 1

    if not matrices:
        return np.zeros((0, dim, dim), dtype=complex)
    return np.stack(matrices)


def _normalise_argument(name: str) -> str:
    return "".join(name.split()).lower()


def _single_line(lines: Sequence[str], message: str) -> str:
    if len(lines) != 1:
        raise ConfigurationError(message)
    return lines[0]


class SystemConfiguration:
    """A system description built from its argument blocks.

    ``contents`` maps each argument name (case and spaces ignored) to the lines
    of text of its block.
    """

    expected_arguments = EXPECTED_ARGUMENTS

    def __init__(self, contents: Mapping[str, Sequence[str]]):
        self.contents: dict[str, list[str]] = {
            _normalise_argument(name): list(lines) for name, lines in contents.items()
        }
        if not self.contents:
            raise ConfigurationError("Configuration contents are empty")
        self.system_info = SystemInfo()
        self._parse_content()
        self._check_arguments()
        self.check_content_coherence()

    def _check_arguments(self) -> None:
        missing = [arg for arg in self.expected_arguments if arg not in self.contents]
        if missing:
            raise ConfigurationError(f"Missing expected arguments: {', '.join(missing)}")

    def _parse_content(self) -> None:
        info = self.system_info
        for arg, content in self.contents.items():
            if arg == "dimension":
                line = _single_line(content, "Expected only one line for 'Dimension'")
                values = _ints(line)
                if not values:
                    raise ConfigurationError("Could not read the dimension")
                info.ndim = values[0]
            elif arg == "bravaislattice":
                info.bravais_lattice = parse_vectors(content)
            elif arg == "motif":
                info.motif = parse_motif(content)
            elif arg == "norbitals":
                info.norbitals = parse_orbitals(content)
            elif arg == "filling":
                line = _single_line(content, "Expected only one line in 'filling' field")
                values = _floats(line)
                if not values:
                    raise ConfigurationError("Could not read the filling")
                if not float(values[0]).is_integer():
                    raise ConfigurationError("Filling must be a positive integer.")
                info.filling = int(values[0])
            elif arg == "bravaisvectors":
                info.bravais_vectors = parse_vectors(content)
            elif arg == "hamiltonian":
                info.hamiltonian = parse_matrices(content)
            elif arg == "overlap":
                info.overlap = parse_matrices(content)
            else:
                warnings.warn(f"Unexpected argument: {arg}, skipping block...", stacklevel=3)

    def check_content_coherence(self) -> None:
        """Check that the parsed blocks agree with one another."""
        info = self.system_info
        if info.ndim != info.bravais_lattice.shape[0]:
            raise ConfigurationError("Error: Dimensions must match number of Bravais basis")
        if info.hamiltonian.shape[0] != info.bravais_vectors.shape[0]:
            raise ConfigurationError(
                "Error: Number of H matrices must match number of Bravais vectors"
            )
        if (
            info.overlap is not None
            and info.overlap.size
            and info.overlap.shape[0] != info.hamiltonian.shape[0]
        ):
            raise ConfigurationError(
                "Error: Number of overlap matrices must match number of H matrices"
            )
        species = dict.fromkeys(int(value) for value in info.motif[:, 3])
        if info.norbitals.size != len(species):
            raise ConfigurationError(
                "Error: Number of different species must match be consistent in motif and orbitals"
            )

    def __str__(self) -> str:
        info = self.system_info
        sections = [
            f"Dimension: {info.ndim}\n",
            f"Bravais lattice:\n{info.bravais_lattice}\n",
            f"Motif:\n{info.motif}\n",
            f"Orbitals:\n{info.norbitals}\n",
            f"Filling:\n{info.filling}\n",
            f"Bravais vectors (connected unit cells):\n{info.bravais_vectors}\n",
            f"Hamiltonian matrices:\n{info.hamiltonian}\n",
        ]
        if info.overlap is not None and info.overlap.size:
            sections.append(f"Overlap matrices:\n{info.overlap}\n")
        return "\n".join(sections)