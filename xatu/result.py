"""Observables and output of a diagonalised exciton calculation."""

from __future__ import annotations

import itertools
from typing import IO

import numpy as np


def _centered_cells(ndim: int, nvalues: int = 3) -> np.ndarray:
    """Integer combinations centred on zero, one row per cell, ``ndim`` columns."""
    start = -(nvalues // 2)
    values = range(start, start + nvalues)
    return np.array(list(itertools.product(values, repeat=ndim)), dtype=float).reshape(-1, ndim)


class Result:
    """Eigenvalues and eigenstates (by columns) of an exciton Hamiltonian.

    ``exciton`` is the exciton that was diagonalised; its ``system`` provides
    the k-point mesh (``kpoints``) and, for the extended Brillouin zone
    outputs, ``ndim`` and ``reciprocal_lattice``.
    """

    def __init__(self, exciton, eigval, eigvec):
        self.exciton = exciton
        self.system = exciton.system
        self.eigval = np.asarray(eigval, dtype=float).ravel()
        vectors = np.asarray(eigvec, dtype=complex)
        if vectors.ndim == 1:
            vectors = vectors[:, np.newaxis]
        if vectors.ndim != 2:
            raise ValueError("eigvec must hold the eigenstates by columns")
        if vectors.shape[0] != exciton.exciton_basis_dim:
            raise ValueError("eigenstates do not match the exciton basis dimension")
        if vectors.shape[1] != self.eigval.size:
            raise ValueError("number of eigenvalues and eigenstates differ")
        self.eigvec = vectors

    # ------------------------------------------------------------------ Helpers

    def _state(self, coefs) -> np.ndarray:
        if isinstance(coefs, (int, np.integer)):
            return self.eigvec[:, int(coefs)]
        return np.asarray(coefs, dtype=complex).ravel()

    @property
    def _kpoints(self) -> np.ndarray:
        return np.atleast_2d(np.asarray(self.system.kpoints, dtype=float))

    @property
    def _band_combinations(self) -> int:
        return len(self.exciton.conduction_bands) * len(self.exciton.valence_bands)

    def _k_spacing(self) -> float:
        kpoints = self._kpoints
        if kpoints.shape[0] < 2:
            raise ValueError("At least two k points are required")
        return float(np.linalg.norm(kpoints[1] - kpoints[0]))

    def _reciprocal_amplitudes(self, coefs: np.ndarray) -> np.ndarray:
        nk = self._kpoints.shape[0]
        per_k = np.abs(coefs[: nk * self._band_combinations]) ** 2
        return per_k.reshape(nk, self._band_combinations).sum(axis=1) / self._k_spacing()

    def _displacements(self) -> np.ndarray:
        ndim = int(self.system.ndim)
        lattice = np.atleast_2d(np.asarray(self.system.reciprocal_lattice, dtype=float))[:ndim]
        return _centered_cells(ndim) @ lattice

    def _check_count(self, n: int) -> int:
        dim = self.exciton.exciton_basis_dim
        if n > dim or n < 0:
            raise ValueError(
                "Optional argument n must be a positive integer equal or below basisdim"
            )
        return dim if n == 0 else n

    def _require_single_pair(self, name: str) -> None:
        if len(self.exciton.band_list) != 2:
            raise ValueError(f"{name} requires only one valence and conduction bands")

    # ------------------------------------------------------------------ Observables

    def kinetic_energy(self, index: int) -> float:
        """Energy of the state coming from the bands alone, without interactions."""
        exciton = self.exciton
        if exciton.eigval_k_stack is None:
            raise ValueError("Single-particle energies have not been computed")
        k_stack = np.asarray(exciton.eigval_k_stack, dtype=float)
        kq_stack = (
            k_stack
            if exciton.eigval_kq_stack is None
            else np.asarray(exciton.eigval_kq_stack, dtype=float)
        )
        basis = np.asarray(exciton.basis_states, dtype=int)
        mapping = exciton.band_to_index
        valence = np.array([mapping[int(band)] for band in basis[:, 0]], dtype=int)
        conduction = np.array([mapping[int(band)] for band in basis[:, 1]], dtype=int)
        k_index = basis[:, 2]
        hk = kq_stack[conduction, k_index] - k_stack[valence, k_index]
        coefs = self.eigvec[:, index]
        return float(np.vdot(coefs, hk * coefs).real)

    def potential_energy(self, index: int) -> float:
        """Interaction part of the energy, the total energy minus the kinetic energy."""
        return float(self.eigval[index] - self.kinetic_energy(index))

    def binding_energy(self, index: int, gap: float | None = None) -> float:
        """Exciton energy minus the gap; the gap is determined from the bands when not given."""
        if gap is None:
            gap = self.determine_gap()
        elif gap < 0:
            raise ValueError("Provided gap value must be positive")
        return float(self.eigval[index] - gap)

    def determine_gap(self) -> float:
        """Gap between the exciton bands at the k point where the ground state peaks."""
        exciton = self.exciton
        k_index = self.find_exciton_peak(0)
        valence = exciton.band_to_index[int(np.max(exciton.valence_bands))]
        conduction = exciton.band_to_index[int(np.min(exciton.conduction_bands))]
        stack = np.asarray(exciton.eigval_k_stack, dtype=float)
        return float(stack[conduction, k_index] - stack[valence, k_index])

    def ft_exciton_envelope(self, index: int, electron_position, hole_position) -> float:
        """Fourier transform of the envelope |A(k)|^2 evaluated at Re - Rh."""
        coefs = self.eigvec[:, index]
        kpoints = self._kpoints
        nk = kpoints.shape[0]
        block = self.exciton.exciton_basis_dim // nk
        weights = (np.abs(coefs[: nk * block]) ** 2).reshape(nk, block).sum(axis=1)
        separation = np.asarray(electron_position, dtype=float) - np.asarray(
            hole_position, dtype=float
        )
        phases = np.exp(-1j * (kpoints @ separation))
        return float(np.sum(weights * phases).real)

    def find_exciton_peak(self, index: int) -> int:
        """Index of the k point where the state has its largest coefficient."""
        peak = int(np.argmax(np.abs(self.eigvec[:, index])))
        return peak // self._band_combinations

    def bounding_box_bz(self) -> float:
        """Half side of a box that holds the k-point mesh."""
        kpoints = self._kpoints
        return float(max(kpoints[:, 0].max(), kpoints[:, 1].max()))

    # ------------------------------------------------------------------ Output

    def write_reciprocal_amplitude(self, coefs, file: IO[str]) -> None:
        """Write the squared reciprocal wavefunction of a state (or state index) at each k."""
        state = self._state(coefs)
        file.write("kx\tky\tkz\tProb.\n")
        for kpoint, value in zip(self._kpoints, self._reciprocal_amplitudes(state)):
            file.write(
                f"{kpoint[0]:11.8f}\t{kpoint[1]:11.8f}\t{kpoint[2]:11.8f}\t{value:11.8f}\n"
            )
        file.write("#\n")

    def write_extended_reciprocal_amplitude(self, coefs, file: IO[str]) -> None:
        """Write the reciprocal amplitude repeated over neighbouring zones, inside the bounding box."""
        state = self._state(coefs)
        limit = self.bounding_box_bz()
        displacements = self._displacements()
        for kpoint, value in zip(self._kpoints, self._reciprocal_amplitudes(state)):
            for shift in displacements:
                point = kpoint + shift
                if abs(point[0]) < limit and abs(point[1]) < limit:
                    file.write(
                        f"{point[0]:11.8f}\t{point[1]:11.8f}\t{point[2]:11.8f}\t{value:11.8f}\n"
                    )
        file.write("#\n")

    def write_phase(self, coefs, file: IO[str]) -> None:
        """Write modulus and phase of each coefficient; needs a single band pair."""
        self._require_single_pair("writePhase")
        state = self._state(coefs)
        file.write("kx\tky\tkz\tMod.\tArg.\n")
        for kpoint, value in zip(self._kpoints, state):
            file.write(
                f"{kpoint[0]:11.8f}\t{kpoint[1]:11.8f}\t{kpoint[2]:11.8f}\t"
                f"{abs(value):11.8f}\t{np.angle(value):11.8f}\n"
            )
        file.write("#\n")

    def write_extended_phase(self, coefs, file: IO[str]) -> None:
        """Write modulus and phase over neighbouring zones; needs a single band pair."""
        self._require_single_pair("writeExtendedPhase")
        state = self._state(coefs)
        file.write("kx\tky\tkz\tMod.\tArg.\n")
        limit = self.bounding_box_bz()
        spacing = self._k_spacing()
        displacements = self._displacements()
        for kpoint, value in zip(self._kpoints, state):
            module = abs(value) / spacing
            phase = float(np.angle(value))
            for shift in displacements:
                point = kpoint + shift
                if abs(point[0]) < limit and abs(point[1]) < limit:
                    file.write(
                        f"{point[0]:11.8f}\t{point[1]:11.8f}\t{point[2]:11.8f}\t"
                        f"{module:11.8f}\t{phase:11.8f}\n"
                    )
        file.write("#\n")

    def write_eigenvalues(self, file: IO[str], n: int = 0) -> None:
        """Write the basis dimension and the first ``n`` eigenvalues (all when ``n`` is 0)."""
        count = self._check_count(n)
        file.write(f"{self.exciton.exciton_basis_dim}\t")
        file.write("".join(f"{value:11.7f}\t" for value in self.eigval[:count]))
        file.write("\n")

    def write_states(self, file: IO[str], n: int = 0) -> None:
        """Write the pair basis and then the first ``n`` eigenstates (all when ``n`` is 0)."""
        count = self._check_count(n)
        dim = self.exciton.exciton_basis_dim
        kpoints = self._kpoints
        file.write(f"{dim}\n")
        for v_band, c_band, k_index in np.asarray(self.exciton.basis_states, dtype=int):
            kpoint = kpoints[k_index]
            file.write(
                f"{kpoint[0]:11.7f}\t{kpoint[1]:11.7f}\t{kpoint[2]:11.7f}\t{v_band}\t{c_band}\n"
            )
        for column in range(count):
            file.write(
                "".join(
                    f"{value.real:11.7f}\t{value.imag:11.7f}\t"
                    for value in self.eigvec[:, column]
                )
            )
            file.write("\n")