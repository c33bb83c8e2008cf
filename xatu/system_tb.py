"""Tight-binding systems: Bloch Hamiltonian, bands, gauges and observables."""

from __future__ import annotations

import numpy as np

from xatu.system_configuration import ConfigurationError, SystemInfo
from xatu.utils import check_if_triangular

AU_TO_EV = 27.2


class SystemTB:
    """A periodic tight-binding system built from its real-space matrices.

    ``info`` is a :class:`SystemInfo`, or any object holding one as
    ``system_info`` (such as a parsed configuration). The Fock and overlap
    matrices may be complete or triangular; triangularity is detected from the
    first Fock matrix and can be changed through ``is_triangular``. Set
    ``is_au`` when the energies are given in atomic units, so that they are
    converted to eV when a non-orthogonal basis is used.
    """

    def __init__(self, info):
        info = getattr(info, "system_info", info)
        if not isinstance(info, SystemInfo):
            raise TypeError("SystemTB expects a SystemInfo or a configuration holding one")

        self.ndim = int(info.ndim)
        self.filling = int(info.filling)
        self.bravais_lattice = np.asarray(info.bravais_lattice, dtype=float)
        self.motif = np.atleast_2d(np.asarray(info.motif, dtype=float))
        self.orbitals = np.asarray(info.norbitals, dtype=int)
        self.unit_cell_list = np.atleast_2d(np.asarray(info.bravais_vectors, dtype=float))
        self.hamiltonian_matrices = np.asarray(info.hamiltonian, dtype=complex)
        overlap = info.overlap
        self.overlap_matrices = (
            np.asarray(overlap, dtype=complex)
            if overlap is not None and np.size(overlap)
            else None
        )
        self.rhop = info.rhop

        if self.hamiltonian_matrices.ndim != 3 or self.hamiltonian_matrices.shape[0] == 0:
            raise ConfigurationError("At least one Fock matrix is required")
        self.ncells = self.unit_cell_list.shape[0]
        if self.hamiltonian_matrices.shape[0] != self.ncells:
            raise ConfigurationError("Number of H matrices must match number of Bravais vectors")

        self.natoms = self.motif.shape[0]
        species = self.motif[:, 3].astype(int)
        if species.size and (species.min() < 0 or species.max() >= self.orbitals.size):
            raise ConfigurationError("Motif species index has no orbital count")
        self._orbitals_per_atom = self.orbitals[species]
        self.basisdim = int(self._orbitals_per_atom.sum())
        if self.hamiltonian_matrices.shape[1:] != (self.basisdim, self.basisdim):
            raise ConfigurationError("Fock matrices do not match the basis dimension")

        self.is_triangular = check_if_triangular(self.hamiltonian_matrices[0])
        self.is_au = False

    # ------------------------------------------------------------------ Bloch matrices

    def _bloch_sum(self, matrices: np.ndarray, k) -> np.ndarray:
        kpoint = np.asarray(k, dtype=float)
        phases = np.exp(1j * (self.unit_cell_list @ kpoint))
        total = np.tensordot(phases, matrices, axes=1)
        if self.is_triangular:
            total[np.diag_indices_from(total)] -= np.diag(total) / 2
            total = total + total.conj().T
        return total

    def hamiltonian(self, k) -> np.ndarray:
        """Bloch Hamiltonian H(k) built from the Fock matrices H(R)."""
        return self._bloch_sum(self.hamiltonian_matrices, k)

    def overlap(self, k) -> np.ndarray:
        """Reciprocal overlap matrix S(k) built from the real-space overlaps S(R)."""
        if self.overlap_matrices is None:
            raise ValueError("The system has no overlap matrices")
        return self._bloch_sum(self.overlap_matrices, k)

    def solve_bands(self, k) -> tuple[np.ndarray, np.ndarray]:
        """Energies in ascending order and eigenvectors (by columns) at ``k``.

        With a non-orthogonal basis the Hamiltonian is Löwdin-orthogonalised first.
        """
        h = self.hamiltonian(k)
        if self.overlap_matrices is not None:
            if self.is_au:
                h = h * AU_TO_EV
            h = self._orthogonalize_hamiltonian(k, h)
        return np.linalg.eigh(h)

    def _orthogonalize_hamiltonian(self, k, hamiltonian: np.ndarray) -> np.ndarray:
        eigval, eigvec = np.linalg.eigh(self.overlap(k))
        if np.any(eigval <= 0):
            raise ValueError("Zero or negative overlap eigenvalues found, exiting...")
        root = (eigvec * (1.0 / np.sqrt(eigval))) @ eigvec.conj().T
        return root @ hamiltonian @ root

    # ------------------------------------------------------------------ Gauges

    def _atomic_phases(self, k) -> np.ndarray:
        kpoint = np.asarray(k, dtype=float)
        positions = np.repeat(self.motif[:, :3], self._orbitals_per_atom, axis=0)
        return np.exp(-1j * (positions @ kpoint))

    def lattice_to_atomic_gauge(self, coefs, k) -> np.ndarray:
        """Coefficients of a lattice-gauge state in the atomic gauge."""
        return np.asarray(coefs, dtype=complex) * self._atomic_phases(k)

    def atomic_to_lattice_gauge(self, coefs, k) -> np.ndarray:
        """Coefficients of an atomic-gauge state in the lattice gauge."""
        return np.asarray(coefs, dtype=complex) * self._atomic_phases(k)

    # ------------------------------------------------------------------ Observables

    def expected_spin_z(self, eigvec) -> float:
        """Expectation value of Sz for a basis ordered {|1,up>, |1,down>, |2,up>, ...}."""
        state = np.asarray(eigvec, dtype=complex)
        spin = np.tile([0.5, -0.5], self.basisdim // 2)
        return float(np.vdot(state, state * spin).real)

    def velocity(self, k, first_band: int, second_band: int) -> np.ndarray:
        """Velocity matrix element between two bands at ``k``, one entry per axis."""
        kpoint = np.asarray(k, dtype=float)
        h = self.hamiltonian(kpoint)
        _, eigvec = np.linalg.eigh(h)
        first = eigvec[:, first_band]
        second = eigvec[:, second_band]

        phases = np.exp(1j * (self.unit_cell_list @ kpoint))
        positions = np.repeat(self.motif[:, :3], self._orbitals_per_atom, axis=0)

        result = np.zeros(3, dtype=complex)
        for axis in range(3):
            weights = 1j * phases * self.unit_cell_list[:, axis]
            derivative = np.tensordot(weights, self.hamiltonian_matrices, axes=1)
            column = positions[:, axis]
            difference = column[:, np.newaxis] - column[np.newaxis, :]
            ih_t = 1j * h * difference.T
            result[axis] = np.vdot(first, (derivative + ih_t) @ second)
        return result