"""Electron-hole pair basis and common settings of an exciton calculation."""

from __future__ import annotations

import warnings

import numpy as np

_LABEL_WIDTH = 30


def fix_global_phase(coefs) -> np.ndarray:
    """Return the states (by columns) with their phase chosen so each column sums to a real number."""
    states = np.array(coefs, dtype=complex)
    if states.ndim == 1:
        states = states[:, np.newaxis]
    phases = np.angle(states.sum(axis=0))
    return states * np.exp(-1j * phases)


def _fermi_level(system) -> int:
    """Index of the highest occupied band of ``system``."""
    level = getattr(system, "fermi_level", None)
    if level is None:
        level = int(system.filling) - 1
    return int(level)


class Exciton:
    """Settings and electron-hole pair basis shared by exciton calculations.

    ``system`` provides ``filling`` (or ``fermi_level``) and, once the
    Brillouin zone has been meshed, ``kpoints`` with one k point per row.
    Bands are given relative to the Fermi level: zero and negative values are
    valence bands, positive values conduction bands.
    """

    def __init__(self, system):
        self.system = system
        self._ncell = 0
        self._cutoff: float | None = None
        self._q = np.zeros(3)
        self.scissor = 0.0
        self.exchange = False

        self.bands = np.zeros(0, dtype=int)
        self.valence_bands = np.zeros(0, dtype=int)
        self.conduction_bands = np.zeros(0, dtype=int)
        self.band_list = np.zeros(0, dtype=int)
        self.band_to_index: dict[int, int] = {}

        self.basis_states = np.zeros((0, 3), dtype=int)
        self.exciton_basis_dim = 0
        self.hbs: np.ndarray | None = None
        self.eigval_k_stack: np.ndarray | None = None
        self.eigval_kq_stack: np.ndarray | None = None
        self.eigvec_k_stack: np.ndarray | None = None
        self.eigvec_kq_stack: np.ndarray | None = None

    # ------------------------------------------------------------------ Settings

    @property
    def fermi_level(self) -> int:
        """Index of the highest occupied band of the system."""
        return _fermi_level(self.system)

    @property
    def ncell(self) -> int:
        """Number of unit cells along each axis."""
        return self._ncell

    @ncell.setter
    def ncell(self, value: int) -> None:
        if value <= 0:
            raise ValueError("ncell must be a positive number")
        self._ncell = int(value)

    @property
    def q(self) -> np.ndarray:
        """Center-of-mass momentum of the exciton."""
        return self._q

    @q.setter
    def q(self, value) -> None:
        vector = np.asarray(value, dtype=float).ravel()
        if vector.size != 3:
            raise ValueError("Q vector must be 3d")
        self._q = vector

    @property
    def cutoff(self) -> float | None:
        """Cutoff over unit cells used in the lattice Fourier transform of the interaction."""
        return self._cutoff

    @cutoff.setter
    def cutoff(self, value: float) -> None:
        if value <= 0:
            raise ValueError("cutoff must be a positive number")
        self._cutoff = float(value)
        if value > self._ncell:
            warnings.warn("cutoff is higher than number of unit cells", stacklevel=2)

    @property
    def total_cells(self) -> int:
        """Number of k points of the current mesh."""
        kpoints = getattr(self.system, "kpoints", None)
        return 0 if kpoints is None else int(np.atleast_2d(kpoints).shape[0])

    # ------------------------------------------------------------------ Bands

    def set_bands(self, bands) -> None:
        """Use the given bands, relative to the Fermi level."""
        relative = np.asarray(bands, dtype=int).ravel()
        fermi = self.fermi_level
        self.bands = relative
        self.valence_bands = relative[relative <= 0] + fermi
        self.conduction_bands = relative[relative > 0] + fermi
        self.band_list = np.concatenate([self.valence_bands, self.conduction_bands])

    def set_band_range(self, nbands: int, nrmbands: int) -> None:
        """Use ``nbands`` bands on each side of the gap, leaving out the ``nrmbands`` closest ones."""
        if nbands <= 0 or nrmbands < 0 or nrmbands >= nbands:
            raise ValueError(
                "Included bands must be positive and removed bands non-negative and fewer"
            )
        fermi = self.fermi_level
        self.valence_bands = np.arange(fermi - nbands + 1, fermi - nrmbands + 1)
        self.conduction_bands = np.arange(fermi + 1 + nrmbands, fermi + nbands + 1)
        self.bands = np.concatenate([self.valence_bands, self.conduction_bands])
        self.band_list = self.bands.copy()

    def generate_band_dictionary(self) -> dict[int, int]:
        """Map each band of ``band_list`` to its storage index."""
        self.band_to_index = {int(band): index for index, band in enumerate(self.band_list)}
        return self.band_to_index

    # ------------------------------------------------------------------ Basis

    def create_basis(self, conduction_bands, valence_bands) -> np.ndarray:
        """Electron-hole pair basis: one row ``(v, c, k_index)`` per pair, k slowest, v fastest."""
        conduction = np.asarray(conduction_bands, dtype=int).ravel()
        valence = np.asarray(valence_bands, dtype=int).ravel()
        nk = self.total_cells
        k_index, c_band, v_band = np.meshgrid(
            np.arange(nk), conduction, valence, indexing="ij"
        )
        states = np.column_stack([v_band.ravel(), c_band.ravel(), k_index.ravel()]).astype(int)
        self.basis_states = states
        self.exciton_basis_dim = states.shape[0]
        return states

    def initialize_basis(self) -> np.ndarray:
        """Build the basis from the current valence and conduction bands."""
        return self.create_basis(self.conduction_bands, self.valence_bands)

    def brillouin_zone_mesh(self, ncell: int) -> None:
        """Mesh the Brillouin zone of the system with ``ncell`` points per axis."""
        mesh = getattr(self.system, "brillouin_zone_mesh", None)
        if mesh is None:
            raise TypeError("The system does not provide a Brillouin zone mesh")
        mesh(ncell)

    # ------------------------------------------------------------------ Report

    def information(self) -> str:
        """Human-readable summary of the exciton settings."""
        lines = [f"{'Number of cells: ':<{_LABEL_WIDTH}}{self.ncell}"]
        lines.append(
            f"{'Valence bands:':<{_LABEL_WIDTH}}"
            + "".join(f"{band}\t" for band in self.valence_bands)
        )
        lines.append(
            f"{'Conduction bands: ':<{_LABEL_WIDTH}}"
            + "".join(f"{band}\t" for band in self.conduction_bands)
        )
        lines.append("")
        if self.exchange:
            lines.append(f"{'Exchange: ':<{_LABEL_WIDTH}}True")
        if np.linalg.norm(self.q) > 1e-7:
            lines.append(
                f"{'Q: ':<{_LABEL_WIDTH}}" + "".join(f"{value:g}  " for value in self.q)
            )
        lines.append(f"{'Scissor cut: ':<{_LABEL_WIDTH}}{self.scissor:g}")
        return "\n".join(lines) + "\n"