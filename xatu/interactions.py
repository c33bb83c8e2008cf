"""Electrostatic potentials and interaction matrix elements between Bloch states."""

from __future__ import annotations

import cmath
import math

import numpy as np
from scipy.special import y0

from xatu.utils import EC, EPS0, PI


def struve_h0(x: float) -> float:
    """Struve function H0(x) for x >= 0, by series (x <= 20) or asymptotic expansion."""
    s = 1.0
    r = 1.0
    if x <= 20.0:
        a0 = 2.0 * x / PI
        for k in range(1, 61):
            r = -r * x / (2.0 * k + 1.0) * x / (2.0 * k + 1.0)
            s += r
            if abs(r) < abs(s) * 1.0e-12:
                break
        return a0 * s

    km = 25 if x >= 50.0 else int(0.5 * (x + 1.0))
    for k in range(1, km + 1):
        r = -r * ((2.0 * k - 1.0) / x) ** 2
        s += r
        if abs(r) < abs(s) * 1.0e-12:
            break
    t = 4.0 / x
    t2 = t * t
    p0 = (
        (((-0.37043e-5 * t2 + 0.173565e-4) * t2 - 0.487613e-4) * t2 + 0.17343e-3) * t2
        - 0.1753062e-2
    ) * t2 + 0.3989422793
    q0 = t * (
        (
            (((0.32312e-5 * t2 - 0.142078e-4) * t2 + 0.342468e-4) * t2 - 0.869791e-4) * t2
            + 0.4564324e-3
        )
        * t2
        - 0.0124669441
    )
    ta0 = x - 0.25 * PI
    by0 = 2.0 / math.sqrt(x) * (p0 * math.sin(ta0) + q0 * math.cos(ta0))
    return 2.0 / (PI * x) * s + by0


def keldysh(r: float, r0: float, eps_s: float, eps_m: float, cutoff: float, a: float) -> float:
    """Keldysh potential in eV at distance ``r``.

    V(0) is regularised as V(a), and the potential vanishes beyond ``cutoff``.
    """
    eps_bar = (eps_m + eps_s) / 2
    prefactor = EC / (8e-10 * EPS0 * eps_bar * r0)
    if r == 0:
        x = a / r0
    elif r > cutoff:
        return 0.0
    else:
        x = abs(r) / r0
    return float(prefactor * (struve_h0(x) - y0(x)))


def keldysh_ft(q, r0: float, eps_s: float, eps_m: float, unit_cell_area: float, total_cells: int) -> float:
    """Analytic Fourier transform of the Keldysh potential at momentum ``q``; zero at q = 0."""
    eps_bar = (eps_m + eps_s) / 2
    qnorm = float(np.linalg.norm(np.asarray(q, dtype=float)))
    potential = 0.0 if qnorm < 1e-8 else 1 / (qnorm * (1 + r0 * qnorm))
    return potential * EC * 1e10 / (2 * EPS0 * eps_bar * unit_cell_area * total_cells)


def coulomb(r: float, regularization: float) -> float:
    """Coulomb potential in eV; below 1e-8 the distance is replaced by ``regularization``."""
    if r > 1e-8:
        return EC / (4e-10 * PI * EPS0 * r)
    return EC * 1e10 / (4 * PI * EPS0 * regularization)


def motif_fourier_transform(
    first_atom,
    second_atom,
    k,
    cells,
    total_cells: int,
    r0: float,
    eps_s: float,
    eps_m: float,
    cutoff: float,
    a: float,
) -> complex:
    """Lattice Fourier transform of the Keldysh potential displaced by two motif positions."""
    first = np.asarray(first_atom, dtype=float)
    second = np.asarray(second_atom, dtype=float)
    kpoint = np.asarray(k, dtype=float)
    total = sum(
        keldysh(float(np.linalg.norm(cell + first - second)), r0, eps_s, eps_m, cutoff, a)
        * cmath.exp(1j * float(np.dot(kpoint, cell)))
        for cell in np.atleast_2d(np.asarray(cells, dtype=float))
    )
    return complex(total) / total_cells


def extend_motif_ft(motif_ft, basisdim: int, motif, orbitals) -> np.ndarray:
    """Expand an atom-by-atom matrix to the orbital basis, repeating each entry over orbitals."""
    matrix = np.asarray(motif_ft, dtype=complex)
    species = np.asarray(motif, dtype=float)[:, 3].astype(int)
    counts = np.asarray(orbitals, dtype=int)[species]
    blocks = np.repeat(np.repeat(matrix, counts, axis=0), counts, axis=1)
    size = blocks.shape[0]
    if size > basisdim:
        raise ValueError(f"motif orbitals ({size}) exceed the basis dimension ({basisdim})")
    extended = np.zeros((basisdim, basisdim), dtype=complex)
    extended[:size, :size] = blocks
    return extended


def exact_interaction_term(coefs_k1, coefs_k2, coefs_k3, coefs_k4, motif_ft, motif, orbitals) -> complex:
    """Real-space interaction matrix element, direct or exchange depending on state order.

    Direct term order: (ck, v'k', c'k', vk); exchange order: (ck, v'k', vk, c'k').
    """
    c1 = np.asarray(coefs_k1, dtype=complex)
    first = np.conj(c1) * np.asarray(coefs_k3, dtype=complex)
    second = np.conj(np.asarray(coefs_k2, dtype=complex)) * np.asarray(coefs_k4, dtype=complex)
    extended = extend_motif_ft(motif_ft, c1.size, motif, orbitals)
    return complex(np.sum(first * (extended @ second)))