# xatu

Building blocks for exciton calculations in crystalline solids described by
tight-binding models: parsing of system descriptions, Bloch Hamiltonians and
bands, electrostatic potentials, the electron-hole pair basis, and analysis
and text output of exciton eigenstates.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `xatu.system_configuration` — `SystemConfiguration(contents)` takes a
  mapping from argument names (`dimension`, `bravaislattice`, `motif`,
  `norbitals`, `filling`, `bravaisvectors`, `hamiltonian`, and optionally
  `overlap`; case and spaces in the names are ignored) to the lines of each
  block, parses them into a `SystemInfo` dataclass stored as `system_info`,
  and checks that the blocks agree. Malformed or inconsistent input raises
  `ConfigurationError`. The block parsers `parse_vectors`, `parse_motif`,
  `parse_orbitals` and `parse_matrices` are also available on their own;
  matrices are written row by row, each closed by a line holding `&`.
- `xatu.wannier90` — `Wannier90Configuration(filename, electron_num)` reads a
  Wannier90 `tb.dat` file: lattice vectors, Wigner-Seitz degeneracies,
  Hamiltonian H(R) and position matrix elements r(R). It derives the system
  dimension, the Bravais vectors and a motif taken from the diagonal of
  r(R = 0), and exposes them as a `SystemInfo` in `system_info`.
  `summary()` returns a text report of the parsed values.
- `xatu.system_tb` — `SystemTB(info)` accepts a `SystemInfo` or an object
  holding one as `system_info`. It provides `hamiltonian(k)`, `overlap(k)`,
  `solve_bands(k)` (energies and eigenvectors, with Löwdin orthogonalisation
  when overlap matrices are present and conversion from atomic units to eV
  when `is_au` is set), `lattice_to_atomic_gauge`, `atomic_to_lattice_gauge`,
  `expected_spin_z` and `velocity(k, first_band, second_band)`.
- `xatu.exciton` — `Exciton(system)` holds the settings of an exciton
  calculation (`ncell`, `q`, `cutoff`, `scissor`, `exchange`), selects bands
  with `set_bands` or `set_band_range`, builds the electron-hole pair basis
  with `create_basis` / `initialize_basis`, maps bands to storage indices with
  `generate_band_dictionary`, and describes itself with `information()`.
  `fix_global_phase(coefs)` rotates each state so its coefficients sum to a
  real number.
- `xatu.result` — `Result(exciton, eigval, eigvec)` computes kinetic,
  potential and binding energies, the gap at the exciton peak, the Fourier
  transform of the envelope, and writes reciprocal amplitudes, phases (also
  over neighbouring zones), eigenvalues and states to text files.
- `xatu.interactions` — Keldysh and Coulomb potentials, the Struve function
  `struve_h0`, the analytic Keldysh Fourier transform, motif Fourier
  transforms, `extend_motif_ft` and `exact_interaction_term`.
- `xatu.davidson` — `davidson(matrix, neigval, tol)` returns the lowest
  eigenvalues of a Hermitian matrix and the Ritz vectors of the last
  iteration.
- `xatu.utils` — density of states and its normalised output,
  `detect_degeneracies`, `format_energies`, `check_if_triangular`,
  `array_hash` and small vector reading and writing helpers.

## Examples

A one-dimensional chain with one orbital per cell:

```python
from xatu.system_configuration import SystemConfiguration
from xatu.system_tb import SystemTB

config = SystemConfiguration({
    "Dimension": ["1"],
    "Bravais lattice": ["1 0 0"],
    "Motif": ["0 0 0 0"],
    "Norbitals": ["1"],
    "Filling": ["1"],
    "Bravais vectors": ["0 0 0", "1 0 0", "-1 0 0"],
    "Hamiltonian": ["0", "&", "-1", "&", "-1", "&"],
})
system = SystemTB(config)
energies, states = system.solve_bands([0.0, 0.0, 0.0])  # energies == [-2.0]
```

Grouping degenerate energies:

```python
import numpy as np
from xatu.utils import detect_degeneracies, format_energies

energies = np.array([5.33569, 5.33569, 6.074062])
print(detect_degeneracies(energies, 3, 6))   # [(5.33569, 2), (6.074062, 1)]
print(format_energies(energies, 3, 6))
```

Reading a Wannier90 model:

```python
from xatu.wannier90 import Wannier90Configuration
from xatu.system_tb import SystemTB

config = Wannier90Configuration("hBN_tb.dat", 4)
system = SystemTB(config)
energies, states = system.solve_bands([0.0, 0.0, 0.0])
```

## What the package does not do

- It does not read model files from disk: `SystemConfiguration` works on
  blocks of lines already split by argument. Only Wannier90 `tb.dat` files
  are read directly.
- It does not generate Brillouin-zone meshes or reciprocal lattices.
  `Exciton.brillouin_zone_mesh` calls a `brillouin_zone_mesh` method of the
  system it is given, which `SystemTB` does not have; k points
  (`kpoints`), `ndim` and `reciprocal_lattice` must be supplied on the system
  object by the caller.
- It does not build or diagonalise the Bethe-Salpeter Hamiltonian. `Result`
  analyses eigenvalues and eigenstates obtained elsewhere, and needs the
  single-particle energies (`eigval_k_stack`) set on the exciton for the
  energy observables.
- It has no command-line program.