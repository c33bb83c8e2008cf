import warnings

import numpy as np
import pytest

from xatu.exciton import Exciton, fix_global_phase


class FakeSystem:
    def __init__(self, filling, nk=0):
        self.filling = filling
        self.kpoints = np.zeros((nk, 3)) if nk else None
        self.meshed_with = None

    def brillouin_zone_mesh(self, ncell):
        self.meshed_with = ncell
        self.kpoints = np.zeros((ncell * ncell, 3))


def test_set_bands_splits_valence_and_conduction():
    exciton = Exciton(FakeSystem(filling=4))
    exciton.set_bands([-1, 0, 1, 2])
    assert exciton.fermi_level == 3
    assert list(exciton.valence_bands) == [2, 3]
    assert list(exciton.conduction_bands) == [4, 5]
    assert np.all(exciton.valence_bands <= exciton.fermi_level)
    assert np.all(exciton.conduction_bands > exciton.fermi_level)


def test_set_band_range_counts_and_gap():
    exciton = Exciton(FakeSystem(filling=6))
    exciton.set_band_range(3, 1)
    assert exciton.valence_bands.size == 2
    assert exciton.conduction_bands.size == 2
    assert exciton.valence_bands.max() == exciton.fermi_level - 1
    assert exciton.conduction_bands.min() == exciton.fermi_level + 2
    assert exciton.bands.size == 4


def test_set_band_range_without_removed_bands():
    exciton = Exciton(FakeSystem(filling=2))
    exciton.set_band_range(1, 0)
    assert list(exciton.valence_bands) == [exciton.fermi_level]
    assert list(exciton.conduction_bands) == [exciton.fermi_level + 1]


@pytest.mark.parametrize("nbands, nrmbands", [(0, 0), (-1, 0), (2, 2), (2, -1)])
def test_set_band_range_rejects_invalid(nbands, nrmbands):
    exciton = Exciton(FakeSystem(filling=2))
    with pytest.raises(ValueError):
        exciton.set_band_range(nbands, nrmbands)


def test_create_basis_shape_and_order():
    exciton = Exciton(FakeSystem(filling=4, nk=5))
    exciton.set_bands([-1, 0, 1])
    states = exciton.initialize_basis()
    nv = exciton.valence_bands.size
    nc = exciton.conduction_bands.size
    assert states.shape == (5 * nv * nc, 3)
    assert exciton.exciton_basis_dim == states.shape[0]
    assert np.array_equal(exciton.basis_states, states)
    # k index is the slowest index, valence band the fastest
    assert np.all(np.diff(states[:, 2]) >= 0)
    assert np.array_equal(states[:nv, 0], exciton.valence_bands)
    assert set(states[:, 1]) == set(exciton.conduction_bands.tolist())


def test_generate_band_dictionary_inverts_band_list():
    exciton = Exciton(FakeSystem(filling=8))
    exciton.set_band_range(2, 0)
    mapping = exciton.generate_band_dictionary()
    assert len(mapping) == exciton.band_list.size
    for index, band in enumerate(exciton.band_list):
        assert mapping[int(band)] == index


def test_fix_global_phase_makes_column_sums_real():
    rng = np.random.default_rng(3)
    coefs = rng.normal(size=(4, 3)) + 1j * rng.normal(size=(4, 3))
    fixed = fix_global_phase(coefs)
    sums = fixed.sum(axis=0)
    assert np.allclose(sums.imag, 0.0)
    assert np.all(sums.real >= 0)
    assert np.allclose(np.abs(fixed), np.abs(coefs))


def test_brillouin_zone_mesh_delegates():
    system = FakeSystem(filling=2)
    exciton = Exciton(system)
    exciton.brillouin_zone_mesh(4)
    assert system.meshed_with == 4
    assert exciton.total_cells == 16


def test_brillouin_zone_mesh_requires_support():
    class Bare:
        filling = 2

    with pytest.raises(TypeError):
        Exciton(Bare()).brillouin_zone_mesh(3)


def test_setter_validation():
    exciton = Exciton(FakeSystem(filling=2))
    exciton.ncell = 5
    exciton.q = [0.0, 0.0, 0.5]
    exciton.cutoff = 3
    with pytest.raises(ValueError):
        exciton.ncell = 0
    with pytest.raises(ValueError):
        exciton.q = [0.0, 1.0]
    with pytest.raises(ValueError):
        exciton.cutoff = -1.0
    assert exciton.ncell == 5
    assert list(exciton.q) == [0.0, 0.0, 0.5]
    assert exciton.cutoff == 3.0


def test_cutoff_above_ncell_warns():
    exciton = Exciton(FakeSystem(filling=2))
    exciton.ncell = 5
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        exciton.cutoff = 10
    assert exciton.cutoff == 10.0
    assert any("cutoff is higher" in str(w.message) for w in caught)


def test_information_reports_settings():
    exciton = Exciton(FakeSystem(filling=2))
    exciton.ncell = 20
    exciton.set_band_range(1, 0)
    exciton.exchange = True
    exciton.q = [0.0, 0.1, 0.0]
    text = exciton.information()
    assert text.startswith("Number of cells: ")
    assert "20" in text.splitlines()[0]
    assert "Exchange: " in text
    assert "Q: " in text
    assert "Scissor cut: " in text


def test_information_omits_zero_q_and_no_exchange():
    exciton = Exciton(FakeSystem(filling=2))
    text = exciton.information()
    assert "Q: " not in text
    assert "Exchange" not in text