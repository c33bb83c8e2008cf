import io
import re

import numpy as np
import pytest

from xatu.utils import (
    array_hash,
    check_if_triangular,
    density_of_states,
    detect_degeneracies,
    format_energies,
    read_vector,
    retarded_green,
    write_density_of_states,
    write_vector,
    write_vectors,
)


@pytest.mark.parametrize(
    "eigval, n, expected",
    [
        ([5.335690, 5.335690, 6.074062], 3, [(5.335690, 2), (6.074062, 1)]),
        ([6.234291, 6.236636, 6.731819], 3, [(6.234291, 1), (6.236636, 1), (6.731819, 1)]),
        ([5.335690] * 8 + [6.074062] * 4, 12, [(5.335690, 8), (6.074062, 4)]),
        ([1.810464, 1.810464, 1.825740, 1.855544], 4, [(1.810464, 2), (1.825740, 1), (1.855544, 1)]),
        (
            [1.795378, 1.809810, 1.935880, 1.950567],
            4,
            [(1.795378, 1), (1.809810, 1), (1.935880, 1), (1.950567, 1)],
        ),
        ([1.768783, 1.768783, 1.780562, 1.780562], 2, [(1.768783, 2)]),
    ],
)
def test_detect_degeneracies_source_cases(eigval, n, expected):
    pairs = detect_degeneracies(np.array(eigval), n, 6)
    assert len(pairs) == len(expected)
    for (energy, degeneracy), (exp_energy, exp_degeneracy) in zip(pairs, expected):
        assert energy == pytest.approx(exp_energy, abs=1e-4)
        assert degeneracy == exp_degeneracy


def test_detect_degeneracies_precision_threshold():
    values = [1.0, 1.0 + 5e-7, 2.0]
    assert detect_degeneracies(values, 3, 6)[0][1] == 2
    assert detect_degeneracies(values, 3, 8)[0][1] == 1


def test_detect_degeneracies_rejects_bad_n():
    with pytest.raises(ValueError):
        detect_degeneracies([1.0, 2.0], -1, 6)
    with pytest.raises(ValueError):
        detect_degeneracies([1.0, 2.0], 3, 6)


def test_format_energies_table():
    table = format_energies([5.335690, 5.335690, 6.074062], 3, 6)
    lines = table.strip().split("\n")
    assert len(lines) == 3 + 2 * 2
    assert re.fullmatch(r"\|\s+1\|\s+5\.335690\|\s+2\|", lines[3])
    assert re.fullmatch(r"\|\s+2\|\s+6\.074062\|\s+1\|", lines[5])


def test_array_hash_zero_vector():
    assert array_hash(np.array([0.0, 0.0, 0.0])) == 0


def test_array_hash_single_element():
    assert array_hash([[1.0]]) == pytest.approx(3.5)


def test_array_hash_row_and_column_differ():
    values = np.array([1.0, 2.0, 3.0])
    assert array_hash(values) == array_hash(values.reshape(1, -1))
    assert array_hash(values) != pytest.approx(array_hash(values.reshape(-1, 1)))


def test_array_hash_rejects_empty():
    with pytest.raises(ValueError):
        array_hash(np.zeros((0, 3)))


def test_check_if_triangular():
    upper = np.array([[1, 2], [0, 3]], dtype=complex)
    assert check_if_triangular(upper) is True
    assert check_if_triangular(upper.T) is True
    assert check_if_triangular(np.diag([1.0, 2.0])) is False
    assert check_if_triangular(np.ones((2, 2))) is False


def test_write_vector_format():
    buffer = io.StringIO()
    write_vector([1, 2.5], buffer)
    assert buffer.getvalue() == "1.000000\t2.500000\t\n"


def test_write_vectors_modes():
    matrix = np.array([[1.0, 2.0], [3.0, 4.0]])
    rows = io.StringIO()
    write_vectors(matrix, rows, "row")
    assert rows.getvalue().splitlines()[0] == "1.000000\t2.000000\t"
    cols = io.StringIO()
    write_vectors(matrix, cols, "col")
    assert cols.getvalue().splitlines()[0] == "1.000000\t3.000000\t"


def test_write_vectors_bad_mode():
    with pytest.raises(ValueError):
        write_vectors(np.eye(2), io.StringIO(), "diagonal")


def test_read_vector_round_trip(tmp_path):
    matrix = np.array([[0.5, -1.25], [3.0, 4.75]])
    path = tmp_path / "vectors.txt"
    with open(path, "w", encoding="utf-8") as handle:
        write_vectors(matrix, handle)
    assert np.allclose(read_vector(path), matrix.ravel())


def test_read_vector_stops_at_non_number(tmp_path):
    path = tmp_path / "mixed.txt"
    path.write_text("1 2 x 3\n4\n", encoding="utf-8")
    assert np.allclose(read_vector(path), [1.0, 2.0, 4.0])


def test_retarded_green_has_negative_imaginary_part():
    value = retarded_green(0.3, 0.01, 0.0)
    assert value.imag < 0
    assert value == pytest.approx(1 / (0.3 + 0.01j))


def test_density_of_states_symmetric_around_level():
    energies = np.array([[1.0]])
    left = density_of_states(0.8, 0.05, energies)
    right = density_of_states(1.2, 0.05, energies)
    assert left == pytest.approx(right)
    assert density_of_states(1.0, 0.05, energies) > left


def test_density_of_states_averages_over_columns():
    single = density_of_states(0.0, 0.1, np.array([[0.5]]))
    double = density_of_states(0.0, 0.1, np.array([[0.5, 0.5]]))
    assert single == pytest.approx(double)


def test_write_density_of_states_normalised():
    energies = np.array([[-1.0, -0.8], [1.0, 1.2]])
    buffer = io.StringIO()
    write_density_of_states(energies, 0.05, buffer)
    data = np.array([[float(x) for x in line.split("\t")] for line in buffer.getvalue().splitlines()])
    assert data.shape == (2000, 2)
    step = data[1, 0] - data[0, 0]
    assert data[:, 1].sum() * step == pytest.approx(1.0, abs=1e-3)
    assert data[0, 0] == pytest.approx(-1.5, abs=1e-6)
    assert data[-1, 0] == pytest.approx(1.7, abs=1e-6)