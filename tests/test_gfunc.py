import pytest

from jx3sim.gfunc import (
    get_distance_sq,
    get_editor_string,
    get_value_by_bits,
    is_client,
    random_int,
    set_value_by_bits,
)


def test_get_value_by_bits_reads_bits():
    assert get_value_by_bits(10, 1, 1) == 1
    assert get_value_by_bits(10, 0, 1) == 0


@pytest.mark.parametrize("value", [0, 10, 12345, -7])
@pytest.mark.parametrize("bit", [0, 3, 17, 30])
@pytest.mark.parametrize("new_bit", [0, 1])
def test_set_then_get_round_trip(value, bit, new_bit):
    result = set_value_by_bits(value, bit, 1, new_bit)
    assert get_value_by_bits(result, bit, 1) == new_bit
    other = (bit + 1) % 31
    assert get_value_by_bits(result, other, 1) == get_value_by_bits(value, other, 1)


def test_set_rejects_bad_new_bit():
    assert set_value_by_bits(10, 2, 1, 2) == 10
    assert set_value_by_bits(10, 2, 1, -1) == 10


def test_set_rejects_bad_bit_index():
    assert set_value_by_bits(10, 32, 1, 1) == 10
    assert set_value_by_bits(10, -1, 1, 1) == 10


def test_set_sign_bit_wraps_to_int32():
    assert set_value_by_bits(0, 31, 1, 1) == -(2**31)


def test_distance_sq_properties():
    assert get_distance_sq(1, 2, 3, 1, 2, 3) == 0
    assert get_distance_sq(1, 2, 3, 4, 6, 3) == get_distance_sq(4, 6, 3, 1, 2, 3)
    assert get_distance_sq(0, 0, 0, 3, 0, 0) == 9


def test_random_int_in_range():
    values = {random_int(1, 3) for _ in range(200)}
    assert values <= {1, 2, 3}
    assert random_int(5, 5) == 5


def test_random_int_bad_range():
    with pytest.raises(ValueError):
        random_int(4, 1)


def test_editor_string_and_client_flag():
    assert get_editor_string(3, 4) == "3-4"
    assert is_client() is False