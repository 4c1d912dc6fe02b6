import math

import numpy as np
import pytest

from WTSE.errors import ConfigurationError, InvalidTimbreError
from WTSE.SMM.constants import TABLE_SIZE, SQUARE_AMPLITUDE
from WTSE.SGM.wavetable import WaveTable, make_wavetable


def test_new_table_is_unset():
    table = WaveTable()
    assert not table.is_ready
    assert table.samples is None
    assert len(table) == TABLE_SIZE
    with pytest.raises(IndexError):
        table[0]


def test_sine_landmarks(sine_table):
    assert sine_table[0] == 0.0
    assert sine_table[TABLE_SIZE // 4] == pytest.approx(1.0, abs=1e-12)
    assert sine_table[3 * TABLE_SIZE // 4] == pytest.approx(-1.0, abs=1e-12)
    assert sine_table.samples.shape == (TABLE_SIZE,)
    assert sine_table.timbre == "sine"


def test_sine_matches_formula(sine_table):
    for i in (1, 37, 250, 399):
        assert sine_table[i] == pytest.approx(math.sin(2 * math.pi * i / TABLE_SIZE), abs=1e-12)


def test_samples_view_is_read_only(sine_table):
    with pytest.raises(ValueError):
        sine_table.samples[0] = 0.5


def test_square_levels():
    table = WaveTable()
    table.square()
    half = TABLE_SIZE // 2
    assert np.all(table.samples[:half] == SQUARE_AMPLITUDE)
    assert np.all(table.samples[half:] == -SQUARE_AMPLITUDE)


def test_square_odd_size_fails_and_leaves_table_unchanged():
    table = WaveTable(size=401)
    table.sine()
    before = table.samples.copy()
    with pytest.raises(ConfigurationError):
        table.square()
    assert np.array_equal(table.samples, before)
    assert table.timbre == "sine"


def test_square_odd_size_on_unset_table_stays_unset():
    table = WaveTable(size=7)
    with pytest.raises(ConfigurationError):
        table.square()
    assert not table.is_ready


def test_custom_all_zero_is_invalid_timbre():
    table = WaveTable()
    with pytest.raises(InvalidTimbreError):
        table.custom([0] * 32)
    with pytest.raises(InvalidTimbreError):
        table.custom([])
    with pytest.raises(InvalidTimbreError):
        table.custom([None, 0, None])


def test_failed_custom_leaves_previous_table():
    table = WaveTable()
    table.square()
    before = table.samples.copy()
    with pytest.raises(InvalidTimbreError):
        table.custom([0, 0])
    assert np.array_equal(table.samples, before)


def test_custom_fundamental_only_equals_sine(sine_table):
    table = WaveTable()
    table.custom([100])
    assert np.allclose(table.samples, sine_table.samples, atol=1e-12)


def test_custom_ignores_previous_contents(sine_table):
    table = WaveTable()
    table.square()
    table.custom([40])
    assert np.allclose(table.samples, sine_table.samples, atol=1e-12)


def test_custom_second_harmonic_reads_sine_at_double_index(sine_table):
    table = WaveTable()
    table.custom([0, 100])
    sine = sine_table.samples
    for i in (0, 1, 50, 199, 200, 399):
        assert table[i] == pytest.approx(sine[(2 * i) % TABLE_SIZE], abs=1e-12)


def test_custom_mix_is_scaled_by_total_amplitude(sine_table):
    table = WaveTable()
    table.custom([50, None, 50])
    sine = sine_table.samples
    for i in (3, 77, 333):
        expected = (sine[i] + sine[(3 * i) % TABLE_SIZE]) / 2.0
        assert table[i] == pytest.approx(expected, abs=1e-12)
    assert np.max(np.abs(table.samples)) <= 1.0


def test_custom_rejects_too_many_harmonics():
    with pytest.raises(InvalidTimbreError):
        WaveTable().custom([10] * 33)


@pytest.mark.parametrize("amplitude", [-1, 101])
def test_custom_rejects_out_of_range_amplitude(amplitude):
    with pytest.raises(InvalidTimbreError):
        WaveTable().custom([100, amplitude])


def test_load_replaces_samples():
    table = WaveTable()
    table.load([0.0] * TABLE_SIZE)
    assert table.is_ready
    assert np.all(table.samples == 0.0)


@pytest.mark.parametrize("samples", [[0.0] * (TABLE_SIZE - 1), [1.5] * TABLE_SIZE,
                                     [float("nan")] * TABLE_SIZE])
def test_load_rejects_bad_samples(samples):
    table = WaveTable()
    with pytest.raises(ConfigurationError):
        table.load(samples)
    assert not table.is_ready


def test_make_wavetable_by_name():
    assert make_wavetable("sine").timbre == "sine"
    assert make_wavetable("Square").timbre == "square"
    assert make_wavetable("custom", [100, 50]).timbre == "custom"
    with pytest.raises(InvalidTimbreError):
        make_wavetable("custom")
    with pytest.raises(ConfigurationError):
        make_wavetable("sawtooth")


@pytest.mark.parametrize("amplitude", ["50", 50.0, True])
def test_custom_rejects_non_integer_amplitude(amplitude):
    table = WaveTable()
    table.sine()
    before = table.samples.copy()
    with pytest.raises(InvalidTimbreError):
        table.custom([100, amplitude])
    assert table.timbre == "sine"
    assert np.array_equal(table.samples, before)
