import io
import itertools
import logging

import numpy as np
import pytest

from WTSE.errors import ConfigurationError, ProtocolError
from WTSE.SMM.config import EncoderConfig
from WTSE.SMM.constants import (
    TABLE_SIZE, HEADER_SIZE, SAMPLE_RATES, BITS_PER_SAMPLE_CHOICES, CHANNEL_CHOICES,
)
from WTSE.SMM.melody import Note
from WTSE.SGM.sample_codec import float_to_int16, to_signed
from WTSE.SGM.wav_encoder import (
    EncoderState, create_encoder, render_wav_bytes,
    adjusted_increment, samples_per_block, blocks_for_duration,
)
from WTSE.SGM.wavetable import WaveTable
from WTSE.SVM.wav_inspect import read_header, check_header, decode_samples

ALL_CONFIGS = [
    EncoderConfig.create(ch, rate, bits)
    for ch, rate, bits in itertools.product(CHANNEL_CHOICES, SAMPLE_RATES, BITS_PER_SAMPLE_CHOICES)
]

MONO_44K_16 = EncoderConfig.create(1, 44_100, 16)


class FlakyBuffer(io.BytesIO):
    """BytesIO that starts failing writes once `fail` is set, or seeks once
    `fail_seek` is set."""

    fail = False
    fail_seek = False

    def write(self, data):
        if self.fail:
            raise OSError(28, "No space left on device")
        return super().write(data)

    def seek(self, *args):
        if self.fail_seek:
            raise OSError(29, "Illegal seek")
        return super().seek(*args)


# ── Header ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("config", ALL_CONFIGS, ids=str)
def test_header_then_finalize_is_44_bytes(tmp_path, sine_table, config):
    path = tmp_path / "empty.wav"
    with create_encoder(str(path), config, sine_table) as enc:
        enc.write_header()
        enc.finalize()
    data = path.read_bytes()
    header = read_header(data)
    assert len(data) == HEADER_SIZE
    assert header.chunk_size == 36
    assert header.subchunk2_size == 0
    assert check_header(header, len(data)) == []


def test_header_fields(sine_table):
    config = EncoderConfig.create(2, 48_000, 32)
    buf = io.BytesIO()
    enc = create_encoder(buf, config, sine_table)
    enc.write_header()
    data = buf.getvalue()
    assert data[0:4] == b"RIFF"
    assert data[4:8] == b"\x00\x00\x00\x00"       # placeholder until finalize
    assert data[8:16] == b"WAVEfmt "
    header = read_header(data)
    assert header.subchunk1_size == 16
    assert header.audio_format == 1
    assert header.channels == 2
    assert header.sample_rate == 48_000
    assert header.byte_rate == 48_000 * 2 * 4
    assert header.block_align == 8
    assert header.bits_per_sample == 32
    assert data[36:40] == b"data"
    assert enc.cursor == HEADER_SIZE
    assert enc.state is EncoderState.HEADER_WRITTEN


# ── Pitch mapping and block length ───────────────────────────────────────────

def test_adjusted_increment_compensates_sample_rate():
    assert adjusted_increment(1.0, 44_100) == 1.0
    assert adjusted_increment(1.0, 22_050) == 2.0
    assert adjusted_increment(2.0, 48_000) == pytest.approx(1.8375)


def test_samples_per_block_exact_divisor_branch():
    assert samples_per_block(2.5, TABLE_SIZE) == (160, True)
    assert samples_per_block(1.0, TABLE_SIZE) == (400, True)


def test_samples_per_block_truncation_is_a_known_approximation():
    # 400 / 3 = 133.33…, the block is cut short to 133 samples
    assert samples_per_block(3.0, TABLE_SIZE) == (133, False)
    assert samples_per_block(adjusted_increment(1.0, 48_000), TABLE_SIZE) == (435, False)


@pytest.mark.parametrize("increment", [0.0, -1.0, float("nan"), 401.0])
def test_samples_per_block_rejects_unusable_increment(increment):
    with pytest.raises(ConfigurationError):
        samples_per_block(increment, TABLE_SIZE)


def test_blocks_for_duration_rounds_half_up():
    assert blocks_for_duration(1000, 44_100, 400) == 110      # 110.25
    assert blocks_for_duration(0, 44_100, 400) == 0
    assert blocks_for_duration(200, 44_100, 400) == 22        # 22.05
    assert blocks_for_duration(1000, 44_000, 400) == 110      # exactly 110
    assert blocks_for_duration(1000, 44_200, 400) == 111      # 110.5 → 111


# ── Concrete scenario ────────────────────────────────────────────────────────

def test_one_second_a110_mono_16bit(tmp_path, sine_table):
    path = tmp_path / "a110.wav"
    with create_encoder(str(path), MONO_44K_16, sine_table) as enc:
        enc.write_header()
        enc.compose_block(1.0)
        assert enc.samples_per_block == 400
        assert len(enc.block) == 400 * 2
        blocks = enc.write_block(1000)
        enc.finalize()

    # round(44100 / 400) = 110, plus the extra block the writer always adds
    assert blocks == 111
    data = path.read_bytes()
    data_size = 111 * 400 * 1 * 2
    assert len(data) == HEADER_SIZE + data_size
    header = read_header(data)
    assert header.chunk_size == len(data) - 8
    assert header.subchunk2_size == data_size
    assert check_header(header, len(data)) == []


def test_zero_duration_still_writes_one_block(sine_table):
    buf = io.BytesIO()
    with create_encoder(buf, MONO_44K_16, sine_table) as enc:
        enc.write_header()
        enc.compose_block(1.0)
        assert enc.write_block(0) == 1
        enc.finalize()
    assert len(buf.getvalue()) == HEADER_SIZE + 400 * 2


@pytest.mark.parametrize("config", ALL_CONFIGS, ids=str)
def test_silent_table_round_trip(config):
    table = WaveTable()
    table.load(np.zeros(TABLE_SIZE))
    notes = [Note(1.0, 1000), Note(2.5, 250), Note(0.7, 0), Note(3.0, 125)]

    buf = io.BytesIO()
    expected_data = 0
    with create_encoder(buf, config, table) as enc:
        enc.write_header()
        for note in notes:
            enc.compose_block(note.pitch_increment)
            blocks = enc.write_block(note.duration_ms)
            expected_data += blocks * enc.samples_per_block * config.channels * config.bytes_per_sample
        enc.finalize()

    data = buf.getvalue()
    assert len(data) == HEADER_SIZE + expected_data
    assert data[HEADER_SIZE:] == bytes(expected_data)
    assert check_header(read_header(data), len(data)) == []


# ── Block contents ───────────────────────────────────────────────────────────

def test_nearest_neighbour_lookup(sine_table):
    buf = io.BytesIO()
    enc = create_encoder(buf, MONO_44K_16, sine_table)
    enc.write_header()
    block = enc.compose_block(2.5)
    values = np.frombuffer(block, dtype="<i2")
    assert len(values) == 160
    for i in (0, 1, 2, 3, 80, 159):
        index = int(np.floor(i * 2.5 + 0.5)) % TABLE_SIZE   # 2.5 → 3, 7.5 → 8
        assert values[i] == to_signed(float_to_int16(sine_table[index]), 16)


def test_position_past_last_entry_wraps_to_start(sine_table):
    buf = io.BytesIO()
    enc = create_encoder(buf, MONO_44K_16, sine_table)
    enc.write_header()
    block = enc.compose_block(0.3)
    values = np.frombuffer(block, dtype="<i2")
    assert enc.samples_per_block == 1333
    # last position ≈ 399.6 rounds to 400, which reads table[0] == 0
    assert values[-1] == 0


def test_stereo_channels_are_identical(sine_table):
    config = EncoderConfig.create(2, 44_100, 32)
    enc = create_encoder(io.BytesIO(), config, sine_table)
    enc.write_header()
    block = enc.compose_block(1.7)
    frames = np.frombuffer(block, dtype="<i4").reshape(-1, 2)
    assert frames.shape[0] == enc.samples_per_block
    assert np.array_equal(frames[:, 0], frames[:, 1])


def test_table_can_be_regenerated_between_notes(sine_table):
    buf = io.BytesIO()
    enc = create_encoder(buf, MONO_44K_16, sine_table)
    enc.write_header()
    enc.compose_block(1.0)
    enc.write_block(0)
    sine_table.square()
    block = enc.compose_block(1.0)
    values = set(np.frombuffer(block, dtype="<i2").tolist())
    # +0.15 → 4915, -0.15 → 60620 → -4916
    assert values == {4915, -4916}


# ── Protocol ─────────────────────────────────────────────────────────────────

def test_out_of_order_calls_raise_protocol_error(sine_table):
    enc = create_encoder(io.BytesIO(), MONO_44K_16, sine_table)
    with pytest.raises(ProtocolError):
        enc.compose_block(1.0)
    with pytest.raises(ProtocolError):
        enc.write_block(100)
    with pytest.raises(ProtocolError):
        enc.finalize()

    enc.write_header()
    with pytest.raises(ProtocolError):
        enc.write_header()
    with pytest.raises(ProtocolError):
        enc.write_block(100)

    enc.compose_block(1.0)
    enc.write_block(100)
    enc.finalize()
    assert enc.state is EncoderState.FINALIZED
    for call in (lambda: enc.compose_block(1.0), lambda: enc.write_block(10), enc.finalize):
        with pytest.raises(ProtocolError):
            call()


def test_compose_from_ungenerated_table_is_protocol_error():
    enc = create_encoder(io.BytesIO(), MONO_44K_16, WaveTable())
    enc.write_header()
    with pytest.raises(ProtocolError):
        enc.compose_block(1.0)


def test_bad_note_parameters(sine_table):
    enc = create_encoder(io.BytesIO(), MONO_44K_16, sine_table)
    enc.write_header()
    with pytest.raises(ConfigurationError):
        enc.compose_block(0.0)
    with pytest.raises(ConfigurationError):
        enc.compose_block(500.0)
    enc.compose_block(1.0)
    with pytest.raises(ConfigurationError):
        enc.write_block(-1)


def test_config_must_be_encoder_config(sine_table):
    with pytest.raises(ConfigurationError):
        create_encoder(io.BytesIO(), (1, 44_100, 16), sine_table)


def test_write_failure_is_fatal(sine_table):
    buf = FlakyBuffer()
    enc = create_encoder(buf, MONO_44K_16, sine_table)
    enc.write_header()
    enc.compose_block(1.0)
    buf.fail = True
    with pytest.raises(OSError):
        enc.write_block(1000)
    assert enc.state is EncoderState.FAILED
    with pytest.raises(ProtocolError):
        enc.finalize()


def test_backpatch_failure_is_fatal(sine_table):
    buf = FlakyBuffer()
    enc = create_encoder(buf, MONO_44K_16, sine_table)
    enc.write_header()
    enc.compose_block(1.0)
    enc.write_block(10)
    buf.fail_seek = True
    with pytest.raises(OSError):
        enc.finalize()
    assert enc.state is EncoderState.FAILED
    with pytest.raises(ProtocolError):
        enc.compose_block(1.0)


def test_write_block_refuses_to_pass_riff_size_limit(sine_table):
    config = EncoderConfig.create(2, 22_050, 32)
    enc = create_encoder(io.BytesIO(), config, sine_table)
    enc.write_header()
    enc.compose_block(1.0)
    # 1600-byte blocks; a billion ms is far past 4 GiB
    with pytest.raises(ConfigurationError):
        enc.write_block(10**9)
    assert enc.cursor == HEADER_SIZE
    assert enc.state is EncoderState.COMPOSED


@pytest.mark.parametrize("config", [
    EncoderConfig(3, 44_100, 16),
    EncoderConfig(1, 0, 16),
    EncoderConfig(2, 44_100, 24),
])
def test_unchecked_config_rejected_at_creation(tmp_path, sine_table, config):
    path = tmp_path / "never.wav"
    with pytest.raises(ConfigurationError):
        create_encoder(str(path), config, sine_table)
    assert not path.exists()


# ── Session handling ─────────────────────────────────────────────────────────

def test_context_manager_closes_file(tmp_path, sine_table):
    path = tmp_path / "closed.wav"
    with create_encoder(str(path), MONO_44K_16, sine_table) as enc:
        enc.write_melody([Note(1.0, 10)])
    assert enc._file.closed
    assert enc.path == str(path)


def test_closing_without_finalize_logs_warning(tmp_path, sine_table, caplog):
    path = tmp_path / "unfinished.wav"
    with caplog.at_level(logging.WARNING, logger="WTSE.SGM.wav_encoder"):
        with create_encoder(str(path), MONO_44K_16, sine_table) as enc:
            enc.write_header()
    assert "without finalize" in caplog.text
    assert enc.state is EncoderState.HEADER_WRITTEN


def test_write_melody_and_render_bytes_agree(tmp_path, sine_table):
    config = EncoderConfig.create(2, 32_000, 16)
    notes = [Note(2.0, 250), Note(2.5198, 125), Note(3.0, 500)]
    path = tmp_path / "melody.wav"
    with create_encoder(str(path), config, sine_table) as enc:
        total = enc.write_melody(notes)
    data = path.read_bytes()
    assert total == len(data)
    assert render_wav_bytes(sine_table, config, notes) == data


def test_sine_block_reaches_full_scale(sine_table):
    data = render_wav_bytes(sine_table, EncoderConfig.create(2, 44_100, 16), [Note(2.0, 100)])
    samples = decode_samples(data)
    assert samples.shape[1] == 2
    assert samples.max() >= 32766
    assert samples.min() <= -32767


def test_third_party_reader_accepts_output(tmp_path, sine_table):
    sf = pytest.importorskip("soundfile")
    config = EncoderConfig.create(2, 22_050, 16)
    path = tmp_path / "sf.wav"
    with create_encoder(str(path), config, sine_table) as enc:
        enc.write_melody([Note(2.0, 300), Note(4.0, 300)])
    info = sf.info(str(path))
    assert info.samplerate == 22_050
    assert info.channels == 2
    assert info.subtype == "PCM_16"
    data, _sr = sf.read(str(path), dtype="int16", always_2d=True)
    assert np.array_equal(data, decode_samples(path.read_bytes()))
