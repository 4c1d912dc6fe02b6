# =============================================================================
# wav_encoder.py — RIFF/WAVE writer driven by wavetable playback
# =============================================================================
#
# SESSION LIFECYCLE (one encoder = one output file):
#
#   CREATED ──write_header()──▶ HEADER_WRITTEN
#      ──compose_block(inc)──▶ COMPOSED ──write_block(ms)──▶ BLOCK_WRITTEN
#      ──(compose/write per note)… ──finalize()──▶ FINALIZED
#
#   Any OSError while writing moves the session to FAILED; the partial file
#   is not a valid WAV.  Calling a method from the wrong state raises
#   ProtocolError.
#
# DATA BLOCKS:
#   Quantizing every output sample is wasted work when a note is just one
#   period repeated.  compose_block() renders one period of the current note
#   into PCM bytes (a "data block") and write_block() appends that block as
#   many times as the note's duration needs.
#
# PITCH:
#   The table is read at `adjusted = (REFERENCE_SAMPLE_RATE / sample_rate) *
#   pitch_increment` entries per output sample, so an increment plays the same
#   audible pitch at every sample rate.  Lookup is nearest-neighbour on the
#   fractional position; there is no interpolation.
#
# KNOWN APPROXIMATIONS (both are part of the output format):
#   - samples_per_block is floor(TABLE_SIZE / adjusted) when adjusted does not
#     divide the table evenly, so each block is slightly short of a true
#     period and the note plays marginally sharp.
#   - write_block() writes round(duration / block) + 1 blocks: always one
#     block more than the duration asks for.
#
# HEADER BACKPATCH:
#   ChunkSize (offset 4) and Subchunk2Size (offset 40) are written as zero
#   placeholders and patched in finalize() — the only writes that do not
#   happen at the cursor.

from __future__ import annotations
import enum
import io
import logging
import math
import struct
from typing import BinaryIO, Iterable, Optional, Union

import numpy as np

from WTSE.errors import ConfigurationError, ProtocolError
from WTSE.SMM.config import EncoderConfig
from WTSE.SMM.constants import (
    REFERENCE_SAMPLE_RATE,
    HEADER_FORMAT, HEADER_SIZE, FMT_CHUNK_SIZE, AUDIO_FORMAT_PCM,
    CHUNK_SIZE_OFFSET, SUBCHUNK2_SIZE_OFFSET, CHUNK_SIZE_HEADER_BYTES,
)
from WTSE.SMM.melody import Note
from .sample_codec import encode_samples, pack_little_endian, pack_samples
from .wavetable import WaveTable

logger = logging.getLogger(__name__)

# RIFF sizes are unsigned 32-bit
_MAX_CHUNK_SIZE = 0xFFFF_FFFF


class EncoderState(enum.Enum):
    CREATED        = "created"
    HEADER_WRITTEN = "header_written"
    COMPOSED       = "composed"
    BLOCK_WRITTEN  = "block_written"
    FINALIZED      = "finalized"
    FAILED         = "failed"


_CAN_COMPOSE  = {EncoderState.HEADER_WRITTEN, EncoderState.COMPOSED, EncoderState.BLOCK_WRITTEN}
_CAN_WRITE    = {EncoderState.COMPOSED, EncoderState.BLOCK_WRITTEN}
_CAN_FINALIZE = {EncoderState.HEADER_WRITTEN, EncoderState.COMPOSED, EncoderState.BLOCK_WRITTEN}


# ── Pure helpers ─────────────────────────────────────────────────────────────

def adjusted_increment(pitch_increment: float, sample_rate: int) -> float:
    """Table steps per output sample at `sample_rate` for a nominal increment."""
    return (float(REFERENCE_SAMPLE_RATE) / float(sample_rate)) * float(pitch_increment)


def samples_per_block(adjusted: float, table_size: int) -> tuple[int, bool]:
    """
    Number of output samples that make up one period of the note.

    Returns:
        (count, exact) — exact is True when `adjusted` divides the table size
        with no remainder; otherwise count is the truncated quotient.

    Raises:
        ConfigurationError if adjusted is not positive or yields no samples.
    """
    if not math.isfinite(adjusted) or adjusted <= 0:
        raise ConfigurationError(f"table increment must be positive, got {adjusted!r}")
    size = float(table_size)
    if math.fmod(size, adjusted) == 0.0:
        count, exact = int(size / adjusted), True
    else:
        count, exact = math.trunc(size / adjusted), False
    if count < 1:
        raise ConfigurationError(
            f"table increment {adjusted} is larger than the table ({table_size} samples)"
        )
    return count, exact


def blocks_for_duration(duration_ms: float, sample_rate: int, block_samples: int) -> int:
    """round(duration in samples / block length), half-up."""
    return math.floor((float(duration_ms) * sample_rate / block_samples) / 1000.0 + 0.5)


def table_positions(adjusted: float, count: int) -> np.ndarray:
    """
    Fractional read positions 0, a, 2a, … accumulated one step at a time,
    the same way a running phase counter would.
    """
    steps = np.full(count, adjusted, dtype=np.float64)
    steps[0] = 0.0
    return np.cumsum(steps)


def nearest_indices(positions: np.ndarray, table_size: int) -> np.ndarray:
    """Round positions half-up to table indices; the index one past the end
    wraps to 0, the start of the next period."""
    return np.floor(positions + 0.5).astype(np.intp) % table_size


# ── Encoder ──────────────────────────────────────────────────────────────────

class WavEncoder:
    """
    Writes one WAV file from a WaveTable, one note at a time.

    Usage:
        table = WaveTable(); table.sine()
        config = EncoderConfig.create(channels=1)
        with create_encoder("tone.wav", config, table) as enc:
            enc.write_header()
            enc.compose_block(2.0)      # A3
            enc.write_block(500)
            enc.finalize()

    Not reentrant: do not regenerate `table` between compose_block() and the
    write_block() calls for the same note from another thread.
    """

    def __init__(
        self,
        target: Union[str, BinaryIO],
        config: EncoderConfig,
        table: WaveTable,
    ) -> None:
        if not isinstance(config, EncoderConfig):
            raise ConfigurationError(f"config must be an EncoderConfig, got {type(config).__name__}")
        # raw EncoderConfig(...) skips create(); check again before opening the file
        self._config = EncoderConfig.create(*config, strict_rate=False)
        self._table  = table

        if hasattr(target, "write"):
            self._file: BinaryIO = target
            self._owns_file = False
            self._path: Optional[str] = getattr(target, "name", None)
        else:
            self._path = str(target)
            self._file = open(self._path, "w+b")
            self._owns_file = True

        self._state  = EncoderState.CREATED
        self._cursor = 0
        self._block: Optional[bytes] = None
        self._samples_per_block = 0

    # ── Context management ───────────────────────────────────────────────────

    def __enter__(self) -> "WavEncoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and self._state is not EncoderState.FINALIZED:
            logger.warning(
                "encoder for %s closed in state %s without finalize(); "
                "the file header is incomplete", self._path, self._state.value,
            )
        self.close()

    def close(self) -> None:
        if self._owns_file and not self._file.closed:
            self._file.close()

    # ── Read-only state ──────────────────────────────────────────────────────

    @property
    def config(self) -> EncoderConfig:
        return self._config

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def state(self) -> EncoderState:
        return self._state

    @property
    def cursor(self) -> int:
        """Bytes written so far (sequential writes only)."""
        return self._cursor

    @property
    def samples_per_block(self) -> int:
        return self._samples_per_block

    @property
    def block(self) -> Optional[bytes]:
        return self._block

    @property
    def bytes_per_sample(self) -> int:
        return self._config.bytes_per_sample

    # ── Internal helpers ─────────────────────────────────────────────────────

    def _require(self, allowed: set, operation: str) -> None:
        if self._state not in allowed:
            raise ProtocolError(
                f"{operation}() is not allowed in state {self._state.value!r}"
            )

    def _write(self, data: bytes) -> None:
        try:
            self._file.write(data)
        except OSError:
            self._state = EncoderState.FAILED
            raise
        self._cursor += len(data)

    def _patch_uint32(self, offset: int, value: int) -> None:
        try:
            self._file.seek(offset)
            self._file.write(pack_little_endian(value, 32))
            self._file.seek(self._cursor)
        except OSError:
            self._state = EncoderState.FAILED
            raise

    # ── Public API ───────────────────────────────────────────────────────────

    def header_bytes(self) -> bytes:
        """The 44-byte header with zero placeholders for both size fields."""
        cfg = self._config
        header = struct.pack(
            HEADER_FORMAT,
            b"RIFF", 0, b"WAVE",
            b"fmt ", FMT_CHUNK_SIZE, AUDIO_FORMAT_PCM,
            cfg.channels, cfg.sample_rate, cfg.byte_rate,
            cfg.block_align, cfg.bits_per_sample,
            b"data", 0,
        )
        assert len(header) == HEADER_SIZE
        return header

    def write_header(self) -> None:
        """Write the RIFF descriptor, fmt subchunk and data subchunk header."""
        self._require({EncoderState.CREATED}, "write_header")
        self._write(self.header_bytes())
        self._state = EncoderState.HEADER_WRITTEN
        logger.info(
            "header written: %s ch=%d rate=%d bits=%d", self._path,
            self._config.channels, self._config.sample_rate, self._config.bits_per_sample,
        )

    def compose_block(self, pitch_increment: float) -> bytes:
        """
        Render one period of the note at `pitch_increment` into PCM bytes.
        Touches no file state.

        Returns:
            The new data block (also kept for write_block()).

        Raises:
            ProtocolError if the header has not been written, the session is
            finished, or the wavetable was never generated.
            ConfigurationError for a non-positive or oversized increment.
        """
        self._require(_CAN_COMPOSE, "compose_block")
        if not self._table.is_ready:
            raise ProtocolError("wavetable has not been generated")

        adjusted = adjusted_increment(pitch_increment, self._config.sample_rate)
        count, exact = samples_per_block(adjusted, self._table.size)

        positions = table_positions(adjusted, count)
        indices   = nearest_indices(positions, self._table.size)
        values    = encode_samples(self._table.samples[indices], self._config.bits_per_sample)
        if self._config.channels == 2:
            # L and R read the same table position — interleave as L,R,L,R…
            values = np.repeat(values, 2)

        self._block = pack_samples(values, self._config.bits_per_sample)
        self._samples_per_block = count
        self._state = EncoderState.COMPOSED
        logger.debug(
            "block composed: increment=%.6f adjusted=%.6f samples=%d exact=%s",
            pitch_increment, adjusted, count, exact,
        )
        return self._block

    def write_block(self, duration_ms: int) -> int:
        """
        Append the current block enough times to cover `duration_ms`.

        Returns:
            Number of blocks written: round(duration / block length) + 1.
        """
        self._require(_CAN_WRITE, "write_block")
        if duration_ms < 0:
            raise ConfigurationError(f"duration must be >= 0 ms, got {duration_ms}")

        blocks = blocks_for_duration(duration_ms, self._config.sample_rate,
                                     self._samples_per_block) + 1
        block = self._block
        if self._cursor + blocks * len(block) - 8 > _MAX_CHUNK_SIZE:
            raise ConfigurationError("output would exceed the 4 GiB RIFF size limit")

        for _ in range(blocks):
            self._write(block)
        self._state = EncoderState.BLOCK_WRITTEN
        logger.debug("wrote %d blocks (%d ms), cursor=%d", blocks, duration_ms, self._cursor)
        return blocks

    def finalize(self) -> None:
        """Backpatch ChunkSize and Subchunk2Size, then flush."""
        self._require(_CAN_FINALIZE, "finalize")
        chunk_size = self._cursor - 8
        subchunk2_size = chunk_size - CHUNK_SIZE_HEADER_BYTES
        self._patch_uint32(CHUNK_SIZE_OFFSET, chunk_size)
        self._patch_uint32(SUBCHUNK2_SIZE_OFFSET, subchunk2_size)
        try:
            self._file.flush()
        except OSError:
            self._state = EncoderState.FAILED
            raise
        self._state = EncoderState.FINALIZED
        logger.info("finalized %s: %d bytes (%d audio)", self._path, self._cursor, subchunk2_size)

    def write_melody(self, notes: Iterable[Note]) -> int:
        """Header, every note, finalize.  Returns total bytes in the file."""
        self.write_header()
        for note in notes:
            self.compose_block(note.pitch_increment)
            self.write_block(note.duration_ms)
        self.finalize()
        return self._cursor


def create_encoder(
    target: Union[str, BinaryIO],
    config: EncoderConfig,
    table: WaveTable,
) -> WavEncoder:
    """Open `target` for writing and return an encoder in state CREATED."""
    return WavEncoder(target, config, table)


def render_wav_bytes(table: WaveTable, config: EncoderConfig, notes: Iterable[Note]) -> bytes:
    """Render a whole melody to an in-memory WAV file."""
    buf = io.BytesIO()
    with create_encoder(buf, config, table) as enc:
        enc.write_melody(notes)
    return buf.getvalue()
