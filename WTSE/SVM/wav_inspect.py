# =============================================================================
# wav_inspect.py — RIFF/WAVE header reader and consistency checks
# =============================================================================
#
# Reads back what wav_encoder writes (or any canonical 44-byte-header PCM
# WAV) and reports whether the header agrees with itself and with the file
# size.  Used by the self-check suite, the tools and the tests.

from __future__ import annotations
import struct
from typing import NamedTuple

import numpy as np

from WTSE.SMM.constants import (
    HEADER_FORMAT, HEADER_SIZE, FMT_CHUNK_SIZE, AUDIO_FORMAT_PCM,
    CHUNK_SIZE_HEADER_BYTES,
)

_SIGNED_DTYPE = {16: "<i2", 32: "<i4"}


class WavHeader(NamedTuple):
    chunk_id:        bytes
    chunk_size:      int
    format:          bytes
    subchunk1_id:    bytes
    subchunk1_size:  int
    audio_format:    int
    channels:        int
    sample_rate:     int
    byte_rate:       int
    block_align:     int
    bits_per_sample: int
    subchunk2_id:    bytes
    subchunk2_size:  int


def read_header(data: bytes) -> WavHeader:
    """
    Unpack the first 44 bytes.

    Raises:
        ValueError if the data is too short or is not RIFF/WAVE.
    """
    if len(data) < HEADER_SIZE:
        raise ValueError(f"WAV data too short: {len(data)} bytes (need {HEADER_SIZE})")
    header = WavHeader(*struct.unpack(HEADER_FORMAT, data[:HEADER_SIZE]))
    if header.chunk_id != b"RIFF":
        raise ValueError("Not a RIFF file")
    if header.format != b"WAVE":
        raise ValueError("RIFF type is not WAVE")
    return header


def read_header_file(path: str) -> WavHeader:
    with open(path, "rb") as f:
        return read_header(f.read(HEADER_SIZE))


def check_header(header: WavHeader, total_size: int) -> list[str]:
    """
    Compare every derived field against the ones it derives from.

    Returns:
        A list of human-readable problems; empty means consistent.
    """
    problems: list[str] = []
    if header.subchunk1_id != b"fmt ":
        problems.append(f"Subchunk1ID is {header.subchunk1_id!r}, expected b'fmt '")
    if header.subchunk1_size != FMT_CHUNK_SIZE:
        problems.append(f"Subchunk1Size is {header.subchunk1_size}, expected {FMT_CHUNK_SIZE}")
    if header.audio_format != AUDIO_FORMAT_PCM:
        problems.append(f"AudioFormat is {header.audio_format}, expected {AUDIO_FORMAT_PCM} (PCM)")
    if header.subchunk2_id != b"data":
        problems.append(f"Subchunk2ID is {header.subchunk2_id!r}, expected b'data'")

    block_align = header.channels * header.bits_per_sample // 8
    byte_rate   = header.sample_rate * block_align
    if header.block_align != block_align:
        problems.append(f"BlockAlign is {header.block_align}, expected {block_align}")
    if header.byte_rate != byte_rate:
        problems.append(f"ByteRate is {header.byte_rate}, expected {byte_rate}")

    if header.chunk_size != total_size - 8:
        problems.append(f"ChunkSize is {header.chunk_size}, file size - 8 is {total_size - 8}")
    if header.subchunk2_size != header.chunk_size - CHUNK_SIZE_HEADER_BYTES:
        problems.append(
            f"Subchunk2Size is {header.subchunk2_size}, "
            f"ChunkSize - {CHUNK_SIZE_HEADER_BYTES} is {header.chunk_size - CHUNK_SIZE_HEADER_BYTES}"
        )
    if block_align and header.subchunk2_size % block_align:
        problems.append(
            f"Subchunk2Size {header.subchunk2_size} is not a whole number of "
            f"{block_align}-byte frames"
        )
    return problems


def decode_samples(data: bytes) -> np.ndarray:
    """
    Decode the audio region to signed integers.

    Returns:
        Array of shape (frames, channels), dtype int16 or int32.
    """
    header = read_header(data)
    dtype = _SIGNED_DTYPE.get(header.bits_per_sample)
    if dtype is None:
        raise ValueError(f"Unsupported bit depth: {header.bits_per_sample}")
    pcm = data[HEADER_SIZE:HEADER_SIZE + header.subchunk2_size]
    samples = np.frombuffer(pcm, dtype=dtype)
    return samples.reshape(-1, header.channels)
