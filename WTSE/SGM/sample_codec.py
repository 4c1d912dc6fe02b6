# =============================================================================
# sample_codec.py — Float sample → PCM integer → little-endian bytes
# =============================================================================
#
# QUANTIZATION (bit depth B, POS = 2^(B-1) - 1, NEG = 2^(B-1)):
#   x >= 0 :  round(x * POS)                  → 0 .. POS
#   x <  0 :  round((x + 1) * POS + NEG)      → NEG .. 2^B - 1
#
# The result is always an unsigned number whose bit pattern equals the
# signed two's-complement PCM value, so packing never has to care about the
# sign.  -1.0 → NEG (0x8000 for 16-bit, i.e. -32768).
#
# Rounding is half-up on a value that is never negative, which is the same
# as rounding half away from zero.
#
# OUT OF RANGE:
#   Inputs outside [-1.0, 1.0] saturate to the nearest bound before
#   quantization.  NaN is rejected with ValueError.
#
# Scalar functions are the reference; encode_samples()/pack_samples() are the
# numpy versions used when a whole block is built and must agree bit-for-bit.

from __future__ import annotations
import math
import struct

import numpy as np

from WTSE.errors import ConfigurationError
from WTSE.SMM.constants import PCM_SCALE

# Little-endian unsigned formats per bit width
_STRUCT_FORMAT = {16: "<H", 32: "<I"}
_NUMPY_DTYPE   = {16: "<u2", 32: "<u4"}


def _scale(width_bits: int) -> tuple[int, int]:
    try:
        return PCM_SCALE[width_bits]
    except KeyError:
        raise ConfigurationError(
            f"unsupported sample width: {width_bits} bits (expected 16 or 32)"
        ) from None


def saturate(x: float) -> float:
    """Clamp a sample to [-1.0, 1.0]."""
    if math.isnan(x):
        raise ValueError("sample is NaN")
    if x > 1.0:
        return 1.0
    if x < -1.0:
        return -1.0
    return x


def float_to_int(x: float, width_bits: int) -> int:
    """Quantize one float sample to the unsigned bit pattern of a PCM value."""
    pos, neg = _scale(width_bits)
    x = saturate(float(x))
    if x >= 0:
        return math.floor(x * pos + 0.5)
    return math.floor((x + 1.0) * pos + neg + 0.5)


def float_to_int16(x: float) -> int:
    return float_to_int(x, 16)


def float_to_int32(x: float) -> int:
    return float_to_int(x, 32)


def to_signed(value: int, width_bits: int) -> int:
    """Reinterpret an unsigned PCM bit pattern as two's complement."""
    _scale(width_bits)
    if value >= 1 << (width_bits - 1):
        return value - (1 << width_bits)
    return value


def pack_little_endian(value: int, width_bits: int) -> bytes:
    """
    Pack an unsigned integer into width_bits/8 bytes, least significant first.

    Raises:
        ConfigurationError for a width other than 16 or 32.
        ValueError if value does not fit in the width.
    """
    fmt = _STRUCT_FORMAT.get(width_bits)
    if fmt is None:
        raise ConfigurationError(
            f"unsupported sample width: {width_bits} bits (expected 16 or 32)"
        )
    if not 0 <= value < 1 << width_bits:
        raise ValueError(f"{value} does not fit in {width_bits} unsigned bits")
    return struct.pack(fmt, value)


# ── Vectorized block helpers ─────────────────────────────────────────────────

def encode_samples(samples: np.ndarray, width_bits: int) -> np.ndarray:
    """
    numpy counterpart of float_to_int().

    Returns:
        Array of little-endian unsigned integers (dtype <u2 or <u4).
    """
    pos, neg = _scale(width_bits)
    x = np.asarray(samples, dtype=np.float64)
    if np.isnan(x).any():
        raise ValueError("samples contain NaN")
    x = np.clip(x, -1.0, 1.0)
    quantized = np.where(
        x >= 0,
        np.floor(x * pos + 0.5),
        np.floor((x + 1.0) * pos + neg + 0.5),
    )
    return quantized.astype(_NUMPY_DTYPE[width_bits])


def pack_samples(values: np.ndarray, width_bits: int) -> bytes:
    """Pack unsigned PCM values into raw little-endian bytes."""
    _scale(width_bits)
    return np.asarray(values).astype(_NUMPY_DTYPE[width_bits]).tobytes()
