# =============================================================================
# config.py — Per-file encoder settings
# =============================================================================
#
# An EncoderConfig is fixed for the life of one output file.  Build it with
# EncoderConfig.create() (or config_from_env()) so that every value is
# checked up front; a bad value raises ConfigurationError and nothing is
# half-applied.

from __future__ import annotations
import os
from typing import NamedTuple

from WTSE.errors import ConfigurationError
from WTSE.SMM.constants import (
    SAMPLE_RATES, BITS_PER_SAMPLE_CHOICES, CHANNEL_CHOICES,
    DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE, DEFAULT_BITS_PER_SAMPLE,
)


class EncoderConfig(NamedTuple):
    channels:        int   # 1 = mono, 2 = stereo
    sample_rate:     int   # Hz
    bits_per_sample: int   # 16 or 32

    @classmethod
    def create(
        cls,
        channels: int = DEFAULT_CHANNELS,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE,
        strict_rate: bool = True,
    ) -> "EncoderConfig":
        """
        Validate and build a config.

        Args:
            channels:        1 or 2.
            sample_rate:     one of SAMPLE_RATES, or any positive integer
                             when strict_rate is False.
            bits_per_sample: 16 or 32.
            strict_rate:     reject sample rates outside SAMPLE_RATES.

        Raises:
            ConfigurationError on any unsupported value.
        """
        if isinstance(channels, bool) or channels not in CHANNEL_CHOICES:
            raise ConfigurationError(
                f"channels must be one of {CHANNEL_CHOICES}, got {channels!r}"
            )
        if isinstance(bits_per_sample, bool) or bits_per_sample not in BITS_PER_SAMPLE_CHOICES:
            raise ConfigurationError(
                f"bits_per_sample must be one of {BITS_PER_SAMPLE_CHOICES}, "
                f"got {bits_per_sample!r}"
            )
        if not isinstance(sample_rate, int) or isinstance(sample_rate, bool) or sample_rate <= 0:
            raise ConfigurationError(
                f"sample_rate must be a positive integer, got {sample_rate!r}"
            )
        if strict_rate and sample_rate not in SAMPLE_RATES:
            raise ConfigurationError(
                f"sample_rate must be one of {SAMPLE_RATES}, got {sample_rate}"
            )
        return cls(channels, sample_rate, bits_per_sample)

    # ── Derived header values ────────────────────────────────────────────────

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8

    @property
    def block_align(self) -> int:
        """Bytes per sample frame (all channels)."""
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.channels * self.bits_per_sample // 8


def _env_int(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def config_from_env(prefix: str = "WTSE_", environ=None) -> EncoderConfig:
    """
    Build an EncoderConfig from <prefix>CHANNELS, <prefix>SAMPLE_RATE and
    <prefix>BITS, falling back to the defaults for anything unset.
    """
    environ = os.environ if environ is None else environ
    return EncoderConfig.create(
        channels=_env_int(environ, prefix + "CHANNELS", DEFAULT_CHANNELS),
        sample_rate=_env_int(environ, prefix + "SAMPLE_RATE", DEFAULT_SAMPLE_RATE),
        bits_per_sample=_env_int(environ, prefix + "BITS", DEFAULT_BITS_PER_SAMPLE),
    )
