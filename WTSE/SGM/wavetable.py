# =============================================================================
# wavetable.py — Single-period wavetable and its generators
# =============================================================================
#
# A WaveTable holds exactly one period of a waveform as `size` float samples
# in [-1.0, 1.0].  It starts out empty; one of the generators must run before
# the encoder can read from it.
#
# GENERATORS:
#   sine()    — sample[i] = sin(2π·i / size)
#   square()  — +SQUARE_AMPLITUDE for the first half, −SQUARE_AMPLITUDE after.
#               Needs an even size.
#   custom(h) — additive synthesis over up to MAX_HARMONICS harmonics.  Each
#               harmonic k is read out of the sine table at index (k+1)·i,
#               so one stored sine period serves as every oscillator.
#   load(s)   — any caller-supplied period of the right length.
#
# ATOMIC REPLACEMENT:
#   Every generator builds a fresh array and swaps it in with one assignment.
#   A failed generator leaves the previous contents untouched.  Regenerating
#   while the encoder is composing a block from the same table is not
#   supported; the engine is single-threaded and callers serialize the two.

from __future__ import annotations
import logging
from typing import Optional, Sequence

import numpy as np

from WTSE.errors import ConfigurationError, InvalidTimbreError
from WTSE.SMM.constants import (
    TABLE_SIZE, SQUARE_AMPLITUDE, MAX_HARMONICS, MAX_HARMONIC_AMPLITUDE,
)

logger = logging.getLogger(__name__)


class WaveTable:
    """
    One period of a periodic signal.

    Usage:
        table = WaveTable()
        table.sine()
        table.custom([100, 0, 50])   # fundamental + half-strength 3rd harmonic
    """

    def __init__(self, size: int = TABLE_SIZE) -> None:
        if size <= 0:
            raise ConfigurationError(f"table size must be positive, got {size}")
        self._size = size
        self._samples: Optional[np.ndarray] = None   # unset until generated
        self.timbre: Optional[str] = None

    # ── Read access ──────────────────────────────────────────────────────────

    @property
    def size(self) -> int:
        return self._size

    @property
    def is_ready(self) -> bool:
        return self._samples is not None

    @property
    def samples(self) -> Optional[np.ndarray]:
        """Read-only view of the current samples, or None if never generated."""
        if self._samples is None:
            return None
        view = self._samples.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index):
        if self._samples is None:
            raise IndexError("wavetable has not been generated")
        return self._samples[index]

    # ── Generators ───────────────────────────────────────────────────────────

    def _sine_period(self) -> np.ndarray:
        return np.sin(np.arange(self._size, dtype=np.float64) / self._size * np.pi * 2.0)

    def _swap(self, new_samples: np.ndarray, timbre: str) -> None:
        self._samples = new_samples
        self.timbre = timbre
        logger.debug("wavetable regenerated: %s (%d samples)", timbre, self._size)

    def sine(self) -> None:
        """Fill the table with one period of a sine wave."""
        self._swap(self._sine_period(), "sine")

    def square(self) -> None:
        """
        Fill the table with an attenuated square wave.

        Raises:
            ConfigurationError if the table size is odd (table unchanged).
        """
        if self._size % 2 != 0:
            raise ConfigurationError(
                f"table size must be even to make a square wave, got {self._size}"
            )
        half = self._size // 2
        samples = np.empty(self._size, dtype=np.float64)
        samples[:half] = SQUARE_AMPLITUDE
        samples[half:] = -SQUARE_AMPLITUDE
        self._swap(samples, "square")

    def custom(self, harmonic_amplitudes: Sequence[Optional[int]]) -> None:
        """
        Additive synthesis from relative harmonic amplitudes.

        Args:
            harmonic_amplitudes: up to MAX_HARMONICS values in 0..100, index 0
                                 being the fundamental.  None or 0 means the
                                 harmonic is absent.

        The sum is divided by (Σ amplitudes / 100) so the result stays inside
        [-1.0, 1.0].

        Raises:
            InvalidTimbreError if there are too many entries, an entry is out
            of range, or every entry is zero (table unchanged).
        """
        weights = self._harmonic_weights(harmonic_amplitudes)
        total = float(weights.sum())
        if total == 0.0:
            raise InvalidTimbreError(
                "no harmonics selected: at least one amplitude must be non-zero"
            )
        scale = total / 100.0

        # Always synthesize from a fresh sine period, never from whatever the
        # table currently holds.
        sine = self._sine_period()
        index = np.arange(self._size)
        samples = np.zeros(self._size, dtype=np.float64)
        for k, amplitude in enumerate(weights):
            if amplitude == 0.0:
                continue
            samples += (amplitude / 100.0) * sine[((k + 1) * index) % self._size] / scale
        self._swap(samples, "custom")

    def load(self, samples: Sequence[float]) -> None:
        """
        Replace the table with caller-supplied samples.

        Raises:
            ConfigurationError if the length differs from the table size or a
            value is not finite or lies outside [-1.0, 1.0] (table unchanged).
        """
        new_samples = np.array(samples, dtype=np.float64)
        if new_samples.shape != (self._size,):
            raise ConfigurationError(
                f"expected {self._size} samples, got shape {new_samples.shape}"
            )
        if not np.isfinite(new_samples).all() or np.abs(new_samples).max() > 1.0:
            raise ConfigurationError("samples must be finite and within [-1.0, 1.0]")
        self._swap(new_samples, "loaded")

    @staticmethod
    def _harmonic_weights(harmonic_amplitudes: Sequence[Optional[int]]) -> np.ndarray:
        amplitudes = list(harmonic_amplitudes)
        if len(amplitudes) > MAX_HARMONICS:
            raise InvalidTimbreError(
                f"at most {MAX_HARMONICS} harmonic amplitudes allowed, got {len(amplitudes)}"
            )
        weights = np.zeros(MAX_HARMONICS, dtype=np.float64)
        for k, amplitude in enumerate(amplitudes):
            if amplitude is None:
                continue
            if isinstance(amplitude, bool) or not isinstance(amplitude, (int, np.integer)):
                raise InvalidTimbreError(
                    f"harmonic {k} amplitude must be an integer, got {amplitude!r}"
                )
            if not 0 <= amplitude <= MAX_HARMONIC_AMPLITUDE:
                raise InvalidTimbreError(
                    f"harmonic {k} amplitude must be 0..{MAX_HARMONIC_AMPLITUDE}, "
                    f"got {amplitude}"
                )
            weights[k] = amplitude
        return weights


def make_wavetable(timbre: str, harmonics: Optional[Sequence[Optional[int]]] = None,
                   size: int = TABLE_SIZE) -> WaveTable:
    """Build and fill a table by timbre name: "sine", "square" or "custom"."""
    table = WaveTable(size)
    timbre = timbre.lower()
    if timbre == "sine":
        table.sine()
    elif timbre == "square":
        table.square()
    elif timbre == "custom":
        if harmonics is None:
            raise InvalidTimbreError("custom timbre needs harmonic amplitudes")
        table.custom(harmonics)
    else:
        raise ConfigurationError(
            f"timbre must be 'sine', 'square' or 'custom', got {timbre!r}"
        )
    return table
