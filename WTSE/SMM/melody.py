# =============================================================================
# melody.py — Note names and note values → (pitch increment, duration)
# =============================================================================
#
# The encoder only understands pitch increments and millisecond durations.
# This module turns the familiar spelling ("c#" in octave 4, an eighth note
# at 120 bpm) into those two numbers.  No prompting happens here; callers
# hand in text and get Notes back.
#
# Melody text is whitespace-separated tokens:
#   name:value   a note, e.g.  a#:1/8   c:1   eb:1/16
#   +  /  -      move up / down one octave (held at MIN_OCTAVE..MAX_OCTAVE)

from __future__ import annotations
import math
from typing import NamedTuple

from WTSE.errors import ConfigurationError
from WTSE.SMM.constants import (
    NOTE_BASE_HZ, NOTE_INDEX, PITCH_REFERENCE_HZ,
    MIN_OCTAVE, MAX_OCTAVE, DEFAULT_OCTAVE,
    MIN_TEMPO, MAX_TEMPO, NOTE_VALUES,
)


class Note(NamedTuple):
    pitch_increment: float   # wavetable steps per output sample at 44.1 kHz
    duration_ms:     int     # >= 0


def pitch_increment(name: str, octave: int = DEFAULT_OCTAVE) -> float:
    """Table increment for a named note, e.g. pitch_increment("a", 3) == 2.0."""
    key = name.strip().lower()
    if key not in NOTE_INDEX:
        raise ConfigurationError(f"Unknown note name: {name!r}")
    if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
        raise ConfigurationError(
            f"octave must be {MIN_OCTAVE}..{MAX_OCTAVE}, got {octave}"
        )
    return NOTE_BASE_HZ[NOTE_INDEX[key]] * float(2 ** octave) / PITCH_REFERENCE_HZ


def note_duration_ms(value: str, tempo: int) -> int:
    """Length of a note value ("1", "1/2" … "1/32") at `tempo` bpm, in ms."""
    if not MIN_TEMPO <= tempo <= MAX_TEMPO:
        raise ConfigurationError(
            f"tempo must be {MIN_TEMPO}..{MAX_TEMPO} bpm, got {tempo}"
        )
    beats = NOTE_VALUES.get(value.strip())
    if beats is None:
        raise ConfigurationError(
            f"note value must be one of {sorted(NOTE_VALUES)}, got {value!r}"
        )
    quarter_ms = (60.0 / tempo) * 1000.0
    # half-up, so a 62.5 ms thirty-second note is 63 ms
    return math.floor(quarter_ms * beats + 0.5)


def parse_melody(text: str, tempo: int, octave: int = DEFAULT_OCTAVE) -> list[Note]:
    """
    Parse melody text into Notes.

    Args:
        text:   e.g. "a:1/4 c#:1/8 + e:1/2"
        tempo:  beats per minute (MIN_TEMPO..MAX_TEMPO)
        octave: starting octave

    Returns:
        list[Note] in playing order.

    Raises:
        ConfigurationError for a malformed token, unknown note or value,
        or an out-of-range tempo / starting octave.
    """
    if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
        raise ConfigurationError(
            f"octave must be {MIN_OCTAVE}..{MAX_OCTAVE}, got {octave}"
        )
    notes: list[Note] = []
    for token in text.split():
        if token == "+":
            octave = min(octave + 1, MAX_OCTAVE)
            continue
        if token == "-":
            octave = max(octave - 1, MIN_OCTAVE)
            continue
        name, sep, value = token.partition(":")
        if not sep or not name or not value:
            raise ConfigurationError(
                f"Malformed melody token {token!r} (expected name:value)"
            )
        notes.append(Note(pitch_increment(name, octave), note_duration_ms(value, tempo)))
    return notes
