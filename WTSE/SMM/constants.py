# =============================================================================
# constants.py — SMM Synthesis Constants and Lookup Tables
# =============================================================================
#
# Single source of truth for every number the engine depends on.  The RIFF
# offsets below are fixed by the canonical 44-byte PCM header; the pitch and
# tempo tables come from the melody front end.
#
# DO NOT change TABLE_SIZE without re-checking the pitch mapping: a pitch
# increment of 1.0 at the reference rate plays 44100 / 400 = 110.25 Hz, which
# is why note frequencies are divided by 110 to get an increment.

# -----------------------------------------------------------------------------
# WAVETABLE
# -----------------------------------------------------------------------------

TABLE_SIZE = 400                # samples in one stored period

# Pseudo-square level.  Deliberately far below 1.0: a full-scale square wave
# is much louder than the sine table at the same peak.
SQUARE_AMPLITUDE = 0.15

MAX_HARMONICS          = 32     # fundamental + 31 overtones
MAX_HARMONIC_AMPLITUDE = 100    # relative amplitudes are 0..100


# -----------------------------------------------------------------------------
# OUTPUT FORMAT
# -----------------------------------------------------------------------------

REFERENCE_SAMPLE_RATE = 44_100  # Hz — pitch increments are defined at this rate

SAMPLE_RATES            = (22_050, 32_000, 44_100, 48_000)
BITS_PER_SAMPLE_CHOICES = (16, 32)
CHANNEL_CHOICES         = (1, 2)

DEFAULT_CHANNELS        = 2
DEFAULT_SAMPLE_RATE     = 44_100
DEFAULT_BITS_PER_SAMPLE = 16

# Quantization scale factors: (positive scale, negative offset) per bit depth.
#   x >= 0 : round(x * POS)
#   x <  0 : round((x + 1) * POS + NEG)
# The negative branch lands on the unsigned bit pattern of the signed value.
PCM_SCALE = {
    16: (32_767, 32_768),
    32: (2_147_483_647, 2_147_483_648),
}


# -----------------------------------------------------------------------------
# RIFF / WAVE HEADER
# -----------------------------------------------------------------------------
#
#   off  size  field
#    0    4    "RIFF"
#    4    4    ChunkSize       ← backpatched at finalize
#    8    4    "WAVE"
#   12    4    "fmt "
#   16    4    Subchunk1Size   = 16
#   20    2    AudioFormat     = 1 (PCM)
#   22    2    NumChannels
#   24    4    SampleRate
#   28    4    ByteRate
#   32    2    BlockAlign
#   34    2    BitsPerSample
#   36    4    "data"
#   40    4    Subchunk2Size   ← backpatched at finalize
#   44   ...   interleaved little-endian PCM

HEADER_FORMAT         = "<4sI4s4sIHHIIHH4sI"
HEADER_SIZE           = 44
CHUNK_SIZE_OFFSET     = 4
SUBCHUNK2_SIZE_OFFSET = 40
FMT_CHUNK_SIZE        = 16
AUDIO_FORMAT_PCM      = 1

# Bytes of header counted by ChunkSize that precede the audio data
# (everything after the first 8 bytes, up to offset 44).
CHUNK_SIZE_HEADER_BYTES = HEADER_SIZE - 8   # = 36


# -----------------------------------------------------------------------------
# MELODY
# -----------------------------------------------------------------------------

# Octave-0 pitches, A0 .. G#0, in Hz
NOTE_BASE_HZ = (
    27.5, 29.14, 30.87, 32.7, 34.65, 36.71,
    38.89, 41.2, 43.65, 46.25, 49.0, 51.91,
)

# Note name → index into NOTE_BASE_HZ (enharmonic spellings share an index)
NOTE_INDEX = {
    "a":  0,
    "a#": 1,  "bb": 1,
    "b":  2,  "cb": 2,
    "c":  3,  "b#": 3,
    "c#": 4,  "db": 4,
    "d":  5,
    "d#": 6,  "eb": 6,
    "e":  7,  "fb": 7,
    "f":  8,  "e#": 8,
    "f#": 9,  "gb": 9,
    "g":  10,
    "g#": 11,
}

# Hz that an increment of 1.0 stands for (see TABLE_SIZE note above)
PITCH_REFERENCE_HZ = 110.0

MIN_OCTAVE     = 2
MAX_OCTAVE     = 5
DEFAULT_OCTAVE = 3

MIN_TEMPO = 40      # beats / min
MAX_TEMPO = 400

# Note value → length in quarter-note beats
NOTE_VALUES = {
    "1":    4.0,
    "1/2":  2.0,
    "1/4":  1.0,
    "1/8":  0.5,
    "1/16": 0.25,
    "1/32": 0.125,
}
