# =============================================================================
# SGM — Signal Generation Module
# Subfolder of WTSE (Wavetable Synthesis Engine)
# =============================================================================
#
# Turns a wavetable and a list of notes into a byte-exact PCM WAV file.
#
# Modules:
#   wavetable.py     — one stored period: sine, square, custom harmonics
#   sample_codec.py  — float → PCM integer → little-endian bytes
#   wav_encoder.py   — header, per-note data blocks, header backpatch
#   export_bridge.py — JSON entry points (base64 WAV out)
#
# Constants live in WTSE/SMM/constants.py
# Verification tools live in WTSE/SVM/
