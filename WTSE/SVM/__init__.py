# =============================================================================
# WTSE/SVM/__init__.py — Signal Verification Module
# =============================================================================
#
# Tools for checking that generated files are valid RIFF/WAVE before anyone
# tries to play them.
#
# Sub-modules:
#   wav_inspect.py — header reader, consistency checks, sample decoder
#   validate.py    — runnable self-check suite for the whole engine
