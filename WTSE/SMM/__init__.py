# =============================================================================
# WTSE/SMM/__init__.py — Signal Mapping Module
# =============================================================================
#
# The SMM is the single source of truth for the engine's numbers: table size,
# accepted output formats, PCM scale factors, RIFF header layout, and the
# note/tempo tables that map melody text onto pitch increments.
#
# All other WTSE sub-modules import their constants from here.
# Never define format constants outside this module.
#
# Sub-modules:
#   constants.py  — every constant and lookup table
#   config.py     — EncoderConfig (validated per-file settings)
#   melody.py     — note name / note value → Note(pitch_increment, duration_ms)
