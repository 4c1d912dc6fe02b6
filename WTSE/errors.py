# =============================================================================
# errors.py — WTSE error taxonomy
# =============================================================================
#
# None of these are retried inside the engine.  Re-prompting or choosing
# different parameters is the caller's job.  I/O failures surface as the
# builtin OSError.


class WTSEError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(WTSEError, ValueError):
    """A setting is outside what the engine supports.

    Raised before anything is applied: bad channel count, bit depth or
    sample rate, an odd table size for the square wave, an unknown note.
    """


class InvalidTimbreError(WTSEError, ValueError):
    """Custom harmonic weights cannot be synthesized (e.g. all zero)."""


class ProtocolError(WTSEError, RuntimeError):
    """An encoder method was called out of its required order."""
