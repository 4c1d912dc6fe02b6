# =============================================================================
# WTSE/SGM/export_bridge.py — JSON-in / JSON-out WAV render bridge
# =============================================================================
#
# Entry points for callers that speak JSON (the HTTP bridge in tools/, or any
# embedding host):
#
#   render_melody(request) -> dict
#       request : {timbre, harmonics?, channels?, sample_rate?,
#                  bits_per_sample?, tempo?, octave?, melody}
#       returns : {wav_b64, sample_rate, channels, bits_per_sample,
#                  n_bytes, n_notes}
#
#   render_melody_json(request_json) -> str
#       Never raises.  On error returns {error, traceback}.
# =============================================================================

import base64
import json

from WTSE.SMM.config import EncoderConfig
from WTSE.SMM.constants import (
    DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE, DEFAULT_BITS_PER_SAMPLE, DEFAULT_OCTAVE,
)
from WTSE.SMM.melody import parse_melody
from .wav_encoder import render_wav_bytes
from .wavetable import make_wavetable

DEFAULT_TEMPO = 120


def render_wav(request, defaults=None):
    """
    Render the WAV described by `request` and return (wav_bytes, config, notes).

    `defaults` is an EncoderConfig supplying any format field the request
    leaves out.
    """
    defaults = defaults or EncoderConfig(DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE,
                                         DEFAULT_BITS_PER_SAMPLE)
    table = make_wavetable(request.get("timbre", "sine"), request.get("harmonics"))
    config = EncoderConfig.create(
        channels=int(request.get("channels", defaults.channels)),
        sample_rate=int(request.get("sample_rate", defaults.sample_rate)),
        bits_per_sample=int(request.get("bits_per_sample", defaults.bits_per_sample)),
    )
    notes = parse_melody(
        str(request.get("melody", "")),
        tempo=int(request.get("tempo", DEFAULT_TEMPO)),
        octave=int(request.get("octave", DEFAULT_OCTAVE)),
    )
    return render_wav_bytes(table, config, notes), config, notes


def render_melody(request, defaults=None):
    wav, config, notes = render_wav(request, defaults)
    return {
        "wav_b64":         base64.b64encode(wav).decode("ascii"),
        "sample_rate":     config.sample_rate,
        "channels":        config.channels,
        "bits_per_sample": config.bits_per_sample,
        "n_bytes":         len(wav),
        "n_notes":         len(notes),
    }


def render_melody_json(request_json):
    """
    Safe entry point.  Always returns a JSON string.
    On error returns {error, traceback}.
    """
    try:
        request = json.loads(request_json)
        return json.dumps(render_melody(request))
    except Exception as _exc:
        import traceback as _tb
        return json.dumps({
            "error":     str(_exc),
            "traceback": _tb.format_exc(),
        })
