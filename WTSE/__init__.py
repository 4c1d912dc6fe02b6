# =============================================================================
# Wavetable Synthesis Engine (WTSE)
# =============================================================================
#
# ── WHAT THE ENGINE OWNS ─────────────────────────────────────────────────────
#
#   - Wavetable generation
#       One stored period (TABLE_SIZE samples) filled as a sine, an attenuated
#       square, or an additive mix of up to 32 sine harmonics.
#   - Pitch mapping
#       A note is a table increment; the encoder rescales it by
#       44100 / sample_rate so pitch is the same at every output rate.
#   - Quantization
#       Float samples become 16- or 32-bit PCM bit patterns, little-endian.
#   - WAV file construction
#       44-byte RIFF header, one pre-rendered period ("data block") per note
#       repeated for the note's duration, header sizes patched at the end.
#
# NOT responsible for:
#   - Choosing notes, tempo or file names interactively
#       Callers hand in validated settings and (increment, duration) pairs.
#   - Playback
#       The output is a plain PCM WAV for any player.
#
# ── DATA FLOW ─────────────────────────────────────────────────────────────────
#   melody text  → SMM.melody.parse_melody   → [Note(increment, ms), …]
#   timbre       → SGM.wavetable.WaveTable   → one period of floats
#   notes+table  → SGM.wav_encoder.WavEncoder → header, blocks, backpatch
#   output       → SVM.wav_inspect            → header consistency report
#
# ── Module layout ─────────────────────────────────────────────────────────────
#   SMM/  — constants, EncoderConfig, melody tables
#   SGM/  — wavetable, sample_codec, wav_encoder, export_bridge
#   SVM/  — wav_inspect, validate
#   errors.py — ConfigurationError, InvalidTimbreError, ProtocolError
# =============================================================================
