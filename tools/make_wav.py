#!/usr/bin/env python3
# =============================================================================
# make_wav.py — Render a melody to a WAV file from the command line
# =============================================================================
#
# Usage:
#   python tools/make_wav.py out.wav --melody "a:1/4 c#:1/4 e:1/2"
#   python tools/make_wav.py out.wav --timbre square --channels 1 --rate 22050
#   python tools/make_wav.py out.wav --timbre custom --harmonics 100,0,50,0,25 \
#                                    --tempo 90 --octave 4 --melody "c:1 + c:1"
#
# Format defaults come from WTSE_CHANNELS / WTSE_SAMPLE_RATE / WTSE_BITS when
# set, otherwise stereo 44100 Hz 16-bit.
# =============================================================================

import sys, os, argparse, logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from WTSE.errors import WTSEError
from WTSE.SMM.config import EncoderConfig, config_from_env
from WTSE.SMM.constants import (
    SAMPLE_RATES, BITS_PER_SAMPLE_CHOICES, CHANNEL_CHOICES, DEFAULT_OCTAVE,
)
from WTSE.SMM.melody import parse_melody
from WTSE.SGM.wavetable import make_wavetable
from WTSE.SGM.wav_encoder import create_encoder

DIVIDER = "=" * 60


def _harmonics(text: str) -> list:
    values = []
    for part in text.split(","):
        part = part.strip()
        values.append(int(part) if part else None)
    return values


def main(argv=None) -> int:
    try:
        defaults = config_from_env()
    except WTSEError as e:
        print(f"  [!!] {e}")
        return 2

    parser = argparse.ArgumentParser(description="Wavetable melody → WAV renderer")
    parser.add_argument("output", help="Path of the .wav file to create")
    parser.add_argument("--timbre", choices=["sine", "square", "custom"], default="sine")
    parser.add_argument("--harmonics", type=_harmonics, default=None,
                        help="Comma-separated relative amplitudes 0..100, fundamental first")
    parser.add_argument("--channels", type=int, choices=CHANNEL_CHOICES,
                        default=defaults.channels)
    parser.add_argument("--rate", type=int, choices=SAMPLE_RATES,
                        default=defaults.sample_rate)
    parser.add_argument("--bits", type=int, choices=BITS_PER_SAMPLE_CHOICES,
                        default=defaults.bits_per_sample)
    parser.add_argument("--tempo", type=int, default=120, help="Beats per minute, 40..400")
    parser.add_argument("--octave", type=int, default=DEFAULT_OCTAVE, help="Starting octave, 2..5")
    parser.add_argument("--melody", required=True,
                        help='Notes as name:value tokens, e.g. "a:1/4 c#:1/8 + e:1/2"')
    parser.add_argument("--verbose", action="store_true", help="Log every note")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.output.lower().endswith(".wav"):
        print(f"  [!!] Output file name must end in '.wav': {args.output}")
        return 2

    try:
        table  = make_wavetable(args.timbre, args.harmonics)
        config = EncoderConfig.create(args.channels, args.rate, args.bits)
        notes  = parse_melody(args.melody, tempo=args.tempo, octave=args.octave)
    except WTSEError as e:
        print(f"  [!!] {e}")
        return 2

    print(DIVIDER)
    print(f"  Output   : {os.path.abspath(args.output)}")
    print(f"  Timbre   : {args.timbre}")
    print(f"  Format   : {config.channels} ch, {config.sample_rate} Hz, {config.bits_per_sample}-bit")
    print(f"  Notes    : {len(notes)}")
    print(DIVIDER)

    try:
        with create_encoder(args.output, config, table) as enc:
            total = enc.write_melody(notes)
    except (WTSEError, OSError) as e:
        print(f"  [!!] Could not write {args.output}: {e}")
        return 2

    print(f"  Wrote {total:,} bytes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
