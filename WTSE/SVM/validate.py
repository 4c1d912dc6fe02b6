#!/usr/bin/env python3
# =============================================================================
# validate.py — WTSE Self-Validation Suite
# =============================================================================
#
# Run directly:  python -m WTSE.SVM.validate
#             or python WTSE/SVM/validate.py (from project root)
#
# Tests:
#   1. Constants integrity  — table size, header layout, note tables
#   2. Wavetable            — sine landmarks, square levels, custom scaling
#   3. Sample codec         — quantization landmarks and byte order
#   4. Encoder scenario     — one 1 s A-110 note, byte-exact size checks
#   5. libsndfile check     — a third-party reader accepts every format
# =============================================================================

import sys
import os
import io
import struct
import tempfile

# Allow running from project root without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from WTSE.SMM.constants import (
    TABLE_SIZE, HEADER_FORMAT, HEADER_SIZE, SQUARE_AMPLITUDE,
    SAMPLE_RATES, BITS_PER_SAMPLE_CHOICES, CHANNEL_CHOICES,
    NOTE_BASE_HZ, NOTE_INDEX,
)
from WTSE.SMM.config import EncoderConfig
from WTSE.SMM.melody import Note, pitch_increment
from WTSE.SGM.wavetable import WaveTable
from WTSE.SGM.sample_codec import float_to_int16, float_to_int32, pack_little_endian
from WTSE.SGM.wav_encoder import create_encoder, render_wav_bytes
from WTSE.SVM.wav_inspect import read_header, check_header

PASS = "[PASS]"
FAIL = "[FAIL]"
INFO = "[INFO]"

failures = 0

def check(label: str, condition: bool, detail: str = "") -> bool:
    global failures
    if condition:
        print(f"  {PASS} {label}")
    else:
        print(f"  {FAIL} {label}{(' -- ' + detail) if detail else ''}")
        failures += 1
    return condition


# =============================================================================
# TEST 1 — Constants Integrity
# =============================================================================
print("\n" + "="*60)
print("TEST 1 — Constants Integrity")
print("="*60)

check("TABLE_SIZE = 400",              TABLE_SIZE == 400, f"got {TABLE_SIZE}")
check("TABLE_SIZE is even",            TABLE_SIZE % 2 == 0)
check("Header format packs 44 bytes",  struct.calcsize(HEADER_FORMAT) == HEADER_SIZE,
      f"got {struct.calcsize(HEADER_FORMAT)}")
check("12 base pitches",               len(NOTE_BASE_HZ) == 12)
check("Every note name maps into the pitch table",
      all(0 <= i < len(NOTE_BASE_HZ) for i in NOTE_INDEX.values()))
check("A3 plays at increment 2.0",     abs(pitch_increment("a", 3) - 2.0) < 1e-12)


# =============================================================================
# TEST 2 — Wavetable
# =============================================================================
print("\n" + "="*60)
print("TEST 2 — Wavetable")
print("="*60)

table = WaveTable()
table.sine()
check("sine: table[0] == 0",           table[0] == 0.0)
check("sine: table[N/4] ~ 1.0",        abs(table[TABLE_SIZE // 4] - 1.0) < 1e-12)
check("sine: table[N/2] ~ 0.0",        abs(table[TABLE_SIZE // 2]) < 1e-12)

table.square()
check("square: first half positive",   all(v == SQUARE_AMPLITUDE for v in table[:TABLE_SIZE // 2]))
check("square: second half negative",  all(v == -SQUARE_AMPLITUDE for v in table[TABLE_SIZE // 2:]))

table.custom([100])
sine = WaveTable(); sine.sine()
check("custom [100] equals sine",
      max(abs(a - b) for a, b in zip(table.samples, sine.samples)) < 1e-12)

table.custom([50, 0, 50])
peak = max(abs(v) for v in table.samples)
check("custom scaling keeps peak <= 1.0", peak <= 1.0 + 1e-12, f"peak={peak}")


# =============================================================================
# TEST 3 — Sample Codec
# =============================================================================
print("\n" + "="*60)
print("TEST 3 — Sample Codec")
print("="*60)

check("int16(0.0) == 0",               float_to_int16(0.0) == 0)
check("int16(1.0) == 32767",           float_to_int16(1.0) == 32767)
check("int16(-1.0) == 0x8000",         float_to_int16(-1.0) == 0x8000)
check("int32(-1.0) == 0x80000000",     float_to_int32(-1.0) == 0x8000_0000)
check("int16(1.5) saturates",          float_to_int16(1.5) == 32767)
check("pack 16-bit is little-endian",  pack_little_endian(0x1234, 16) == b"\x34\x12")
check("pack 32-bit is little-endian",  pack_little_endian(0x12345678, 32) == b"\x78\x56\x34\x12")


# =============================================================================
# TEST 4 — Encoder Scenario
# =============================================================================
print("\n" + "="*60)
print("TEST 4 — Encoder Scenario")
print("="*60)

table = WaveTable(); table.sine()
config = EncoderConfig.create(channels=1, sample_rate=44_100, bits_per_sample=16)
buf = io.BytesIO()
with create_encoder(buf, config, table) as enc:
    enc.write_header()
    enc.compose_block(1.0)
    spb = enc.samples_per_block
    blocks = enc.write_block(1000)
    enc.finalize()
wav = buf.getvalue()
expected_data = 111 * 400 * 1 * 2

check("samples per block = 400",       spb == 400, f"got {spb}")
check("blocks written = 110 + 1",      blocks == 111, f"got {blocks}")
check("file size = 44 + 111*400*2",   len(wav) == HEADER_SIZE + expected_data,
      f"got {len(wav)}")
problems = check_header(read_header(wav), len(wav))
check("header consistent",             not problems, "; ".join(problems))

empty = render_wav_bytes(table, config, [])
hdr = read_header(empty)
check("empty file: 44 bytes",          len(empty) == HEADER_SIZE)
check("empty file: ChunkSize = 36",    hdr.chunk_size == 36)
check("empty file: Subchunk2Size = 0", hdr.subchunk2_size == 0)


# =============================================================================
# TEST 5 — libsndfile cross-check (optional — requires soundfile)
# =============================================================================
print("\n" + "="*60)
print("TEST 5 — libsndfile cross-check")
print("="*60)

try:
    import soundfile as sf
    have_sf = True
except ImportError:
    have_sf = False
    print(f"  {INFO} soundfile not available — skipping libsndfile cross-check")
    print(f"  {INFO} Install with: pip install soundfile")

if have_sf:
    notes = [Note(pitch_increment("a", 3), 250), Note(pitch_increment("e", 4), 250)]
    with tempfile.TemporaryDirectory() as td:
        for channels in CHANNEL_CHOICES:
            for rate in SAMPLE_RATES:
                for bits in BITS_PER_SAMPLE_CHOICES:
                    cfg = EncoderConfig.create(channels, rate, bits)
                    path = os.path.join(td, f"check_{channels}_{rate}_{bits}.wav")
                    with create_encoder(path, cfg, table) as enc:
                        total = enc.write_melody(notes)
                    info = sf.info(path)
                    frames = (total - HEADER_SIZE) // cfg.block_align
                    ok = (info.samplerate == rate and info.channels == channels
                          and info.frames == frames and info.subtype == f"PCM_{bits}")
                    check(f"{channels}ch {rate} Hz {bits}-bit readable", ok,
                          f"sf.info: {info.samplerate} Hz {info.channels}ch "
                          f"{info.frames} frames {info.subtype}")


# =============================================================================
# Summary
# =============================================================================
print("\n" + "="*60)
if failures == 0:
    print(f"  ALL TESTS PASSED")
else:
    print(f"  {failures} TEST(S) FAILED")
print("="*60 + "\n")
sys.exit(0 if failures == 0 else 1)
