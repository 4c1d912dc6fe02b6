"""
Quick numeric checker for a rendered WAV.
Usage: python tools/quick_check_wav.py path/to/file.wav
"""
import sys
import os
import soundfile as sf
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from WTSE.SVM.wav_inspect import read_header_file, check_header


def dominant_frequency(ch, sr):
    """Strongest FFT bin in Hz, or None for silence."""
    if len(ch) < 2 or not np.any(ch):
        return None
    window = np.hanning(len(ch))
    spectrum = np.abs(np.fft.rfft(ch * window))
    spectrum[0] = 0.0
    return float(np.fft.rfftfreq(len(ch), 1.0 / sr)[int(np.argmax(spectrum))])


def main(path):
    header = read_header_file(path)
    problems = check_header(header, os.path.getsize(path))

    data, sr = sf.read(path, always_2d=True)
    n_ch = data.shape[1]
    duration = data.shape[0] / sr

    print("=" * 60)
    print(f"File        : {path}")
    print(f"Sample rate : {sr} Hz")
    print(f"Channels    : {n_ch}")
    print(f"Bit depth   : {header.bits_per_sample}")
    print(f"Duration    : {duration:.3f} s")
    print("=" * 60)

    for i in range(n_ch):
        ch = data[:, i]
        peak = np.max(np.abs(ch)) if len(ch) else 0.0
        rms  = np.sqrt(np.mean(ch ** 2)) if len(ch) else 0.0
        freq = dominant_frequency(ch, sr)
        freq_s = f"{freq:.1f} Hz" if freq is not None else "silence"
        print(f"  Ch{i}: peak={peak:.3f}  rms={rms:.3f}  dominant={freq_s}")

    print()
    if problems:
        print("Header problems:")
        for p in problems:
            print(f"  [FAIL] {p}")
    else:
        print("  [PASS] Header consistent with file size")
    print("=" * 60)
    return 0 if not problems else 1


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python tools/quick_check_wav.py file.wav")
        raise SystemExit
    raise SystemExit(main(sys.argv[1]))
