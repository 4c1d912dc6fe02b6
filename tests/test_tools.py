import numpy as np
import pytest

import make_wav
from WTSE.SVM.wav_inspect import read_header_file


def test_make_wav_writes_file(tmp_path, capsys):
    out = tmp_path / "tune.wav"
    rc = make_wav.main([str(out), "--channels", "1", "--rate", "22050",
                        "--bits", "32", "--melody", "a:1/8 + a:1/8"])
    assert rc == 0
    header = read_header_file(str(out))
    assert (header.channels, header.sample_rate, header.bits_per_sample) == (1, 22050, 32)
    assert "Wrote" in capsys.readouterr().out


def test_make_wav_custom_timbre(tmp_path):
    out = tmp_path / "organ.wav"
    rc = make_wav.main([str(out), "--timbre", "custom", "--harmonics", "100,,50",
                        "--melody", "c:1/4"])
    assert rc == 0
    assert out.stat().st_size > 44


def test_make_wav_rejects_bad_input(tmp_path, capsys):
    assert make_wav.main([str(tmp_path / "x.mp3"), "--melody", "a:1"]) == 2
    assert make_wav.main([str(tmp_path / "x.wav"), "--melody", "a:1/3"]) == 2
    assert make_wav.main([str(tmp_path / "x.wav"), "--timbre", "custom",
                          "--harmonics", "0,0", "--melody", "a:1"]) == 2
    assert "[!!]" in capsys.readouterr().out


def test_make_wav_reports_unwritable_output(tmp_path, capsys):
    out = tmp_path / "missing-dir" / "tune.wav"
    assert make_wav.main([str(out), "--melody", "a:1/4"]) == 2
    assert "Could not write" in capsys.readouterr().out
    assert not out.exists()


def test_harmonics_argument_parsing():
    assert make_wav._harmonics("100, 0,,25") == [100, 0, None, 25]


def test_quick_check_dominant_frequency():
    pytest.importorskip("soundfile")
    import quick_check_wav

    sr = 44100
    t = np.arange(sr) / sr
    assert quick_check_wav.dominant_frequency(np.sin(2 * np.pi * 440 * t), sr) == pytest.approx(440, abs=1)
    assert quick_check_wav.dominant_frequency(np.zeros(100), sr) is None


def test_quick_check_report(tmp_path, capsys):
    pytest.importorskip("soundfile")
    import quick_check_wav

    out = tmp_path / "a.wav"
    make_wav.main([str(out), "--channels", "1", "--melody", "a:1"])
    assert quick_check_wav.main(str(out)) == 0
    assert "[PASS]" in capsys.readouterr().out
