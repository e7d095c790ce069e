"""
Tests for tools/match_core: report and patch files from a sample on disk.
Run from project root: python -m pytest tests/test_match_tool.py -v
"""
import sys
import os
import json

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from patchmatch.core.io import AudioIO
from patchmatch.dsp.oscillators import Oscillator
from tools.match_core import analyze_file, estimate_report, run_match

SR = 44100


def _write_tone(path):
    path.write_bytes(AudioIO.to_bytes(Oscillator.saw(220.0, 1.0, SR, 0.5), SR))
    return path


def test_analyze_file(tmp_path):
    descriptor = analyze_file(str(_write_tone(tmp_path / "saw.wav")))
    assert abs(descriptor.pitch_hz - 220.0) < 3.0


def test_run_match_writes_report_and_patch(tmp_path):
    wav = _write_tone(tmp_path / "saw.wav")
    report, out = run_match(str(wav), steps=20, seed=1, output_dir=tmp_path / "out")

    assert (out / "report.json").exists()
    assert (out / "patch.json").exists()
    assert len(report["energy_trace"]) == 20
    assert report["energy"] <= report["initial_energy"]

    saved = json.loads((out / "report.json").read_text())
    assert saved["seed"] == 1
    assert AudioIO.load_patch(out / "patch.json") == report["params"]


def test_run_match_seed_is_reproducible(tmp_path):
    wav = _write_tone(tmp_path / "saw.wav")
    a, _ = run_match(str(wav), steps=30, seed=5, output_dir=tmp_path / "a")
    b, _ = run_match(str(wav), steps=30, seed=5, output_dir=tmp_path / "b")
    assert a["params"] == b["params"]


def test_estimate_report():
    report = estimate_report({"oscillator_type": "sine"}, 440.0)
    assert len(report["magnitudes"]) == 128
    assert sum(report["magnitudes"]) == 1.0


def test_run_match_reports_vibe_overlay(tmp_path):
    wav = _write_tone(tmp_path / "saw.wav")
    report, _ = run_match(str(wav), steps=5, seed=2, vibe="vintage", output_dir=tmp_path / "v")
    assert set(report["vibe_delta"]) == {"vibe_depth", "vibe_rate", "chorus_wet"}
    assert report["params"]["vibe_depth"] == 0.5
