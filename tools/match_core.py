"""
Core utilities for the match tool: analysis/match runs with JSON reports.
"""
import sys
import os
import json
import random
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from patchmatch.analysis.analyzer import analyze
from patchmatch.core.io import AudioIO
from patchmatch.core.types import FeatureDescriptor
from patchmatch.params.resolve import resolve_params
from patchmatch.params.vibes import vibe_delta
from patchmatch.search.annealer import ProgressObserver
from patchmatch.search.model import estimate_spectrum
from patchmatch.search.session import MatchSession


class EnergyTrace(ProgressObserver):
    """Collects best energy per step for the report."""

    def __init__(self):
        self.energies: List[float] = []

    def on_step(self, step, total_steps, energy, params):
        self.energies.append(float(energy))


def get_unique_output_dir(prefix: str, base: str = "output") -> Path:
    """Timestamped output dir; appends a counter if it already exists."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    out = Path(base) / f"{prefix}_{stamp}"
    counter = 1
    while out.exists():
        out = Path(base) / f"{prefix}_{stamp}_{counter}"
        counter += 1
    out.mkdir(parents=True, exist_ok=True)
    return out


def _write_json(path: Path, data: Dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def analyze_file(path: str) -> FeatureDescriptor:
    return analyze(AudioIO.load_pcm(path))


def run_match(
    path: str,
    steps: int = 50,
    seed: Optional[int] = None,
    vibe: str = "off",
    params: Optional[Dict] = None,
    output_dir: Optional[Path] = None,
) -> Tuple[Dict, Path]:
    """
    Analyze + anneal a sample file.
    Writes report.json and patch.json into output_dir; returns (report, output_dir).
    """
    descriptor = analyze_file(path)

    session = MatchSession(params)
    session.configure(descriptor)
    session.set_vibe(vibe)
    trace = EnergyTrace()
    rng = random.Random(seed) if seed is not None else None
    result = session.run_annealing(steps=steps, observer=trace, rng=rng)

    output_dir = Path(output_dir) if output_dir else get_unique_output_dir("match")
    patch = session.effective_params()
    report = {
        "source": str(path),
        "created_at": datetime.now().isoformat(),
        "seed": seed,
        "steps": steps,
        "vibe": vibe,
        "vibe_delta": vibe_delta(session.params, vibe),
        "descriptor": descriptor.to_dict(),
        "energy": result.energy,
        "initial_energy": result.initial_energy,
        "energy_trace": trace.energies,
        "params": patch,
    }
    _write_json(output_dir / "report.json", report)
    AudioIO.save_patch(patch, output_dir / "patch.json")
    return report, output_dir


def estimate_report(params: Optional[Dict] = None, fundamental_hz: Optional[float] = None) -> Dict:
    resolved = resolve_params(params)
    magnitudes = estimate_spectrum(resolved, fundamental_hz)
    return {
        "params": resolved,
        "fundamental_hz": fundamental_hz,
        "magnitudes": [round(float(m), 6) for m in magnitudes],
    }
