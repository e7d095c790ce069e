#!/usr/bin/env python3
"""
Sample analysis and patch matching from the command line.

Usage:
    python tools/match.py <subcommand> [options]

Subcommands:
    analyze <audio_file>                 Print the feature descriptor
    match <audio_file>                   Analyze + anneal, write report.json and patch.json
    estimate [params_json]               Print the model spectrum for a parameter set

Options (match):
    --steps <int>         Annealing steps (default: 50)
    --seed <int>          Fixed seed (default: random)
    --vibe <str>          off | modern | vintage (default: off)
    --params <path>       JSON file with starting params
    --output-dir <path>   Output directory (default: unique timestamped dir)
"""
import sys
import os
import json
import argparse
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tools.match_core import analyze_file, estimate_report, run_match
from patchmatch.core.errors import PatchMatchError
from patchmatch.core.io import AudioIO
from patchmatch.params.vibes import VIBES


def cmd_analyze(args):
    descriptor = analyze_file(args.audio_file)
    print(json.dumps(descriptor.to_dict(), indent=2))


def cmd_match(args):
    params = AudioIO.load_patch(args.params) if args.params else {}
    report, output_dir = run_match(
        args.audio_file,
        steps=args.steps,
        seed=args.seed,
        vibe=args.vibe,
        params=params,
        output_dir=args.output_dir,
    )
    print(f"Energy: {report['initial_energy']:.4f} -> {report['energy']:.4f}")
    print(f"Wrote {output_dir / 'report.json'} and {output_dir / 'patch.json'}")


def cmd_estimate(args):
    params = AudioIO.load_patch(args.params_json) if args.params_json else {}
    print(json.dumps(estimate_report(params, args.fundamental), indent=2))


def main():
    parser = argparse.ArgumentParser(
        description="Analyze samples and match synth patches",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_an = sub.add_parser("analyze", help="Print the feature descriptor")
    p_an.add_argument("audio_file")
    p_an.set_defaults(func=cmd_analyze)

    p_match = sub.add_parser("match", help="Analyze + anneal")
    p_match.add_argument("audio_file")
    p_match.add_argument("--steps", type=int, default=50, help="Annealing steps (default: 50)")
    p_match.add_argument("--seed", type=int, default=None, help="Fixed seed (default: random)")
    p_match.add_argument("--vibe", choices=list(VIBES), default="off")
    p_match.add_argument("--params", type=str, help="JSON file with starting params")
    p_match.add_argument("--output-dir", type=str, help="Output directory (default: unique timestamped)")
    p_match.set_defaults(func=cmd_match)

    p_est = sub.add_parser("estimate", help="Model spectrum for a parameter set")
    p_est.add_argument("params_json", nargs="?", help="JSON file with params (optional)")
    p_est.add_argument("--fundamental", type=float, default=None, help="Fundamental (Hz)")
    p_est.set_defaults(func=cmd_estimate)

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        args.func(args)
    except PatchMatchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
