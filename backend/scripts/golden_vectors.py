#!/usr/bin/env python3
"""
Golden vector generator and checker for the seeded Alea stream.

The fixture freezes the first draws (and derived strings) for a set of seed
sequences. Any port of the algorithm must reproduce these values exactly.

Usage:
    python -m scripts.golden_vectors --out tests/fixtures/golden_vectors.json
    python -m scripts.golden_vectors --check tests/fixtures/golden_vectors.json
"""
import argparse
import json
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from randkit.config_hash import get_config_hash
from randkit.logic.alea import ALEA_VERSION
from randkit.logic.rng import AleaRNG

DEFAULT_SEED_SETS: list[list[str]] = [
    ["test"],
    ["abc", "123"],
    ["0"],
    ["hello", "world", "42"],
]

DEFAULT_DRAWS = 5


def get_git_commit() -> str:
    """Get current git commit hash (short)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent.parent,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pass
    return "unknown"


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_case(seeds: list[str], draws: int = DEFAULT_DRAWS) -> dict[str, Any]:
    """
    Compute one golden case.

    Each derived string starts from a freshly seeded generator so the
    values do not depend on each other.
    """
    rng = AleaRNG(seeds=seeds)
    state = rng.state()
    return {
        "seeds": seeds,
        "initial_state": [state.s0, state.s1, state.s2, state.c],
        "fractions": [rng.fraction() for _ in range(draws)],
        "hex16": AleaRNG(seeds=seeds).hex_string(16),
        "id17": AleaRNG(seeds=seeds).id(17),
        "secret43": AleaRNG(seeds=seeds).secret(43),
    }


def build_vectors(
    seed_sets: list[list[str]], draws: int = DEFAULT_DRAWS
) -> dict[str, Any]:
    """Build the full fixture document."""
    return {
        "timestamp": get_timestamp_iso(),
        "git_commit": get_git_commit(),
        "config_hash": get_config_hash(),
        "algorithm": ALEA_VERSION,
        "draws": draws,
        "cases": [build_case(seeds, draws) for seeds in seed_sets],
    }


def check_vectors(document: dict[str, Any]) -> list[str]:
    """
    Recompute every case of a fixture document.

    Returns a list of human-readable mismatches (empty when all match).
    Metadata fields are not compared.
    """
    mismatches: list[str] = []
    draws = document.get("draws", DEFAULT_DRAWS)
    for case in document["cases"]:
        actual = build_case(case["seeds"], draws)
        for field in ("initial_state", "fractions", "hex16", "id17", "secret43"):
            if field in case and case[field] != actual[field]:
                mismatches.append(
                    f"seeds={case['seeds']} {field}: expected {case[field]!r}, got {actual[field]!r}"
                )
    return mismatches


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Generate or check Alea golden vectors")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--out", type=str, help="Write a fresh fixture to this path")
    group.add_argument("--check", type=str, help="Verify an existing fixture")
    parser.add_argument(
        "--seed",
        action="append",
        default=None,
        help="Comma-separated seed sequence; repeat for several cases",
    )
    parser.add_argument(
        "--draws",
        type=int,
        default=DEFAULT_DRAWS,
        help=f"Fractions per case (default: {DEFAULT_DRAWS})",
    )

    args = parser.parse_args()

    if args.check:
        with open(args.check) as f:
            document = json.load(f)
        mismatches = check_vectors(document)
        if document.get("config_hash") != get_config_hash():
            print(
                f"Note: fixture config_hash {document.get('config_hash')} "
                f"!= current {get_config_hash()}"
            )
        if mismatches:
            for line in mismatches:
                print(f"✗ {line}")
            print(f"\n{len(mismatches)} mismatch(es) in {args.check}")
            return 1
        print(f"✓ All {len(document['cases'])} golden cases reproduce")
        return 0

    seed_sets = (
        [seed.split(",") for seed in args.seed] if args.seed else DEFAULT_SEED_SETS
    )
    document = build_vectors(seed_sets, args.draws)

    output_path = Path(args.out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(document, f, indent=2)

    print(f"JSON written to: {args.out}")
    print(f"Config hash: {document['config_hash']}")
    for case in document["cases"]:
        print(f"  {case['seeds']}: first draw {case['fractions'][0]!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
