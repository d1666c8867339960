#!/usr/bin/env python3
"""
Distribution audit for randkit providers.

Draws fractions and derived strings from a provider and checks range,
mean and chi-square uniformity of the hex, id and secret alphabets.

Usage:
    python -m scripts.distribution_audit --provider alea --seed AUDIT --draws 100000 --out ../out/audit_alea.csv
    python -m scripts.distribution_audit --provider bytes --draws 100000 --out ../out/audit_bytes.csv
"""
import argparse
import csv
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from randkit.config_hash import get_config_hash
from randkit.logic.models import BASE64_CHARS, HEX_CHARS, UNMISTAKABLE_CHARS
from randkit.logic.rng import AleaRNG, ByteRNG, CryptoRNG, RNGBase
from randkit.logic.stats import uniformity_report

MEAN_TOLERANCE = 0.01


@dataclass
class AuditStats:
    """Accumulated audit results."""

    draws: int = 0
    minimum: float = 1.0
    maximum: float = 0.0
    total: float = 0.0
    out_of_range: int = 0
    reports: dict[str, dict] = field(default_factory=dict)

    @property
    def mean(self) -> float:
        return self.total / self.draws if self.draws > 0 else 0.0


def build_provider(provider: str, seed: str | None) -> RNGBase:
    """Construct the provider under audit."""
    if provider == "alea":
        return AleaRNG(seeds=[seed] if seed is not None else None)
    if provider == "words":
        return CryptoRNG()
    return ByteRNG()


def run_audit(rng: RNGBase, draws: int, chars: int, verbose: bool = False) -> AuditStats:
    """
    Run the audit.

    Args:
        rng: provider under audit
        draws: fractions to draw for range/mean
        chars: characters to draw per alphabet for the chi-square tests
        verbose: print progress
    """
    stats = AuditStats()
    progress_interval = max(1, draws // 100)

    for i in range(draws):
        if verbose and i % progress_interval == 0:
            print(f"\rProgress: {(i / draws) * 100:.1f}%", end="", flush=True)
        value = rng.fraction()
        stats.draws += 1
        stats.total += value
        stats.minimum = min(stats.minimum, value)
        stats.maximum = max(stats.maximum, value)
        if not 0.0 <= value < 1.0:
            stats.out_of_range += 1

    if verbose:
        print("\rProgress: 100.0%")

    stats.reports["hex"] = uniformity_report(rng.hex_string(chars), HEX_CHARS)
    stats.reports["id"] = uniformity_report(rng.id(chars), UNMISTAKABLE_CHARS)
    stats.reports["secret"] = uniformity_report(rng.secret(chars), BASE64_CHARS)
    return stats


def audit_passed(stats: AuditStats) -> bool:
    """All fractions in range, mean near 0.5, every alphabet uniform."""
    return (
        stats.out_of_range == 0
        and abs(stats.mean - 0.5) <= MEAN_TOLERANCE
        and all(report["uniform"] for report in stats.reports.values())
    )


def generate_csv(
    provider: str, seed: str | None, stats: AuditStats, output_path: str
) -> None:
    """Write a one-row audit CSV."""
    row = {
        "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "config_hash": get_config_hash(),
        "provider": provider,
        "seed": seed or "",
        "draws": stats.draws,
        "mean": f"{stats.mean:.6f}",
        "min": f"{stats.minimum:.10f}",
        "max": f"{stats.maximum:.10f}",
        "out_of_range": stats.out_of_range,
    }
    for name, report in stats.reports.items():
        row[f"{name}_chi_square"] = f"{report['chi_square']:.4f}"
        row[f"{name}_critical"] = f"{report['critical']:.4f}"
        row[f"{name}_uniform"] = report["uniform"]
    row["passed"] = audit_passed(stats)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    print(f"CSV written to: {output_path}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Distribution audit for randkit providers")
    parser.add_argument(
        "--provider",
        choices=["alea", "bytes", "words"],
        required=True,
        help="Provider to audit",
    )
    parser.add_argument(
        "--seed",
        type=str,
        default=None,
        help="Seed string (alea only; omitted means time-seeded)",
    )
    parser.add_argument(
        "--draws",
        type=int,
        default=100000,
        help="Fractions to draw (default: 100000)",
    )
    parser.add_argument(
        "--chars",
        type=int,
        default=10000,
        help="Characters per alphabet for chi-square (default: 10000)",
    )
    parser.add_argument("--out", type=str, default=None, help="Output CSV path")
    parser.add_argument("--verbose", action="store_true", help="Show progress")

    args = parser.parse_args()

    rng = build_provider(args.provider, args.seed)
    print(f"Auditing provider={args.provider} secure={rng.is_secure} draws={args.draws}")
    print(f"Config hash: {get_config_hash()}")

    stats = run_audit(rng, args.draws, args.chars, verbose=args.verbose)

    if args.out:
        generate_csv(args.provider, args.seed, stats, args.out)

    print("\nSummary:")
    print(f"  Mean: {stats.mean:.6f}")
    print(f"  Range: [{stats.minimum:.10f}, {stats.maximum:.10f}]")
    print(f"  Out of range: {stats.out_of_range}")
    for name, report in stats.reports.items():
        verdict = "uniform" if report["uniform"] else "NOT uniform"
        print(
            f"  {name}: chi2={report['chi_square']:.2f} "
            f"(critical {report['critical']:.2f} at p={report['p']}) {verdict}"
        )

    if audit_passed(stats):
        print("\n✓ AUDIT PASSED")
        return 0
    print("\n✗ AUDIT FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(main())
