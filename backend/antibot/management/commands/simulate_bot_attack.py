"""
Management command: simulate_bot_attack
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Runs the offline bot-attack simulation against the **currently
configured** risk policy (``settings.NITRO_RISK``) and prints detection
and economic-protection figures per agent type.

Nothing is written to the database; the command only reads settings.
Pass ``--seed`` for a reproducible run.

Usage::

    python manage.py simulate_bot_attack
    python manage.py simulate_bot_attack --bots 5000 --human-ratio 0.3 --seed 42
"""

import random

from django.core.management.base import BaseCommand, CommandError

from antibot.config import RiskConfig
from antibot.simulator import simulate_bot_attack


class Command(BaseCommand):
    help = (
        "Simulates a mixed population of humans and bots against the "
        "configured risk policy and reports how much NP it withholds.  "
        "Read-only."
    )

    def add_arguments(self, parser):
        parser.add_argument("--bots", type=int, default=1000, help="Total simulated wallets, humans included.")
        parser.add_argument(
            "--human-ratio", type=float, default=0.20,
            help="Share of the wallets that are human (0-1).",
        )
        parser.add_argument("--seed", type=int, default=None, help="Random seed.")

    def handle(self, *args, **options):
        try:
            report = simulate_bot_attack(
                options["bots"],
                options["human_ratio"],
                rng=random.Random(options["seed"]),
                config=RiskConfig.from_settings(),
            )
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  Bot Attack Simulation"
            "\n══════════════════════════════════════════\n"
        ))
        self.stdout.write(
            f"  Wallets: {report.total_humans} human, {report.total_bots} bot"
            f"  ({report.duration_ms} ms)"
        )

        # ── Per-type breakdown ──────────────────────────────────────
        for row in report.breakdown:
            if not row.count:
                continue
            self.stdout.write(
                f"  {row.type:<10s} count={row.count:<6d} detected={row.detected:<6d} "
                f"rate={row.detection_rate:6.2f}%  avg_score={row.avg_score:<3d} "
                f"np_blocked={row.np_blocked}"
            )

        # ── Risk distribution ───────────────────────────────────────
        distribution = ", ".join(f"{level}={n}" for level, n in report.risk_distribution.items())
        self.stdout.write(f"  Risk distribution: {distribution}")

        # ── Summary ─────────────────────────────────────────────────
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  Detection rate: {report.detection_rate:.2f}%  "
            f"({report.total_detected}/{report.total_bots} bots)"
        ))
        fp_style = self.style.WARNING if report.false_positives else self.style.SUCCESS
        self.stdout.write(fp_style(
            f"  False positives: {report.false_positives} "
            f"({report.false_positive_rate:.2f}% of humans)"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  NP requested={report.total_np_requested}  "
            f"distributed={report.total_np_distributed}  "
            f"blocked={report.total_np_blocked}  "
            f"economic protection={report.economic_protection:.2f}%\n"
        ))
