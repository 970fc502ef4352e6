"""Run the exeat sweeps once; schedule hourly (cron / systemd timer).

    python scripts/run_sweeps.py all
    python scripts/run_sweeps.py expiry --dry-run
"""
from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.exeat_system.exeat_system.container import container_from_settings
from src.exeat_system.exeat_system.core.logging import configure_logging

logger = logging.getLogger("scripts.run_sweeps")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Expire stale exeats and charge overdue returns.")
    parser.add_argument("sweep", choices=["expiry", "overdue", "all"], nargs="?", default="all")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change without writing")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    sweeps = container_from_settings(settings).sweep_service
    summaries = []
    if args.sweep in ("expiry", "all"):
        summaries.append(sweeps.run_expiry_sweep(dry_run=args.dry_run))
    if args.sweep in ("overdue", "all"):
        summaries.append(sweeps.run_overdue_monitor_sweep(dry_run=args.dry_run))

    print(json.dumps([s.as_dict() for s in summaries], indent=2))
    return 1 if any(s.failed for s in summaries) else 0


if __name__ == "__main__":
    sys.exit(main())
