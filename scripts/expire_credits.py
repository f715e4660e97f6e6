"""Reconcile expired credit lots into their stored status.

Usage: python scripts/expire_credits.py <school_id> [YYYY-MM-DD]
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_ROOT = REPO_ROOT / "src" / "credit_ledger"
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from dotenv import load_dotenv

from credit_ledger.common.datetime_utils import parse_iso_date
from credit_ledger.config import get_settings_module
from credit_ledger.container import build_container


def main(argv: list[str]) -> int:
    if not argv:
        print(__doc__.strip())
        return 2

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    school_id = int(argv[0])
    today = parse_iso_date(argv[1]) if len(argv) > 1 else None

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        max_attempts=int(getattr(settings, "TRANSACTION_MAX_ATTEMPTS", 5)),
    )
    expired = container.expiry_service.expire_credits(school_id, today=today)
    print(f"OK: expired {expired} credit(s) for school {school_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
