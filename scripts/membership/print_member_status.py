"""Print the computed membership / coach status for members of a payment export.

Reads JSON exports (lists of rows, as pulled from the store) and prints one
JSON object per member id. Nothing is written back.

Usage examples:
  # Every member that appears in the payments export
  python scripts/membership/print_member_status.py --payments exports/payments.json

  # One member, with the pricing sheet and member rows for fallbacks
  python scripts/membership/print_member_status.py \
      --payments exports/payments.json --pricing exports/pricing.json \
      --members exports/members.json --member KG-0042

  # As of a fixed instant
  python scripts/membership/print_member_status.py --payments p.json --now 2025-11-16T08:00:00+08:00
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def _load_env_file() -> None:
    env_file = os.environ.get("ENV_FILE", ".env")
    env_path = (PROJECT_ROOT / env_file).resolve()
    if env_path.exists():
        load_dotenv(env_path, override=True)


def _load_rows(path: str | None) -> list[dict]:
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        # {"rows": [...]} or {doc_id: {...}} exports
        data = data.get("rows", list(data.values()))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of rows")
    return data


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--payments", required=True, help="Payments export (JSON)")
    parser.add_argument("--pricing", help="Pricing sheet export (JSON)")
    parser.add_argument("--members", help="Member rows export (JSON)")
    parser.add_argument("--member", help="Only this member id")
    parser.add_argument("--now", help="Evaluate as of this ISO instant")
    args = parser.parse_args(argv)

    _load_env_file()

    from libs.common.datetime_utils import parse_date_like, utc_now
    from libs.common.logging import configure_logging, get_logger
    from services.membership_service.schemas import MemberSnapshot
    from services.membership_service.services import resolve_statuses

    configure_logging()
    logger = get_logger("print_member_status")

    now = utc_now()
    if args.now:
        now = parse_date_like(args.now)
        if now is None:
            parser.error(f"--now: unreadable instant {args.now!r}")

    payments = _load_rows(args.payments)
    pricing = _load_rows(args.pricing)
    members = [MemberSnapshot.from_raw(row) for row in _load_rows(args.members)]
    logger.info(
        "Loaded %d payments, %d pricing rows, %d members",
        len(payments),
        len(pricing),
        len(members),
    )

    refs = members or None
    if args.member:
        wanted = args.member.strip().lower()
        refs = [m for m in members if m.member_id == wanted] or [wanted]

    statuses = resolve_statuses(payments, refs, pricing, now=now)
    output = {
        member_id: status.model_dump(mode="json")
        for member_id, status in sorted(statuses.items())
    }
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
