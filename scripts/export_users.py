"""Run the bulk user export against a local CSV file.

This module serves as a CLI wrapper around wxprovision.core.provisioning_service,
for administrators who already hold a Webex access token.

Example:
    WEBEX_ACCESS_TOKEN=... WEBEX_ORG_ID=... python scripts/export_users.py users.csv
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from wxprovision.config import load_cli_settings
from wxprovision.core.provisioning_service import export_users


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point. Returns 0 when the export status is 2xx."""
    parser = argparse.ArgumentParser(description="Create Webex users from a CSV and assign their licenses")
    parser.add_argument("csv_file", help="Path to the users CSV")
    parser.add_argument("--token", default=os.environ.get("WEBEX_ACCESS_TOKEN"),
                        help="Webex access token (default: WEBEX_ACCESS_TOKEN)")
    parser.add_argument("--org-id", default=os.environ.get("WEBEX_ORG_ID"),
                        help="Webex organization id (default: WEBEX_ORG_ID)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.token or not args.org_id:
        print("[export-users] Error: a token and an organization id are required", file=sys.stderr)
        return 2

    csv_path = Path(args.csv_file)
    try:
        raw = csv_path.read_bytes()
    except OSError as e:
        print(f"[export-users] Error: cannot read {csv_path}: {e}", file=sys.stderr)
        return 2

    try:
        cfg = load_cli_settings()
    except RuntimeError as e:
        print(f"[export-users] Error: {e}", file=sys.stderr)
        return 2

    outcome = export_users(raw, args.token, args.org_id, cfg, filename=csv_path.name)
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0 if 200 <= outcome.status < 300 else 1


if __name__ == "__main__":
    sys.exit(main())
