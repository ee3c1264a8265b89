#!/usr/bin/env python
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from opexhub.core.schema import Initiative  # noqa: E402
from opexhub.exporters.tracker_excel import export_tracker  # noqa: E402
from opexhub.infrastructure import OpexApiClient, OpexApiError  # noqa: E402

logger = logging.getLogger("export_tracker")


def main() -> int:
    parser = argparse.ArgumentParser(description="Export the initiative tracker workbook")
    parser.add_argument("--base-url", default="http://localhost:8080", help="OpEx Hub API base URL")
    parser.add_argument("--email", required=True, help="account used to sign in")
    parser.add_argument("--password", help="account password (prompted when omitted)")
    parser.add_argument("--site", help="restrict to one site code")
    parser.add_argument("--size", type=int, default=500, help="maximum number of initiatives to fetch")
    parser.add_argument("--output", required=True, help="output path (.xlsx)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    password = args.password or getpass.getpass("Password: ")

    client = OpexApiClient(args.base_url)
    try:
        session = client.sign_in(args.email, password)
        authed = client.with_token(session.get("token") or session.get("accessToken"))
        payload = authed.list_initiatives(site=args.site, page=0, size=args.size)
    except OpexApiError as exc:
        logger.error("Export failed: %s", exc.message)
        return 1
    finally:
        client.close()

    items = payload.get("content", []) if isinstance(payload, dict) else payload or []
    initiatives = [Initiative.model_validate(item) for item in items]
    output = export_tracker(Path(args.output), initiatives)
    print(f"Tracker written for {len(initiatives)} initiatives: {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
