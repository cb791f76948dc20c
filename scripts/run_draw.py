from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from vaultdraw.config import BeaconSettings, DrawConfig
from vaultdraw.workflows import handle_draw_request


def main(argv: list[str] | None = None) -> int:
    """Run a draw from a request JSON file and print the response."""
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument("request", type=Path, help="Path to the draw request JSON")
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="Skip publication even when competition metadata is present",
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    body = json.loads(args.request.read_text(encoding="utf-8"))
    status, payload = handle_draw_request(
        body,
        config=DrawConfig.from_env(),
        publish=not args.no_publish,
        beacon_settings=BeaconSettings.from_env(),
    )
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if status == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
