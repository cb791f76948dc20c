from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from vaultdraw.audit.bundle import verify_bundle


def main(argv: list[str] | None = None) -> int:
    """Recompute a published draw.json and report any mismatch."""
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument("bundle", type=Path, help="Path to a published draw.json")
    args = parser.parse_args(argv)

    document = json.loads(args.bundle.read_text(encoding="utf-8"))
    report = verify_bundle(document)
    if report.ok:
        print(f"OK: bundle {document.get('bundleHash')} verified")
        return 0
    for problem in report.problems:
        print(f"FAIL: {problem}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
