"""Verify the AITunnel key and models before starting the wardrobe service.

Exits with status 1 when any check fails so it can gate a deployment step.
"""

from __future__ import annotations

import asyncio
import sys

from wardrobe.integrations import run_all_checks
from wardrobe.monitoring.logging import configure_logging


def main() -> int:
    configure_logging()
    results = asyncio.run(run_all_checks())
    for result in results:
        print(result)
    return 0 if all(result.success for result in results) else 1


if __name__ == "__main__":
    sys.exit(main())
