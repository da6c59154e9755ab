#!/usr/bin/env python3
"""
Expire overdue pending orders.

Meant to be run periodically by an external scheduler (cron, systemd timer).
Usage: from project root, with the package installed:
  python scripts/expire_orders.py
  python scripts/expire_orders.py --now 2024-06-30T00:00:00Z
"""

import argparse
import logging
import sys

from tradebook.app_context import AppContext
from tradebook.config.logging_config import setup_logging
from tradebook.core.exceptions import AppError
from tradebook.core.timezone import parse_datetime_utc

logger = logging.getLogger("tradebook.scripts.expire_orders")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--now", help="Sweep as of this instant (default: current time)")
    parser.add_argument("--database-url", help="Override TRADEBOOK_DATABASE_URL")
    args = parser.parse_args(argv)

    context = AppContext(database_url=args.database_url)
    context.initialize()
    setup_logging()

    try:
        now = parse_datetime_utc(args.now) if args.now else None
        expired = context.orders.expire_sweep(now)
    except (AppError, ValueError) as e:
        logger.error("Expiry sweep failed: %s", e)
        return 1
    finally:
        context.close()

    for order in expired:
        print(f"expired {order.order_id} ({order.symbol}, user {order.user_id})")
    print(f"{len(expired)} order(s) expired")
    return 0


if __name__ == "__main__":
    sys.exit(main())
