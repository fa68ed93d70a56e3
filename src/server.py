"""Protean Engine runner for the Cancellations domain.

Starts Engine workers that process events asynchronously when the domain is
configured with ``event_processing = "async"``: projectors (the admin review
queue) and event handlers (storefront cancellation and refund hand-off,
customer notifications, release of granted versions).

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    """Import and initialize the cancellations domain."""
    from cancellations.domain import cancellations

    cancellations.init()
    return cancellations


async def run(test_mode=False):
    engine = Engine(_get_domain(), test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Cancellations Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
