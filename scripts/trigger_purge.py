"""CLI script to manually purge expired notifications."""
from __future__ import annotations

import argparse

from schoolhub.tasks.notifications import purge_expired_notifications


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Delete notifications whose retention window has passed",
    )
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Queue task asynchronously instead of running immediately",
    )

    args = parser.parse_args()

    if args.use_async:
        task = purge_expired_notifications.apply_async()
        print(f"Task queued: {task.id}")
    else:
        result = purge_expired_notifications.run()
        print(f"Result: {result}")


if __name__ == "__main__":
    main()
