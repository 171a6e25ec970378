#!/usr/bin/env python3
"""
Local dashboard harness (no HTTP, no remote document store).

Usage:
  python3 scripts/dashboard_local.py [--pushes N]

What it does:
- Seeds an in-memory document store with a day of bookings, services and categories
- Starts the dashboard through the same composition root the API uses
- Writes a few bookings as live pushes and prints the snapshot after each one
- Runs a manual refresh at the end
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from admin_console.application.utils.schedule import safe_timezone, today_iso  # noqa: E402
from admin_console.core.config import settings  # noqa: E402
from admin_console.domain.entities.dashboard import DashboardSnapshot  # noqa: E402
from admin_console.infrastructure.notifications.log_notifier import LoggingNotifier  # noqa: E402
from admin_console.infrastructure.store.memory_store import InMemoryDocumentStore  # noqa: E402
from admin_console.main import configure_logging  # noqa: E402
from admin_console.wiring.dependencies import build_dashboard  # noqa: E402


def _seed(today: str) -> dict[str, list[dict]]:
    return {
        "categories": [
            {"id": "hair", "name": "Hair", "isActive": True},
            {"id": "nails", "name": "Nails", "isActive": True},
        ],
        "services": [
            {"id": "s1", "name": "Hair Cut", "isActive": True, "category": {"id": "hair", "name": "Hair"}},
            {"id": "s2", "name": "Hair Color", "isActive": True, "category": "Hair"},
            {"id": "s3", "name": "Manicure", "isActive": False, "category": "Nails"},
        ],
        "bookings": [
            {"id": "b1", "date": today, "time": "14:30", "customerName": "Alice", "serviceName": "Hair Cut",
             "price": 40, "status": "pending"},
            {"id": "b2", "date": today, "time": "09:00", "customerName": "Bob", "serviceName": "Hair Color",
             "price": "60", "status": "accepted"},
            {"id": "b3", "date": "2000-01-01", "time": "10:00", "customerName": "Carol", "serviceName": "Manicure",
             "price": 25, "status": "completed"},
        ],
    }


def _print_snapshot(label: str, snapshot: DashboardSnapshot) -> None:
    stats = snapshot.stats
    print(f"\n[{label}] loading={snapshot.loading} refreshing={snapshot.refreshing}")
    print(
        f"  total={stats.total_bookings} pending={stats.pending_bookings} "
        f"revenue={stats.today_revenue:.2f} active_services={stats.active_services}"
    )
    for booking in snapshot.today_bookings:
        print(f"  {booking.time}  {booking.customer_name:<10} {booking.service_name:<12} {booking.status}")
    for category in snapshot.categories:
        print(f"  category {category.name}: {category.service_count} services")


async def main(pushes: int) -> None:
    configure_logging("WARNING")
    today = today_iso(safe_timezone(settings.BUSINESS_TIMEZONE))
    store = InMemoryDocumentStore(seed=_seed(today))
    dashboard = build_dashboard(store, LoggingNotifier())

    await dashboard.start()
    await dashboard.coordinator.settle()
    _print_snapshot("start", dashboard.snapshot)

    for index in range(pushes):
        await store.create(
            "bookings",
            {"date": today, "time": f"{10 + index:02d}:15", "customerName": f"Walk-in {index + 1}",
             "serviceName": "Hair Cut", "price": 40, "status": "pending"},
        )
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        _print_snapshot(f"push {index + 1}", dashboard.snapshot)

    ok = await dashboard.refresh()
    _print_snapshot(f"refresh ok={ok}", dashboard.snapshot)
    await dashboard.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--pushes", type=int, default=2, help="number of live booking writes to simulate")
    args = parser.parse_args()
    asyncio.run(main(args.pushes))
