"""Seed demo drops for local development."""

import asyncio
from datetime import time

from ecoplate.engine import build_engine
from ecoplate.models.drop import CreateDropRequest, Location
from ecoplate.state.manager import StateManager


async def seed_drops() -> None:
    """Post tonight's demo drops at both dining halls."""
    print("Seeding drops...")

    state_manager = StateManager()
    await state_manager.connect()
    engine = build_engine(state_manager)

    requests = [
        CreateDropRequest(
            location=Location.ANTEATERY,
            window_start=time(19, 30),
            window_end=time(20, 30),
            boxes=20,
            price_min=3,
            price_max=6,
        ),
        CreateDropRequest(
            location=Location.BRANDYWINE,
            location_detail="Brandywine side entrance",
            window_start=time(20, 0),
            window_end=time(21, 0),
            boxes=12,
            price_min=2,
            price_max=5,
        ),
    ]

    for request in requests:
        drop = await engine.inventory.create_drop(request)
        print(
            f"  ✓ Posted {drop.location.value} drop {drop.id} "
            f"({drop.total_boxes} boxes, ${drop.price_min}-${drop.price_max})"
        )

    await state_manager.disconnect()
    print("✓ Drops seeded successfully\n")


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding EcoPlate Data")
    print("=" * 50 + "\n")

    await seed_drops()

    print("=" * 50)
    print("  ✓ All data seeded successfully!")
    print("=" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
