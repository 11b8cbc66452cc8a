"""Clear every drop, reservation, code and counter from Redis."""

import asyncio

from ecoplate.state.manager import StateManager


async def reset_all_state() -> None:
    """Flush the configured Redis database after confirmation."""
    print("\n⚠️  WARNING: This will delete ALL EcoPlate data from Redis!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    state_manager = StateManager()
    await state_manager.connect()
    await state_manager.flush()
    await state_manager.disconnect()

    print("✓ All state cleared from Redis\n")


if __name__ == "__main__":
    asyncio.run(reset_all_state())
