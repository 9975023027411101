"""
Periodic pickup spawner. Drops one coin somewhere random every interval,
unless the arena already holds the max.
"""

import asyncio
from typing import Optional

from ..shared.constants import COIN_SPAWN_INTERVAL_MS, MAX_COINS
from .world import Pickup, World


class PickupSpawner:
    """Runs on the server loop next to the tick; never concurrently with it."""

    def __init__(self, world: World, interval_ms: float = COIN_SPAWN_INTERVAL_MS,
                 max_pickups: Optional[int] = MAX_COINS):
        self.world = world
        self.interval = interval_ms / 1000.0
        self.max_pickups = max_pickups

    def spawn_once(self) -> Optional[Pickup]:
        """One firing. Returns the new pickup, or None if we're at the cap."""
        if self.max_pickups is not None and len(self.world.pickups) >= self.max_pickups:
            return None
        return self.world.add_pickup()

    async def run(self):
        while True:
            await asyncio.sleep(self.interval)
            self.spawn_once()
