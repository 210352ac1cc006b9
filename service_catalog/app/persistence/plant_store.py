"""
Observable in-memory plant store for the Catalog Service.
"""

import asyncio
from typing import AsyncIterator, Callable, Dict, Iterable, List, Set

from shared.logging import get_logger
from ..models import Plant


class PlantStore:
    """
    Plant table keyed by ``plant_id`` with observable queries.

    ``get_all`` and ``get_all_by_grow_zone`` return async iterators that emit
    the current query result on first iteration and again after every write.
    Writes that land while a subscriber is still busy are conflated into a
    single fresh snapshot.
    """

    def __init__(self):
        self.logger = get_logger("catalog.persistence.store")
        self._plants: Dict[str, Plant] = {}
        self._subscribers: Set[asyncio.Event] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def get_all(self) -> AsyncIterator[List[Plant]]:
        """Observe every plant ordered by name."""
        return self._observe(lambda plant: True)

    def get_all_by_grow_zone(self, grow_zone_number: int) -> AsyncIterator[List[Plant]]:
        """Observe the plants of one grow zone ordered by name."""
        return self._observe(lambda plant: plant.grow_zone_number == grow_zone_number)

    async def insert_all(self, plants: Iterable[Plant]) -> int:
        """Insert or replace plants by id and notify observers."""
        # No await until subscribers are notified, so each batch lands whole
        count = 0
        for plant in plants:
            self._plants[plant.plant_id] = plant
            count += 1

        self.logger.info("Plants upserted", count=count, total=len(self._plants))

        for changed in list(self._subscribers):
            changed.set()
        return count

    def _query(self, predicate: Callable[[Plant], bool]) -> List[Plant]:
        return sorted(
            (plant for plant in self._plants.values() if predicate(plant)),
            key=lambda plant: plant.name
        )

    async def _observe(self, predicate: Callable[[Plant], bool]) -> AsyncIterator[List[Plant]]:
        changed = asyncio.Event()
        self._subscribers.add(changed)
        self.logger.debug("Store subscriber added", subscribers=len(self._subscribers))
        try:
            while True:
                changed.clear()
                yield self._query(predicate)
                await changed.wait()
        finally:
            self._subscribers.discard(changed)
            self.logger.debug("Store subscriber removed", subscribers=len(self._subscribers))
