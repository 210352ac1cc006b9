"""
Plant repository for the Catalog Service.

Exposes observable, custom-sorted catalog views over the plant store and
refresh operations that pull fresh data from the network into the store.
"""

import asyncio
import sys
import threading
import time
from typing import AsyncIterator, List, Optional, Sequence, TYPE_CHECKING

from shared.logging import get_logger
from .caching import CacheOnSuccess
from .models import GrowZone, Plant
from .streams import map_latest

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from .adapters.plant_service_client import PlantServiceClient
    from .persistence.plant_store import PlantStore


UNRANKED = sys.maxsize


def apply_sort(plants: Sequence[Plant], sponsored_plants_id: Sequence[str]) -> List[Plant]:
    """
    Put sponsored plants first, in sponsor order, then the rest by name.

    Plants absent from ``sponsored_plants_id`` share the same rank, so the
    name tie-break orders them alphabetically.
    """
    ranks = {}
    for index, plant_id in enumerate(sponsored_plants_id):
        ranks.setdefault(plant_id, index)
    return sorted(plants, key=lambda plant: (ranks.get(plant.plant_id, UNRANKED), plant.name))


async def apply_main_safe_sort(plants: Sequence[Plant], sponsored_plants_id: Sequence[str]) -> List[Plant]:
    """Sort on a worker thread so the event loop never runs the comparison."""
    return await asyncio.to_thread(apply_sort, plants, sponsored_plants_id)


class PlantRepository:
    """Repository combining the plant store, the plant client and the sort order cache."""

    _instance: Optional["PlantRepository"] = None
    _instance_lock = threading.Lock()

    def __init__(
        self,
        plant_store: "PlantStore",
        plant_service: "PlantServiceClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.plant_store = plant_store
        self.plant_service = plant_service
        self.metrics = metrics
        self.logger = get_logger("catalog.repository")

        # Falls back to an empty sort order if the network call fails
        self.sponsored_plants_id_cache: CacheOnSuccess[List[str]] = CacheOnSuccess(
            lambda: self.plant_service.sponsored_plants_id(),
            on_error_fallback=list,
            name="sponsored_plants_id",
            metrics=metrics,
        )

    @classmethod
    def get_instance(
        cls,
        plant_store: "PlantStore",
        plant_service: "PlantServiceClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> "PlantRepository":
        """Return the process-wide repository, creating it on first use."""
        instance = cls._instance
        if instance is None:
            with cls._instance_lock:
                instance = cls._instance
                if instance is None:
                    instance = cls(plant_store, plant_service, metrics=metrics)
                    cls._instance = instance
        return instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide repository."""
        with cls._instance_lock:
            cls._instance = None

    def observe_all(self) -> AsyncIterator[List[Plant]]:
        """Custom-sorted snapshots of the whole catalog, one per store change."""

        async def sort_snapshot(plants: List[Plant]) -> List[Plant]:
            sponsored_plants_id = await self.sponsored_plants_id_cache.get_or_await()
            return apply_sort(plants, sponsored_plants_id)

        return map_latest(self.plant_store.get_all(), sort_snapshot)

    def observe_by_grow_zone(self, grow_zone: GrowZone) -> AsyncIterator[List[Plant]]:
        """Custom-sorted snapshots of one grow zone, one per store change."""

        async def sort_snapshot(plants: List[Plant]) -> List[Plant]:
            sponsored_plants_id = await self.sponsored_plants_id_cache.get_or_await()
            return await apply_main_safe_sort(plants, sponsored_plants_id)

        return map_latest(self.plant_store.get_all_by_grow_zone(grow_zone.number), sort_snapshot)

    async def _should_update_plants_cache(self) -> bool:
        """Whether a refresh should hit the network."""
        # Staleness checks against the store would go here
        return True

    async def refresh_all(self) -> bool:
        """
        Fetch every plant from the network and upsert it into the store.

        Returns False when the refresh was skipped. Network failures
        propagate as ExternalServiceError.
        """
        if not await self._should_update_plants_cache():
            return False
        await self._refresh("all", self.plant_service.all_plants)
        return True

    async def refresh_by_grow_zone(self, grow_zone: GrowZone) -> bool:
        """Fetch one grow zone from the network and upsert it into the store."""
        if not await self._should_update_plants_cache():
            return False
        await self._refresh(
            "grow_zone",
            lambda: self.plant_service.plants_by_grow_zone(grow_zone),
            grow_zone=grow_zone.number
        )
        return True

    async def _refresh(self, scope: str, fetch, **log_context) -> None:
        start_time = time.time()
        try:
            plants = await fetch()
        except Exception as exc:
            self._record_refresh(scope, "error", start_time)
            self.logger.error("Plant refresh failed", scope=scope, error=str(exc), **log_context)
            raise

        await self.plant_store.insert_all(plants)
        self._record_refresh(scope, "ok", start_time)
        self.logger.info("Plant refresh completed", scope=scope, count=len(plants), **log_context)

    def _record_refresh(self, scope: str, status: str, start_time: float) -> None:
        if self.metrics is None:
            return
        self.metrics.increment_counter("catalog_refresh_total", scope=scope, status=status)
        self.metrics.get_metric("catalog_refresh_duration_seconds").labels(scope=scope).observe(
            time.time() - start_time
        )
