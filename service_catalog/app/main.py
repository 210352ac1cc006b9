"""
Catalog service for the Plant Catalog.
"""

import json
from typing import AsyncIterator, Dict, List, Optional

from fastapi import Query
from fastapi.responses import StreamingResponse

from shared.base_service import BaseService

from .adapters.plant_service_client import PlantServiceClient
from .models import NO_GROW_ZONE, Plant, PlantListResponse, RefreshResponse, grow_zone_from_query
from .persistence.plant_store import PlantStore
from .repository import PlantRepository


class CatalogService(BaseService):
    """Catalog service implementation."""

    def __init__(self, repository: Optional[PlantRepository] = None):
        super().__init__("catalog", 8020)

        if repository is None:
            plant_service = PlantServiceClient(
                self.config.plant_data_base_url,
                self.config.plants_path,
                self.config.sort_order_path,
                timeout=self.config.http_timeout_seconds,
            )
            repository = PlantRepository(PlantStore(), plant_service, metrics=self.metrics)
        self.repository = repository

        self._setup_catalog_routes()

    def _observe(self, grow_zone_number: Optional[int]) -> AsyncIterator[List[Plant]]:
        grow_zone = grow_zone_from_query(grow_zone_number)
        if grow_zone == NO_GROW_ZONE:
            return self.repository.observe_all()
        return self.repository.observe_by_grow_zone(grow_zone)

    def _setup_catalog_routes(self):
        """Set up catalog-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "catalog",
                "message": "Plant Catalog - Catalog Service",
                "version": "1.0.0",
                "capabilities": ["custom_sort_order", "streaming", "refresh"]
            }

        @self.app.get("/plants", response_model=PlantListResponse)
        async def get_plants(
            grow_zone: Optional[int] = Query(None, description="Filter by grow zone number")
        ):
            """Current custom-sorted catalog snapshot."""
            stream = self._observe(grow_zone)
            try:
                plants = await stream.__anext__()
            finally:
                await stream.aclose()

            return PlantListResponse(grow_zone=grow_zone, total=len(plants), plants=plants)

        @self.app.get("/plants/stream")
        async def stream_plants(
            grow_zone: Optional[int] = Query(None, description="Filter by grow zone number"),
            max_events: Optional[int] = Query(None, ge=1, description="Close after this many snapshots")
        ):
            """Server-sent events, one per catalog snapshot."""

            async def event_source():
                stream = self._observe(grow_zone)
                sent = 0
                try:
                    async for plants in stream:
                        yield format_snapshot_event(plants)
                        sent += 1
                        if max_events is not None and sent >= max_events:
                            break
                finally:
                    await stream.aclose()
                    self.logger.debug("Snapshot stream closed", grow_zone=grow_zone, sent=sent)

            return StreamingResponse(event_source(), media_type="text/event-stream")

        @self.app.post("/plants/refresh", response_model=RefreshResponse)
        async def refresh_plants(
            grow_zone: Optional[int] = Query(None, description="Refresh one grow zone only")
        ):
            """Pull fresh plants from the network into the store."""
            zone = grow_zone_from_query(grow_zone)
            if zone == NO_GROW_ZONE:
                refreshed = await self.repository.refresh_all()
            else:
                refreshed = await self.repository.refresh_by_grow_zone(zone)

            return RefreshResponse(grow_zone=grow_zone, refreshed=refreshed)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report catalog component state."""
        cache = self.repository.sponsored_plants_id_cache
        return {
            "plant_store": "ok",
            "sort_order_cache": "cached" if cache.is_completed else "empty",
        }


def format_snapshot_event(plants: List[Plant]) -> str:
    """Render a snapshot as a single SSE data frame."""
    payload = [plant.model_dump(by_alias=True) for plant in plants]
    return f"data: {json.dumps(payload)}\n\n"


def create_app(repository: Optional[PlantRepository] = None):
    """Create catalog service application."""
    service = CatalogService(repository)
    return service.app


if __name__ == "__main__":
    service = CatalogService()
    service.run()
