"""
Plant data client for the Catalog Service.
"""

import random
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from shared.logging import get_logger
from shared.errors import ExternalServiceError
from ..models import GrowZone, Plant


_PLANT_LIST = TypeAdapter(List[Plant])


class PlantServiceClient:
    """Client for the published plant catalog and custom sort order documents."""

    def __init__(
        self,
        base_url: str,
        plants_path: str,
        sort_order_path: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.plants_path = plants_path.lstrip('/')
        self.sort_order_path = sort_order_path.lstrip('/')
        self.timeout = timeout
        self._transport = transport
        self._random = rng or random.Random()
        self.logger = get_logger("catalog.plant_client")

    async def all_plants(self) -> List[Plant]:
        """Fetch every plant, in random order."""
        plants = await self._fetch_plants(self.plants_path)
        self._random.shuffle(plants)
        return plants

    async def plants_by_grow_zone(self, grow_zone: GrowZone) -> List[Plant]:
        """Fetch the plants of one grow zone, in random order."""
        plants = [
            plant for plant in await self._fetch_plants(self.plants_path)
            if plant.grow_zone_number == grow_zone.number
        ]
        self._random.shuffle(plants)
        return plants

    async def sponsored_plants_id(self) -> List[str]:
        """Fetch the custom sort order as a list of plant ids."""
        payload = await self._get_json(self.sort_order_path)
        try:
            return [str(entry["plantId"]) for entry in payload]
        except (KeyError, TypeError) as exc:
            raise ExternalServiceError(
                service="plant_data",
                message="Malformed sort order document",
                details={"path": self.sort_order_path, "error": str(exc)}
            )

    async def _fetch_plants(self, path: str) -> List[Plant]:
        payload = await self._get_json(path)
        try:
            return _PLANT_LIST.validate_python(payload)
        except PydanticValidationError as exc:
            raise ExternalServiceError(
                service="plant_data",
                message="Malformed plant document",
                details={"path": path, "errors": exc.error_count()}
            )

    async def _get_json(self, path: str) -> Any:
        """Execute a GET with error handling mapped onto shared errors."""
        url = f"{self.base_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            self.logger.error("Plant data request error", url=url, error=str(exc))
            raise ExternalServiceError(
                service="plant_data",
                message=str(exc) or type(exc).__name__,
                details={"url": url}
            )

        if response.status_code != 200:
            self.logger.error(
                "Plant data request failed",
                url=url,
                status_code=response.status_code
            )
            raise ExternalServiceError(
                service="plant_data",
                message=f"Unexpected status {response.status_code}",
                details={"url": url, "status_code": response.status_code}
            )

        self.logger.debug("Plant data retrieved", url=url)
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                service="plant_data",
                message="Response is not valid JSON",
                details={"url": url, "error": str(exc)}
            )
