"""
Persistence package for the Catalog Service.
"""

from .plant_store import PlantStore

__all__ = ["PlantStore"]
