"""
Adapters package for the Catalog Service.

Contains the HTTP client for the published plant documents. Adapters
encapsulate base URLs, response parsing, and error handling that maps
to shared errors. Keep adapters thin and side-effect free outside of
explicit calls.
"""

from .plant_service_client import PlantServiceClient

__all__ = ["PlantServiceClient"]
