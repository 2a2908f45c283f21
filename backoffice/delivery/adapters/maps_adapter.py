"""
Maps Adapter for delivery routing.

Builds the navigation link handed to drivers for a route. The mapping
service itself is a black box; only the link format lives here.
"""

from abc import ABC, abstractmethod
from typing import Sequence
from urllib.parse import quote

from django.conf import settings


class MapsAdapterInterface(ABC):
    """
    Interface for navigation link providers.
    """

    @abstractmethod
    def build_route_link(self, origin: str, stops: Sequence[str]) -> str:
        """
        Build a round-trip navigation link.

        Args:
            origin: Start and end address of the route
            stops: Delivery addresses to visit, in dequeue order

        Returns:
            URL that opens the route in the mapping service
        """
        pass


class GoogleMapsLinkAdapter(MapsAdapterInterface):
    """
    Google Maps directions link with optimizable waypoints.

    The route starts and ends at the origin; the mapping service is free to
    reorder the waypoints.
    """

    def __init__(self, base_url: str = None):
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        return self._base_url or settings.DELIVERY_MAPS_BASE_URL

    def build_route_link(self, origin: str, stops: Sequence[str]) -> str:
        encoded_origin = quote(origin, safe="!*'()")
        waypoints = "|".join(quote(stop or "", safe="!*'()") for stop in stops)
        return (
            f"{self.base_url}&origin={encoded_origin}&destination={encoded_origin}"
            f"&waypoints=optimize:true|{waypoints}"
        )


maps_adapter = GoogleMapsLinkAdapter()


def get_maps_adapter() -> MapsAdapterInterface:
    """Return the current maps adapter."""
    return maps_adapter


def switch_to_google_adapter():
    """Switch back to the Google Maps link adapter."""
    global maps_adapter
    maps_adapter = GoogleMapsLinkAdapter()


def switch_to_maps_adapter(adapter: MapsAdapterInterface):
    """
    Switch to another maps adapter implementation.

    Args:
        adapter: Implementation of MapsAdapterInterface
    """
    global maps_adapter
    maps_adapter = adapter
