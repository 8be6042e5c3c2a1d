"""
Route Registry

In-memory store of active forwarding routes, keyed by public endpoint.
Holds at most one route per public endpoint. Nothing is persisted.
"""

import logging
import threading
from typing import Dict, List, Optional

from .route import Endpoint, ForwardingRoute

logger = logging.getLogger('iptables-proxy.registry')


class RouteRegistry:
    """
    Active routes, guarded by a single lock.

    The lock covers only the lookup and mutation of the mapping. Callers
    run the matching firewall commands after the call returns.
    """

    def __init__(self):
        self._routes: Dict[Endpoint, ForwardingRoute] = {}
        self._lock = threading.Lock()

    def add(self, route: ForwardingRoute) -> Optional[ForwardingRoute]:
        """
        Add a route, replacing any route at the same public endpoint

        Returns:
            The replaced route, or None
        """
        with self._lock:
            previous = self._routes.get(route.public_endpoint)
            self._routes[route.public_endpoint] = route

        if previous is not None:
            logger.warning(f"Route already exists, replacing existing route: {previous}")
        else:
            logger.debug(f"Registered route: {route}")

        return previous

    def remove(self, public_endpoint: Endpoint) -> Optional[ForwardingRoute]:
        """
        Remove the route at public_endpoint

        Returns:
            The removed route, or None if no route was registered there
        """
        with self._lock:
            removed = self._routes.pop(public_endpoint, None)

        if removed is not None:
            logger.debug(f"Unregistered route: {removed}")

        return removed

    def get(self, public_endpoint: Endpoint) -> Optional[ForwardingRoute]:
        with self._lock:
            return self._routes.get(public_endpoint)

    def routes(self) -> List[ForwardingRoute]:
        """Snapshot of all active routes"""
        with self._lock:
            return list(self._routes.values())

    def clear(self) -> List[ForwardingRoute]:
        """Remove and return all routes"""
        with self._lock:
            routes = list(self._routes.values())
            self._routes.clear()
        return routes

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)

    def __contains__(self, public_endpoint: Endpoint) -> bool:
        with self._lock:
            return public_endpoint in self._routes
