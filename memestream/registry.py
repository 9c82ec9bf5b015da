"""
Central service registry for the login screen's collaborators.

The auth service client and the login flow controller are registered once
at startup (see ``core.bootstrap`` and ``core.build_auth_flow``) so the
Flet layer can look them up without holding references to each other.

Usage:
    from registry import registry, Services

    registry.register(Services.AUTH, auth)
    flow = registry.require(Services.AUTH_FLOW)
"""
import threading
from typing import Optional, Dict, Any


class ServiceRegistry:
    """Thread-safe name -> service lookup."""
    _instance: Optional["ServiceRegistry"] = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "ServiceRegistry":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._services: Dict[str, Any] = {}
                    cls._instance._lock = threading.Lock()
        return cls._instance

    def register(self, name: str, service: Any) -> None:
        with self._lock:
            self._services[name] = service

    def get(self, name: str) -> Optional[Any]:
        """Get a registered service, or None if not registered."""
        with self._lock:
            return self._services.get(name)

    def require(self, name: str) -> Any:
        """Get a registered service.

        Raises:
            KeyError: If the service is not registered
        """
        with self._lock:
            if name not in self._services:
                raise KeyError(f"Service '{name}' not registered. "
                              f"Ensure it's registered during app initialization.")
            return self._services[name]

    def is_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._services

    def clear(self) -> None:
        """Clear all registered services. Used primarily for testing."""
        with self._lock:
            self._services.clear()


registry = ServiceRegistry()


class Services:
    """Service name constants for registry access."""
    AUTH = "auth"
    AUTH_FLOW = "auth_flow"
