"""Headless bootstrap for MemeStream's login services.

Initializes the settings database, preference store and auth service
client without any Flet dependency, suitable for scripts and testing.

Usage:
    from core import bootstrap, build_auth_flow, shutdown

    svc = await bootstrap(db_path=Path("my.db"))
    flow = build_auth_flow(svc, identity, biometric, view)
    await flow.start()
    await shutdown()
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import httpx

from config import OFFER_BIOMETRIC_ENROLLMENT
from database import db, configure_db_path
from registry import registry, Services
from services.auth import FirebaseAuthClient
from services.auth_flow import AuthFlowController
from services.preferences import PreferenceStore


@dataclass
class ServiceContainer:
    """Container holding the initialized headless services."""
    preferences: PreferenceStore
    auth: FirebaseAuthClient


async def bootstrap(
    db_path: Optional[Path] = None,
    api_key: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ServiceContainer:
    """Initialize the service layer without Flet.

    Args:
        db_path: Custom database path. Uses MEMESTREAM_DB_PATH / "memestream.db" if None.
        api_key: Firebase Web API key override.
        transport: Optional httpx transport for the Firebase client.

    Returns:
        ServiceContainer with the stored session already restored.
    """
    if db_path is not None:
        configure_db_path(db_path)

    await db.init_db()

    preferences = PreferenceStore(db)
    auth_kwargs = {"transport": transport}
    if api_key is not None:
        auth_kwargs["api_key"] = api_key
    auth = FirebaseAuthClient(db.get_setting, db.set_setting, db.delete_setting, **auth_kwargs)
    await auth.load_session()

    registry.register(Services.AUTH, auth)

    return ServiceContainer(preferences=preferences, auth=auth)


def build_auth_flow(
    services: ServiceContainer,
    identity: Any,
    biometric: Any,
    view: Any,
    offer_enrollment: bool = OFFER_BIOMETRIC_ENROLLMENT,
) -> AuthFlowController:
    """Wire the login flow controller to its collaborators and register it."""
    flow = AuthFlowController(
        identity=identity,
        auth=services.auth,
        biometric=biometric,
        preferences=services.preferences,
        view=view,
        offer_enrollment=offer_enrollment,
    )
    registry.register(Services.AUTH_FLOW, flow)
    return flow


async def shutdown() -> None:
    """Clean up resources (close database connection)."""
    await db.close()
