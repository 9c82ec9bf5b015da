import flet as ft
import logging
from typing import Any, List, Optional

from core import shutdown
from events import event_bus, AppEvent, Subscription
from registry import registry, Services
from ui.app_initializer import AppComponents, AppInitializer

logger = logging.getLogger(__name__)


class MemeStreamApp:
    """Main application class: shows the login screen and hands off to the app."""

    def __init__(self, page: ft.Page) -> None:
        self.page = page
        self._components: Optional[AppComponents] = None
        self._subscriptions: List[Subscription] = []

    async def start(self) -> None:
        """Build services and the login screen, then run the cold-start check."""
        self._components = await AppInitializer(self.page).initialize()
        self._subscribe_to_events()

        self.page.on_close = self._on_page_close
        self.page.on_app_lifecycle_state_change = self._on_app_lifecycle_state_change

        self._components.auth_ctrl.show_login()
        await self._components.flow.start()

    def _subscribe_to_events(self) -> None:
        self._subscriptions.append(
            event_bus.subscribe(AppEvent.SIGNED_OUT, self._on_signed_out)
        )

    def _unsubscribe_all(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions.clear()

    def _on_signed_out(self, data: Any) -> None:
        """Biometric fallback revoked the session; show the login screen again."""
        if self._components is not None:
            self._components.auth_ctrl.show_login()

    def _on_app_lifecycle_state_change(self, e: ft.AppLifecycleStateChangeEvent) -> None:
        """Re-check the session when the app comes back to the foreground."""
        if self._components is None:
            return
        flow = registry.get(Services.AUTH_FLOW)
        if flow is not None and e.state in (ft.AppLifecycleState.RESUME, ft.AppLifecycleState.SHOW):
            self.page.run_task(flow.resume)

    def _on_page_close(self, e: Any = None) -> None:
        self._unsubscribe_all()
        try:
            self.page.run_task(shutdown)
        except RuntimeError as err:
            # Page may be closing or event loop unavailable
            logger.debug(f"Could not schedule shutdown (page closing): {err}")
