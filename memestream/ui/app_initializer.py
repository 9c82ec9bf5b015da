import flet as ft
import logging
from typing import Optional

from core import ServiceContainer, bootstrap, build_auth_flow
from registry import registry, Services
from services.auth_flow import AuthFlowController
from services.biometric import PlatformBiometricAuthenticator
from services.identity import GoogleIdentityProvider
from ui.auth_controller import AuthController
from ui.helpers import SnackService
from ui.pages.home_view import HomeView

logger = logging.getLogger(__name__)


class AppComponents:
    """Container for initialized application components."""

    def __init__(self) -> None:
        self.services: Optional[ServiceContainer] = None
        self.identity: Optional[GoogleIdentityProvider] = None
        self.biometric: Optional[PlatformBiometricAuthenticator] = None
        self.snack: Optional[SnackService] = None
        self.home_view: Optional[HomeView] = None
        self.auth_ctrl: Optional[AuthController] = None
        self.flow: Optional[AuthFlowController] = None


class AppInitializer:
    """Handles application setup and component wiring."""

    def __init__(self, page: ft.Page) -> None:
        self.page = page
        self.components = AppComponents()

    async def initialize(self) -> AppComponents:
        """Initialize all application components and return them."""
        self._setup_page()
        self.components.services = await bootstrap()
        self._init_platform_clients()
        self._init_ui_components()
        self._init_auth_flow()
        return self.components

    def _setup_page(self) -> None:
        """Configure the Flet page settings."""
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.padding = 0

    def _init_platform_clients(self) -> None:
        self.components.identity = GoogleIdentityProvider(self.page)
        self.components.biometric = PlatformBiometricAuthenticator()

    def _init_ui_components(self) -> None:
        c = self.components
        c.snack = SnackService(self.page)
        c.home_view = HomeView(self.page, on_enable_biometric=self._offer_enrollment)
        c.auth_ctrl = AuthController(
            self.page,
            c.snack,
            build_main_view=c.home_view.build,
            get_session=registry.require(Services.AUTH).current_session,
        )

    def _init_auth_flow(self) -> None:
        c = self.components
        c.flow = build_auth_flow(c.services, c.identity, c.biometric, c.auth_ctrl)
        c.auth_ctrl.attach(c.flow)

    def _offer_enrollment(self) -> None:
        flow = registry.get(Services.AUTH_FLOW)
        if flow is not None:
            self.page.run_task(flow.offer_biometric_enrollment)
