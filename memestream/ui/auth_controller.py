"""
Login screen for MemeStream.

Hosts the login flow inside Flet:
- Builds the login view (Google sign-in button + progress indicator)
- Shows flow notices and errors as snack bars
- Replaces the whole view stack with the main app so back navigation
  cannot return to the login screen
"""
import flet as ft
import logging
from typing import Callable, Optional

from config import (
    COLORS, FlowState, Route,
    FONT_SIZE_MD, FONT_SIZE_4XL, ICON_SIZE_3XL,
    LOGIN_CARD_WIDTH, PADDING_4XL, SPACING_3XL,
)
from events import AppEvent, event_bus
from i18n import t
from models.entities import Session
from services.auth_flow import AuthFlowController
from ui.helpers import SnackService, accent_btn

logger = logging.getLogger(__name__)

_BUSY_STATES = {
    FlowState.START,
    FlowState.SIGN_IN_IN_FLIGHT,
    FlowState.EXCHANGING_CREDENTIAL,
    FlowState.POST_SIGN_IN_DECISION,
    FlowState.ENROLLMENT_PROMPT,
    FlowState.UNLOCK_PROMPT,
}


class AuthController:
    """
    Flet side of the login flow.

    Implements the view boundary the flow controller talks to
    (show_notice / show_error / navigate_to_main_app) and turns button
    presses and back navigation into flow entry points.

    Usage:
        auth_ctrl = AuthController(page, snack, build_main_view, auth.current_session)
        auth_ctrl.attach(flow)
        auth_ctrl.show_login()
        page.run_task(flow.start)
    """

    def __init__(
        self,
        page: ft.Page,
        snack: SnackService,
        build_main_view: Callable[[Optional[Session]], ft.View],
        get_session: Callable[[], Optional[Session]],
    ) -> None:
        """Initialize the login screen.

        Args:
            page: Flet page hosting the views
            snack: SnackService for feedback messages
            build_main_view: Factory for the main app view, given the session
            get_session: Returns the current auth session
        """
        self.page = page
        self.snack = snack
        self._build_main_view = build_main_view
        self._get_session = get_session
        self._flow: Optional[AuthFlowController] = None
        self._sign_in_btn: Optional[ft.Button] = None
        self._progress: Optional[ft.ProgressRing] = None
        self._state_sub = event_bus.subscribe(AppEvent.FLOW_STATE_CHANGED, self._on_flow_state)

    def attach(self, flow: AuthFlowController) -> None:
        self._flow = flow

    @property
    def flow(self) -> AuthFlowController:
        if self._flow is None:
            raise RuntimeError("AuthController used before attach()")
        return self._flow

    # ------------------------------------------------------------------
    # View boundary
    # ------------------------------------------------------------------

    def show_notice(self, message: str) -> None:
        self.snack.show(message)

    def show_error(self, message: str) -> None:
        self.snack.show(message, COLORS["danger"])

    def navigate_to_main_app(self) -> None:
        self.page.views.clear()
        self.page.views.append(self._build_main_view(self._get_session()))
        self.page.on_view_pop = None
        self._state_sub.unsubscribe()
        self.page.update()
        logger.info("Navigated to main app")

    # ------------------------------------------------------------------
    # Login view
    # ------------------------------------------------------------------

    def show_login(self) -> None:
        """Replace the view stack with the login view."""
        if not self._state_sub.active:
            self._state_sub = event_bus.subscribe(AppEvent.FLOW_STATE_CHANGED, self._on_flow_state)
        self.page.views.clear()
        self.page.views.append(self._build_login_view())
        self.page.on_view_pop = self._on_view_pop
        self.page.update()

    def _build_login_view(self) -> ft.View:
        self._sign_in_btn = accent_btn(
            t("sign_in_with_google"),
            on_click=lambda e: self.page.run_task(self.flow.sign_in),
            icon=ft.Icons.LOGIN,
        )
        state = self._flow.state if self._flow is not None else FlowState.START
        self._progress = ft.ProgressRing(
            width=24, height=24, stroke_width=2, visible=state in _BUSY_STATES,
        )
        self._sign_in_btn.visible = state == FlowState.AWAITING_FEDERATED_SIGN_IN

        card = ft.Container(
            width=LOGIN_CARD_WIDTH,
            padding=PADDING_4XL,
            bgcolor=COLORS["card"],
            border_radius=16,
            content=ft.Column(
                [
                    ft.Icon(ft.Icons.LOCK_OUTLINE, size=ICON_SIZE_3XL, color=COLORS["accent"]),
                    ft.Text(t("app_name"), size=FONT_SIZE_4XL, weight=ft.FontWeight.BOLD),
                    ft.Text(t("app_tagline"), size=FONT_SIZE_MD, color=COLORS["muted"]),
                    self._progress,
                    self._sign_in_btn,
                ],
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                spacing=SPACING_3XL,
            ),
        )
        return ft.View(
            route=Route.LOGIN.value,
            bgcolor=COLORS["bg"],
            vertical_alignment=ft.MainAxisAlignment.CENTER,
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            controls=[card],
        )

    def _on_flow_state(self, state: FlowState) -> None:
        if self._sign_in_btn is None or self._progress is None:
            return
        busy = state in _BUSY_STATES
        self._progress.visible = busy
        self._sign_in_btn.visible = state == FlowState.AWAITING_FEDERATED_SIGN_IN
        self.page.update()

    def _on_view_pop(self, e) -> None:
        # Back while the Google consent screen is open cancels the attempt
        if self._flow is not None:
            self._flow.cancel_sign_in()
