import flet as ft
from typing import Callable, Optional

from config import COLORS, FONT_SIZE_XL, PADDING_4XL, SPACING_LG, Route
from i18n import t
from models.entities import Session


class HomeView:
    """Main app landing view shown after login.

    Carries the settings entry that re-opens the biometric enrollment
    prompt, the only way back into the login flow from here.
    """

    def __init__(
        self,
        page: ft.Page,
        on_enable_biometric: Callable[[], None],
    ) -> None:
        self.page = page
        self._on_enable_biometric = on_enable_biometric

    def build(self, session: Optional[Session]) -> ft.View:
        name = ""
        if session is not None:
            name = session.display_name or session.email or session.user_id

        settings_menu = ft.PopupMenuButton(
            icon=ft.Icons.SETTINGS,
            items=[
                ft.PopupMenuItem(
                    content=ft.Row(
                        [
                            ft.Icon(ft.Icons.FINGERPRINT, color=COLORS["accent"]),
                            ft.Text(t("enable_biometric_login")),
                        ],
                        spacing=SPACING_LG,
                    ),
                    on_click=lambda e: self._on_enable_biometric(),
                ),
            ],
        )

        return ft.View(
            route=Route.MAIN.value,
            bgcolor=COLORS["bg"],
            appbar=ft.AppBar(
                title=ft.Text(t("home")),
                bgcolor=COLORS["card"],
                automatically_imply_leading=False,
                actions=[settings_menu],
            ),
            controls=[
                ft.Container(
                    padding=PADDING_4XL,
                    content=ft.Text(
                        t("signed_in_as").format(name=name) if name else t("app_name"),
                        size=FONT_SIZE_XL,
                    ),
                ),
            ],
        )
