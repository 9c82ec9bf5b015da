import logging

import flet as ft

from app import MemeStreamApp

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


async def main(page: ft.Page) -> None:
    page.title = "MemeStream"
    app = MemeStreamApp(page)
    # Keep the app alive; event bus subscriptions are weak
    page.data = app
    await app.start()


if __name__ == "__main__":
    ft.app(target=main)
