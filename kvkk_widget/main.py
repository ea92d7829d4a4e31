"""
Application entrypoint and route definitions.

Registers the permits page and starts the NiceGUI app. The host widget
runtime opens the page with its token and the requester phone as query
parameters.
"""

from typing import Optional

from nicegui import app, ui

from kvkk_widget.api.kvkk_client import ClientConfig, KvkkClient
from kvkk_widget.config import settings
from kvkk_widget.host import HostBundle
from kvkk_widget.pages.permits_page import show_permits_page
from kvkk_widget.utils.logger import get_logger

logger = get_logger(__name__)

_client: Optional[KvkkClient] = None


def get_client() -> KvkkClient:
    """Return the shared API client, building it from settings on first use."""
    global _client

    if _client is None:
        _client = KvkkClient(ClientConfig.from_settings(settings))
        logger.info(
            "KVKK client configured",
            extra={"base_url": settings.API_BASE_URL},
        )

    return _client


def _close_client() -> None:
    if _client is not None:
        _client.close()


app.on_shutdown(_close_client)


@ui.page("/")
def permits(token: Optional[str] = None, phone: Optional[str] = None) -> None:
    """Permits page route."""
    logger.debug("Permits page accessed")
    show_permits_page(get_client(), HostBundle.from_query(token=token, phone=phone))


def start_app() -> None:
    """
    Start the NiceGUI application.
    """
    if not settings.API_KEY:
        logger.error("KVKK_API_KEY is not set")
        raise RuntimeError("KVKK_API_KEY must be configured")

    logger.info("Starting KVKK permits widget")

    ui.run(
        title="KVKK İzin Yönetimi",
        port=settings.PORT,
        reload=False,
    )


if __name__ in {"__main__", "__mp_main__"}:
    start_app()
