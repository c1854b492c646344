"""
FastAPI dependency providers.

Long-lived collaborators are created once by the application lifespan
and stored on app.state; these providers hand them to route handlers and
are the seam tests override.
"""

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from renderer.app.core.config import Settings
from renderer.app.core.errors import UnauthorizedError
from renderer.app.services.config_loader import ConfigLoader
from renderer.app.services.google_workspace import GoogleWorkspaceClient
from renderer.app.services.render import RenderPipeline
from renderer.app.services.sell import SellNotifier


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise RuntimeError("settings not initialized")
    return settings


def get_workspace(request: Request) -> GoogleWorkspaceClient:
    return request.app.state.workspace


def get_config_loader(request: Request) -> ConfigLoader:
    return request.app.state.config_loader


def get_sell_notifier(request: Request) -> SellNotifier:
    return request.app.state.sell_notifier


def get_render_pipeline(
    workspace: Annotated[GoogleWorkspaceClient, Depends(get_workspace)],
) -> RenderPipeline:
    return RenderPipeline(workspace)


def require_api_key(
    settings: Annotated[Settings, Depends(get_app_settings)],
    x_api_key: Annotated[
        Optional[str],
        Header(description="Shared secret, required when RENDER_API_KEY is set"),
    ] = None,
) -> None:
    """Gate /v1 routes behind RENDER_API_KEY when one is configured."""
    if settings.render_api_key is None:
        return

    expected = settings.render_api_key.get_secret_value()
    if x_api_key is None or not hmac.compare_digest(
        x_api_key.encode("utf-8"), expected.encode("utf-8")
    ):
        raise UnauthorizedError()
