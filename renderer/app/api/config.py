import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from renderer.app.api.deps import get_config_loader
from renderer.app.core.errors import RendererError
from renderer.app.schemas.config import ConfigSnapshot
from renderer.app.services.config_loader import ConfigLoader

logger = logging.getLogger("renderer.api.config")

router = APIRouter(tags=["Configuration"])


@router.get(
    "/config",
    response_model=ConfigSnapshot,
    summary="List active templates and exam packages",
)
async def get_config(
    loader: Annotated[ConfigLoader, Depends(get_config_loader)],
) -> ConfigSnapshot:
    """
    Return the active configuration as read from the config spreadsheet.

    Served from the in-process cache while it is fresh.
    """
    try:
        return await loader.load()
    except RendererError:
        raise
    except Exception as exc:
        logger.exception(
            "config_load_failed",
            extra={"error_type": type(exc).__name__},
        )
        raise RendererError(str(exc)) from exc
