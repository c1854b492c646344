import logging
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from renderer.app.api.config import router as config_router
from renderer.app.api.deps import require_api_key
from renderer.app.api.drive import router as drive_router
from renderer.app.api.render import router as render_router
from renderer.app.core.config import get_settings
from renderer.app.core.errors import RendererError
from renderer.app.core.logging import configure_logging
from renderer.app.services.config_loader import ConfigLoader
from renderer.app.services.google_workspace import GoogleWorkspaceClient
from renderer.app.services.sell import SellNotifier

logger = logging.getLogger("renderer.main")


def get_app_version() -> str:
    """
    Resolve application version.

    Falls back to the source version when the package is not installed.
    """
    try:
        return version("sheet-doc-renderer")
    except PackageNotFoundError:
        return "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds settings, Google API clients, the config cache and the shared
    Sell HTTP client once per process. Invalid configuration aborts
    startup.
    """
    try:
        settings = get_settings()
    except Exception:
        logger.exception("invalid_renderer_configuration")
        raise

    configure_logging(settings.log_level)

    logger.info(
        "renderer_startup_begin",
        extra={"version": get_app_version()},
    )

    app.state.settings = settings
    app.state.workspace = GoogleWorkspaceClient.from_settings(settings)
    app.state.config_loader = ConfigLoader(
        app.state.workspace,
        spreadsheet_id=settings.sheets_spreadsheet_id,
        ttl_seconds=settings.config_ttl_seconds,
    )

    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers={"User-Agent": f"sheet-doc-renderer/{get_app_version()}"},
    )
    app.state.sell_notifier = SellNotifier(
        app.state.http_client,
        base_url=settings.sell_api_base,
        access_token=settings.sell_pat,
        timeout=settings.http_timeout_seconds,
    )

    if not app.state.sell_notifier.configured:
        logger.info("sell_notes_disabled")

    try:
        yield
    finally:
        logger.info("renderer_shutdown_begin")
        try:
            await app.state.http_client.aclose()
        except Exception:
            logger.warning("http_client_shutdown_failed")


async def renderer_error_handler(request: Request, exc: RendererError) -> ORJSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "error_type": type(exc).__name__,
            },
        )
    return ORJSONResponse(status_code=exc.status_code, content=exc.to_payload())


def create_app() -> FastAPI:
    """
    Application factory for the renderer service.
    """
    app = FastAPI(
        title="sheet-doc-renderer",
        description=(
            "Renders Google Docs templates configured in Google Sheets "
            "to PDF files in Google Drive."
        ),
        version=get_app_version(),
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RendererError, renderer_error_handler)

    gated = [Depends(require_api_key)]
    app.include_router(config_router, prefix="/v1", dependencies=gated)
    app.include_router(render_router, prefix="/v1", dependencies=gated)
    app.include_router(drive_router, prefix="/v1", dependencies=gated)

    @app.get("/health", tags=["Monitoring"], summary="Liveness probe")
    async def health_check():
        """Does NOT call Google or Sell."""
        return {"ok": True}

    return app


app = create_app()


def run() -> None:
    """Console entrypoint: serve the app with uvicorn on HOST:PORT."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
