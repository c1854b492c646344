"""
Document render endpoint.

Clients send a free-form JSON payload. The service resolves a template
from template_key (or package_key), checks the template's required
placeholders against the payload, renders the Google Doc to PDF in Drive
and, when the payload names a Sell resource, attaches a note linking to
the PDF.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends

from renderer.app.api.deps import (
    get_config_loader,
    get_render_pipeline,
    get_sell_notifier,
)
from renderer.app.core.errors import RendererError
from renderer.app.schemas.render import RenderEnvelope, RenderResponse
from renderer.app.services.config_loader import ConfigLoader
from renderer.app.services.render import RenderPipeline
from renderer.app.services.resolver import resolve_template, validate_placeholders
from renderer.app.services.sell import SellNotifier

logger = logging.getLogger("renderer.api.render")

router = APIRouter(tags=["Rendering"])


@router.post(
    "/render",
    response_model=RenderResponse,
    response_model_exclude_unset=True,
    summary="Render a Google Docs template to PDF",
    responses={
        400: {"description": "Unresolvable template or missing placeholders"},
        401: {"description": "Missing or invalid x-api-key"},
        500: {"description": "Google or Sell API failure"},
    },
)
async def render_document(
    loader: Annotated[ConfigLoader, Depends(get_config_loader)],
    pipeline: Annotated[RenderPipeline, Depends(get_render_pipeline)],
    notifier: Annotated[SellNotifier, Depends(get_sell_notifier)],
    payload: Dict[str, Any] = Body(...),
) -> RenderResponse:
    envelope = RenderEnvelope.model_validate(payload)

    try:
        # --------------------------------------------------------------
        # Template lookup and placeholder validation
        # --------------------------------------------------------------
        config = await loader.load()
        template = resolve_template(config, envelope)
        validate_placeholders(template, payload)

        # --------------------------------------------------------------
        # Rendering pipeline
        # --------------------------------------------------------------
        pdf = await pipeline.render(
            template,
            payload,
            folder_id=envelope.destination_folder_id,
        )

        note = await notifier.notify(envelope, template, pdf)

    except RendererError:
        raise

    except Exception as exc:
        logger.exception(
            "render_failed",
            extra={
                "template_key": envelope.template_key,
                "package_key": envelope.package_key,
                "error_type": type(exc).__name__,
            },
        )
        raise RendererError(str(exc)) from exc

    if note is not None:
        return RenderResponse(pdf=pdf, note=note)
    return RenderResponse(pdf=pdf)
