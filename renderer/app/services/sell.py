"""
Zendesk Sell note notifier.

After a PDF is uploaded, a short note linking to it can be attached to a
Sell resource (lead, contact, deal). The note is only created when the
render request names both a resource type and a resource id.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import SecretStr

from renderer.app.core.errors import CrmNotificationError
from renderer.app.schemas.config import Template
from renderer.app.schemas.render import RenderEnvelope, RenderedPdf

logger = logging.getLogger("renderer.sell")


def build_note_content(
    envelope: RenderEnvelope,
    template: Template,
    pdf: RenderedPdf,
) -> str:
    lines: List[str] = [
        f"Template: {template.label}",
        f"PDF: {pdf.name}",
        f"Link: {pdf.web_view_url}",
    ]
    if envelope.package_key:
        lines.append(f"Package: {envelope.package_key}")
    if envelope.actor is not None and envelope.actor.email:
        lines.append(f"Actor: {envelope.actor.email}")
    return "\n".join(lines)


class SellNotifier:
    """
    Client for POST /v2/notes.

    The httpx.AsyncClient is owned by the application lifespan and shared
    across requests.
    """

    NOTES_PATH = "/v2/notes"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: Optional[str],
        access_token: Optional[SecretStr],
        timeout: float = 30.0,
    ):
        self.client = http_client
        self.base_url = base_url.rstrip("/") if base_url else None
        self.access_token = access_token
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url) and self.access_token is not None

    async def notify(
        self,
        envelope: RenderEnvelope,
        template: Template,
        pdf: RenderedPdf,
    ) -> Optional[Dict[str, Any]]:
        """
        Create a note for the request's Sell target, if it has one.

        Returns the Sell response body, or None when no target was given.
        """
        sell = envelope.sell
        if sell is None or not sell.is_complete:
            return None

        if not self.configured:
            raise CrmNotificationError(
                "SELL_PAT and SELL_BASE_URL are required to create Sell notes"
            )

        body = {
            "resource_type": sell.resource_type,
            "resource_id": sell.resource_id,
            "content": build_note_content(envelope, template, pdf),
        }

        try:
            response = await self.client.post(
                f"{self.base_url}{self.NOTES_PATH}",
                headers={
                    "Authorization": f"Bearer {self.access_token.get_secret_value()}",
                    "Content-Type": "application/json",
                },
                json=body,
                timeout=self.timeout,
            )
        except httpx.RequestError as exc:
            raise CrmNotificationError(
                f"Sell note creation failed: {exc}"
            ) from exc

        if not response.is_success:
            logger.error(
                "sell_note_failed",
                extra={
                    "status_code": response.status_code,
                    "resource_type": sell.resource_type,
                    "resource_id": sell.resource_id,
                },
            )
            raise CrmNotificationError(
                f"Sell note creation failed: {response.status_code} {response.text}"
            )

        logger.info(
            "sell_note_created",
            extra={
                "resource_type": sell.resource_type,
                "resource_id": sell.resource_id,
            },
        )
        return response.json()
