"""
Google Docs render pipeline.

    copy template doc → wait until visible → replace {{path}} tokens
    → export PDF → upload PDF → delete intermediate copy

The intermediate copy is the only resource this pipeline creates that
outlives a failure. Once it exists, any later error triggers a
best-effort delete before the original error propagates.
"""

import logging
import re
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from renderer.app.schemas.config import Template
from renderer.app.schemas.render import RenderedPdf
from renderer.app.services.filename import build_pdf_filename
from renderer.app.utils.paths import get_value_by_path, stringify

logger = logging.getLogger("renderer.render")


PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


def placeholder_token(path: str) -> str:
    return "{{" + path + "}}"


def discover_placeholders(text: str) -> List[str]:
    """Distinct ``{{path}}`` paths in order of first appearance."""
    seen: Dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def build_replacements(
    paths: List[str],
    payload: Mapping[str, Any],
) -> Dict[str, str]:
    return {
        placeholder_token(path): stringify(get_value_by_path(payload, path))
        for path in paths
    }


class RenderPipeline:
    """
    Turns a validated payload and a resolved template into an uploaded PDF.

    ``workspace`` is a GoogleWorkspaceClient (or anything with the same
    async surface).
    """

    def __init__(
        self,
        workspace,
        *,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ):
        self.workspace = workspace
        self._clock_ms = clock_ms

    async def render(
        self,
        template: Template,
        payload: Mapping[str, Any],
        *,
        folder_id: Optional[str] = None,
    ) -> RenderedPdf:
        started = time.perf_counter()
        copied_doc_id: Optional[str] = None

        try:
            copied_doc_id = await self.workspace.copy_file(
                template.doc_template_id,
                name=f"tmp_{self._clock_ms()}_{template.template_key}",
                parent_id=folder_id,
            )
            logger.info(
                "template_copied",
                extra={
                    "template_key": template.template_key,
                    "document_id": copied_doc_id,
                },
            )

            await self.workspace.wait_for_file(copied_doc_id)

            # Required placeholders first, then anything else the document uses.
            paths = list(template.required_placeholders)
            document_text = await self.workspace.get_document_text(copied_doc_id)
            for path in discover_placeholders(document_text):
                if path not in paths:
                    paths.append(path)

            await self.workspace.replace_text(
                copied_doc_id,
                build_replacements(paths, payload),
            )

            pdf_bytes = await self.workspace.export_pdf(copied_doc_id)

            pdf_name = build_pdf_filename(template.output_filename_pattern, payload)
            created = await self.workspace.upload_pdf(
                pdf_bytes,
                name=pdf_name,
                parent_id=folder_id,
            )

            if not template.keep_intermediate_doc:
                await self.workspace.delete_file(copied_doc_id)
                copied_doc_id = None

        except Exception:
            if copied_doc_id is not None:
                await self._discard(copied_doc_id)
            raise

        pdf = RenderedPdf(
            file_id=created["id"],
            name=created.get("name", pdf_name),
            web_view_url=created.get("webViewLink"),
        )

        logger.info(
            "pdf_rendered",
            extra={
                "template_key": template.template_key,
                "file_id": pdf.file_id,
                "pdf_bytes": len(pdf_bytes),
                "kept_intermediate": copied_doc_id is not None,
                "elapsed_ms": round((time.perf_counter() - started) * 1000),
            },
        )
        return pdf

    async def _discard(self, document_id: str) -> None:
        try:
            await self.workspace.delete_file(document_id)
        except Exception:
            logger.warning(
                "intermediate_cleanup_failed",
                extra={"document_id": document_id},
                exc_info=True,
            )
