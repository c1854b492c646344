"""
Template and exam-package configuration loaded from Google Sheets.

Two tabs are read concurrently, each as a header row followed by data
rows. Rows are filtered by their is_active column, JSON-array columns are
parsed strictly, and the resulting snapshot is cached for a fixed TTL.

The cache is process-wide and unlocked. Two requests racing past an
expired entry both reload; the later write wins.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from renderer.app.core.errors import ConfigurationError
from renderer.app.schemas.config import ConfigSnapshot, ExamPackage, Template

logger = logging.getLogger("renderer.config_loader")


TEMPLATES_TAB = "templates"
EXAM_PACKAGES_TAB = "exam_packages"

TRUTHY_STRINGS = frozenset({"true", "1", "yes"})


# ---------------------------------------------------------------------------
# Cell parsing
# ---------------------------------------------------------------------------


def parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_STRINGS


def parse_json_array(raw: Any, field_name: str) -> List[Any]:
    """
    Parse a cell holding a JSON array.

    A blank cell is an empty list. Anything else that is not a JSON array
    raises ConfigurationError naming the offending field.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid JSON in {field_name}: {exc}") from exc
    if not isinstance(parsed, list):
        raise ConfigurationError(
            f"Invalid JSON in {field_name}: {field_name} must be a JSON array"
        )
    return parsed


def map_rows_to_records(rows: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Key each data row by the header row; short rows are padded with ''."""
    if not rows:
        return []
    header, data_rows = rows[0], rows[1:]
    return [
        {
            column: (row[index] if index < len(row) else "")
            for index, column in enumerate(header)
        }
        for row in data_rows
    ]


# ---------------------------------------------------------------------------
# Record normalization
# ---------------------------------------------------------------------------


def normalize_templates(rows: Sequence[Sequence[Any]]) -> List[Template]:
    templates: List[Template] = []
    for record in map_rows_to_records(rows):
        if not parse_boolean(record.get("is_active")):
            continue
        key = record.get("template_key", "")
        try:
            templates.append(
                Template(
                    template_key=key,
                    display_name=record.get("display_name", ""),
                    engine=record.get("engine", ""),
                    doc_template_id=record.get("doc_template_id", ""),
                    output_filename_pattern=record.get("output_filename_pattern", ""),
                    required_placeholders=parse_json_array(
                        record.get("required_placeholders"),
                        f"templates.{key}.required_placeholders",
                    ),
                    default_package_key=record.get("default_package_key", ""),
                    keep_intermediate_doc=parse_boolean(
                        record.get("keep_intermediate_doc")
                    ),
                    version=record.get("version", ""),
                    is_active=True,
                    notes=record.get("notes", ""),
                )
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid row in templates.{key}: {exc}") from exc
    return templates


def normalize_exam_packages(rows: Sequence[Sequence[Any]]) -> List[ExamPackage]:
    packages: List[ExamPackage] = []
    for record in map_rows_to_records(rows):
        if not parse_boolean(record.get("is_active")):
            continue
        key = record.get("package_key", "")
        try:
            packages.append(
                ExamPackage(
                    package_key=key,
                    display_name=record.get("display_name", ""),
                    exams=parse_json_array(
                        record.get("exams"),
                        f"exam_packages.{key}.exams",
                    ),
                    default_template_key=record.get("default_template_key", ""),
                    version=record.get("version", ""),
                    is_active=True,
                    notes=record.get("notes", ""),
                )
            )
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid row in exam_packages.{key}: {exc}"
            ) from exc
    return packages


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class ConfigLoader:
    """
    TTL-cached reader for the configuration spreadsheet.

    ``workspace`` only needs an async ``read_sheet(spreadsheet_id, tab)``.
    ``clock`` returns wall-clock seconds and is injectable for tests.
    """

    def __init__(
        self,
        workspace,
        *,
        spreadsheet_id: str,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.workspace = workspace
        self.spreadsheet_id = spreadsheet_id
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[ConfigSnapshot] = None
        self._expires_at = 0.0

    def invalidate(self) -> None:
        self._snapshot = None
        self._expires_at = 0.0

    async def load(self) -> ConfigSnapshot:
        if self._snapshot is not None and self._clock() < self._expires_at:
            return self._snapshot

        started = time.perf_counter()
        template_rows, package_rows = await asyncio.gather(
            self.workspace.read_sheet(self.spreadsheet_id, TEMPLATES_TAB),
            self.workspace.read_sheet(self.spreadsheet_id, EXAM_PACKAGES_TAB),
        )

        snapshot = ConfigSnapshot(
            templates=normalize_templates(template_rows),
            exam_packages=normalize_exam_packages(package_rows),
        )

        self._snapshot = snapshot
        self._expires_at = self._clock() + self.ttl_seconds

        logger.info(
            "config_loaded",
            extra={
                "template_count": len(snapshot.templates),
                "package_count": len(snapshot.exam_packages),
                "elapsed_ms": round((time.perf_counter() - started) * 1000),
            },
        )
        return snapshot
