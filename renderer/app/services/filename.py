import re
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from renderer.app.utils.paths import stringify, get_value_by_path


DEFAULT_PATTERN = "documento_{YYYYMMDD}"
DATE_TOKEN = "{YYYYMMDD}"

_PATH_TOKEN = re.compile(r"\{([^}]+)\}")
_SEPARATORS = re.compile(r"[\\/]")


def build_pdf_filename(
    pattern: Optional[str],
    payload: Mapping[str, Any],
    *,
    today: Optional[date] = None,
) -> str:
    """
    Expand an output filename pattern into a Drive-safe PDF name.

    ``{YYYYMMDD}`` is today's UTC date; any other ``{dotted.path}`` is the
    payload value at that path, or nothing when absent. Path separators
    become underscores and the result always ends in ``.pdf``.
    """
    if today is None:
        today = datetime.now(timezone.utc).date()
    date_token = today.strftime("%Y%m%d")

    base = (pattern or DEFAULT_PATTERN).replace(DATE_TOKEN, date_token)
    base = _PATH_TOKEN.sub(
        lambda match: stringify(get_value_by_path(payload, match.group(1))),
        base,
    )
    base = _SEPARATORS.sub("_", base).strip()

    name = base or f"documento_{date_token}"
    if name.lower().endswith(".pdf"):
        return name
    return f"{name}.pdf"
