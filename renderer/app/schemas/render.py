"""
Request and response models for POST /v1/render.

The render payload is free-form: any key may be addressed by a
placeholder path. RenderEnvelope reads the keys the service itself acts
on without imposing types on them, so a payload is never rejected for
the shape of a key the client uses for its own purposes. A ``deal`` that
is not an object simply carries no folder.
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator


def _as_id(value: Any) -> Optional[str]:
    """Non-empty strings and integers are usable Drive/Sell ids."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


class DealRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    folder_id: Any = None


class SellTarget(BaseModel):
    model_config = ConfigDict(extra="allow")

    resource_type: Any = None
    resource_id: Any = None

    @property
    def is_complete(self) -> bool:
        return bool(self.resource_type) and bool(self.resource_id)


class Actor(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Any = None


class RenderEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    template_key: Any = None
    package_key: Any = None
    folder_id: Any = None
    deal: Optional[DealRef] = None
    sell: Optional[SellTarget] = None
    actor: Optional[Actor] = None

    @field_validator("deal", "sell", "actor", mode="before")
    @classmethod
    def objects_only(cls, value: Any) -> Any:
        return value if isinstance(value, (Mapping, BaseModel)) else None

    @property
    def destination_folder_id(self) -> Optional[str]:
        if self.deal is not None:
            folder_id = _as_id(self.deal.folder_id)
            if folder_id:
                return folder_id
        return _as_id(self.folder_id)


class RenderedPdf(BaseModel):
    file_id: str
    name: str
    web_view_url: Optional[str] = None


class RenderResponse(BaseModel):
    pdf: RenderedPdf
    note: Optional[Dict[str, Any]] = None
