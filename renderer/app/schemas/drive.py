from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FolderEnsureRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Exact folder name")
    parent_id: Optional[str] = Field(
        default=None,
        description="Parent folder; defaults to DRIVE_ROOT_FOLDER_ID",
    )


class FolderRef(BaseModel):
    folder_id: str
    name: str
    web_view_url: Optional[str] = None
    created: bool
