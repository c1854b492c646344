import logging
from typing import Optional

from renderer.app.schemas.drive import FolderRef

logger = logging.getLogger("renderer.folders")


async def ensure_folder(
    workspace,
    name: str,
    *,
    parent_id: Optional[str] = None,
) -> FolderRef:
    """
    Return the folder called ``name`` under ``parent_id``, creating it
    when no non-trashed folder with that exact name exists.
    """
    existing = await workspace.find_folder(name, parent_id=parent_id)
    if existing is not None:
        return FolderRef(
            folder_id=existing["id"],
            name=existing.get("name", name),
            web_view_url=existing.get("webViewLink"),
            created=False,
        )

    created = await workspace.create_folder(name, parent_id=parent_id)
    logger.info(
        "drive_folder_created",
        extra={"folder_id": created["id"], "parent_id": parent_id},
    )
    return FolderRef(
        folder_id=created["id"],
        name=created.get("name", name),
        web_view_url=created.get("webViewLink"),
        created=True,
    )
