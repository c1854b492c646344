import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from renderer.app.api.deps import get_app_settings, get_workspace
from renderer.app.core.config import Settings
from renderer.app.core.errors import RendererError
from renderer.app.schemas.drive import FolderEnsureRequest, FolderRef
from renderer.app.services.folders import ensure_folder
from renderer.app.services.google_workspace import GoogleWorkspaceClient

logger = logging.getLogger("renderer.api.drive")

router = APIRouter(prefix="/drive", tags=["Drive"])


@router.post(
    "/folder/ensure",
    response_model=FolderRef,
    summary="Find or create a Drive folder by name",
)
async def ensure_drive_folder(
    body: FolderEnsureRequest,
    settings: Annotated[Settings, Depends(get_app_settings)],
    workspace: Annotated[GoogleWorkspaceClient, Depends(get_workspace)],
) -> FolderRef:
    """
    Idempotently resolve a folder for render output.

    Without parent_id the folder is looked up under DRIVE_ROOT_FOLDER_ID.
    """
    parent_id = body.parent_id or settings.drive_root_folder_id
    try:
        return await ensure_folder(workspace, body.name, parent_id=parent_id)
    except RendererError:
        raise
    except Exception as exc:
        logger.exception(
            "folder_ensure_failed",
            extra={"parent_id": parent_id, "error_type": type(exc).__name__},
        )
        raise RendererError(str(exc)) from exc
