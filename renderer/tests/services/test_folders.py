import pytest

from renderer.app.services.folders import ensure_folder
from renderer.tests.fakes import FakeWorkspace

pytestmark = pytest.mark.anyio


async def test_returns_existing_folder():
    workspace = FakeWorkspace(
        folders=[
            {
                "id": "f-1",
                "name": "Deal 991",
                "parent_id": "root-1",
                "webViewLink": "https://drive.google.com/drive/folders/f-1",
            }
        ]
    )

    folder = await ensure_folder(workspace, "Deal 991", parent_id="root-1")

    assert folder.folder_id == "f-1"
    assert folder.created is False
    assert "create_folder" not in workspace.operations


async def test_creates_missing_folder():
    workspace = FakeWorkspace()

    folder = await ensure_folder(workspace, "Deal 991", parent_id="root-1")

    assert folder.created is True
    assert folder.name == "Deal 991"
    assert workspace.operations == ["find_folder", "create_folder"]
    assert workspace.calls[1][1] == {"name": "Deal 991", "parent_id": "root-1"}


async def test_second_call_finds_the_folder_created_by_the_first():
    workspace = FakeWorkspace()

    first = await ensure_folder(workspace, "Deal 991", parent_id="root-1")
    second = await ensure_folder(workspace, "Deal 991", parent_id="root-1")

    assert first.created is True
    assert second.created is False
    assert second.folder_id == first.folder_id
