"""
GoogleWorkspaceClient against canned HTTP responses.

The discovery clients are built from the bundled static discovery
documents, so no network access happens at construction time. Each call
receives a RecordingHttp that replays queued responses and keeps the
requests it saw.
"""

import json
from typing import Any, Dict, List, Tuple

import httplib2
import pytest
from google.auth.credentials import AnonymousCredentials
from tenacity import wait_none

from renderer.app.core.errors import UpstreamServiceError
from renderer.app.services.google_workspace import (
    GoogleWorkspaceClient,
    build_credentials,
    escape_query_value,
)
from renderer.tests.fakes import make_settings

pytestmark = pytest.mark.anyio


class RecordingHttp:
    """Minimal httplib2.Http stand-in shared by every per-call transport."""

    def __init__(self, responses: List[Tuple[int, Any]]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def request(self, uri, method="GET", body=None, headers=None, **kwargs):
        self.requests.append(
            {"uri": uri, "method": method, "body": body, "headers": headers or {}}
        )
        status, content = self.responses.pop(0)
        if isinstance(content, (dict, list)):
            content = json.dumps(content)
        if isinstance(content, str):
            content = content.encode("utf-8")
        return httplib2.Response({"status": str(status)}), content


def _client(http: RecordingHttp, **kwargs) -> GoogleWorkspaceClient:
    return GoogleWorkspaceClient(
        AnonymousCredentials(),
        http_factory=lambda: http,
        poll_wait=wait_none(),
        **kwargs,
    )


def _error(status: int, message: str) -> Tuple[int, Dict[str, Any]]:
    return status, {"error": {"code": status, "message": message}}


# ----------------------------------------------------------------------
# Sheets / Docs
# ----------------------------------------------------------------------

async def test_read_sheet_returns_values():
    http = RecordingHttp([(200, {"range": "templates!A1:K3", "values": [["a"], ["1"]]})])

    rows = await _client(http).read_sheet("sheet-123", "templates")

    assert rows == [["a"], ["1"]]
    assert "sheet-123" in http.requests[0]["uri"]


async def test_read_sheet_without_values_is_empty():
    http = RecordingHttp([(200, {"range": "templates!A1:Z1000"})])
    assert await _client(http).read_sheet("sheet-123", "templates") == []


async def test_get_document_text_collects_runs_everywhere():
    document = {
        "body": {
            "content": [
                {"paragraph": {"elements": [{"textRun": {"content": "Hi {{a}}"}}]}},
                {
                    "table": {
                        "tableRows": [
                            {
                                "tableCells": [
                                    {
                                        "content": [
                                            {"paragraph": {"elements": [{"textRun": {"content": " {{b.c}}"}}]}}
                                        ]
                                    }
                                ]
                            }
                        ]
                    }
                },
            ]
        },
        "headers": {"h1": {"content": [{"paragraph": {"elements": [{"textRun": {"content": " {{d}}"}}]}}]}},
    }
    http = RecordingHttp([(200, document)])

    text = await _client(http).get_document_text("copy-1")

    assert "{{a}}" in text and "{{b.c}}" in text and "{{d}}" in text


async def test_replace_text_sends_case_sensitive_requests():
    http = RecordingHttp([(200, {"documentId": "copy-1", "replies": [{}]})])

    await _client(http).replace_text("copy-1", {"{{name}}": "Ana"})

    body = json.loads(http.requests[0]["body"])
    assert body == {
        "requests": [
            {
                "replaceAllText": {
                    "containsText": {"text": "{{name}}", "matchCase": True},
                    "replaceText": "Ana",
                }
            }
        ]
    }
    assert http.requests[0]["method"] == "POST"


async def test_replace_text_with_nothing_to_do_makes_no_call():
    http = RecordingHttp([])
    await _client(http).replace_text("copy-1", {})
    assert http.requests == []


# ----------------------------------------------------------------------
# Drive
# ----------------------------------------------------------------------

async def test_copy_file_targets_parent_folder():
    http = RecordingHttp([(200, {"id": "copy-1"})])

    copy_id = await _client(http).copy_file("doc-1", name="tmp_1_t", parent_id="folder-9")

    assert copy_id == "copy-1"
    request = http.requests[0]
    assert "doc-1/copy" in request["uri"]
    assert "supportsAllDrives=true" in request["uri"]
    assert json.loads(request["body"]) == {"name": "tmp_1_t", "parents": ["folder-9"]}


async def test_wait_for_file_retries_not_found():
    http = RecordingHttp(
        [
            _error(404, "File not found: copy-1."),
            _error(404, "File not found: copy-1."),
            (200, {"id": "copy-1"}),
        ]
    )

    await _client(http).wait_for_file("copy-1")

    assert len(http.requests) == 3


async def test_wait_for_file_gives_up_after_bounded_attempts():
    http = RecordingHttp([_error(404, "File not found: copy-1.")] * 3)

    with pytest.raises(UpstreamServiceError) as excinfo:
        await _client(http, poll_attempts=3).wait_for_file("copy-1")

    assert excinfo.value.upstream_status == 404
    assert len(http.requests) == 3


async def test_wait_for_file_does_not_retry_other_errors():
    http = RecordingHttp([_error(403, "The caller does not have permission")])

    with pytest.raises(UpstreamServiceError) as excinfo:
        await _client(http).wait_for_file("copy-1")

    assert excinfo.value.message == "The caller does not have permission"
    assert excinfo.value.upstream_status == 403
    assert len(http.requests) == 1


async def test_export_pdf_returns_raw_bytes():
    http = RecordingHttp([(200, b"%PDF-1.7 bytes")])

    content = await _client(http).export_pdf("copy-1")

    assert content == b"%PDF-1.7 bytes"
    assert "mimeType=application%2Fpdf" in http.requests[0]["uri"]


async def test_upload_pdf_returns_file_metadata():
    metadata = {"id": "pdf-1", "name": "out.pdf", "webViewLink": "https://drive/pdf-1"}
    http = RecordingHttp([(200, metadata)])

    created = await _client(http).upload_pdf(b"%PDF", name="out.pdf", parent_id="folder-9")

    assert created == metadata
    assert "upload" in http.requests[0]["uri"]


async def test_delete_file_error_passes_upstream_message():
    http = RecordingHttp([_error(500, "Internal Error")])

    with pytest.raises(UpstreamServiceError) as excinfo:
        await _client(http).delete_file("copy-1")

    assert excinfo.value.message == "Internal Error"
    assert excinfo.value.operation == "drive.files.delete"


async def test_find_folder_builds_escaped_query():
    http = RecordingHttp([(200, {"files": []})])

    found = await _client(http).find_folder("O'Brien", parent_id="root-1")

    assert found is None
    uri = http.requests[0]["uri"]
    assert "includeItemsFromAllDrives=true" in uri


def test_escape_query_value():
    assert escape_query_value("O'Brien\\x") == "O\\'Brien\\\\x"


async def test_create_folder_sets_folder_mime_type():
    http = RecordingHttp([(200, {"id": "f-1", "name": "Deal"})])

    await _client(http).create_folder("Deal", parent_id="root-1")

    body = json.loads(http.requests[0]["body"])
    assert body == {
        "name": "Deal",
        "mimeType": "application/vnd.google-apps.folder",
        "parents": ["root-1"],
    }


# ----------------------------------------------------------------------
# Credentials
# ----------------------------------------------------------------------

def test_build_credentials_uses_service_account_info(monkeypatch):
    captured = {}

    def fake_from_info(info, scopes):
        captured["info"] = info
        captured["scopes"] = scopes
        return "credentials"

    monkeypatch.setattr(
        "renderer.app.services.google_workspace.service_account.Credentials.from_service_account_info",
        fake_from_info,
    )

    assert build_credentials(make_settings()) == "credentials"
    assert captured["info"]["client_email"] == "renderer@example.iam.gserviceaccount.com"
    assert "\\n" not in captured["info"]["private_key"]
    assert "https://www.googleapis.com/auth/drive" in captured["scopes"]
