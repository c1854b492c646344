"""
Async facade over the Google Sheets, Docs and Drive APIs.

The discovery clients from google-api-python-client are blocking and
their default httplib2 transport is not thread-safe. Every call therefore
runs in a worker thread with a freshly built transport, which lets the
config loader issue its two Sheets reads concurrently.

All googleapiclient HttpError failures are translated into
UpstreamServiceError, carrying the upstream message verbatim.
"""

import asyncio
import io
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import httplib2
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from renderer.app.core.config import Settings
from renderer.app.core.errors import UpstreamServiceError

logger = logging.getLogger("renderer.google")


SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
]

TOKEN_URI = "https://oauth2.googleapis.com/token"

PDF_MIME_TYPE = "application/pdf"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class FilePending(RuntimeError):
    """
    Internal sentinel: a freshly copied file is not yet visible.

    Drive is eventually consistent; a copy can 404 for a short while.
    This exception is explicitly retryable.
    """


def build_credentials(settings: Settings) -> service_account.Credentials:
    """Service-account JWT credentials from the GOOGLE_* settings."""
    info = {
        "type": "service_account",
        "client_email": settings.google_client_email,
        "private_key": settings.google_private_key.get_secret_value(),
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(
        info, scopes=SCOPES
    )


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _upstream_message(exc: HttpError) -> str:
    reason = getattr(exc, "reason", None)
    return reason or str(exc)


def _collect_text_runs(node: Any, out: List[str]) -> None:
    if isinstance(node, dict):
        text_run = node.get("textRun")
        if isinstance(text_run, dict) and "content" in text_run:
            out.append(text_run["content"])
        for value in node.values():
            _collect_text_runs(value, out)
    elif isinstance(node, list):
        for item in node:
            _collect_text_runs(item, out)


class GoogleWorkspaceClient:
    """
    Async client for the subset of Sheets, Docs and Drive used by the
    render pipeline.

    All Drive calls pass supportsAllDrives so shared drives behave like
    My Drive.
    """

    HTTP_TIMEOUT_SECONDS = 60

    def __init__(
        self,
        credentials,
        *,
        http_factory: Optional[Callable[[], Any]] = None,
        poll_attempts: int = 6,
        poll_wait=None,
    ):
        self.credentials = credentials
        self._http_factory = http_factory or self._authorized_http
        self._poll_attempts = poll_attempts
        self._poll_wait = poll_wait or wait_exponential(multiplier=0.25, max=8)

        self._sheets = build(
            "sheets", "v4", credentials=credentials, cache_discovery=False
        )
        self._docs = build(
            "docs", "v1", credentials=credentials, cache_discovery=False
        )
        self._drive = build(
            "drive", "v3", credentials=credentials, cache_discovery=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleWorkspaceClient":
        return cls(
            build_credentials(settings),
            poll_attempts=settings.copy_poll_attempts,
            poll_wait=wait_exponential(
                multiplier=0.25,
                max=settings.copy_poll_max_wait_seconds,
            ),
        )

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _authorized_http(self) -> AuthorizedHttp:
        return AuthorizedHttp(
            self.credentials,
            http=httplib2.Http(timeout=self.HTTP_TIMEOUT_SECONDS),
        )

    def _execute_blocking(self, request, operation: str) -> Any:
        try:
            return request.execute(http=self._http_factory())
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            logger.warning(
                "google_api_call_failed",
                extra={"operation": operation, "status_code": status},
            )
            raise UpstreamServiceError(
                _upstream_message(exc),
                operation=operation,
                status=int(status) if status is not None else None,
            ) from exc

    async def _execute(self, request, operation: str) -> Any:
        return await asyncio.to_thread(self._execute_blocking, request, operation)

    # ------------------------------------------------------------------
    # Sheets
    # ------------------------------------------------------------------

    async def read_sheet(self, spreadsheet_id: str, tab_name: str) -> List[List[str]]:
        """Return the raw cell grid of ``<tab_name>!A:Z``."""
        request = self._sheets.spreadsheets().values().get(
            spreadsheetId=spreadsheet_id,
            range=f"{tab_name}!A:Z",
        )
        response = await self._execute(request, "sheets.values.get")
        return response.get("values", [])

    # ------------------------------------------------------------------
    # Docs
    # ------------------------------------------------------------------

    async def get_document_text(self, document_id: str) -> str:
        """Concatenated text of every run in the document, headers included."""
        request = self._docs.documents().get(documentId=document_id)
        document = await self._execute(request, "docs.documents.get")
        runs: List[str] = []
        _collect_text_runs(document, runs)
        return "".join(runs)

    async def replace_text(
        self,
        document_id: str,
        replacements: Mapping[str, str],
    ) -> None:
        """Apply one case-sensitive replaceAllText per token."""
        if not replacements:
            return

        requests = [
            {
                "replaceAllText": {
                    "containsText": {"text": token, "matchCase": True},
                    "replaceText": text,
                }
            }
            for token, text in replacements.items()
        ]
        request = self._docs.documents().batchUpdate(
            documentId=document_id,
            body={"requests": requests},
        )
        await self._execute(request, "docs.documents.batchUpdate")

    # ------------------------------------------------------------------
    # Drive
    # ------------------------------------------------------------------

    async def copy_file(
        self,
        file_id: str,
        *,
        name: str,
        parent_id: Optional[str] = None,
    ) -> str:
        body: Dict[str, Any] = {"name": name}
        if parent_id:
            body["parents"] = [parent_id]

        request = self._drive.files().copy(
            fileId=file_id,
            body=body,
            fields="id",
            supportsAllDrives=True,
        )
        response = await self._execute(request, "drive.files.copy")
        return response["id"]

    async def wait_for_file(self, file_id: str) -> None:
        """
        Block until ``file_id`` is visible, with bounded exponential backoff.

        Only 404 is retried. Any other failure propagates immediately.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._poll_attempts),
                wait=self._poll_wait,
                retry=retry_if_exception_type(FilePending),
                reraise=True,
            ):
                with attempt:
                    await self._probe_file(file_id)
        except FilePending as exc:
            raise UpstreamServiceError(
                f"File {file_id} not visible after "
                f"{self._poll_attempts} attempts",
                operation="drive.files.get",
                status=404,
            ) from exc

    async def _probe_file(self, file_id: str) -> None:
        request = self._drive.files().get(
            fileId=file_id,
            fields="id",
            supportsAllDrives=True,
        )
        try:
            await self._execute(request, "drive.files.get")
        except UpstreamServiceError as exc:
            if exc.upstream_status == 404:
                raise FilePending(f"file_pending:{file_id}") from exc
            raise

    async def export_pdf(self, file_id: str) -> bytes:
        request = self._drive.files().export(
            fileId=file_id,
            mimeType=PDF_MIME_TYPE,
        )
        return await self._execute(request, "drive.files.export")

    async def upload_pdf(
        self,
        content: bytes,
        *,
        name: str,
        parent_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"name": name}
        if parent_id:
            body["parents"] = [parent_id]

        media = MediaIoBaseUpload(
            io.BytesIO(content),
            mimetype=PDF_MIME_TYPE,
            resumable=False,
        )
        request = self._drive.files().create(
            body=body,
            media_body=media,
            fields="id,name,webViewLink",
            supportsAllDrives=True,
        )
        return await self._execute(request, "drive.files.create")

    async def delete_file(self, file_id: str) -> None:
        request = self._drive.files().delete(
            fileId=file_id,
            supportsAllDrives=True,
        )
        await self._execute(request, "drive.files.delete")

    async def find_folder(
        self,
        name: str,
        *,
        parent_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        clauses = [
            f"name = '{escape_query_value(name)}'",
            f"mimeType = '{FOLDER_MIME_TYPE}'",
            "trashed = false",
        ]
        if parent_id:
            clauses.append(f"'{escape_query_value(parent_id)}' in parents")

        request = self._drive.files().list(
            q=" and ".join(clauses),
            fields="files(id,name,webViewLink)",
            pageSize=1,
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        )
        response = await self._execute(request, "drive.files.list")
        files = response.get("files", [])
        return files[0] if files else None

    async def create_folder(
        self,
        name: str,
        *,
        parent_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            body["parents"] = [parent_id]

        request = self._drive.files().create(
            body=body,
            fields="id,name,webViewLink",
            supportsAllDrives=True,
        )
        return await self._execute(request, "drive.files.create")
