"""HTTP client for the parts of the Drime Cloud API that drimesync uses."""

from __future__ import annotations

import logging
import mimetypes
import random
import time
from pathlib import Path
from typing import Any

import httpx

from .config import config
from .exceptions import (
    DrimeAPIError,
    DrimeAuthenticationError,
    DrimeConfigError,
    DrimeFileNotFoundError,
    DrimeInvalidResponseError,
    DrimeNetworkError,
    DrimeNotFoundError,
    DrimePermissionError,
    DrimeRateLimitError,
    DrimeUploadError,
)
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)

_FATAL_STATUS = {
    401: (DrimeAuthenticationError, "Invalid API key or unauthorized access"),
    403: (DrimePermissionError, "Access forbidden - check your permissions"),
    404: (DrimeNotFoundError, "Resource not found"),
}


class DrimeClient:
    """Thin synchronous wrapper around the Drime Cloud REST API.

    Every call goes through ``_request``, which retries network failures,
    HTTP 429 and 5xx responses with exponential backoff. Other HTTP errors
    are mapped onto the ``DrimeAPIError`` hierarchy and raised at once.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
    ):
        """Create a client.

        Args:
            api_key: API token; falls back to the configured DRIME_API_KEY
            api_url: Base URL; falls back to the configured DRIME_API_URL
            max_retries: Retries after the first attempt for transient errors
            retry_delay: Base delay in seconds, doubled on every retry
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key or config.api_key
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.api_key:
            raise DrimeConfigError(
                "API key not configured. Please set DRIME_API_KEY environment variable."
            )

        self._http: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Return the shared httpx client, opening it on first use."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.Client(
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._http

    def close(self) -> None:
        """Release pooled connections. The client reopens on next use."""
        if self._http is not None and not self._http.is_closed:
            self._http.close()
        self._http = None

    # =========================
    # Transport
    # =========================

    def _backoff(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (0-based)."""
        delay = self.retry_delay * (2**attempt)
        # +/- 25% so parallel clients do not retry in lockstep
        return delay * random.uniform(0.75, 1.25)

    @staticmethod
    def _error_for_status(response: httpx.Response) -> DrimeAPIError:
        """Build the exception describing a failed HTTP response."""
        status = response.status_code
        if status in _FATAL_STATUS:
            error_class, message = _FATAL_STATUS[status]
            return error_class(message)
        if status == 429:
            return DrimeRateLimitError("Rate limit exceeded - please try again later")

        message = f"API request failed with status {status}"
        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("error") or body.get("detail")
            if detail:
                message = f"{message}: {detail}"
        return DrimeAPIError(message)

    @staticmethod
    def _is_transient(status: int) -> bool:
        return status == 429 or 500 <= status < 600

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode a successful response body."""
        if not response.content:
            return {}

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            # Drime serves its login page instead of JSON for bad tokens
            if "text/html" in content_type:
                raise DrimeAuthenticationError(
                    "Invalid API key - server returned HTML instead of JSON"
                )
            raise DrimeInvalidResponseError(f"Unexpected response type: {content_type}")

        try:
            return response.json()
        except ValueError as e:
            raise DrimeInvalidResponseError(
                "Invalid JSON response from server - "
                "check your API key and network connection"
            ) from e

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Send a request, retrying transient failures.

        Args:
            method: HTTP method
            endpoint: Path relative to the API base URL
            **kwargs: Passed through to ``httpx.Client.request``

        Returns:
            Decoded JSON body, or an empty dict for an empty body

        Raises:
            DrimeAPIError: Once retries are exhausted or on a non-transient error
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        client = self._get_client()
        attempt = 0

        while True:
            try:
                response = client.request(method, url, **kwargs)
            except httpx.RequestError as e:
                if attempt >= self.max_retries:
                    raise DrimeNetworkError(f"Network error: {e}") from e
                delay = self._backoff(attempt)
                logger.debug(f"{method} {endpoint} failed ({e}), retry in {delay:.1f}s")
            else:
                if response.is_success:
                    return self._decode(response)

                error = self._error_for_status(response)
                if not self._is_transient(response.status_code):
                    raise error
                if attempt >= self.max_retries:
                    raise error

                delay = self._backoff(attempt)
                retry_after = response.headers.get("Retry-After", "")
                if response.status_code == 429 and retry_after.isdigit():
                    delay = float(retry_after)
                logger.debug(
                    f"{method} {endpoint} returned {response.status_code}, "
                    f"retry in {delay:.1f}s"
                )

            time.sleep(delay)
            attempt += 1

    # =========================
    # Uploads
    # =========================

    @staticmethod
    def _file_part(file_path: Path) -> tuple[str, bytes, str]:
        """Read a local file into an httpx multipart tuple."""
        if not file_path.is_file():
            raise DrimeFileNotFoundError(str(file_path))
        try:
            content = file_path.read_bytes()
        except FileNotFoundError as e:
            raise DrimeFileNotFoundError(str(file_path)) from e
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return (file_path.name, content, mime_type or "application/octet-stream")

    @staticmethod
    def _entry_from(result: Any, action: str) -> dict[str, Any]:
        entry = result.get("fileEntry") if isinstance(result, dict) else None
        if not isinstance(entry, dict) or not entry.get("id"):
            raise DrimeUploadError(f"{action} response missing file entry: {result}")
        return entry

    def upload_file(
        self,
        file_path: Path,
        parent_id: int | None = None,
        workspace_id: int = 0,
        last_modified: int | None = None,
    ) -> dict[str, Any]:
        """Create a new file entry from a local file.

        Args:
            file_path: File to upload; the entry takes its name
            parent_id: Destination folder, None for the workspace root
            workspace_id: Destination workspace (0 is the personal one)
            last_modified: Local modification time in milliseconds

        Returns:
            The created file entry

        Raises:
            DrimeFileNotFoundError: If the local file does not exist
            DrimeUploadError: If the response does not describe an entry
        """
        form: dict[str, Any] = {"workspaceId": str(workspace_id)}
        if parent_id is not None:
            form["parentId"] = str(parent_id)
        if last_modified is not None:
            form["lastModified"] = str(last_modified)

        result = self._request(
            "POST", "/uploads", data=form, files={"file": self._file_part(file_path)}
        )
        return self._entry_from(result, "Upload")

    def replace_file_content(
        self,
        entry_id: int,
        file_path: Path,
        workspace_id: int = 0,
        last_modified: int | None = None,
    ) -> dict[str, Any]:
        """Overwrite the content of an existing entry.

        The entry keeps its ID, name and parent folder.

        Returns:
            The updated file entry
        """
        form: dict[str, Any] = {"workspaceId": str(workspace_id)}
        if last_modified is not None:
            form["lastModified"] = str(last_modified)

        result = self._request(
            "POST",
            f"/file-entries/{entry_id}/content",
            data=form,
            files={"file": self._file_part(file_path)},
        )
        return self._entry_from(result, "Content update")

    # =========================
    # File entries
    # =========================

    def get_file_entries(
        self,
        per_page: int = 50,
        page: int | None = None,
        query: str | None = None,
        parent_ids: list[int] | None = None,
        workspace_id: int = 0,
    ) -> Any:
        """List one page of file entries.

        Args:
            per_page: Page size
            page: 1-based page number, None for the first page
            query: Name search; the server matches substrings
            parent_ids: Restrict to direct children of these folders
            workspace_id: Workspace to list

        Returns:
            Page dict with a 'data' list and pagination keys
        """
        params: dict[str, Any] = {"perPage": per_page, "workspaceId": workspace_id}
        if page is not None:
            params["page"] = page
        if query:
            params["query"] = query
        if parent_ids:
            params["parentIds"] = ",".join(str(i) for i in parent_ids)

        return self._request("GET", "/drive/file-entries", params=params)

    def get_file_entry(self, entry_id: int, workspace_id: int = 0) -> Any:
        """Fetch one entry; the payload may be nested under 'fileEntry'."""
        return self._request(
            "GET", f"/file-entries/{entry_id}", params={"workspaceId": workspace_id}
        )

    def delete_file_entries(
        self,
        entry_ids: list[int],
        delete_forever: bool = False,
        workspace_id: int = 0,
    ) -> Any:
        """Trash entries, or remove them for good with ``delete_forever``."""
        return self._request(
            "POST",
            f"/file-entries/delete?workspaceId={workspace_id}",
            json={"entryIds": entry_ids, "deleteForever": delete_forever},
        )
