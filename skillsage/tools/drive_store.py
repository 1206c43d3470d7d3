"""Google Drive persistence for the plans document.

All plans live in one JSON file (a bare array) in the user's Drive. The file is
located by name on first use and its id is cached for the session.
"""
import json
import logging
from typing import Optional

import httpx

from skillsage.models.plan import LearningPlan
from skillsage.models.session import SessionState
from skillsage.tools.migrations import normalize

logger = logging.getLogger(__name__)

PLANS_FILE_NAME = "skill-sage-plans.json"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


class DriveStoreError(Exception):
    """Raised for transport/auth failures talking to Drive."""


class DriveStore:
    """Authenticated read/write of the plans file."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        file_name: str = PLANS_FILE_NAME,
        timeout: float = 30.0,
    ):
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self.file_name = file_name
        self._token: Optional[str] = None
        self._file_id: Optional[str] = None

    @property
    def file_id(self) -> Optional[str]:
        return self._file_id

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def clear_token(self) -> None:
        """Forget credentials and the cached file handle."""
        self._token = None
        self._file_id = None

    def on_session_change(self, state: SessionState) -> None:
        """Identity subscriber: keep the token in step with the session."""
        if state.logged_in and state.access_token:
            self.set_token(state.access_token)
        else:
            self.clear_token()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict:
        if not self._token:
            raise DriveStoreError("No access token; sign in before using Drive")
        return {"Authorization": f"Bearer {self._token}"}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise DriveStoreError(f"Drive request failed: {e}") from e

    async def find_file_id(self) -> Optional[str]:
        """Look up the plans file by name (cached after the first hit)."""
        if self._file_id:
            return self._file_id

        response = await self._request(
            "GET",
            DRIVE_FILES_URL,
            params={
                "q": f"name='{self.file_name}' and trashed=false",
                "fields": "files(id, name)",
            },
        )
        if response.is_error:
            raise DriveStoreError(f"Drive file lookup failed: HTTP {response.status_code}")

        files = response.json().get("files") or []
        if not files:
            logger.debug(f"No {self.file_name} on Drive yet")
            return None

        self._file_id = files[0]["id"]
        return self._file_id

    async def list_plans(self) -> list[LearningPlan]:
        """Fetch stored plans. A missing file means no data yet, not an error."""
        file_id = await self.find_file_id()
        if not file_id:
            return []

        response = await self._request("GET", f"{DRIVE_FILES_URL}/{file_id}", params={"alt": "media"})
        if response.status_code == 404:
            logger.warning("Plans file not found on Drive. A new one will be created on next save.")
            self._file_id = None
            return []
        if response.is_error:
            raise DriveStoreError(f"Fetching plans from Drive failed: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            logger.warning("Plans file on Drive is not valid JSON; treating as empty")
            return []
        return normalize(data)

    async def save_plans(self, plans: list[LearningPlan]) -> None:
        """Overwrite the plans file, creating it on first write."""
        file_id = await self.find_file_id()
        content = json.dumps([plan.to_json_dict() for plan in plans])

        if file_id:
            metadata = {}
            method, url = "PATCH", f"{DRIVE_UPLOAD_URL}/{file_id}"
        else:
            metadata = {"name": self.file_name}
            method, url = "POST", DRIVE_UPLOAD_URL

        response = await self._request(
            method,
            url,
            params={"uploadType": "multipart"},
            files={
                "metadata": (None, json.dumps(metadata).encode(), "application/json"),
                "file": (self.file_name, content.encode(), "application/json"),
            },
        )
        if response.status_code == 404 and file_id:
            logger.warning("Plans file vanished from Drive. It will be recreated on next save.")
            self._file_id = None
        if response.is_error:
            raise DriveStoreError(f"Saving plans to Drive failed: HTTP {response.status_code}")

        if not file_id:
            self._file_id = response.json()["id"]
            logger.info(f"Created {self.file_name} on Drive (id={self._file_id})")
