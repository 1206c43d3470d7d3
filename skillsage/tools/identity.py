"""Google identity: access token, user profile and session notifications.

The interactive OAuth exchange is supplied by the caller as a `token_requester`
coroutine returning Google's token response dict. This adapter only consumes
that response, fetches the profile and tells subscribers when the
`(initialized, logged_in)` pair changes.
"""
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from skillsage.models.session import SessionState, UserProfile

logger = logging.getLogger(__name__)

USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
REVOKE_URL = "https://oauth2.googleapis.com/revoke"
SCOPES = (
    "https://www.googleapis.com/auth/drive.file "
    "https://www.googleapis.com/auth/userinfo.profile "
    "https://www.googleapis.com/auth/userinfo.email openid"
)

CONFIG_ERROR_MISSING_CLIENT_ID = "CONFIG_ERROR_MISSING_CLIENT_ID"
NOT_READY_MESSAGE = "Authentication service not ready. Please refresh."

TokenRequester = Callable[[str, str], Awaitable[dict]]
SessionListener = Callable[[SessionState], Any]


class IdentityError(Exception):
    """Raised when the profile endpoint rejects a token."""


class GoogleIdentity:
    """Session holder for one user."""

    def __init__(
        self,
        client_id: Optional[str],
        token_requester: Optional[TokenRequester] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id
        self._token_requester = token_requester
        self._client = client or httpx.AsyncClient(timeout=15.0)
        self._owns_client = client is None
        self._listeners: list[SessionListener] = []

        self.initialized = False
        self.token_response: Optional[dict] = None
        self.user: Optional[UserProfile] = None
        self.error_message: Optional[str] = None

        if not client_id:
            # Persistent until configuration is fixed
            logger.error("GOOGLE_CLIENT_ID is not configured; sign-in is disabled")
            self.error_message = CONFIG_ERROR_MISSING_CLIENT_ID

    @property
    def access_token(self) -> Optional[str]:
        if not self.token_response:
            return None
        return self.token_response.get("access_token")

    @property
    def is_logged_in(self) -> bool:
        return bool(self.access_token) and self.user is not None

    @property
    def state(self) -> SessionState:
        return SessionState(
            initialized=self.initialized,
            logged_in=self.is_logged_in,
            access_token=self.access_token if self.is_logged_in else None,
        )

    def subscribe(self, listener: SessionListener) -> None:
        """Register a callback run (and awaited, if async) on every change."""
        self._listeners.append(listener)

    async def _notify(self) -> None:
        state = self.state
        for listener in self._listeners:
            result = listener(state)
            if inspect.isawaitable(result):
                await result

    async def initialize(self) -> None:
        """Mark the provider bootstrapped. Subscribers act only after this."""
        if self.initialized:
            return
        self.initialized = True
        logger.debug("Identity provider initialized")
        await self._notify()

    async def sign_in(self) -> bool:
        """Run the injected token exchange. Returns True when a session starts."""
        if self.error_message == CONFIG_ERROR_MISSING_CLIENT_ID:
            return False
        self.error_message = None

        if not self.initialized or self._token_requester is None:
            logger.error("Token client not initialized")
            self.error_message = NOT_READY_MESSAGE
            return False

        try:
            token_response = await self._token_requester(self.client_id, SCOPES)
        except Exception as e:
            logger.error(f"Google Sign-In error: {e}")
            self.error_message = f"Sign-in failed: {e}"
            return False

        await self.handle_token_response(token_response)
        return self.is_logged_in

    async def handle_token_response(self, token_response: Optional[dict]) -> None:
        """Accept a token response, then load the profile (signs out on failure)."""
        if token_response and token_response.get("access_token"):
            self.error_message = None
            self.token_response = token_response
            try:
                self.user = await self.fetch_user_profile(token_response["access_token"])
            except IdentityError as e:
                logger.error(f"Error fetching user profile: {e}")
                await self.sign_out()
                return
            logger.info(f"Signed in as {self.user.email or self.user.id}")
            await self._notify()
        elif token_response and token_response.get("error"):
            logger.error(f"OAuth error: {token_response['error']}")
            self.error_message = f"Sign in failed: {token_response['error']}"

    async def fetch_user_profile(self, access_token: str) -> UserProfile:
        try:
            response = await self._client.get(
                USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            raise IdentityError(f"Failed to fetch user info: {e}") from e
        if response.is_error:
            raise IdentityError(f"Failed to fetch user info: HTTP {response.status_code}")

        profile = response.json()
        return UserProfile(
            id=profile["sub"],
            name=profile.get("name", ""),
            given_name=profile.get("given_name", ""),
            family_name=profile.get("family_name", ""),
            picture=profile.get("picture", ""),
            email=profile.get("email", ""),
        )

    async def sign_out(self) -> None:
        """Clear the session and revoke the token (revocation is best effort)."""
        current_token = self.access_token
        self.token_response = None
        self.user = None
        if self.error_message != CONFIG_ERROR_MISSING_CLIENT_ID:
            self.error_message = None

        if current_token:
            try:
                await self._client.post(REVOKE_URL, params={"token": current_token})
            except httpx.HTTPError as e:
                logger.warning(f"Token revocation failed: {e}")

        await self._notify()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
