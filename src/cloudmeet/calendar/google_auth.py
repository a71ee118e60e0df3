"""Google OAuth access-token refresh for stored refresh tokens."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Protocol, Union

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from ..errors import (
    AuthExpired,
    CalendarError,
    IntegrationError,
    InvalidArgument,
    NotConnected,
    StorageError,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_TIMEOUT_SECONDS = 30.0


class RefreshTokenStore(Protocol):
    """Lookup of a user's stored refresh token. May be sync or async."""

    def get_refresh_token(
        self, user_id: str
    ) -> Union[str, None, Awaitable[Union[str, None]]]:
        ...


class CredentialManager:
    """Exchanges a user's stored refresh token for a fresh access token.

    Every call performs its own exchange: nothing is cached and the new
    access token is never written back to the store, so concurrent calls
    for the same user share no state.
    """

    def __init__(
        self,
        token_store: RefreshTokenStore,
        client_id: str,
        client_secret: str,
        token_uri: str = GOOGLE_TOKEN_URI,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        if not client_id or not client_secret:
            raise ValueError("Google client_id and client_secret are required")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.token_store = token_store
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_uri = token_uri
        self.timeout = timeout

    async def get_valid_access_token(self, user_id: str) -> str:
        if not user_id:
            raise InvalidArgument("user_id is required")

        refresh_token = await self._lookup(user_id)
        if not refresh_token:
            raise NotConnected(user_id)

        loop = asyncio.get_running_loop()
        try:
            access_token = await asyncio.wait_for(
                loop.run_in_executor(None, self._exchange, refresh_token),
                timeout=self.timeout,
            )
        except RefreshError as e:
            if getattr(e, "retryable", False):
                logger.warning("Token endpoint failed transiently for user %s", user_id)
                raise IntegrationError("oauth.refresh", str(e)) from e
            logger.warning("Refresh token rejected for user %s", user_id)
            raise AuthExpired(user_id, str(e)) from e
        except (asyncio.TimeoutError, TimeoutError) as e:
            logger.warning("Token refresh timed out after %.1fs", self.timeout)
            raise UpstreamTimeout("oauth.refresh", self.timeout) from e
        except (TransportError, OSError) as e:
            logger.warning("Token endpoint unreachable: %s", e)
            raise IntegrationError("oauth.refresh", f"transport error: {e}") from e

        logger.debug("Refreshed access token for user %s", user_id)
        return access_token

    async def _lookup(self, user_id: str) -> str | None:
        try:
            result = self.token_store.get_refresh_token(user_id)
            if inspect.isawaitable(result):
                result = await result
        except CalendarError:
            raise
        except Exception as e:
            logger.warning("Refresh token lookup failed for user %s: %s", user_id, e)
            raise StorageError(f"Could not load refresh token for user {user_id!r}") from e
        return result

    def _exchange(self, refresh_token: str) -> str:
        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )
        creds.refresh(Request())
        if not creds.token:
            raise RefreshError("Token endpoint returned no access token")
        return creds.token
