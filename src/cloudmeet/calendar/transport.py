"""Google Calendar v3 transport: service construction and request execution."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from typing import Any, Callable

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..errors import IntegrationError, InvalidArgument, UpstreamTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def build_calendar_service(access_token: str, timeout: float = DEFAULT_TIMEOUT_SECONDS):
    """Build a Calendar v3 resource authorized with a bare access token.

    The discovery document is the one bundled with googleapiclient, so
    building does no network I/O.
    """
    creds = Credentials(token=access_token)
    http = AuthorizedHttp(creds, http=httplib2.Http(timeout=timeout))
    return build("calendar", "v3", http=http, cache_discovery=False)


def _error_text(content: bytes | str | None) -> str:
    if content is None:
        return ""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _error_message(error: HttpError, body: str) -> str:
    try:
        info = json.loads(body).get("error", {})
    except (json.JSONDecodeError, AttributeError):
        info = {}
    if isinstance(info, dict) and info.get("message"):
        return info["message"]
    return getattr(error, "reason", "") or body or "upstream error"


class CalendarTransport:
    """Runs blocking googleapiclient requests off the event loop.

    Every call is bounded by ``timeout`` seconds and performs no retries
    (``num_retries=0``). Failures come back as IntegrationError.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        service_builder: Callable[[str, float], Any] = build_calendar_service,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._service_builder = service_builder

    def service(self, access_token: str):
        if not access_token:
            raise InvalidArgument("An access token is required")
        return self._service_builder(access_token, self.timeout)

    async def execute(self, request, operation: str) -> Any:
        loop = asyncio.get_running_loop()
        call = functools.partial(request.execute, num_retries=0)
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, call), timeout=self.timeout
            )
        except HttpError as e:
            body = _error_text(e.content)
            status = int(e.resp.status)
            logger.warning("%s rejected by upstream with HTTP %d", operation, status)
            raise IntegrationError(
                operation, _error_message(e, body), status=status, body=body
            ) from e
        except (asyncio.TimeoutError, TimeoutError) as e:
            logger.warning("%s timed out after %.1fs", operation, self.timeout)
            raise UpstreamTimeout(operation, self.timeout) from e
        except RefreshError as e:
            # AuthorizedHttp tries to refresh on 401; a bare access token cannot.
            logger.warning("%s: access token rejected by upstream", operation)
            raise IntegrationError(
                operation, "access token rejected", status=401, body=str(e)
            ) from e
        except (TransportError, httplib2.HttpLib2Error, OSError) as e:
            logger.warning("%s transport failure: %s", operation, e)
            raise IntegrationError(operation, f"transport error: {e}") from e
