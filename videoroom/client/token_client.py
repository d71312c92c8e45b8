"""HTTP client for the token service."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..core.config import settings

logger = logging.getLogger(__name__)

CREATE_TOKEN_PATH = "/create-token"


class TokenResponseError(RuntimeError):
    """Raised when the token service answers without a usable token."""


class TokenClient:
    """Fetch room tokens from the token service, one request per call."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.token_service_url).rstrip("/")
        self._client = client
        self._timeout = timeout if timeout is not None else settings.token_request_timeout

    async def get_token(self, room_name: str, identity: str) -> str:
        """Request a token for ``identity`` in ``room_name``.

        Network failures and error statuses propagate as ``httpx.HTTPError``.
        """

        url = f"{self.base_url}{CREATE_TOKEN_PATH}"
        payload = {"roomName": room_name, "identity": identity}

        if self._client is not None:
            response = await self._client.post(url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload)

        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as exc:
            raise TokenResponseError("Token service returned a non-JSON body") from exc

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise TokenResponseError("Token service response did not include a token")

        logger.debug("Received token for identity=%s room=%s", identity, room_name)
        return token
