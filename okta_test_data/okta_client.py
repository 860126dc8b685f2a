"""
Async client for the Okta management API.

Thin wrapper around `httpx.AsyncClient`:
- `SSWS` API token authentication
- hrefs resolved against `{org}/api/v1`; absolute `_links` hrefs used as is
- collections followed through `Link: <...>; rel="next"` pagination
- non-2xx answers raised as `OktaApiError`, transport failures as
  `OktaTransportError`

No retry policy is applied; timeouts are the httpx client's.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from okta_test_data import __version__
from okta_test_data.core.errors import (
    OktaApiError,
    OktaTestDataError,
    OktaTransportError,
    SessionError,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"okta-test-data/{__version__}"


class OktaClient:
    def __init__(
        self,
        *,
        org: str,
        api_token: str,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._org = org.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._org}/api/v1",
            headers={
                "Authorization": f"SSWS {api_token}",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout_s,
            transport=transport,
        )
        self._session_user: dict | None = None

    @property
    def org(self) -> str:
        return self._org

    @property
    def is_open(self) -> bool:
        return self._session_user is not None

    async def open(self) -> dict:
        """
        Verify the API token against the tenant.

        Safe to call more than once; the check only runs the first time.

        Raises:
            SessionError: token rejected or tenant unreachable.
        """
        if self._session_user is not None:
            return self._session_user

        try:
            user = await self.get_resource("/users/me")
        except OktaTestDataError as exc:
            raise SessionError(
                f"Could not open a session against {self._org}: {exc.message}",
                {"org": self._org, **exc.details},
            ) from exc

        self._session_user = user or {}
        logger.debug(
            "Session ready",
            extra={"org": self._org, "session_user_id": self._session_user.get("id")},
        )
        return self._session_user

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> OktaClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        href: str,
        *,
        params: dict | None = None,
        json: dict | list | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(method, href, params=params, json=json)
        except httpx.TransportError as exc:
            raise OktaTransportError(
                f"{method} {href} failed: {exc}", {"method": method, "href": href}
            ) from exc

        logger.debug(
            "Okta API call",
            extra={"method": method, "url": str(resp.request.url), "status": resp.status_code},
        )
        if resp.is_error:
            raise OktaApiError.from_response(resp)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            request = resp.request
            raise OktaApiError(
                f"{request.method} {request.url} returned a body that is not JSON",
                {
                    "status_code": resp.status_code,
                    "method": request.method,
                    "url": str(request.url),
                },
            ) from exc

    async def get_resource(self, href: str, params: dict | None = None) -> Any:
        return self._json(await self._send("GET", href, params=params))

    async def get_collection(self, href: str, params: dict | None = None) -> list[dict]:
        """Fetch every page of a collection resource."""
        items: list[dict] = []
        next_href: str | None = href
        while next_href:
            resp = await self._send("GET", next_href, params=params)
            page = self._json(resp)
            if isinstance(page, list):
                items.extend(page)
            # The next link already carries the query string
            params = None
            next_href = resp.links.get("next", {}).get("url")
        return items

    async def create_resource(
        self, href: str, payload: dict, params: dict | None = None
    ) -> dict:
        return self._json(await self._send("POST", href, params=params, json=payload))

    async def save_resource(self, href: str, payload: dict) -> dict:
        """Replace a resource with its full updated representation.

        HAL members (`_links`, `_embedded`) are read-only and left out of the body.
        """
        body = {k: v for k, v in payload.items() if not k.startswith("_")}
        return self._json(await self._send("PUT", href, json=body))

    async def list_applications(self) -> list[dict]:
        return await self.get_collection("/apps")

    async def get_application(self, href: str) -> dict:
        return await self.get_resource(href)

    async def register_oauth_client(self, payload: dict) -> dict:
        """Dynamic client registration; lives under /oauth2, outside /api/v1."""
        return await self.create_resource(f"{self._org}/oauth2/v1/clients", payload)
