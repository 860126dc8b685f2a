"""
Exceptions raised while seeding Okta test data.

Every error is fatal to the run: callers forward the first error upward
and the CLI lets it terminate the process.
"""

from typing import Any

import httpx


class OktaTestDataError(Exception):
    """Base exception for all seeding errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(OktaTestDataError):
    """
    Raised when command-line configuration is unusable.

    Examples:
    - Organization URL is not https
    - API token is blank
    """

    pass


class SessionError(OktaTestDataError):
    """
    Raised when the API session cannot be established.

    The session check runs before any resource call, so no resource has
    been created when this is raised.
    """

    pass


class OktaApiError(OktaTestDataError):
    """
    Raised when the Okta API answers with a non-2xx status.

    `details` carries the HTTP status and the Okta error body fields
    (errorCode, errorSummary, errorId) when the body has them.
    """

    @property
    def status_code(self) -> int | None:
        return self.details.get("status_code")

    @property
    def error_code(self) -> str | None:
        return self.details.get("error_code")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "OktaApiError":
        request = response.request
        details: dict[str, Any] = {
            "status_code": response.status_code,
            "method": request.method,
            "url": str(request.url),
        }

        summary = response.reason_phrase or "Request failed"
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            if body.get("errorCode"):
                details["error_code"] = body["errorCode"]
            if body.get("errorId"):
                details["error_id"] = body["errorId"]
            if body.get("errorSummary"):
                summary = body["errorSummary"]
                details["error_summary"] = summary

        message = f"{request.method} {request.url} failed with {response.status_code}: {summary}"
        return cls(message, details)


class OktaTransportError(OktaTestDataError):
    """Raised when a request cannot reach the Okta API (DNS, TLS, timeout)."""

    pass


class NotFoundError(OktaTestDataError):
    """Raised when a resource the flow depends on does not exist."""

    pass


class PolicyNotFoundError(NotFoundError):
    """
    Raised when an authorization server has no OAUTH_AUTHORIZATION_POLICY.

    The message names the authorization server so the tenant can be
    inspected by hand.
    """

    def __init__(self, authorization_server_id: str):
        super().__init__(
            f"OAUTH_AUTHORIZATION_POLICY not found for authorizationServer "
            f"{authorization_server_id}",
            {"authorization_server_id": authorization_server_id},
        )
        self.authorization_server_id = authorization_server_id
