"""Payload templates for the seeded resources.

Templates are frozen value objects. `to_payload()` renders a fresh dict on
every call, so a caller mutating a request body never changes the next one.

The identifying values (authorization server name, application label, user
email) are what find-or-create matches on; changing them makes the next run
create a second set of resources.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

OAUTH_AUTHORIZATION_POLICY = "OAUTH_AUTHORIZATION_POLICY"


@dataclass(frozen=True)
class AuthorizationServerTemplate:
    name: str
    description: str
    default_resource_uri: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "defaultResourceUri": self.default_resource_uri,
            "description": self.description,
            "name": self.name,
        }


@dataclass(frozen=True)
class OAuthClientTemplate:
    """Dynamic client registration body (RFC 7591 field names)."""

    client_name: str
    redirect_uris: tuple[str, ...]
    response_types: tuple[str, ...]
    grant_types: tuple[str, ...]
    token_endpoint_auth_method: str = "client_secret_basic"
    application_type: str = "web"
    client_uri: str | None = None
    logo_uri: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "client_name": self.client_name,
            "client_uri": self.client_uri,
            "logo_uri": self.logo_uri,
            "redirect_uris": list(self.redirect_uris),
            "response_types": list(self.response_types),
            "grant_types": list(self.grant_types),
            "token_endpoint_auth_method": self.token_endpoint_auth_method,
            "application_type": self.application_type,
        }


@dataclass(frozen=True)
class UserTemplate:
    first_name: str
    last_name: str
    email: str
    password: str
    login: str = ""

    @property
    def user_login(self) -> str:
        return self.login or self.email

    def to_payload(self) -> dict[str, Any]:
        return {
            "profile": {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "email": self.email,
                "login": self.user_login,
            },
            "credentials": {"password": {"value": self.password}},
        }


@dataclass(frozen=True)
class AccessRuleTemplate:
    """Resource access rule placed under the OAuth authorization policy."""

    name: str = "Default rule"
    group_includes: tuple[str, ...] = ("EVERYONE",)
    grant_types: tuple[str, ...] = ("password",)
    scope_name: str = "*"
    access_token_lifetime_minutes: int = 60
    refresh_token_lifetime_minutes: int = 0
    refresh_token_window_minutes: int = 10080

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": "RESOURCE_ACCESS",
            "status": "ACTIVE",
            "name": self.name,
            "system": False,
            "conditions": {
                "people": {
                    "users": {"include": [], "exclude": []},
                    "groups": {"include": list(self.group_includes), "exclude": []},
                },
                "grantTypes": {"include": list(self.grant_types)},
            },
            "actions": {
                "scopes": {"include": [{"name": self.scope_name, "access": "ALLOW"}]},
                "token": {
                    "accessTokenLifetimeMinutes": self.access_token_lifetime_minutes,
                    "refreshTokenLifetimeMinutes": self.refresh_token_lifetime_minutes,
                    "refreshTokenWindowMinutes": self.refresh_token_window_minutes,
                },
            },
        }


@dataclass(frozen=True)
class AuthorizationPolicyTemplate:
    name: str = "Default Policy"
    description: str = "Default policy description"
    priority: int = 1
    client_includes: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": OAUTH_AUTHORIZATION_POLICY,
            "status": "ACTIVE",
            "name": self.name,
            "description": self.description,
            "priority": self.priority,
            "system": False,
            "conditions": {"clients": {"include": list(self.client_includes)}},
        }


TEST_AUTHORIZATION_SERVER = AuthorizationServerTemplate(
    name="Test AS for express-stormpath 4.0.0",
    description="Created by okta-test-data, for migration testing purposes only",
    default_resource_uri="https://okta.com",
)

TEST_APPLICATION_LABEL = "Test Application for Express-Stormpath 4.0.0"

TEST_OAUTH_CLIENT = OAuthClientTemplate(
    client_name=TEST_APPLICATION_LABEL,
    redirect_uris=("https://okta.com",),
    response_types=("code", "token", "id_token"),
    grant_types=("refresh_token", "password", "authorization_code", "implicit"),
)

TEST_USER = UserTemplate(
    first_name="Test",
    last_name="User",
    email="test@example.com",
    password="PasswordAbc1234",
)

DEFAULT_ACCESS_RULE = AccessRuleTemplate()

DEFAULT_AUTHORIZATION_POLICY = AuthorizationPolicyTemplate()
