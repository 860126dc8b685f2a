"""
Pytest configuration and shared fixtures.

Provides:
- FakeOktaTenant: an in-memory Okta org served through httpx.MockTransport
- tenant / okta_client fixtures wired to it
- AnyIO backend configuration
"""

from __future__ import annotations

import json
import re
import sys
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import httpx  # noqa: E402 (import after path setup)
import pytest  # noqa: E402 (import after path setup)

from okta_test_data.core.config import get_settings  # noqa: E402
from okta_test_data.okta_client import OktaClient  # noqa: E402
from okta_test_data.templates import (  # noqa: E402
    OAUTH_AUTHORIZATION_POLICY,
    TEST_APPLICATION_LABEL,
    TEST_AUTHORIZATION_SERVER,
    TEST_USER,
)

ORG = "https://dev-123.oktapreview.com"
API_TOKEN = "test-api-token"

Route = tuple[str, re.Pattern[str], Callable[..., httpx.Response]]


class FakeOktaTenant:
    """
    Minimal stateful stand-in for the Okta endpoints the seeder calls.

    Every request is recorded in `requests` as (method, path) so tests can
    assert which calls were or were not made.
    """

    def __init__(self, org: str = ORG, api_token: str = API_TOKEN, page_size: int = 50):
        self.org = org
        self.api_token = api_token
        self.page_size = page_size

        self.authorization_servers: list[dict[str, Any]] = []
        self.resources: dict[str, list[dict[str, Any]]] = {}
        self.policies: dict[str, list[dict[str, Any]]] = {}
        self.rules: dict[str, list[dict[str, Any]]] = {}
        self.apps: list[dict[str, Any]] = []
        self.client_ids: dict[str, str] = {}
        self.users: list[dict[str, Any]] = []
        self.app_user_links: list[dict[str, Any]] = []

        self.requests: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], tuple[int, dict]] = {}
        self._counter = 0

        self._routes: list[Route] = [
            ("GET", re.compile(r"^/api/v1/users/me$"), self._get_me),
            ("GET", re.compile(r"^/api/v1/as$"), self._list_as),
            ("POST", re.compile(r"^/api/v1/as$"), self._create_as),
            ("GET", re.compile(r"^/api/v1/as/(?P<as_id>[^/]+)/resources$"), self._list_resources),
            (
                "GET",
                re.compile(r"^/api/v1/as/(?P<as_id>[^/]+)/resources/(?P<rid>[^/]+)/policies$"),
                self._list_policies,
            ),
            (
                "POST",
                re.compile(r"^/api/v1/as/(?P<as_id>[^/]+)/resources/(?P<rid>[^/]+)/policies$"),
                self._create_policy,
            ),
            (
                "PUT",
                re.compile(
                    r"^/api/v1/as/(?P<as_id>[^/]+)/resources/(?P<rid>[^/]+)"
                    r"/policies/(?P<pid>[^/]+)$"
                ),
                self._save_policy,
            ),
            (
                "GET",
                re.compile(r"^/api/v1/as/[^/]+/resources/[^/]+/policies/(?P<pid>[^/]+)/rules$"),
                self._list_rules,
            ),
            (
                "POST",
                re.compile(r"^/api/v1/as/[^/]+/resources/[^/]+/policies/(?P<pid>[^/]+)/rules$"),
                self._create_rule,
            ),
            ("GET", re.compile(r"^/api/v1/apps$"), self._list_apps),
            ("GET", re.compile(r"^/api/v1/apps/(?P<app_id>[^/]+)$"), self._get_app),
            ("PUT", re.compile(r"^/api/v1/apps/(?P<app_id>[^/]+)$"), self._save_app),
            ("POST", re.compile(r"^/api/v1/apps/(?P<app_id>[^/]+)/users$"), self._link_user),
            ("POST", re.compile(r"^/oauth2/v1/clients$"), self._register_client),
            (
                "GET",
                re.compile(r"^/api/v1/internal/apps/(?P<app_id>[^/]+)/settings/clientcreds$"),
                self._get_clientcreds,
            ),
            ("GET", re.compile(r"^/api/v1/users$"), self._list_users),
            ("POST", re.compile(r"^/api/v1/users$"), self._create_user),
        ]

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str) -> list[str]:
        return [path for m, path in self.requests if m == method]

    def fail(self, method: str, path: str, status_code: int, body: dict | None = None) -> None:
        """Make method+path answer with an error response."""
        self.failures[(method, path)] = (status_code, body or {})

    def add_authorization_server(
        self, name: str = TEST_AUTHORIZATION_SERVER.name, *, with_policy: bool = True
    ) -> dict[str, Any]:
        server = self._new_authorization_server({"name": name, "description": "seeded"})
        if with_policy:
            resource = self.resources[server["id"]][0]
            self._new_policy(
                server["id"],
                resource["id"],
                {
                    "type": OAUTH_AUTHORIZATION_POLICY,
                    "name": "Default Policy",
                    "conditions": {"clients": {"include": []}},
                },
            )
        return server

    def add_application(self, label: str = TEST_APPLICATION_LABEL) -> dict[str, Any]:
        return self._new_app(label)

    def add_user(self, email: str = TEST_USER.email) -> dict[str, Any]:
        return self._new_user(
            {"profile": {"firstName": "Test", "lastName": "User", "email": email, "login": email}}
        )

    def oauth_policy(self, server_id: str) -> dict[str, Any]:
        resource = self.resources[server_id][0]
        return next(
            p
            for p in self.policies[resource["id"]]
            if p.get("type") == OAUTH_AUTHORIZATION_POLICY
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if request.headers.get("Authorization") != f"SSWS {self.api_token}":
            return httpx.Response(
                401,
                json={
                    "errorCode": "E0000011",
                    "errorSummary": "Invalid token provided",
                    "errorId": "oaeFAKE",
                },
            )

        failure = self.failures.get((request.method, path))
        if failure is not None:
            status_code, body = failure
            return httpx.Response(status_code, json=body)

        for method, pattern, handler in self._routes:
            if method != request.method:
                continue
            match = pattern.match(path)
            if match:
                return handler(request, **match.groupdict())

        return httpx.Response(
            404,
            json={"errorCode": "E0000007", "errorSummary": f"Resource not found: {path}"},
        )

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter:04d}"

    def _api(self, path: str) -> str:
        return f"{self.org}/api/v1{path}"

    @staticmethod
    def _body(request: httpx.Request) -> dict[str, Any]:
        return json.loads(request.content or b"{}")

    def _page(self, request: httpx.Request, items: list[dict[str, Any]]) -> httpx.Response:
        after = int(request.url.params.get("after", "0"))
        page = items[after : after + self.page_size]
        headers = {}
        if after + self.page_size < len(items):
            next_url = request.url.copy_set_param("after", str(after + self.page_size))
            headers["Link"] = f'<{next_url}>; rel="next"'
        return httpx.Response(200, json=page, headers=headers)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def _new_authorization_server(self, body: dict[str, Any]) -> dict[str, Any]:
        server_id = self._next_id("aus")
        server = {
            **body,
            "id": server_id,
            "_links": {
                "self": {"href": self._api(f"/as/{server_id}")},
                "resources": {"href": self._api(f"/as/{server_id}/resources")},
            },
        }
        self.authorization_servers.append(server)
        resource_id = self._next_id("res")
        self.resources[server_id] = [
            {
                "id": resource_id,
                "_links": {
                    "policies": {
                        "href": self._api(f"/as/{server_id}/resources/{resource_id}/policies")
                    }
                },
            }
        ]
        self.policies[resource_id] = []
        return server

    def _new_policy(self, server_id: str, resource_id: str, body: dict[str, Any]) -> dict:
        policy = {**body, "id": self._next_id("pol")}
        self.policies[resource_id].append(policy)
        self.rules[policy["id"]] = []
        return policy

    def _new_app(self, label: str) -> dict[str, Any]:
        app_id = self._next_id("0oa")
        app = {
            "id": app_id,
            "name": "oidc_client",
            "label": label,
            "signOnMode": "OPENID_CONNECT",
            "settings": {"app": {}, "notifications": {"vpn": {"message": None}}},
            "_links": {"self": {"href": self._api(f"/apps/{app_id}")}},
        }
        self.apps.append(app)
        self.client_ids[app_id] = f"client-{app_id}"
        return app

    def _new_user(self, body: dict[str, Any]) -> dict[str, Any]:
        user = {"id": self._next_id("00u"), "status": "ACTIVE", "profile": body["profile"]}
        self.users.append(user)
        return user

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _get_me(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"id": "00uadmin", "profile": {"login": "admin@example.com"}}
        )

    def _list_as(self, request: httpx.Request) -> httpx.Response:
        return self._page(request, self.authorization_servers)

    def _create_as(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=self._new_authorization_server(self._body(request)))

    def _list_resources(self, request: httpx.Request, as_id: str) -> httpx.Response:
        return self._page(request, self.resources.get(as_id, []))

    def _list_policies(self, request: httpx.Request, as_id: str, rid: str) -> httpx.Response:
        return self._page(request, self.policies.get(rid, []))

    def _create_policy(self, request: httpx.Request, as_id: str, rid: str) -> httpx.Response:
        return httpx.Response(201, json=self._new_policy(as_id, rid, self._body(request)))

    def _save_policy(
        self, request: httpx.Request, as_id: str, rid: str, pid: str
    ) -> httpx.Response:
        policies = self.policies[rid]
        for index, policy in enumerate(policies):
            if policy["id"] == pid:
                policies[index] = {**self._body(request), "id": pid}
                return httpx.Response(200, json=policies[index])
        return httpx.Response(404, json={"errorCode": "E0000007"})

    def _list_rules(self, request: httpx.Request, pid: str) -> httpx.Response:
        return self._page(request, self.rules.get(pid, []))

    def _create_rule(self, request: httpx.Request, pid: str) -> httpx.Response:
        rule = {**self._body(request), "id": self._next_id("rul")}
        self.rules.setdefault(pid, []).append(rule)
        return httpx.Response(201, json=rule)

    def _list_apps(self, request: httpx.Request) -> httpx.Response:
        return self._page(request, self.apps)

    def _find_app(self, app_id: str) -> dict[str, Any] | None:
        return next((a for a in self.apps if a["id"] == app_id), None)

    def _get_app(self, request: httpx.Request, app_id: str) -> httpx.Response:
        app = self._find_app(app_id)
        if app is None:
            return httpx.Response(404, json={"errorCode": "E0000007"})
        return httpx.Response(200, json=app)

    def _save_app(self, request: httpx.Request, app_id: str) -> httpx.Response:
        app = self._find_app(app_id)
        if app is None:
            return httpx.Response(404, json={"errorCode": "E0000007"})
        app.update(self._body(request))
        return httpx.Response(200, json=app)

    def _link_user(self, request: httpx.Request, app_id: str) -> httpx.Response:
        link = {**self._body(request), "app_id": app_id}
        self.app_user_links.append(link)
        return httpx.Response(200, json=link)

    def _register_client(self, request: httpx.Request) -> httpx.Response:
        body = self._body(request)
        app = self._new_app(body["client_name"])
        return httpx.Response(
            201,
            json={
                "client_id": self.client_ids[app["id"]],
                "client_name": body["client_name"],
                "_links": {"app": {"href": self._api(f"/apps/{app['id']}")}},
            },
        )

    def _get_clientcreds(self, request: httpx.Request, app_id: str) -> httpx.Response:
        return httpx.Response(200, json={"client_id": self.client_ids[app_id]})

    def _list_users(self, request: httpx.Request) -> httpx.Response:
        match = re.search(r'profile\.email eq "([^"]+)"', request.url.params.get("filter", ""))
        users = self.users
        if match:
            users = [u for u in users if u["profile"].get("email") == match.group(1)]
        return self._page(request, users)

    def _create_user(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=self._new_user(self._body(request)))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def tenant() -> FakeOktaTenant:
    return FakeOktaTenant()


@pytest.fixture
async def okta_client(tenant: FakeOktaTenant) -> AsyncGenerator[OktaClient, None]:
    client = OktaClient(org=tenant.org, api_token=tenant.api_token, transport=tenant.transport)
    yield client
    await client.aclose()


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
