"""Find-or-create resolution of the seeded Okta resources.

Lookups list the collection and match the identifying field exactly on the
client side; creation only happens when nothing matches. The check and the
create are separate calls, so two concurrent runs can still both create.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from okta_test_data.core.errors import PolicyNotFoundError
from okta_test_data.okta_client import OktaClient
from okta_test_data.templates import (
    DEFAULT_ACCESS_RULE,
    DEFAULT_AUTHORIZATION_POLICY,
    OAUTH_AUTHORIZATION_POLICY,
    TEST_APPLICATION_LABEL,
    TEST_AUTHORIZATION_SERVER,
    TEST_OAUTH_CLIENT,
    TEST_USER,
    AccessRuleTemplate,
    AuthorizationPolicyTemplate,
    AuthorizationServerTemplate,
    OAuthClientTemplate,
    UserTemplate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthPolicy:
    """The authorization server's OAuth policy and the href it is saved at."""

    href: str
    resource: dict[str, Any]

    @property
    def rules_href(self) -> str:
        return f"{self.href}/rules"


def find_by_field(items: list[dict[str, Any]], field: str, value: str) -> dict[str, Any] | None:
    for item in items:
        if item.get(field) == value:
            return item
    return None


def link_href(resource: dict[str, Any], rel: str) -> str | None:
    return resource.get("_links", {}).get(rel, {}).get("href")


def authorization_server_href(authorization_server: dict[str, Any]) -> str:
    return link_href(authorization_server, "self") or f"/as/{authorization_server['id']}"


def application_href(application: dict[str, Any]) -> str:
    return link_href(application, "self") or f"/apps/{application['id']}"


async def _first_resource(client: OktaClient, authorization_server: dict[str, Any]) -> dict:
    resources_href = (
        link_href(authorization_server, "resources")
        or f"{authorization_server_href(authorization_server)}/resources"
    )
    resources = await client.get_collection(resources_href)
    if not resources:
        raise PolicyNotFoundError(authorization_server["id"])
    return resources[0]


def _policies_href(authorization_server: dict[str, Any], resource: dict[str, Any]) -> str:
    return link_href(resource, "policies") or (
        f"{authorization_server_href(authorization_server)}/resources/{resource['id']}/policies"
    )


# =============================================================================
# Authorization server
# =============================================================================


async def create_authorization_policy(
    client: OktaClient,
    authorization_server: dict[str, Any],
    template: AuthorizationPolicyTemplate = DEFAULT_AUTHORIZATION_POLICY,
) -> dict[str, Any]:
    resource = await _first_resource(client, authorization_server)
    policy = await client.create_resource(
        _policies_href(authorization_server, resource), template.to_payload()
    )
    logger.info(
        "Created authorization policy",
        extra={
            "policy_id": policy.get("id"),
            "authorization_server_id": authorization_server["id"],
        },
    )
    return policy


async def create_authorization_server(
    client: OktaClient, template: AuthorizationServerTemplate = TEST_AUTHORIZATION_SERVER
) -> dict[str, Any]:
    """Create the server, then the OAuth policy that policy linkage looks for."""
    authorization_server = await client.create_resource("/as", template.to_payload())
    logger.info(
        "Created authorization server",
        extra={
            "authorization_server_id": authorization_server.get("id"),
            "server_name": template.name,
        },
    )
    await create_authorization_policy(client, authorization_server)
    return authorization_server


async def resolve_authorization_server(
    client: OktaClient, template: AuthorizationServerTemplate = TEST_AUTHORIZATION_SERVER
) -> dict[str, Any]:
    existing = find_by_field(await client.get_collection("/as"), "name", template.name)
    if existing:
        logger.info(
            "Authorization server exists",
            extra={"authorization_server_id": existing.get("id"), "server_name": template.name},
        )
        return existing
    return await create_authorization_server(client, template)


# =============================================================================
# Application
# =============================================================================


async def create_application(
    client: OktaClient, template: OAuthClientTemplate = TEST_OAUTH_CLIENT
) -> dict[str, Any]:
    """Register an OAuth client, then fetch the application Okta made for it."""
    oauth_client = await client.register_oauth_client(template.to_payload())
    app_href = link_href(oauth_client, "app")
    if not app_href:
        app_href = f"/apps/{oauth_client['client_id']}"
    application = await client.get_application(app_href)
    logger.info(
        "Created application",
        extra={"application_id": application.get("id"), "label": template.client_name},
    )
    return application


async def resolve_application(
    client: OktaClient,
    label: str = TEST_APPLICATION_LABEL,
    template: OAuthClientTemplate = TEST_OAUTH_CLIENT,
) -> dict[str, Any]:
    existing = find_by_field(await client.list_applications(), "label", label)
    if existing:
        logger.info(
            "Application exists", extra={"application_id": existing.get("id"), "label": label}
        )
        return existing
    return await create_application(client, template)


async def get_client_credentials(client: OktaClient, application_id: str) -> dict[str, Any]:
    return await client.get_resource(f"/internal/apps/{application_id}/settings/clientcreds")


# =============================================================================
# Test user
# =============================================================================


async def find_user(client: OktaClient, email: str = TEST_USER.email) -> dict[str, Any] | None:
    users = await client.get_collection("/users", params={"filter": f'profile.email eq "{email}"'})
    for user in users:
        if user.get("profile", {}).get("email") == email:
            return user
    return None


async def create_user(client: OktaClient, template: UserTemplate = TEST_USER) -> dict[str, Any]:
    user = await client.create_resource(
        "/users", template.to_payload(), params={"activate": "true"}
    )
    logger.info(
        "Created test user", extra={"user_id": user.get("id"), "login": template.user_login}
    )
    return user


async def link_user_to_application(
    client: OktaClient, application: dict[str, Any], user: dict[str, Any]
) -> dict[str, Any]:
    """
    Assign the user to the application.

    There is no existence check: every call posts a new assignment.
    """
    return await client.create_resource(
        f"{application_href(application)}/users",
        {
            "id": user["id"],
            "scope": "USER",
            "credentials": {"userName": user["profile"]["email"]},
        },
    )


# =============================================================================
# OAuth policy and access rule
# =============================================================================


async def get_oauth_policy(client: OktaClient, authorization_server: dict[str, Any]) -> OAuthPolicy:
    """
    Fetch the OAUTH_AUTHORIZATION_POLICY of the server's first resource.

    Raises:
        PolicyNotFoundError: the server has no resources, or none of the
            first resource's policies is an OAuth authorization policy.
    """
    resource = await _first_resource(client, authorization_server)
    policies = await client.get_collection(_policies_href(authorization_server, resource))
    policy = find_by_field(policies, "type", OAUTH_AUTHORIZATION_POLICY)
    if policy is None:
        raise PolicyNotFoundError(authorization_server["id"])

    href = (
        f"{authorization_server_href(authorization_server)}"
        f"/resources/{resource['id']}/policies/{policy['id']}"
    )
    return OAuthPolicy(href=href, resource=policy)


async def create_access_rule(
    client: OktaClient, policy: OAuthPolicy, template: AccessRuleTemplate = DEFAULT_ACCESS_RULE
) -> dict[str, Any]:
    rule = await client.create_resource(policy.rules_href, template.to_payload())
    logger.info(
        "Created access rule", extra={"rule_id": rule.get("id"), "policy_href": policy.href}
    )
    return rule
