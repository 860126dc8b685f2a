"""
Orchestration of one seeding run.

Phases, each joined before the next starts:

1. Resolve the authorization server and the application, look up the
   test user.
2. Fetch the application's client credentials and the server's OAuth
   policy. Nothing is written until both are in hand.
3. Fetch the policy's rules, then apply the writes: application link,
   policy client include-list, test user (created when missing, then
   assigned) and default access rule.

The first failure in a phase cancels its siblings and aborts the run.
Resources created before the failure are left in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from okta_test_data.core.concurrency import gather_all
from okta_test_data.okta_client import OktaClient
from okta_test_data.reconcile import (
    needs_access_rule,
    reconcile_application_settings,
    reconcile_policy_clients,
)
from okta_test_data.services.resolvers import (
    application_href,
    create_access_rule,
    create_user,
    find_user,
    get_client_credentials,
    get_oauth_policy,
    link_user_to_application,
    resolve_application,
    resolve_authorization_server,
)
from okta_test_data.templates import TEST_USER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedResult:
    application_id: str
    authorization_server_id: str
    client_id: str
    user_id: str
    user_login: str
    user_password: str


async def _ensure_user_linked(
    client: OktaClient, application: dict, existing_user: dict | None
) -> dict:
    """Create the test user when the lookup found none, then assign it to the application."""
    user = existing_user
    if user is None:
        user = await create_user(client, TEST_USER)
    await link_user_to_application(client, application, user)
    return user


async def seed_test_data(client: OktaClient) -> SeedResult:
    phase_one = await gather_all(
        authorization_server=resolve_authorization_server(client),
        application=resolve_application(client),
        user=find_user(client, TEST_USER.email),
    )
    authorization_server = phase_one["authorization_server"]
    application = phase_one["application"]
    existing_user = phase_one["user"]
    if existing_user is not None:
        logger.info("Test user exists", extra={"user_id": existing_user.get("id")})

    phase_two = await gather_all(
        client_credentials=get_client_credentials(client, application["id"]),
        oauth_policy=get_oauth_policy(client, authorization_server),
    )
    client_id = phase_two["client_credentials"]["client_id"]
    oauth_policy = phase_two["oauth_policy"]

    rules = await client.get_collection(oauth_policy.rules_href)

    writes = {}
    application_update = reconcile_application_settings(application, authorization_server["id"])
    if application_update.needs_update:
        writes["application"] = client.save_resource(
            application_href(application), application_update.desired
        )
    policy_update = reconcile_policy_clients(oauth_policy.resource, client_id)
    if policy_update.needs_update:
        writes["oauth_policy"] = client.save_resource(oauth_policy.href, policy_update.desired)
    writes["user"] = _ensure_user_linked(client, application, existing_user)
    if needs_access_rule(rules):
        writes["access_rule"] = create_access_rule(client, oauth_policy)

    logger.info("Applying updates", extra={"writes": sorted(writes)})
    applied = await gather_all(**writes)
    user = applied["user"]

    return SeedResult(
        application_id=application["id"],
        authorization_server_id=authorization_server["id"],
        client_id=client_id,
        user_id=user["id"],
        user_login=TEST_USER.user_login,
        user_password=TEST_USER.password,
    )
