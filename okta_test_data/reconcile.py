"""Pure reconciliation checks.

Each check compares a fetched resource to the state the seeder wants and
returns whether a write is needed together with the full body to write.
Inputs are never mutated.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Reconciliation:
    needs_update: bool
    desired: dict[str, Any]


def application_link_target(application: dict[str, Any]) -> Any:
    """Authorization server id stored on the application, or None."""
    return (
        application.get("settings", {})
        .get("notifications", {})
        .get("vpn", {})
        .get("message")
    )


def reconcile_application_settings(
    application: dict[str, Any], authorization_server_id: str
) -> Reconciliation:
    """
    Point the application at the authorization server.

    The link is kept in `settings.notifications.vpn.message`. Whatever
    value is there is overwritten; concurrent writers are not detected.
    """
    if application_link_target(application) == authorization_server_id:
        return Reconciliation(needs_update=False, desired=copy.deepcopy(application))

    desired = copy.deepcopy(application)
    vpn = (
        desired.setdefault("settings", {})
        .setdefault("notifications", {})
        .setdefault("vpn", {})
    )
    vpn["message"] = authorization_server_id
    return Reconciliation(needs_update=True, desired=desired)


def policy_client_includes(policy: dict[str, Any]) -> list[str]:
    return policy.get("conditions", {}).get("clients", {}).get("include") or []


def reconcile_policy_clients(policy: dict[str, Any], client_id: str) -> Reconciliation:
    """Append client_id to the policy's client include-list when absent."""
    if client_id in policy_client_includes(policy):
        return Reconciliation(needs_update=False, desired=copy.deepcopy(policy))

    desired = copy.deepcopy(policy)
    clients = desired.setdefault("conditions", {}).setdefault("clients", {})
    clients["include"] = [*(clients.get("include") or []), client_id]
    return Reconciliation(needs_update=True, desired=desired)


def needs_access_rule(rules: list[dict[str, Any]]) -> bool:
    return len(rules) == 0
