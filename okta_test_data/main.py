"""Creates test data in Okta for migration testing.

You need an Okta developer org and an API token for it. Run:

  okta-test-data --apiToken=TOKEN --org=https://dev-YOUR_ORG.oktapreview.com/

This creates, unless they already exist:

- An OpenID Connect application
- An authorization server with an OAuth policy and a default access rule
- A test user assigned to the application

and prints the settings your application needs. The resources are also
visible in the Okta Admin Console. Re-running is safe except that the test
user is assigned to the application again on every run.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from okta_test_data.core.config import SeedConfig, get_settings
from okta_test_data.core.errors import ConfigurationError
from okta_test_data.core.observability import configure_logging, generate_run_id, set_run_id
from okta_test_data.okta_client import OktaClient
from okta_test_data.services.seeder import SeedResult, seed_test_data

logger = logging.getLogger(__name__)

RULE = "=" * 60


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="okta-test-data",
        description="Create Okta test data for auth provider migration testing (idempotent)",
    )
    parser.add_argument("--apiToken", dest="api_token", required=True, help="Okta API token")
    parser.add_argument(
        "--org", required=True, help="Okta org URL, e.g. https://dev-123.oktapreview.com"
    )
    return parser


def load_config(argv: Sequence[str] | None = None) -> SeedConfig:
    args = build_parser().parse_args(argv)
    try:
        return SeedConfig(api_token=args.api_token, org=args.org)
    except ValidationError as exc:
        errors = "; ".join(err["msg"] for err in exc.errors())
        raise ConfigurationError(f"Invalid configuration: {errors}") from exc


def format_summary(result: SeedResult) -> str:
    return "\n".join(
        [
            "",
            "Data ready! Here are the settings you need for your application:",
            "",
            RULE,
            f"Okta Application ID: {result.application_id}",
            f"Test user login:     {result.user_login}",
            f"Test user password:  {result.user_password}",
            RULE,
            "",
            "",
        ]
    )


async def run(config: SeedConfig | None = None, client: OktaClient | None = None) -> SeedResult:
    """
    Seed the tenant and print the settings summary.

    A pre-constructed client is used as given and left open for the caller;
    otherwise one is built from config, or from the command-line flags when
    no config is given, and closed when the run ends.
    """
    if client is not None:
        return await _run_with_client(client)

    if config is None:
        config = load_config()

    settings = get_settings()
    async with OktaClient(
        org=config.org,
        api_token=config.api_token.get_secret_value(),
        timeout_s=settings.http_timeout_seconds,
    ) as owned_client:
        return await _run_with_client(owned_client)


async def _run_with_client(client: OktaClient) -> SeedResult:
    await client.open()
    print("Creating test data..", flush=True)
    result = await seed_test_data(client)
    logger.info(
        "Test data ready",
        extra={
            "application_id": result.application_id,
            "authorization_server_id": result.authorization_server_id,
            "user_id": result.user_id,
        },
    )
    print(format_summary(result), flush=True)
    return result


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, structured=settings.structured_logs)
    set_run_id(generate_run_id())

    config = load_config(argv)
    logger.debug("Seeding org", extra={"org": config.org})
    try:
        asyncio.run(run(config))
    except Exception:
        logger.error("Seeding failed; resources created so far were left in place")
        raise
    return 0


def cli() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    cli()
