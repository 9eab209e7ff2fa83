"""CDK app entrypoint.

Usage (from the repository root):
    python backend/scripts/build_lambda_bundle.py
    cdk deploy -c env=dev -c cognito_user_pool_id=... -c cognito_client_id=...
"""

from __future__ import annotations

import os

import aws_cdk as cdk

from infra.stacks.rest_api_stack import RestApiStack


def _context_list(app: cdk.App, key: str) -> list[str]:
    raw = app.node.try_get_context(key) or ""
    if isinstance(raw, (list, tuple)):
        return [str(item).strip() for item in raw if str(item).strip()]
    return [item.strip() for item in str(raw).split(",") if item.strip()]


def main() -> None:
    app = cdk.App()

    env_name = app.node.try_get_context("env") or "dev"
    account = os.getenv("CDK_DEFAULT_ACCOUNT")
    region = os.getenv("CDK_DEFAULT_REGION") or "us-east-1"

    RestApiStack(
        app,
        f"LambdaRestApi-{env_name}",
        env=cdk.Environment(account=account, region=region),
        stack_name=f"lambda-rest-api-{env_name}",
        env_name=env_name,
        cognito_user_pool_id=app.node.try_get_context("cognito_user_pool_id") or "",
        cognito_client_id=app.node.try_get_context("cognito_client_id") or "",
        cookie_domain=app.node.try_get_context("cookie_domain") or "",
        cors_mode=app.node.try_get_context("cors_mode") or "open",
        cors_allowed_origins=_context_list(app, "cors_allowed_origins"),
    )

    app.synth()


if __name__ == "__main__":
    main()
