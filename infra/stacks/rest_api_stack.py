"""CDK stack for the REST API: one Lambda function behind API Gateway."""

from __future__ import annotations

from typing import Optional
from typing import Sequence

from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    Stack,
    aws_apigateway as apigw,
    aws_cognito as cognito,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import Construct

CORS_MODES = ("open", "credentials")

# Paths reachable without the Cognito authorizer
PUBLIC_PREFIXES = ("public", "auth")


class RestApiStack(Stack):
    """REST API fronting a single Python Lambda.

    ``/public/*`` and ``/auth/*`` are proxied without an authorizer; the root
    and every other path require a valid Cognito user-pool token, whose
    claims reach the function under ``requestContext.authorizer.claims``.

    Parameters:
    - cognito_user_pool_id: user pool the authorizer validates tokens against.
    - cognito_client_id: app client the function calls for signup/login.
    - env_name: deployment environment; ``prod`` turns on Secure cookies.
    - cors_mode: ``open`` (any origin) or ``credentials`` (allow-listed
      origins, cookies allowed). Never both.
    - lambda_code: function code; defaults to the bundle built by
      ``backend/scripts/build_lambda_bundle.py`` at ``bundle_dir``.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        cognito_user_pool_id: str,
        cognito_client_id: str,
        env_name: str = "dev",
        cookie_domain: str = "",
        cors_mode: str = "open",
        cors_allowed_origins: Sequence[str] = (),
        bundle_dir: str = "backend/.lambda-build/base",
        lambda_code: Optional[lambda_.Code] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if not cognito_user_pool_id or not cognito_client_id:
            raise ValueError(
                "cognito_user_pool_id and cognito_client_id context values are required"
            )
        if cors_mode not in CORS_MODES:
            raise ValueError(f"cors_mode must be one of: {', '.join(CORS_MODES)}")
        if cors_mode == "credentials" and not cors_allowed_origins:
            raise ValueError("cors_mode 'credentials' needs cors_allowed_origins")

        environment = {
            "PYTHONPATH": "/var/task/src",
            "COGNITO_REGION": self.region,
            "COGNITO_CLIENT_ID": cognito_client_id,
            "ENVIRONMENT": env_name,
            "CORS_MODE": cors_mode,
            "CORS_ALLOWED_ORIGINS": ",".join(cors_allowed_origins),
            "LOG_LEVEL": "INFO",
        }
        if cookie_domain:
            environment["COOKIE_DOMAIN"] = cookie_domain
        if cors_mode == "credentials":
            # Cross-site cookies from an allow-listed frontend
            environment["COOKIE_SAMESITE"] = "None"
            environment["COOKIE_SECURE"] = "true"

        fn = lambda_.Function(
            self,
            "ApiHandler",
            runtime=lambda_.Runtime.PYTHON_3_12,
            architecture=lambda_.Architecture.ARM_64,
            handler="lambda/api/handler.lambda_handler",
            code=lambda_code or lambda_.Code.from_asset(bundle_dir),
            memory_size=256,
            timeout=Duration.seconds(10),
            environment=environment,
        )

        access_logs = logs.LogGroup(
            self,
            "ApiAccessLogs",
            retention=logs.RetentionDays.ONE_WEEK,
            removal_policy=RemovalPolicy.DESTROY,
        )

        api = apigw.RestApi(
            self,
            "RestApi",
            rest_api_name=f"lambda-rest-api-{env_name}",
            deploy_options=apigw.StageOptions(
                stage_name="v1",
                access_log_destination=apigw.LogGroupLogDestination(access_logs),
                access_log_format=apigw.AccessLogFormat.json_with_standard_fields(
                    caller=True,
                    http_method=True,
                    ip=True,
                    protocol=True,
                    request_time=True,
                    resource_path=True,
                    response_length=True,
                    status=True,
                    user=True,
                ),
            ),
            default_cors_preflight_options=_cors_options(
                cors_mode, cors_allowed_origins
            ),
        )

        user_pool = cognito.UserPool.from_user_pool_id(
            self, "UserPool", cognito_user_pool_id
        )
        authorizer = apigw.CognitoUserPoolsAuthorizer(
            self,
            "CognitoAuthorizer",
            cognito_user_pools=[user_pool],
        )

        integration = apigw.LambdaIntegration(fn, proxy=True)
        method_options = {
            "authorizer": authorizer,
            "authorization_type": apigw.AuthorizationType.COGNITO,
        }

        api.root.add_method("ANY", integration, **method_options)
        api.root.add_resource("{proxy+}").add_method(
            "ANY", integration, **method_options
        )
        for prefix in PUBLIC_PREFIXES:
            api.root.add_resource(prefix).add_resource("{proxy+}").add_method(
                "ANY", integration
            )

        CfnOutput(self, "ApiUrl", value=api.url)
        CfnOutput(self, "FunctionName", value=fn.function_name)


def _cors_options(
    cors_mode: str,
    cors_allowed_origins: Sequence[str],
) -> apigw.CorsOptions:
    """Gateway preflight options matching the function's CORS policy."""
    if cors_mode == "credentials":
        return apigw.CorsOptions(
            allow_origins=list(cors_allowed_origins),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["content-type", "authorization", "x-csrf"],
            allow_credentials=True,
        )
    return apigw.CorsOptions(
        allow_origins=apigw.Cors.ALL_ORIGINS,
        allow_methods=apigw.Cors.ALL_METHODS,
        allow_headers=["Content-Type", "Authorization"],
    )
