#!/usr/bin/env python3
"""
NCFS Policy Update Service - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the auth stack, validator and store
3. Runs the HTTPS API

All business logic is in the modules, following black box principles.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.requests import ClientDisconnect

from policy_update import __version__, metrics
from policy_update.config.provider import ConfigProvider, EnvConfigProvider
from policy_update.errors import (
    AuthenticationFailure,
    InfrastructureFailure,
    ServiceError,
    ValidationFailure,
)
from policy_update.logging_config import configure_logging, get_logging_config
from policy_update.modules.auth import AuthFactory, Identity
from policy_update.modules.middleware import CorsMiddleware
from policy_update.modules.policy import DocumentClient, PolicyStore, PolicyValidator, read_limited_body

logger = logging.getLogger(__name__)

TOKEN_PATH = "/api/v1/auth/token"
POLICY_PATH = "/api/v1/policy"
UPDATE_OK = "Successfully updated config map."


def require_auth(scheme: str, challenge: str) -> Callable[..., Identity]:
    """
    Build a dependency that lets only ``scheme`` credentials through.

    The resulting identity is attached to request.state.identity.
    """

    def dependency(
        request: Request,
        authorization: Optional[str] = Header(None, description="Basic or Bearer credentials"),
    ) -> Identity:
        authenticator = request.app.state.auth.authenticator
        try:
            identity = authenticator.authenticate(authorization, allowed_schemes=(scheme,))
        except AuthenticationFailure as e:
            e.challenge = challenge
            raise
        request.state.identity = identity
        return identity

    return dependency


basic_auth = require_auth("basic", 'Basic realm="policy-update-service"')
bearer_auth = require_auth("bearer", 'Bearer realm="policy-update-service"')


def _parse_content_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationFailure("Content-Length header is not a number") from None


router = APIRouter()


@router.get(TOKEN_PATH, response_class=PlainTextResponse)
def create_token(request: Request, identity: Identity = Depends(basic_auth)):
    """
    Exchange operator credentials for a short-lived bearer token.

    Returns:
        200: Signed token as plain text
        401: Unauthorized
        500: Token could not be signed
    """
    start = time.perf_counter()
    try:
        token = request.app.state.auth.issuer.issue(identity)
    except InfrastructureFailure as e:
        metrics.token_requests_total.labels(status=e.metric_status).inc()
        raise
    finally:
        metrics.token_processing_time.observe((time.perf_counter() - start) * 1000)

    metrics.token_requests_total.labels(status=metrics.OK).inc()
    return PlainTextResponse(token)


@router.put(POLICY_PATH, response_class=PlainTextResponse)
async def update_policy(
    request: Request,
    identity: Identity = Depends(bearer_auth),
    content_type: Optional[str] = Header(None),
    content_length: Optional[str] = Header(None),
):
    """
    Validate a policy and write it to the policy ConfigMap.

    Returns:
        200: Policy stored
        400: Invalid policy
        401: Unauthorized
        413: Body larger than 1MB
        415: Content-Type is not application/json
        500: ConfigMap could not be updated
    """
    state = request.app.state
    start = time.perf_counter()
    try:
        declared_length = _parse_content_length(content_length)
        state.validator.check_headers(declared_length, content_type)
        body = await read_limited_body(request.stream(), state.validator.max_body_bytes)
        policy = state.validator.validate(body, declared_length, content_type)

        await state.store.update(
            state.store_config.namespace, state.store_config.configmap_name, policy
        )
    except ValidationFailure:
        metrics.policy_update_requests_total.labels(status=metrics.JSON_ERROR).inc()
        raise
    except InfrastructureFailure as e:
        metrics.policy_update_requests_total.labels(status=e.metric_status).inc()
        raise
    finally:
        metrics.policy_update_processing_time.observe((time.perf_counter() - start) * 1000)

    metrics.policy_update_requests_total.labels(status=metrics.OK).inc()
    logger.info(f"Policy updated by {identity.subject}")
    return PlainTextResponse(UPDATE_OK)


@router.get("/healthz")
async def healthz():
    """Unauthenticated liveness check."""
    return {"status": "ok"}


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus exposition of the service metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def service_error_handler(request: Request, exc: ServiceError):
    """Map a typed failure to exactly one status and plain-text body."""
    if isinstance(exc, InfrastructureFailure):
        logger.error(f"{type(exc).__name__}: {exc}")
    elif isinstance(exc, ValidationFailure):
        logger.info(f"Rejected policy update: {exc.public_message}")

    headers = None
    if isinstance(exc, AuthenticationFailure) and exc.challenge:
        headers = {"WWW-Authenticate": exc.challenge}
    return PlainTextResponse(exc.public_message, status_code=exc.status_code, headers=headers)


async def client_disconnect_handler(request: Request, exc: ClientDisconnect):
    logger.info(f"Client disconnected during {request.method} {request.url.path}")
    return Response(status_code=400)


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    store_client_factory: Optional[Callable[[], DocumentClient]] = None,
) -> FastAPI:
    """
    Build the application with all collaborators injected.

    Args:
        config_provider: Configuration source; the environment if None
        store_client_factory: Opens a store session per update; a Kubernetes
            ConfigMap client if None

    Raises:
        ValueError: If required configuration is missing
    """
    provider = config_provider or EnvConfigProvider()
    auth_config = provider.get_auth_config()
    store_config = provider.get_store_config()

    if store_client_factory is None:
        from policy_update.modules.policy.kube import configmap_client_factory

        store_client_factory = configmap_client_factory(store_config.kubeconfig_mode)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Policy update service started for ConfigMap "
            f"{store_config.namespace}/{store_config.configmap_name}"
        )
        yield
        app.state.auth.cache.clear()
        logger.info("Policy update service shutdown complete")

    app = FastAPI(
        title="NCFS Policy Update Service",
        description="Issues bearer tokens and updates the NCFS policy ConfigMap",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.auth = AuthFactory.build(auth_config)
    app.state.validator = PolicyValidator()
    app.state.store = PolicyStore(
        store_client_factory,
        data_key=store_config.data_key,
        timeout_seconds=store_config.timeout_seconds,
    )
    app.state.store_config = store_config

    cors = CorsMiddleware()

    @app.middleware("http")
    async def add_cors(request: Request, call_next):
        return await cors(request, call_next)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(ClientDisconnect, client_disconnect_handler)
    app.include_router(router)
    return app


def main() -> None:
    configure_logging()
    try:
        provider = EnvConfigProvider()
        api_config = provider.get_api_config()
        app = create_app(provider)
    except ValueError as e:
        logger.critical(str(e))
        raise SystemExit(1)

    configure_logging(api_config.log_level)
    logger.info(f"Listening on port with TLS :{api_config.port}")
    uvicorn.run(
        app,
        host=api_config.host,
        port=api_config.port,
        ssl_certfile=api_config.tls_cert_file,
        ssl_keyfile=api_config.tls_key_file,
        log_level=api_config.log_level.lower(),
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
