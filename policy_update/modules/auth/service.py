"""
Authentication gate following Black Box Design principles.

This module provides:
- Credential extraction from the Authorization header
- Dispatch to the strategy registered for the presented scheme
- One failure type for every way authentication can go wrong
"""

import base64
import binascii
import logging
import time
from typing import Dict, Iterable, Optional

from ... import metrics
from ...errors import AuthenticationFailure
from .interfaces import BearerToken, Credential, CredentialVerifier, Identity, UsernamePassword

logger = logging.getLogger(__name__)


def parse_authorization(authorization: Optional[str]) -> Credential:
    """
    Turn an Authorization header into a credential.

    Raises:
        AuthenticationFailure: If the header is absent, malformed or uses an
            unsupported scheme
    """
    if not authorization or not authorization.strip():
        raise AuthenticationFailure("no credentials presented", metrics.MISSING_CREDENTIALS)

    scheme, _, value = authorization.strip().partition(" ")
    scheme = scheme.lower()
    value = value.strip()

    if scheme == "basic":
        try:
            decoded = base64.b64decode(value, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            raise AuthenticationFailure("malformed basic credentials") from None
        username, sep, password = decoded.partition(":")
        if not sep:
            raise AuthenticationFailure("malformed basic credentials")
        return UsernamePassword(username=username, password=password)

    if scheme == "bearer":
        if not value:
            raise AuthenticationFailure("empty bearer token", metrics.JWT_ERROR)
        return BearerToken(raw=value)

    raise AuthenticationFailure(f"unsupported authorization scheme {scheme!r}")


class Authenticator:
    """
    The single gate protected routes pass through.

    Strategies are enabled per scheme; each route states which schemes it
    accepts.
    """

    def __init__(self):
        self._strategies: Dict[str, CredentialVerifier] = {}

    def enable_strategy(self, strategy: CredentialVerifier) -> None:
        """Register a strategy under its scheme name."""
        self._strategies[strategy.scheme] = strategy

    @property
    def schemes(self) -> Iterable[str]:
        return tuple(self._strategies)

    def authenticate(
        self,
        authorization: Optional[str],
        allowed_schemes: Optional[Iterable[str]] = None,
    ) -> Identity:
        """
        Authenticate a request.

        Args:
            authorization: Authorization header value
            allowed_schemes: Schemes the route accepts; all enabled schemes if None

        Returns:
            Identity of the caller

        Raises:
            AuthenticationFailure: Request is rejected; downstream must not run
        """
        start = time.perf_counter()
        try:
            credential = parse_authorization(authorization)
            allowed = set(self._strategies if allowed_schemes is None else allowed_schemes)
            strategy = self._strategies.get(credential.scheme)
            if strategy is None or credential.scheme not in allowed:
                raise AuthenticationFailure(
                    f"scheme {credential.scheme!r} not accepted for this route"
                )

            identity = strategy.verify(credential)
        except AuthenticationFailure as e:
            metrics.auth_requests_total.labels(status=e.metric_status).inc()
            logger.warning(f"Authentication rejected: {e.reason}")
            raise
        finally:
            metrics.auth_processing_time.observe((time.perf_counter() - start) * 1000)

        metrics.auth_requests_total.labels(status=metrics.OK).inc()
        logger.info(f"User {identity.subject} authenticated")
        return identity
