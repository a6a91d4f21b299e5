"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the authentication stack based on configuration
- Shares one verification cache between the strategies
- Returns the gate and the token issuer (hiding the strategies)
"""

import logging
from dataclasses import dataclass

from ...config.provider import AuthConfig
from .cache import VerificationCache
from .service import Authenticator
from .strategies import BasicStrategy, BearerStrategy
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


@dataclass
class AuthStack:
    """Objects the HTTP layer needs from the auth module."""
    authenticator: Authenticator
    issuer: TokenIssuer
    cache: VerificationCache


class AuthFactory:
    """Composition root for the authentication stack."""

    @staticmethod
    def build(auth_config: AuthConfig) -> AuthStack:
        """
        Build the complete authentication stack.

        Args:
            auth_config: Authentication configuration

        Returns:
            AuthStack with a fresh cache, issuer and gate
        """
        cache = VerificationCache(
            ttl_seconds=auth_config.cache_ttl_seconds,
            max_entries=auth_config.cache_max_entries,
        )
        issuer = TokenIssuer(
            signing_key=auth_config.signing_key,
            issuer=auth_config.issuer,
            audience=auth_config.audience,
            ttl_seconds=auth_config.token_ttl_seconds,
        )

        authenticator = Authenticator()
        authenticator.enable_strategy(
            BasicStrategy(auth_config.username, auth_config.password, cache)
        )
        authenticator.enable_strategy(BearerStrategy(issuer, cache))

        logger.info(
            f"Authentication stack built with strategies: {', '.join(authenticator.schemes)}"
        )
        return AuthStack(authenticator=authenticator, issuer=issuer, cache=cache)
