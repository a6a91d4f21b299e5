"""
Authentication Module - Black Box Interface

Purpose: Issue bearer tokens and gate protected routes
Interface: AuthFactory.build(), Authenticator.authenticate(), TokenIssuer.issue()
Hidden: Strategy selection, token format, verification cache

Strategies can be added or replaced without affecting the HTTP layer.
"""

from .cache import VerificationCache
from .factory import AuthFactory, AuthStack
from .interfaces import BearerToken, Identity, UsernamePassword
from .service import Authenticator
from .strategies import BasicStrategy, BearerStrategy
from .tokens import TokenIssuer

__all__ = [
    "AuthFactory",
    "AuthStack",
    "Authenticator",
    "BasicStrategy",
    "BearerStrategy",
    "BearerToken",
    "Identity",
    "TokenIssuer",
    "UsernamePassword",
    "VerificationCache",
]
