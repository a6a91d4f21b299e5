"""
Credential verification strategies.

One strategy per credential kind. Both consult the shared VerificationCache
before doing the expensive check and populate it after a success, keyed by a
hash of the raw credential material.
"""

import logging
import secrets

from ...errors import AuthenticationFailure
from .cache import VerificationCache, credential_key
from .interfaces import BearerToken, Credential, Identity, UsernamePassword
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)

OPERATOR_ID = "1"


class BasicStrategy:
    """Checks a username/password pair against the configured operator."""

    scheme = UsernamePassword.scheme

    def __init__(self, username: str, password: str, cache: VerificationCache):
        self._username = username.encode("utf-8")
        self._password = password.encode("utf-8")
        self.cache = cache

    def verify(self, credential: Credential) -> Identity:
        if not isinstance(credential, UsernamePassword):
            raise AuthenticationFailure("credential is not a username/password pair")

        key = credential_key(self.scheme, f"{credential.username}:{credential.password}")
        identity = self.cache.lookup(key)
        if identity is not None:
            return identity

        # Evaluate both comparisons so timing does not reveal which field failed
        user_ok = secrets.compare_digest(credential.username.encode("utf-8"), self._username)
        pass_ok = secrets.compare_digest(credential.password.encode("utf-8"), self._password)
        if not (user_ok & pass_ok):
            raise AuthenticationFailure("invalid credentials", "user_error")

        identity = Identity(subject=credential.username, extensions={"id": OPERATOR_ID})
        self.cache.insert(key, identity)
        return identity


class BearerStrategy:
    """Verifies a signed bearer token issued by TokenIssuer."""

    scheme = BearerToken.scheme

    def __init__(self, issuer: TokenIssuer, cache: VerificationCache):
        self.issuer = issuer
        self.cache = cache

    def verify(self, credential: Credential) -> Identity:
        if not isinstance(credential, BearerToken):
            raise AuthenticationFailure("credential is not a bearer token", "jwt_error")

        key = credential_key(self.scheme, credential.raw)
        identity = self.cache.lookup(key)
        if identity is not None:
            return identity

        claims = self.issuer.decode(credential.raw)
        identity = Identity(subject=claims["sub"])
        # A cached token must not outlive its exp claim
        self.cache.insert(key, identity, max_age=self.issuer.seconds_left(claims))
        return identity
