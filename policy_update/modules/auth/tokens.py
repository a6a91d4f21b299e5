"""
Bearer token issuing and verification.

Tokens are compact HS256 JWTs signed with the symmetric key from process
configuration. Verification accepts HS256 only, so a token signed with any
other algorithm (including ``none``) is rejected before its claims are
trusted.
"""

import logging
import time
from typing import Any, Callable, Dict

import jwt

from ...errors import AuthenticationFailure, SigningFailure
from .interfaces import Identity

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenIssuer:
    """Mints and verifies short-lived signed bearer tokens."""

    def __init__(
        self,
        signing_key: str,
        issuer: str = "auth-app",
        audience: str = "any",
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize token issuer.

        Args:
            signing_key: Symmetric HMAC key, sourced from configuration
            issuer: Value of the iss claim
            audience: Value of the aud claim
            ttl_seconds: Token lifetime (5 minutes by default)
            clock: Wall clock returning epoch seconds
        """
        if not signing_key:
            raise ValueError("signing_key must not be empty")
        self._key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, identity: Identity) -> str:
        """
        Sign a token for an already-authenticated identity.

        Raises:
            SigningFailure: If the token cannot be signed
        """
        now = int(self._clock())
        claims = {
            "iss": self.issuer,
            "sub": identity.subject,
            "aud": self.audience,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        try:
            return jwt.encode(claims, self._key, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise SigningFailure(f"Unable to sign token: {e}") from e

    def decode(self, raw: str) -> Dict[str, Any]:
        """
        Verify a token and return its claims.

        Raises:
            AuthenticationFailure: On any parse, algorithm, signature, claim or
                expiry failure. The reason is for logs only.
        """
        try:
            header = jwt.get_unverified_header(raw)
        except jwt.DecodeError as e:
            raise AuthenticationFailure(f"malformed token: {e}", "jwt_error") from e

        alg = header.get("alg")
        if alg != ALGORITHM:
            raise AuthenticationFailure(f"unexpected signing method: {alg}", "jwt_error")

        try:
            claims = jwt.decode(
                raw,
                self._key,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                # Expiry is checked below against the issuer clock
                options={"require": ["exp", "sub", "iss", "aud"], "verify_exp": False},
            )
        except jwt.InvalidSignatureError as e:
            raise AuthenticationFailure("token signature mismatch", "jwt_error") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationFailure(f"invalid token: {e}", "jwt_error") from e

        exp = claims["exp"]
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise AuthenticationFailure("invalid token: exp is not a number", "jwt_error")
        if exp <= self._clock():
            raise AuthenticationFailure("token expired", "jwt_error")
        return claims

    def seconds_left(self, claims: Dict[str, Any]) -> float:
        """Time until a decoded token expires, by the issuer clock."""
        return claims["exp"] - self._clock()

    def verify(self, raw: str) -> Identity:
        """Verify a token and return the identity named by its sub claim."""
        claims = self.decode(raw)
        return Identity(subject=claims["sub"])
