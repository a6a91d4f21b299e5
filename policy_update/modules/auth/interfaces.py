"""Authentication interfaces following Black Box Design principles."""
from dataclasses import dataclass, field
from typing import Mapping, Protocol, Union


@dataclass(frozen=True)
class Identity:
    """Authenticated caller. Lives for one request."""
    subject: str
    extensions: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UsernamePassword:
    """Credential presented through HTTP Basic."""
    username: str
    password: str = field(repr=False)

    scheme = "basic"


@dataclass(frozen=True)
class BearerToken:
    """Credential presented through HTTP Bearer."""
    raw: str = field(repr=False)

    scheme = "bearer"


Credential = Union[UsernamePassword, BearerToken]


class CredentialVerifier(Protocol):
    """Protocol for one credential verification strategy."""

    scheme: str

    def verify(self, credential: Credential) -> Identity:
        """
        Verify a credential.

        Returns:
            Identity of the caller

        Raises:
            AuthenticationFailure: If the credential is not valid
        """
        ...
