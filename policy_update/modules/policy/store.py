"""
Policy store: writes a validated policy into an external configuration document.

The update is a read-modify-write of one named document in one namespace:
fetch it, overwrite the policy data key, write it back. A client is acquired
per call. There is no retry loop; a concurrent writer may be overwritten or
cause a conflict, which surfaces as an update failure.

The whole session (acquire, read, write, close) runs in one worker thread.
The deadline is enforced by the client on each request, so a failure is
only reported once that thread has finished with the document.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from ...errors import StoreClientError, StoreUpdateError
from .models import Policy

logger = logging.getLogger(__name__)


@dataclass
class ConfigDocument:
    """A named, namespaced key/value document."""
    namespace: str
    name: str
    data: Dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None
    raw: Any = None


class DocumentClient(Protocol):
    """Session with the external configuration store."""

    def read_document(self, namespace: str, name: str, timeout: Optional[float] = None) -> ConfigDocument:
        """Fetch a document. Raises if it does not exist or ``timeout`` passes."""
        ...

    def write_document(self, document: ConfigDocument, timeout: Optional[float] = None) -> None:
        """Replace a document wholesale. Raises if ``timeout`` passes."""
        ...

    def close(self) -> None:
        ...


class PolicyStore:
    """Applies policies to the external store."""

    def __init__(
        self,
        client_factory: Callable[[], DocumentClient],
        data_key: str = "policy",
        timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize policy store.

        Args:
            client_factory: Called once per update to open a store session
            data_key: Key inside the document that holds the serialized policy
            timeout_seconds: Deadline for the whole read-modify-write
            clock: Monotonic clock the deadline is measured against
        """
        self._client_factory = client_factory
        self.data_key = data_key
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    async def update(self, namespace: str, name: str, policy: Policy) -> ConfigDocument:
        """
        Overwrite the policy held in ``namespace/name``.

        Returns:
            The document as written

        Raises:
            StoreClientError: A store session could not be established in time
            StoreUpdateError: The read-modify-write failed or timed out
        """
        return await asyncio.to_thread(self._apply, namespace, name, policy)

    def _apply(self, namespace: str, name: str, policy: Policy) -> ConfigDocument:
        deadline = self._clock() + self.timeout_seconds
        try:
            client = self._client_factory()
        except Exception as e:
            raise StoreClientError(f"Unable to get client: {e}") from e

        try:
            return self._read_modify_write(client, deadline, namespace, name, policy)
        except (StoreClientError, StoreUpdateError):
            raise
        except Exception as e:
            raise StoreUpdateError(f"Unable to update policy in {namespace}/{name}: {e}") from e
        finally:
            client.close()

    def _remaining(self, deadline: float) -> Optional[float]:
        """Seconds left before ``deadline``, or None once it has passed."""
        left = deadline - self._clock()
        return left if left > 0 else None

    def _read_modify_write(
        self,
        client: DocumentClient,
        deadline: float,
        namespace: str,
        name: str,
        policy: Policy,
    ) -> ConfigDocument:
        timeout = self._remaining(deadline)
        if timeout is None:
            raise StoreClientError("Timed out acquiring store client")
        document = client.read_document(namespace, name, timeout=timeout)

        timeout = self._remaining(deadline)
        if timeout is None:
            raise StoreUpdateError(
                f"Timed out updating {namespace}/{name} after {self.timeout_seconds}s"
            )

        document.data = dict(document.data or {})
        document.data[self.data_key] = policy.to_document()
        client.write_document(document, timeout=timeout)
        logger.info(f"Policy written to {namespace}/{name} key {self.data_key}")
        return document
