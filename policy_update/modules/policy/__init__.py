"""
Policy Module - Black Box Interface

Purpose: Validate policy update requests and persist them
Interface: PolicyValidator.validate(), PolicyStore.update()
Hidden: JSON parsing rules, ConfigMap layout, client acquisition

The store only depends on the DocumentClient protocol, so the Kubernetes
adapter can be swapped for any key/value document store.
"""

from .models import Policy
from .store import ConfigDocument, DocumentClient, PolicyStore
from .validator import MAX_BODY_BYTES, PolicyValidator, read_limited_body

__all__ = [
    "ConfigDocument",
    "DocumentClient",
    "MAX_BODY_BYTES",
    "Policy",
    "PolicyStore",
    "PolicyValidator",
    "read_limited_body",
]
