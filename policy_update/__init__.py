"""
NCFS Policy Update Service

Issues short-lived bearer tokens to the operator and applies validated
content-disarm policies to a Kubernetes ConfigMap.

Architecture:
- Each module is self-contained with clear interfaces
- Collaborators are built once in main.create_app() and injected
- No module knows the internals of another

Modules:
- auth: Token issuing, credential strategies, verification cache, gate
- policy: Request validation and the ConfigMap-backed store
- middleware: Cross-origin headers and pre-flight handling
"""

__version__ = "1.0.0"
