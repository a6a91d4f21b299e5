"""
Typed failures raised by the service modules.

Every failure carries the single HTTP status it maps to and the message
that is safe to send to the client. The HTTP layer turns each into exactly
one response; detail that must not leak stays in the log.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for failures that map onto an HTTP response."""

    status_code: int = 500
    public_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)


class AuthenticationFailure(ServiceError):
    """Bad credentials, bad/expired/mis-signed token or missing credential.

    The message is the reason, which is only logged. The client always
    sees the generic ``Unauthorized``.
    """

    status_code = 401
    public_message = "Unauthorized"

    def __init__(self, reason: str = "invalid credentials", metric_status: str = "user_error"):
        super().__init__(reason)
        self.reason = reason
        self.metric_status = metric_status
        # WWW-Authenticate value, set by the route that rejected the request
        self.challenge: Optional[str] = None


class ValidationFailure(ServiceError):
    """The request does not describe a valid policy.

    The message names the offending field or header and is returned to the
    client as-is, since it only describes the client's own input.
    """

    status_code = 400
    public_message = "Bad Request"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)
        if message is not None:
            self.public_message = message


class PayloadTooLarge(ValidationFailure):
    status_code = 413
    public_message = "Request body must not be larger than 1MB"


class UnsupportedMediaType(ValidationFailure):
    status_code = 415
    public_message = "Content-Type header is not application/json"


class InfrastructureFailure(ServiceError):
    """A dependency failed. The message is logged, the client gets public_message."""

    status_code = 500
    metric_status = "error"


class StoreClientError(InfrastructureFailure):
    public_message = "Something went wrong getting K8 Client."
    metric_status = "k8s_client_error"


class StoreUpdateError(InfrastructureFailure):
    public_message = "Something went wrong when updating the config map."
    metric_status = "configmap_error"


class SigningFailure(InfrastructureFailure):
    public_message = "Something went wrong when creating the token."
    metric_status = "signing_error"
