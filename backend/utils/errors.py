"""
Error taxonomy shared by services and routers.

Services raise these; routers turn them into the normalized error envelope.
Store/backend errors are never wrapped and propagate unchanged.
"""


class PortalError(Exception):
    """Base class for errors reported back to the caller."""

    error_code = "error"
    status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Missing field, malformed value or duplicate identity. Never persisted."""

    error_code = "validation_error"
    status = 400


class NotFoundError(PortalError):
    """Operation on an id that does not exist."""

    error_code = "not_found"
    status = 404

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(PortalError):
    """Mutation refused because of the current state (plan in use, invalid transition)."""

    error_code = "conflict"
    status = 409


class AuthenticationError(PortalError):
    error_code = "unauthorized"
    status = 401


class PermissionDeniedError(PortalError):
    error_code = "forbidden"
    status = 403
