"""Typed error hierarchy for the stream registry.

Every error raised by the governance engine derives from RegistryError so
callers can catch the whole family in one place. Storage backend failures
(e.g. sqlalchemy.exc.SQLAlchemyError) are never wrapped; they propagate
unchanged and no operation retries them.

Errors:
- AlreadyExistsError     - create on a live key
- NotFoundError          - update on a key that does not exist
- ValidationError        - validator or handler rejection
- ResourceInUseError     - deletion blocked by a dependent entity
- AuthorizationDeniedError - write rejected by the permission evaluator
"""

from typing import Any


class RegistryError(Exception):
    """Base class for all stream registry errors.

    Args:
        message: Human-readable description of the failure.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for logging or a transport layer.

        Returns:
            Dict with the error type and message plus subclass details.
        """
        return {"error": type(self).__name__, "message": self.message}


class AlreadyExistsError(RegistryError):
    """Raised when creating an entity whose key is already live."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(f"Can't create {resource} {resource_id} because it already exists")
        self.resource = resource
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "resource": self.resource, "resource_id": self.resource_id}


class NotFoundError(RegistryError):
    """Raised when updating an entity whose key is not live."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(f"Can't update {resource} {resource_id} because it doesn't exist")
        self.resource = resource
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "resource": self.resource, "resource_id": self.resource_id}


class ValidationError(RegistryError):
    """Raised when a validator or handler rejects a desired entity.

    Args:
        message: The rejection reason, surfaced verbatim to the caller.
        field: Optional name of the offending field.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def reason(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "field": self.field}


class ResourceInUseError(RegistryError):
    """Raised when a shared resource still has at least one dependent.

    Carries enough detail for the caller to resolve the conflict: the kind of
    the first dependent found and its key. Deletion is never cascaded.

    Args:
        resource: Kind of the resource being deleted (e.g. "zone").
        resource_id: Printable key of the resource.
        dependent_kind: Kind of the blocking dependent (e.g. "infrastructure").
        dependent_key: Key of the blocking dependent.
    """

    def __init__(self, resource: str, resource_id: str, dependent_kind: str, dependent_key: Any) -> None:
        super().__init__(f"{resource} {resource_id} is used in {dependent_kind}: {dependent_key!r}")
        self.resource = resource
        self.resource_id = resource_id
        self.dependent_kind = dependent_kind
        self.dependent_key = dependent_key

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "resource": self.resource,
            "resource_id": self.resource_id,
            "dependent_kind": self.dependent_kind,
            "dependent_key": repr(self.dependent_key),
        }


class AuthorizationDeniedError(RegistryError):
    """Raised when the permission evaluator denies a write operation."""

    def __init__(self, actor: str, action: str, resource: str) -> None:
        super().__init__(f"{actor} is not permitted to {action} {resource}")
        self.actor = actor
        self.action = action
        self.resource = resource

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "actor": self.actor, "action": self.action}
