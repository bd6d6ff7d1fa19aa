"""Authorization primitives for the lifecycle engine.

Write operations are guarded by the requires_permission decorator, which
asks the service's permission evaluator before the operation body runs.
Reads are filtered by the View: an entity the actor may not READ is treated
as absent, never surfaced as an error.
"""

import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from stream_registry.errors import AuthorizationDeniedError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class Action(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    UPDATE_STATUS = "UPDATE_STATUS"
    DELETE = "DELETE"
    READ = "READ"


@dataclass(frozen=True)
class Actor:
    """The principal on whose behalf an operation runs.

    Attributes:
        name: Principal name, used in audit logs and error messages.
        roles: Roles granted to the principal.
    """

    name: str
    roles: frozenset[str] = field(default_factory=frozenset)


SYSTEM_ACTOR = Actor(name="system", roles=frozenset({"admin"}))


class AllowAllPermissionEvaluator:
    """Permission evaluator that allows every action."""

    def has_permission(self, actor: Actor, entity: Any, action: Action) -> bool:
        return True


class RolePermissionEvaluator:
    """Role-based evaluator.

    READ is always allowed. Every write action requires one of the writer
    roles; admin roles are allowed everything.

    Args:
        admin_roles: Roles allowed to perform any action.
        writer_roles: Roles allowed to perform write actions.
    """

    def __init__(self, admin_roles: Iterable[str], writer_roles: Iterable[str]) -> None:
        self._admin_roles = frozenset(admin_roles)
        self._writer_roles = frozenset(writer_roles)

    def has_permission(self, actor: Actor, entity: Any, action: Action) -> bool:
        if actor.roles & self._admin_roles:
            return True
        if action is Action.READ:
            return True
        return bool(actor.roles & self._writer_roles)


def requires_permission(action: Action) -> Callable[[F], F]:
    """Guard an entity service write operation with a permission pre-check.

    The decorated coroutine must take ``(self, actor, entity, ...)`` and the
    owning service must expose ``_permissions`` (an IPermissionEvaluator).

    Args:
        action: The action checked against the entity argument.

    Returns:
        A decorator that raises AuthorizationDeniedError before the body runs
        when the evaluator denies the action.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: Any, actor: Actor, entity: Any, *args: Any, **kwargs: Any) -> Any:
            if not self._permissions.has_permission(actor, entity, action):
                logger.warning(
                    "Permission denied",
                    extra={"actor": actor.name, "action": action.value, "kind": entity.kind.value},
                )
                raise AuthorizationDeniedError(actor.name, action.value, f"{entity.kind.value} {entity.key!r}")
            return await func(self, actor, entity, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
