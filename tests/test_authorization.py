"""Tests for the permission evaluators and the write guard."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from stream_registry.core.authorization import (
    SYSTEM_ACTOR,
    Action,
    Actor,
    AllowAllPermissionEvaluator,
    RolePermissionEvaluator,
)
from stream_registry.core.models import Status
from stream_registry.core.services import EntityService
from stream_registry.core.views import View
from stream_registry.errors import AuthorizationDeniedError
from stream_registry.registry import in_memory_registry
from tests.conftest import ZONE, make_zone

WRITES = [Action.CREATE, Action.UPDATE, Action.UPDATE_STATUS, Action.DELETE]


class TestRolePermissionEvaluator:
    @pytest.fixture()
    def evaluator(self) -> RolePermissionEvaluator:
        return RolePermissionEvaluator(admin_roles=["admin"], writer_roles=["writer"])

    @pytest.mark.parametrize("action", list(Action))
    def test_admin_may_do_everything(self, evaluator: RolePermissionEvaluator, action: Action) -> None:
        assert evaluator.has_permission(SYSTEM_ACTOR, make_zone(), action) is True

    @pytest.mark.parametrize("action", WRITES)
    def test_writer_may_write(self, evaluator: RolePermissionEvaluator, actor: Actor, action: Action) -> None:
        assert evaluator.has_permission(actor, make_zone(), action) is True

    @pytest.mark.parametrize("action", WRITES)
    def test_roleless_actor_may_not_write(self, evaluator: RolePermissionEvaluator, reader: Actor, action: Action) -> None:
        assert evaluator.has_permission(reader, make_zone(), action) is False

    def test_everyone_may_read(self, evaluator: RolePermissionEvaluator, reader: Actor) -> None:
        assert evaluator.has_permission(reader, make_zone(), Action.READ) is True

    def test_allow_all(self, reader: Actor) -> None:
        evaluator = AllowAllPermissionEvaluator()

        assert all(evaluator.has_permission(reader, make_zone(), action) for action in Action)


class TestWriteGuard:
    """A denied write raises before any collaborator is touched."""

    @pytest.fixture()
    def deny_all(self) -> MagicMock:
        permissions = MagicMock()
        permissions.has_permission.return_value = False
        return permissions

    @pytest.fixture()
    def service(
        self,
        mock_repository: AsyncMock,
        mock_validator: AsyncMock,
        mock_handler_service: AsyncMock,
        deny_all: MagicMock,
    ) -> EntityService:
        return EntityService(View(mock_repository), mock_repository, mock_validator, mock_handler_service, deny_all)

    @pytest.mark.asyncio()
    async def test_denied_create(
        self,
        service: EntityService,
        reader: Actor,
        mock_repository: AsyncMock,
        mock_validator: AsyncMock,
        mock_handler_service: AsyncMock,
        deny_all: MagicMock,
    ) -> None:
        with pytest.raises(AuthorizationDeniedError) as exc_info:
            await service.create(reader, make_zone())

        assert exc_info.value.actor == "bob"
        assert exc_info.value.action == "CREATE"
        deny_all.has_permission.assert_called_once_with(reader, make_zone(), Action.CREATE)
        mock_repository.find_by_id.assert_not_awaited()
        mock_validator.validate_for_create.assert_not_awaited()
        mock_handler_service.handle_insert.assert_not_awaited()
        mock_repository.save_specification.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_denied_update_status(self, service: EntityService, reader: Actor, mock_repository: AsyncMock) -> None:
        with pytest.raises(AuthorizationDeniedError, match="UPDATE_STATUS"):
            await service.update_status(reader, make_zone(), Status())

        mock_repository.save_status.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_denied_delete(
        self,
        service: EntityService,
        reader: Actor,
        mock_repository: AsyncMock,
        mock_handler_service: AsyncMock,
    ) -> None:
        with pytest.raises(AuthorizationDeniedError):
            await service.delete(reader, make_zone())

        mock_handler_service.handle_delete.assert_not_awaited()
        mock_repository.delete.assert_not_awaited()


class TestRoleEnforcedRegistry:
    @pytest.mark.asyncio()
    async def test_reader_cannot_modify_registry(self, actor: Actor, reader: Actor) -> None:
        registry = in_memory_registry(permissions=RolePermissionEvaluator(["admin"], ["writer"]))
        await registry.zones.create(actor, make_zone())

        with pytest.raises(AuthorizationDeniedError):
            await registry.zones.delete(reader, make_zone())

        assert await registry.zones.get(reader, ZONE) is not None
