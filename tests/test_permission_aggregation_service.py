from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from peopleflow.api.v1.repositories import UserRoleRepository
from peopleflow.api.v1.services import PermissionAggregationService
from peopleflow.api.v1.services.permission_aggregation_service import NO_ROLE_ASSIGNED, PERMISSIONS_UNAVAILABLE


@pytest.fixture
def repository():
    return Mock(spec=UserRoleRepository)


@pytest.mark.asyncio
class TestPermissionAggregationService:

    async def test_returns_tenant_permissions(self, repository):
        repository.get_user_permissions = AsyncMock(return_value=["usuarios:acceder"])
        service = PermissionAggregationService(repository)
        tenant_id = uuid4()

        result = await service.get_user_permissions(Mock(), uuid4(), tenant_id)

        assert result.success
        assert result.permissions == ["usuarios:acceder"]
        assert repository.get_user_permissions.await_args.args[2] == tenant_id

    async def test_empty_set_reports_missing_role(self, repository):
        repository.get_user_permissions = AsyncMock(return_value=[])
        service = PermissionAggregationService(repository)

        result = await service.get_user_permissions(Mock(), uuid4(), uuid4())

        assert not result.success
        assert result.error == NO_ROLE_ASSIGNED

    async def test_store_failure_yields_generic_error(self, repository):
        repository.get_user_permissions = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
        service = PermissionAggregationService(repository)

        result = await service.get_user_permissions(Mock(), uuid4(), uuid4())

        assert not result.success
        assert result.error == PERMISSIONS_UNAVAILABLE
        assert await service.get_effective_permissions(Mock(), uuid4(), uuid4()) == frozenset()

    async def test_super_admin_lookup_failure_is_false(self, repository):
        repository.is_super_admin = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
        service = PermissionAggregationService(repository)

        assert not await service.is_super_admin(Mock(), uuid4())
