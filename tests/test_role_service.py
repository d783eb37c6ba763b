from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from peopleflow.api.v1.repositories import (
    PermissionRepository,
    RoleRepository,
    UserRoleRepository,
)
from peopleflow.api.v1.schemas import ErrorCode, RoleCreate, RoleUpdate
from peopleflow.api.v1.services import RoleService
from peopleflow.api.v1.services.role_service import ROLE_HAS_USERS, ROLE_NAME_TAKEN, ROLES_UNAVAILABLE


@pytest.fixture
def service():
    return RoleService(
        role_repository=RoleRepository(),
        permission_repository=PermissionRepository(),
        user_role_repository=UserRoleRepository(),
    )


@pytest.mark.asyncio
class TestCreateRole:

    async def test_create_in_tenant(self, db, factory, service):
        acme = await factory.tenant()

        result = await service.create_role(db, acme.id, RoleCreate(name="  Ventas ", description="Equipo comercial"))

        assert result.success
        assert result.data.name == "Ventas"
        assert result.data.tenant_id == acme.id

    async def test_duplicate_name_in_tenant_is_a_conflict(self, db, factory, service):
        acme = await factory.tenant()
        await service.create_role(db, acme.id, RoleCreate(name="Ventas"))

        result = await service.create_role(db, acme.id, RoleCreate(name="Ventas"))

        assert not result.success
        assert result.code == ErrorCode.CONFLICT
        assert result.error == ROLE_NAME_TAKEN

    async def test_same_name_in_other_tenant_is_fine(self, db, factory, service):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        await service.create_role(db, acme.id, RoleCreate(name="Ventas"))

        assert (await service.create_role(db, globex.id, RoleCreate(name="Ventas"))).success

    async def test_reserved_admin_name(self, db, factory, service):
        acme = await factory.tenant()

        result = await service.create_role(db, acme.id, RoleCreate(name="Administrador"))

        assert result.code == ErrorCode.FORBIDDEN

    async def test_store_failure(self):
        roles = Mock(spec=RoleRepository)
        roles.find_by_name_and_tenant = AsyncMock(return_value=None)
        roles.create = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("down")))
        service = RoleService(roles, Mock(spec=PermissionRepository), Mock(spec=UserRoleRepository))

        result = await service.create_role(Mock(), uuid4(), RoleCreate(name="Ventas"))

        assert result.code == ErrorCode.UNAVAILABLE
        assert result.error == ROLES_UNAVAILABLE


@pytest.mark.asyncio
class TestManageRole:

    async def test_role_of_other_tenant_is_not_found(self, db, factory, service):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        role = await factory.role("Ventas", globex)

        assert (await service.get_role(db, acme.id, role.id)).code == ErrorCode.NOT_FOUND
        assert (await service.update_role(db, acme.id, role.id, RoleUpdate(name="Otro"))).code == ErrorCode.NOT_FOUND
        assert (await service.delete_role(db, acme.id, role.id)).code == ErrorCode.NOT_FOUND

    async def test_global_role_is_read_only_inside_tenant(self, db, factory, service):
        acme = await factory.tenant()
        role = await factory.role("Auditor")

        assert (await service.get_role(db, acme.id, role.id)).success
        assert (await service.delete_role(db, acme.id, role.id)).code == ErrorCode.FORBIDDEN

    async def test_update_role(self, db, factory, service):
        acme = await factory.tenant()
        role = await factory.role("Ventas", acme)

        result = await service.update_role(db, acme.id, role.id, RoleUpdate(description="Actualizado"))

        assert result.success
        assert result.data.name == "Ventas"
        assert result.data.description == "Actualizado"

    async def test_rename_onto_existing_name_is_a_conflict(self, db, factory, service):
        acme = await factory.tenant()
        await factory.role("Ventas", acme)
        other = await factory.role("Compras", acme)

        result = await service.update_role(db, acme.id, other.id, RoleUpdate(name="Ventas"))

        assert result.code == ErrorCode.CONFLICT

    async def test_role_in_use_cannot_be_deleted(self, db, factory, service):
        acme = await factory.tenant()
        role = await factory.role("Ventas", acme)
        await factory.assign(await factory.user(), role, acme)

        result = await service.delete_role(db, acme.id, role.id)

        assert result.error == ROLE_HAS_USERS

    async def test_delete_unused_role(self, db, factory, service):
        acme = await factory.tenant()
        role = await factory.role("Ventas", acme, ["leads:acceder"])

        assert (await service.delete_role(db, acme.id, role.id)).success
        assert (await service.get_role(db, acme.id, role.id)).code == ErrorCode.NOT_FOUND


@pytest.mark.asyncio
class TestAssignPermissions:

    async def test_super_admin_permission_is_never_assigned(self, db, factory, service):
        acme = await factory.tenant()
        role = await factory.role("Ventas", acme)
        leads = await factory.permission("leads:acceder")
        root = await factory.permission("super:admin")

        result = await service.assign_permissions(db, acme.id, role.id, [leads.id, root.id])

        assert result.success
        assert [p.name for p in result.data.permissions] == ["leads:acceder"]

    async def test_unknown_permission_is_rejected(self, db, factory, service):
        acme = await factory.tenant()
        role = await factory.role("Ventas", acme, ["leads:acceder"])

        result = await service.assign_permissions(db, acme.id, role.id, [uuid4()])

        assert result.code == ErrorCode.INVALID
        assert [p.name for p in (await service.get_role(db, acme.id, role.id)).data.permissions] == ["leads:acceder"]
