import pytest

from peopleflow.api.v1.repositories import (
    IPermissionRepository,
    IUserRoleRepository,
    PermissionRepository,
    UserRoleRepository,
)
from peopleflow.api.v1.schemas import PermissionFilter


@pytest.fixture
def repository():
    return PermissionRepository()


def test_repositories_satisfy_their_ports():
    assert isinstance(PermissionRepository(), IPermissionRepository)
    assert isinstance(UserRoleRepository(), IUserRoleRepository)


@pytest.mark.asyncio
class TestPermissionRepository:

    async def test_find_by_name_and_modular_flag(self, db, factory, repository):
        await factory.permission("leads:gestionar")

        found = await repository.find_by_name(db, "leads:gestionar")

        assert found.resource == "leads"
        assert found.is_modular
        assert await repository.find_by_name(db, "leads:borrar") is None

    async def test_find_by_role_id(self, db, factory, repository):
        acme = await factory.tenant()
        role = await factory.role("Ventas", acme, ["leads:crear", "leads:acceder"])
        await factory.permission("roles:acceder")

        names = [p.name for p in await repository.find_by_role_id(db, role.id)]

        assert names == ["leads:acceder", "leads:crear"]

    async def test_find_all_sorted_by_resource_then_action(self, db, factory, repository):
        for name in ["usuarios:crear", "leads:crear", "leads:acceder"]:
            await factory.permission(name)

        names = [p.name for p in await repository.find_all(db)]

        assert names == ["leads:acceder", "leads:crear", "usuarios:crear"]

    async def test_filtered_listing(self, db, factory, repository):
        for name in ["usuarios:crear", "leads:crear", "leads:acceder"]:
            await factory.permission(name)

        page = await repository.get_filtered_items(db, PermissionFilter(resource="leads"))

        assert page["total"] == 2
        assert [p.name for p in page["items"]] == ["leads:acceder", "leads:crear"]
