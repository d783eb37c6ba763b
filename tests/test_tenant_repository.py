import pytest

from peopleflow.api.v1.repositories import TenantRepository


@pytest.fixture
def repository():
    return TenantRepository()


@pytest.mark.asyncio
class TestTenantRepository:

    async def test_find_by_slug(self, db, factory, repository):
        acme = await factory.tenant("Acme Corp")

        found = await repository.find_by_slug(db, "acme-corp")

        assert found.id == acme.id
        assert await repository.find_by_slug(db, "globex") is None

    async def test_find_by_user_id_lists_member_tenants_once(self, db, factory, repository):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        await factory.tenant("Initech")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme), acme)
        await factory.assign(user, await factory.role("Compras", acme), acme)
        await factory.assign(user, await factory.role("Lector", globex), globex)

        tenants = await repository.find_by_user_id(db, user.id)

        assert [t.name for t in tenants] == ["Acme", "Globex"]

    async def test_global_assignment_names_no_tenant(self, db, factory, repository):
        await factory.tenant()
        root = await factory.super_admin()

        assert await repository.find_by_user_id(db, root.id) == []
