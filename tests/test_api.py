from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from peopleflow.core.config import settings
from peopleflow.db.session import get_session
from peopleflow.main import app

API = settings.API_V1_STR


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client
    app.dependency_overrides.clear()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
class TestAuthentication:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    async def test_wrong_api_key(self, client):
        response = await client.get(f"{API}/permisos/mis-permisos", headers={"X-API-Key": "nope"})
        assert response.status_code == 403

    async def test_no_session_is_unauthorized(self, client):
        response = await client.get(f"{API}/permisos/mis-permisos")
        assert response.status_code == 401

    async def test_expired_session_is_unauthorized(self, client, factory):
        user = await factory.user()
        await factory.session(user, token="expired", expires_in=timedelta(hours=-1))

        response = await client.get(f"{API}/permisos/mis-permisos", headers=bearer("expired"))
        assert response.status_code == 401

    async def test_check_without_session_is_false(self, client):
        response = await client.post(f"{API}/permisos/verificar", json={"permissions": ["usuarios:acceder"]})

        assert response.status_code == 200
        assert response.json()["data"] == {"allowed": False}


@pytest.mark.asyncio
class TestPermissionEndpoints:

    async def test_my_permissions_in_active_tenant(self, client, factory):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        user = await factory.user()
        await factory.assign(user, await factory.role("Gerente", acme, ["usuarios:gestionar"]), acme)
        await factory.assign(user, await factory.role("Lector", globex, ["leads:acceder"]), globex)
        await factory.session(user, tenant=acme)

        response = await client.get(f"{API}/permisos/mis-permisos", headers=bearer("token-ana"))

        data = response.json()["data"]
        assert data["permissions"] == ["usuarios:gestionar"]
        assert data["resources"] == ["usuarios"]
        assert data["tenant_id"] == str(acme.id)

    async def test_check_and_default_route(self, client, factory):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Gerente", acme, ["usuarios:gestionar"]), acme)
        await factory.session(user, tenant=acme)

        check = await client.post(
            f"{API}/permisos/verificar",
            json={"permissions": ["usuarios:crear", "roles:crear"], "mode": "any"},
            headers=bearer("token-ana"),
        )
        route = await client.get(f"{API}/permisos/ruta-por-defecto", headers=bearer("token-ana"))
        access = await client.get(
            f"{API}/permisos/acceso-ruta", params={"path": "/finanzas/ingresos"}, headers=bearer("token-ana"))

        assert check.json()["data"] == {"allowed": True}
        assert route.json()["data"] == {"route": "/admin/usuarios"}
        assert access.json()["data"]["allowed"] is False
        assert access.json()["data"]["required_permission"] == "ingresos:acceder"


@pytest.mark.asyncio
class TestGuardedEndpoints:

    async def test_tenant_bound_session_required(self, client, factory):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Gerente", acme, ["roles:gestionar"]), acme)
        await factory.session(user)

        response = await client.get(f"{API}/roles", headers=bearer("token-ana"))
        assert response.status_code == 403

    async def test_missing_permission_is_forbidden(self, client, factory):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Lector", acme, ["roles:acceder"]), acme)
        await factory.session(user, tenant=acme)

        response = await client.post(f"{API}/roles", json={"name": "Ventas"}, headers=bearer("token-ana"))
        assert response.status_code == 403

    async def test_create_role_and_conflict(self, client, factory):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Gerente", acme, ["roles:gestionar"]), acme)
        await factory.session(user, tenant=acme)

        created = await client.post(f"{API}/roles", json={"name": "Ventas"}, headers=bearer("token-ana"))
        duplicate = await client.post(f"{API}/roles", json={"name": "Ventas"}, headers=bearer("token-ana"))

        assert created.status_code == 201
        assert created.json()["data"]["tenant_id"] == str(acme.id)
        assert duplicate.status_code == 409

    async def test_create_tenant_requires_super_admin(self, client, factory):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Gerente", acme, ["usuarios:gestionar"]), acme)
        await factory.session(user, tenant=acme)
        root = await factory.super_admin()
        await factory.session(root, token="token-root")

        denied = await client.post(f"{API}/tenants", json={"name": "Initech"}, headers=bearer("token-ana"))
        created = await client.post(f"{API}/tenants", json={"name": "Initech"}, headers=bearer("token-root"))

        assert denied.status_code == 403
        assert created.status_code == 201
        assert created.json()["data"]["slug"] == "initech"


@pytest.mark.asyncio
class TestTenantSwitch:

    async def test_switch_to_foreign_tenant_is_rejected(self, client, factory):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme, ["leads:acceder"]), acme)
        await factory.session(user, tenant=acme)

        response = await client.post(
            f"{API}/tenants/cambiar", json={"tenant_id": str(globex.id)}, headers=bearer("token-ana"))
        current = await client.get(f"{API}/tenants/actual", headers=bearer("token-ana"))

        assert response.status_code == 403
        assert response.json()["error"] == "No tienes acceso a este tenant"
        assert current.json()["data"]["id"] == str(acme.id)

    async def test_switch_and_resolve(self, client, factory):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme, ["leads:acceder"]), acme)
        await factory.assign(user, await factory.role("Finanzas", globex, ["ingresos:acceder"]), globex)
        await factory.session(user)

        resolved = await client.post(f"{API}/tenants/resolver", headers=bearer("token-ana"))
        switched = await client.post(
            f"{API}/tenants/cambiar", json={"tenant_id": str(globex.id)}, headers=bearer("token-ana"))
        permissions = await client.get(f"{API}/permisos/mis-permisos", headers=bearer("token-ana"))

        assert resolved.json()["data"]["state"] == "multi_tenant_unselected"
        assert switched.status_code == 200
        assert switched.json()["data"]["redirect_to"] == "/finanzas/ingresos"
        assert permissions.json()["data"]["permissions"] == ["ingresos:acceder"]
