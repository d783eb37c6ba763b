from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from peopleflow.api.v1.repositories import (
    SessionRepository,
    TenantRepository,
    UserRoleRepository,
)
from peopleflow.api.v1.schemas import AuthContext, SessionInfo, TenantBindingState, TenantCreate, User
from peopleflow.api.v1.services import TenantService
from peopleflow.api.v1.services.tenant_service import TENANT_ACCESS_DENIED, TENANT_ALREADY_EXISTS


@pytest.fixture
def service():
    return TenantService(
        user_role_repository=UserRoleRepository(),
        tenant_repository=TenantRepository(),
        session_repository=SessionRepository(),
    )


def auth_for(user, session) -> AuthContext:
    return AuthContext(user=User.model_validate(user), session=SessionInfo.model_validate(session))


async def active_tenant_of(session_factory, token):
    """Read the binding through a fresh session so cached state cannot hide the stored value."""
    async with session_factory() as fresh:
        stored = await SessionRepository().find_by_token(fresh, token)
        return stored.active_tenant_id


@pytest.mark.asyncio
class TestSwitchActiveTenant:

    async def test_switch_to_member_tenant(self, db, session_factory, factory, service):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme, ["leads:acceder"]), acme)
        session = await factory.session(user)

        result = await service.switch_active_tenant(db, session.token, user.id, acme.id)

        assert result.success
        assert result.active_tenant_id == acme.id
        assert result.redirect_to == "/generacion-de-leads/leads"
        assert await active_tenant_of(session_factory, session.token) == acme.id

    async def test_rejected_switch_leaves_session_unchanged(self, db, session_factory, factory, service):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme), acme)
        session = await factory.session(user, tenant=acme)

        result = await service.switch_active_tenant(db, session.token, user.id, globex.id)

        assert not result.success
        assert result.error == TENANT_ACCESS_DENIED
        assert await active_tenant_of(session_factory, session.token) == acme.id

    async def test_switch_to_none_unbinds(self, db, session_factory, factory, service):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme, ["leads:acceder"]), acme)
        session = await factory.session(user, tenant=acme)

        result = await service.switch_active_tenant(db, session.token, user.id, None)

        assert result.success
        assert result.active_tenant_id is None
        assert result.redirect_to == "/access-denied"
        assert await active_tenant_of(session_factory, session.token) is None

    async def test_super_admin_may_enter_any_existing_tenant(self, db, factory, service):
        acme = await factory.tenant()
        root = await factory.super_admin()
        session = await factory.session(root, token="token-root")

        result = await service.switch_active_tenant(db, session.token, root.id, acme.id)
        assert result.success
        assert result.redirect_to == "/super-admin"

        missing = await service.switch_active_tenant(db, session.token, root.id, uuid4())
        assert not missing.success

    async def test_store_failure_is_reported_not_raised(self):
        user_roles = Mock(spec=UserRoleRepository)
        user_roles.is_super_admin = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
        sessions = Mock(spec=SessionRepository)
        sessions.update_active_tenant = AsyncMock()
        service = TenantService(user_roles, Mock(spec=TenantRepository), sessions)

        result = await service.switch_active_tenant(Mock(), "token", uuid4(), uuid4())

        assert not result.success
        assert result.error
        sessions.update_active_tenant.assert_not_awaited()


@pytest.mark.asyncio
class TestResolveSessionTenant:

    async def test_no_tenants_is_denied(self, db, factory, service):
        user = await factory.user()
        session = await factory.session(user)

        resolution = await service.resolve_session_tenant(db, auth_for(user, session))

        assert resolution.state == TenantBindingState.DENIED
        assert resolution.redirect_to == "/access-denied"

    async def test_single_tenant_is_bound_automatically(self, db, session_factory, factory, service):
        acme = await factory.tenant()
        user = await factory.user()
        await factory.assign(user, await factory.role("Gerente", acme, ["usuarios:acceder"]), acme)
        session = await factory.session(user)

        resolution = await service.resolve_session_tenant(db, auth_for(user, session))

        assert resolution.state == TenantBindingState.SINGLE_TENANT_AUTO_BOUND
        assert resolution.active_tenant_id == acme.id
        assert resolution.redirect_to == "/admin/usuarios"
        assert await active_tenant_of(session_factory, session.token) == acme.id

    async def test_several_tenants_require_selection(self, db, session_factory, factory, service):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme), acme)
        await factory.assign(user, await factory.role("Ventas", globex), globex)
        session = await factory.session(user)

        resolution = await service.resolve_session_tenant(db, auth_for(user, session))

        assert resolution.state == TenantBindingState.MULTI_TENANT_UNSELECTED
        assert resolution.redirect_to == "/select-tenant"
        assert len(resolution.tenants) == 2
        assert await active_tenant_of(session_factory, session.token) is None

    async def test_valid_binding_is_kept(self, db, factory, service):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme, ["leads:acceder"]), acme)
        await factory.assign(user, await factory.role("Lector", globex), globex)
        session = await factory.session(user, tenant=acme)

        resolution = await service.resolve_session_tenant(db, auth_for(user, session))

        assert resolution.state == TenantBindingState.BOUND
        assert resolution.active_tenant_id == acme.id

    async def test_stale_binding_is_cleared(self, db, session_factory, factory, service):
        acme = await factory.tenant("Acme")
        globex = await factory.tenant("Globex")
        other = await factory.tenant("Other")
        user = await factory.user()
        await factory.assign(user, await factory.role("Ventas", acme), acme)
        await factory.assign(user, await factory.role("Lector", globex), globex)
        session = await factory.session(user, tenant=other)

        resolution = await service.resolve_session_tenant(db, auth_for(user, session))

        assert resolution.state == TenantBindingState.MULTI_TENANT_UNSELECTED
        assert await active_tenant_of(session_factory, session.token) is None

    async def test_super_admin_goes_to_super_admin_area(self, db, factory, service):
        root = await factory.super_admin()
        session = await factory.session(root, token="token-root")

        resolution = await service.resolve_session_tenant(db, auth_for(root, session))

        assert resolution.is_super_admin
        assert resolution.state == TenantBindingState.NO_TENANT
        assert resolution.redirect_to == "/super-admin"


@pytest.mark.asyncio
class TestTenantQueries:

    async def test_can_access_tenant_is_membership_only(self, db, factory, service):
        acme = await factory.tenant()
        root = await factory.super_admin()

        assert not await service.can_access_tenant(db, root.id, acme.id)

    async def test_current_tenant(self, db, factory, service):
        acme = await factory.tenant()
        user = await factory.user()
        bound = await factory.session(user, token="bound", tenant=acme)
        unbound = await factory.session(user, token="unbound")

        current = await service.get_current_tenant(db, bound.token)
        assert current.success
        assert current.tenant.slug == "acme"

        assert not (await service.get_current_tenant(db, unbound.token)).success

    async def test_create_tenant_derives_slug_and_rejects_duplicates(self, db, service):
        created = await service.create_tenant(db, TenantCreate(name="Nueva Empresa"))
        assert created.success
        assert created.data.slug == "nueva-empresa"

        duplicate = await service.create_tenant(db, TenantCreate(name="Nueva Empresa"))
        assert not duplicate.success
        assert duplicate.error == TENANT_ALREADY_EXISTS
