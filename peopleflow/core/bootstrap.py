import logging

from fastapi import FastAPI

from peopleflow.api.v1.routers import permissions, roles, tenants, users
from peopleflow.core.config import settings

logger = logging.getLogger(__name__)


def bootstrap_app(app: FastAPI) -> None:
    prefix = settings.API_V1_STR

    app.include_router(permissions.router, prefix=prefix, tags=["Permisos"])
    app.include_router(tenants.router, prefix=prefix, tags=["Tenants"])
    app.include_router(roles.router, prefix=prefix, tags=["Roles"])
    app.include_router(users.router, prefix=prefix, tags=["Usuarios"])
    logger.info("Routers registered under %s", prefix)
