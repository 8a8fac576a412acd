from fastapi import APIRouter

from token_installer.presentation.routers.oauth import router as oauth_router
from token_installer.presentation.routes.health import router as health_router

api = APIRouter()

# Shopify calls back on fixed paths, so no version prefix here
routers = (health_router, oauth_router)
for router in routers:
    api.include_router(router)
