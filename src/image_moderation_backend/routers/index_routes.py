from fastapi import APIRouter
from image_moderation_backend.routers import config_routes, moderate_routes

api_v1 = APIRouter(prefix="")
api_v1.include_router(config_routes.routers)
api_v1.include_router(moderate_routes.routers)

router = APIRouter()
router.include_router(api_v1)
