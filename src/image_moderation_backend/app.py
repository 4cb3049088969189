from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from image_moderation_backend.core.settings import settings
from image_moderation_backend.core.lifespan import lifespan
from image_moderation_backend.routers.index_routes import router as api_router
from image_moderation_backend.response_handlers.json_error_handler import custom_exception_handler

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS (meant for dev/testing; adjust in production as needed)
origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount a single aggregated router
app.include_router(api_router)

# Global exception handlers
app.add_exception_handler(RequestValidationError, custom_exception_handler)
app.add_exception_handler(Exception, custom_exception_handler)
