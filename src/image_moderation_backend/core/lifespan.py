from contextlib import asynccontextmanager
from fastapi import FastAPI

from image_moderation_backend.core.settings import settings
from image_moderation_backend.services.quality import QualityInspector
from image_moderation_backend.services.upload_orchestrator import OrchestratorFactory
from image_moderation_backend.utils.logger import configure_logging, get_logger

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    app.state.orchestrator = OrchestratorFactory.load_default_orchestrator()
    app.state.quality_inspector = QualityInspector()
    get_logger(__name__).info("moderation service started", analyzer=app.state.orchestrator.analyzer.name)
    yield # app runs while paused here
