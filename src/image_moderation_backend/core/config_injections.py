from fastapi import Request

from image_moderation_backend.services.quality import QualityInspector
from image_moderation_backend.services.upload_orchestrator import UploadOrchestrator

def get_orchestrator(request: Request) -> UploadOrchestrator:
    return request.app.state.orchestrator

def get_quality_inspector(request: Request) -> QualityInspector:
    return request.app.state.quality_inspector
