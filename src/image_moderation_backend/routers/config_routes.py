from fastapi import APIRouter, Depends, Request
from image_moderation_backend.core.config_injections import get_orchestrator
from image_moderation_backend.request_schemas.config_request import ThresholdUpdateRequestBody
from image_moderation_backend.services.config_service import ConfigService
from image_moderation_backend.services.upload_orchestrator import UploadOrchestrator

routers = APIRouter(prefix="/config", tags=["config"])

@routers.get("/thresholds")
def read(orchestrator: UploadOrchestrator = Depends(get_orchestrator)):
    config_service: ConfigService = ConfigService()
    return config_service.current_config(orchestrator)

@routers.put("/thresholds")
def update(
    payload: ThresholdUpdateRequestBody,
    request: Request,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
):
    config_service: ConfigService = ConfigService()
    updated, response = config_service.config_update(orchestrator, input_data=payload)
    if updated is not None:
        request.app.state.orchestrator = updated
    return response
