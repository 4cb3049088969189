from fastapi import APIRouter, Depends, File, Query, UploadFile

from image_moderation_backend.core.config_injections import get_orchestrator, get_quality_inspector
from image_moderation_backend.services.moderate_service import ModerateService
from image_moderation_backend.services.quality import QualityInspector
from image_moderation_backend.services.upload_orchestrator import UploadOrchestrator

routers = APIRouter(prefix="/moderate", tags=["moderate"])

@routers.post("")
async def moderate_image(
    input_img: UploadFile = File(..., description="Image is required"),
    include_image: bool = Query(True, description="Return the watermarked image (base64) when approved"),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
    inspector: QualityInspector = Depends(get_quality_inspector),
):
    """Moderate an uploaded listing photo and watermark it when it is approved."""
    moderate_service: ModerateService = ModerateService()
    return await moderate_service.run_moderate(
        input_img=input_img, include_image=include_image, orchestrator=orchestrator, inspector=inspector,
    )
