from pydantic import ValidationError
from starlette.status import HTTP_200_OK, HTTP_422_UNPROCESSABLE_CONTENT

from image_moderation_backend.request_schemas.config_request import ThresholdUpdateRequestBody
from image_moderation_backend.response_handlers.json_response_handler import Response_SUCCESS
from image_moderation_backend.services.decision_engine import ModerationDecisionEngine, ThresholdConfig
from image_moderation_backend.services.upload_orchestrator import UploadOrchestrator
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)

class ConfigService:
    def current_config(self, orchestrator: UploadOrchestrator):
        return Response_SUCCESS(
            status_code=HTTP_200_OK,
            message="Current moderation configuration",
            data={
                "thresholds": orchestrator.decision_engine.config,
                "watermark": orchestrator.watermark_engine.spec,
                "analyzer": orchestrator.analyzer.name,
            },
        )

    def config_update(self, orchestrator: UploadOrchestrator, input_data: ThresholdUpdateRequestBody):
        """Build a new orchestrator with the merged thresholds; the caller swaps it in."""
        current = orchestrator.decision_engine.config.model_dump()
        current["borderline_bands"] = {
            k: [band["lower"], band["upper"]] for k, band in current["borderline_bands"].items()
        }
        changes = input_data.model_dump(exclude_none=True)
        for key in ("unsafe_thresholds", "borderline_bands"):
            if key in changes:
                current[key] = {**current[key], **changes.pop(key)}
        current.update(changes)

        try:
            config = ThresholdConfig(**current)
        except ValidationError as exc:
            return None, Response_SUCCESS(
                status_code=HTTP_422_UNPROCESSABLE_CONTENT,
                message="Invalid threshold configuration",
                data=exc.errors(include_url=False, include_context=False),
            )

        updated = UploadOrchestrator(
            analyzer=orchestrator.analyzer,
            decision_engine=ModerationDecisionEngine(config),
            watermark_engine=orchestrator.watermark_engine,
        )
        logger.info("moderation thresholds updated", changed=sorted(input_data.model_dump(exclude_none=True)))
        return updated, Response_SUCCESS(
            status_code=HTTP_200_OK, message="Config setting has been updated successfully", data=config
        )
