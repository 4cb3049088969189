from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_CONTENT, HTTP_500_INTERNAL_SERVER_ERROR, HTTP_200_OK

from image_moderation_backend.response_handlers.json_response_handler import Response_ERROR
from image_moderation_backend.utils.logger import get_logger

logger = get_logger(__name__)

# exception handler: wrapper matches the general ExceptionHandler signature
async def custom_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, RequestValidationError):
        return await __validation_exception(request, exc)

    # fallthrough: anything else → 500 (generic)
    return await __generic_exception_handler(request, exc)

async def __validation_exception(request: Request, exc: RequestValidationError):
    body = Response_ERROR(
        status_code=HTTP_422_UNPROCESSABLE_CONTENT,
        message="Validation error occurred",
        detail=jsonable_encoder(exc.errors()),
    )
    return JSONResponse(status_code=HTTP_200_OK, content=body.model_dump())

async def __generic_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled exception", path=request.url.path, error=str(exc), exc_info=exc)
    body = Response_ERROR(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        message="Internal server error",
        detail=str(exc),
    )
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())
