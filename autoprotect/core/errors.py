import logging
from typing import Iterable, List, Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from autoprotect.services.lead_status import InvalidStatusTransition
from autoprotect.services.mail import MailDeliveryError
from autoprotect.utils.files import InvalidUpload

logger = logging.getLogger(__name__)


def field_errors(errors: Iterable[dict]) -> List[dict]:
    out = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body",)]
        out.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return out


def error_response(status_code: int, message: str, errors: Optional[Iterable[dict]] = None) -> JSONResponse:
    content = {"message": message}
    if errors is not None:
        content["errors"] = field_errors(errors)
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request data", exc.errors())

    @app.exception_handler(StarletteHTTPException)
    async def http_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(InvalidStatusTransition)
    async def transition_handler(request: Request, exc: InvalidStatusTransition):
        return error_response(409, str(exc))

    @app.exception_handler(MailDeliveryError)
    async def mail_handler(request: Request, exc: MailDeliveryError):
        return error_response(502, "Failed to send email")

    @app.exception_handler(InvalidUpload)
    async def upload_handler(request: Request, exc: InvalidUpload):
        return error_response(400, str(exc))
