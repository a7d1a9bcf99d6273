"""Error taxonomy for the request lifecycle and its HTTP mapping."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from requestline.core.config import settings
from requestline.core.templates import templates

logger = logging.getLogger(__name__)


class RequestLineError(Exception):
    """Base class for every error the core reports to a caller."""

    status_code: int = 500
    public_detail: str = "Something went wrong, please try again later."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_detail)
        self.message = message or self.public_detail


class NotFound(RequestLineError):
    status_code = 404
    public_detail = "Song request not found"

    def __init__(self, request_id: int):
        super().__init__(f"Song request {request_id} not found")
        self.request_id = request_id


class InvalidTransition(RequestLineError):
    status_code = 409
    public_detail = "Song request cannot move to that status"

    def __init__(self, request_id: int, current: object, target: object):
        super().__init__(f"Song request {request_id} cannot go from {current} to {target}")
        self.request_id = request_id
        self.current = current
        self.target = target


class InvalidSubmission(RequestLineError):
    status_code = 400
    public_detail = "Title and performer are required"


class InvariantViolation(RequestLineError):
    status_code = 500


class StoreUnavailable(RequestLineError):
    status_code = 503


class Unauthorized(RequestLineError):
    status_code = 401
    public_detail = "Operator sign-in required"


def _wants_html(request: Request) -> bool:
    if request.url.path.startswith(settings.API_V1_STR):
        return False
    return "text/html" in request.headers.get("accept", "")


def _respond(request: Request, status_code: int, detail: str):
    if _wants_html(request):
        return templates.TemplateResponse(
            request, "error.html", {"detail": detail}, status_code=status_code
        )
    return JSONResponse(status_code=status_code, content={"detail": detail})


async def handle_request_line_error(request: Request, exc: RequestLineError):
    if isinstance(exc, Unauthorized):
        if _wants_html(request):
            return RedirectResponse("/auth/google", status_code=303)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_detail})

    if isinstance(exc, (NotFound, InvalidTransition, InvalidSubmission)):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return _respond(request, exc.status_code, exc.message)

    # StoreUnavailable / InvariantViolation need operator attention; the client gets no internals
    logger.error("Failed %s %s: %s", request.method, request.url.path, exc.message)
    return _respond(request, exc.status_code, exc.public_detail)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestLineError, handle_request_line_error)  # type: ignore[arg-type]
