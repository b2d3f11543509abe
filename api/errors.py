# api/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

LOG = logging.getLogger("api")

class ListingError(Exception):
    """An error with an HTTP status the client is meant to see."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

def api_error(status_code: int, message: str) -> ListingError:
    return ListingError(status_code, message)

def _body(status_code: int, message: str) -> dict:
    return {"success": False, "statusCode": status_code, "message": message}

async def listing_error_handler(request: Request, exc: ListingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_body(exc.status_code, exc.message))

async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    LOG.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_body(500, "Internal Server Error"))

def register(app: FastAPI) -> None:
    app.add_exception_handler(ListingError, listing_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
