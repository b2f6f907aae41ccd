import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fsrelay.config import get_settings
from fsrelay.errors import (
    FsError,
    NotADirError,
    NotAFileError,
    NotFoundError,
    ParseError,
)
from fsrelay.routers import files, relay

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

# Failures not listed here are I/O errors on the server side
ERROR_STATUS = {
    NotFoundError: 404,
    NotAFileError: 400,
    NotADirError: 400,
    ParseError: 422,
}

app = FastAPI(title="fsrelay", description="Async filesystem utilities and script relay")

app.include_router(files.router)
app.include_router(relay.router)
app.include_router(relay.ws_router)


@app.exception_handler(FsError)
async def fs_error_handler(request: Request, exc: FsError):
    """Translate filesystem failures into HTTP responses"""
    status_code = ERROR_STATUS.get(type(exc), 500)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok"}
