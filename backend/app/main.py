import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.settings import settings, validate_settings
from app.routers.exports import router as exports_router

app = FastAPI(title="CATMS Export API", version="0.1.0")
logger = logging.getLogger("catms.startup")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    logger.info(
        "Export API ready (env=%s, timezone=%s, max_rows=%s).",
        settings.app_env,
        settings.report_timezone,
        settings.export_max_rows,
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(exports_router)
