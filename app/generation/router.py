"""Generation proxy — forwards panel requests to Rodin with the server's key.

Routes:
  POST /api/rodin     multipart/form-data job submission (rate limited)
  POST /api/status    {"subscription_key"} → job states
  POST /api/download  {"task_uuid"} → download URLs

Without a Rodin API key, canned demo responses are returned instead.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from app.config import settings
from app.generation.demo_data import demo_download, demo_status, demo_submit
from app.integrations.rodin import RodinAPIError, RodinClient
from app.services.rate_limiter import RateLimiter, client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generation"])

rate_limiter = RateLimiter(settings.rate_limit_per_minute)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _read_field(request: Request, field: str) -> str:
    """Read one string field from a JSON body; empty string if missing."""
    try:
        body = await request.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    value = body.get(field)
    return value if isinstance(value, str) else ""


@router.post("/rodin")
async def submit_job(request: Request):
    ip = client_ip(request)
    if rate_limiter.is_limited(ip):
        return _error("Too many requests. Please wait a minute.", 429)

    try:
        form = await request.form()
    except Exception as e:
        logger.warning("Rodin submit | unreadable form | %s", str(e)[:100])
        return _error("Invalid form data", 400)

    data: dict[str, str] = {}
    files: list[tuple[str, tuple[str, bytes, str]]] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            content = await value.read()
            files.append((key, (value.filename or key, content, value.content_type or "application/octet-stream")))
        else:
            data[key] = value

    prompt = data.get("prompt", "").strip()
    if not prompt and not files:
        return _error("A prompt or an image is required", 400)

    if settings.is_demo_mode:
        logger.info("Demo mode active — returning mock job")
        return JSONResponse(content=demo_submit(prompt))

    try:
        result = await RodinClient().submit(data, files)
    except RodinAPIError as e:
        return _error(f"Generation request failed: {e}", 502)
    logger.info("Rodin job submitted | ip=%s | images=%d", ip, len(files))
    return JSONResponse(content=result)


@router.post("/status")
async def check_status(request: Request):
    subscription_key = await _read_field(request, "subscription_key")
    if not subscription_key:
        return _error("subscription_key is required", 400)

    if settings.is_demo_mode:
        return JSONResponse(content=demo_status(subscription_key))

    try:
        result = await RodinClient().status(subscription_key)
    except RodinAPIError as e:
        return _error(f"Status check failed: {e}", 502)
    return JSONResponse(content=result)


@router.post("/download")
async def download(request: Request):
    task_uuid = await _read_field(request, "task_uuid")
    if not task_uuid:
        return _error("task_uuid is required", 400)

    if settings.is_demo_mode:
        return JSONResponse(content=demo_download(task_uuid))

    try:
        result = await RodinClient().download(task_uuid)
    except RodinAPIError as e:
        return _error(f"Download failed: {e}", 502)
    return JSONResponse(content=result)
