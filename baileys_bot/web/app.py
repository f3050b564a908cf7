"""
FastAPI Web Application - WhatsApp Send API
============================================

Small JSON API for pushing messages through the bot's WhatsApp session.
Every send endpoint follows the same steps:

    validate fields (400) -> session connected? (503) -> build JID -> send

Responses use one envelope: {"success": true, "message": ...} on success,
{"success": false, "error": ...} on failure. The API has no authentication.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from baileys_bot.domain.errors import (
    MediaDownloadError,
    MediaError,
    MediaNotFoundError,
    SessionNotReadyError,
)
from baileys_bot.domain.jid import phone_to_jid
from baileys_bot.domain.messages import DocumentContent, ImageContent, TextContent
from baileys_bot.infrastructure.config import get_settings
from baileys_bot.infrastructure.media import LoadedMedia, MediaLoader
from baileys_bot.infrastructure.whatsapp import SessionHolder, SessionManager

logging.basicConfig(
    level=get_settings().server.log_level,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ── Globals ────────────────────────────────────────────────────────
session_holder = SessionHolder()
session_manager: Optional[SessionManager] = None
media_loader = MediaLoader()

ENDPOINTS = [
    "GET /",
    "GET /status",
    "POST /send-message",
    "POST /send-invoice",
    "POST /send-image",
]

INVOICE_FILE_NAME = "invoice.pdf"
INVOICE_MIMETYPE = "application/pdf"


# ── Lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    global session_manager
    for issue in get_settings().validate():
        logger.warning(issue)

    session_manager = SessionManager(holder=session_holder)
    await session_manager.start()
    yield
    await session_manager.stop()
    media_loader.close()


app = FastAPI(title="Baileys Bot", description="WhatsApp Send API", lifespan=lifespan)


# ── Request Models ─────────────────────────────────────────────────

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class SendMessageRequest(_Payload):
    number: Optional[str] = None
    message: Optional[str] = None


class SendInvoiceRequest(_Payload):
    number: Optional[str] = None
    invoice_url: Optional[str] = Field(default=None, alias="invoiceUrl")
    message: Optional[str] = None


class SendImageRequest(_Payload):
    number: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    image_path: Optional[str] = Field(default=None, alias="imagePath")
    caption: Optional[str] = None


# ── Envelopes ──────────────────────────────────────────────────────

def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def media_error_response(e: MediaError) -> JSONResponse:
    if isinstance(e, MediaNotFoundError):
        return error_response(404, str(e))
    if isinstance(e, MediaDownloadError):
        return error_response(500, str(e))
    return error_response(400, str(e))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Invalid request body")


@app.exception_handler(SessionNotReadyError)
async def session_not_ready_handler(request: Request, exc: SessionNotReadyError):
    return error_response(503, f"{exc}. Please wait for the connection to open.")


# ── Info ───────────────────────────────────────────────────────────

@app.get("/")
async def index():
    return {
        "service": "Baileys WhatsApp Bot",
        "status": "running",
        "connected": session_holder.connected,
        "endpoints": ENDPOINTS,
    }


@app.get("/status")
async def status():
    socket = session_holder.get()
    if socket is not None:
        return {"connected": True, "user": socket.user_id, "message": "WhatsApp is connected"}

    if session_manager is not None and session_manager.logged_out:
        message = "Logged out. Delete the auth folder and restart to login again."
    else:
        message = "WhatsApp is not connected"
    return {"connected": False, "message": message}


# ── Send Endpoints ─────────────────────────────────────────────────

@app.post("/send-message")
async def send_message(payload: SendMessageRequest):
    """Send a plain text message."""
    if not payload.number or not payload.message:
        return error_response(400, "Both 'number' and 'message' are required")

    socket = session_holder.require()

    jid = phone_to_jid(payload.number)
    try:
        await socket.send_message(jid, TextContent(payload.message))
        logger.info(f"Message sent to {jid}")
        return {"success": True, "message": "Message sent successfully"}
    except Exception as e:
        logger.exception(f"Error sending message to {jid}: {e}")
        return error_response(500, str(e))


@app.post("/send-invoice")
async def send_invoice(payload: SendInvoiceRequest):
    """Send an optional text followed by an optional PDF invoice."""
    if not payload.number or not (payload.invoice_url or payload.message):
        return error_response(400, "'number' and at least one of 'invoiceUrl' or 'message' are required")

    socket = session_holder.require()

    invoice: Optional[LoadedMedia] = None
    if payload.invoice_url:
        try:
            invoice = await run_in_threadpool(media_loader.load, payload.invoice_url)
        except MediaError as e:
            logger.warning(f"Could not load invoice: {e}")
            return media_error_response(e)

    jid = phone_to_jid(payload.number)
    try:
        if payload.message:
            await socket.send_message(jid, TextContent(payload.message))
        if invoice is not None:
            await socket.send_message(
                jid,
                DocumentContent(
                    data=invoice.data,
                    mimetype=INVOICE_MIMETYPE,
                    file_name=INVOICE_FILE_NAME,
                ),
            )
        logger.info(f"Invoice sent to {jid}")
        return {"success": True, "message": "Invoice sent successfully"}
    except Exception as e:
        logger.exception(f"Error sending invoice to {jid}: {e}")
        return error_response(500, str(e))


@app.post("/send-image")
async def send_image(payload: SendImageRequest):
    """Send an image from a URL, a base64 data URL or a local path."""
    if not payload.number or not (payload.image_url or payload.image_path):
        return error_response(400, "'number' and one of 'imageUrl' or 'imagePath' are required")

    socket = session_holder.require()

    try:
        if payload.image_path:
            image = await run_in_threadpool(media_loader.read_local, payload.image_path)
        else:
            image = await run_in_threadpool(media_loader.load, payload.image_url)
    except MediaError as e:
        logger.warning(f"Could not load image: {e}")
        return media_error_response(e)

    mimetype = image.mimetype if image.mimetype.startswith("image/") else "image/jpeg"
    jid = phone_to_jid(payload.number)
    try:
        await socket.send_message(
            jid, ImageContent(data=image.data, mimetype=mimetype, caption=payload.caption)
        )
        logger.info(f"Image sent to {jid}")
        return {"success": True, "message": "Image sent successfully"}
    except Exception as e:
        logger.exception(f"Error sending image to {jid}: {e}")
        return error_response(500, str(e))
