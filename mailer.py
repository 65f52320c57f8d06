"""Contact form delivery through the EmailJS REST API."""

import asyncio
import logging
import re

import aiohttp
from fastapi import APIRouter

import config
from errors import ApiError
from schemas import ContactMessage

logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REQUIRED_FIELDS = ("name", "email", "subject", "message")
SEND_TIMEOUT = aiohttp.ClientTimeout(total=15)

router = APIRouter()


class EmailConfigError(Exception):
    pass


class EmailDeliveryError(Exception):
    pass


async def send_email(template_params: dict) -> None:
    if not (config.EMAILJS_SERVICE_ID and config.EMAILJS_TEMPLATE_ID and config.EMAILJS_PUBLIC_KEY):
        raise EmailConfigError("EmailJS service, template or public key is not set")
    payload = {
        "service_id": config.EMAILJS_SERVICE_ID,
        "template_id": config.EMAILJS_TEMPLATE_ID,
        "user_id": config.EMAILJS_PUBLIC_KEY,
        "template_params": template_params,
    }
    if config.EMAILJS_PRIVATE_KEY:
        payload["accessToken"] = config.EMAILJS_PRIVATE_KEY

    async with aiohttp.ClientSession(timeout=SEND_TIMEOUT) as session:
        async with session.post(EMAILJS_SEND_URL, json=payload) as resp:
            if resp.status != 200:
                text = await resp.text(errors="replace")
                raise EmailDeliveryError(f"EmailJS responded with {resp.status}: {text}")


@router.post("")
async def contact(data: ContactMessage):
    fields = data.model_dump()
    missing = [f for f in REQUIRED_FIELDS if not (fields.get(f) or "").strip()]
    if missing:
        raise ApiError(400, "Please fill in all fields", details=f"Missing fields: {', '.join(missing)}", missing=missing)
    if not EMAIL_PATTERN.match(data.email.strip()):
        raise ApiError(400, "Please enter a valid email address")

    try:
        await send_email({
            "from_name": data.name.strip(),
            "reply_to": data.email.strip(),
            "subject": data.subject.strip(),
            "message": data.message,
        })
    except EmailConfigError as exc:
        logger.warning("Contact form used without email configuration: %s", exc)
        raise ApiError(500, "Email service is not configured", details=str(exc))
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.error("Could not reach EmailJS: %s", exc)
        raise ApiError(503, "Could not reach the email service", details=str(exc))
    except EmailDeliveryError as exc:
        logger.error("EmailJS rejected the message: %s", exc)
        raise ApiError(500, "Failed to send message", details=str(exc))

    logger.info("Contact message from %s relayed", data.email)
    return {"success": True, "message": "Message sent successfully"}
