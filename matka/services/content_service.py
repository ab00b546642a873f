"""公共内容读取：失败只记日志并返回空值，不阻塞页面。"""
import logging
from typing import Optional

from pydantic import ValidationError

from matka.schemas.game import GameRates
from matka.services.api_client import ApiError, MatkaApiClient

logger = logging.getLogger(__name__)


async def load_banners(api: MatkaApiClient) -> list[dict]:
    try:
        banners = await api.banners()
    except ApiError:
        logger.exception("load banners failed")
        return []
    out = []
    for b in banners if isinstance(banners, list) else []:
        item = dict(b)
        if item.get("imagePath"):
            item["imageUrl"] = api.banner_image_url(item["imagePath"])
        out.append(item)
    return out


async def load_contact_settings(api: MatkaApiClient) -> dict:
    try:
        return await api.contact_settings()
    except ApiError:
        logger.exception("load contact settings failed")
        return {}


async def load_how_to_play(api: MatkaApiClient) -> dict:
    try:
        return await api.how_to_play()
    except ApiError:
        logger.exception("load how-to-play failed")
        return {}


async def load_game_rates(api: MatkaApiClient) -> Optional[GameRates]:
    try:
        raw = await api.game_rates()
    except ApiError:
        logger.exception("load game rates failed")
        return None
    try:
        return GameRates.model_validate(raw or {})
    except ValidationError:
        logger.exception("game rates payload has unexpected shape")
        return None


async def send_enquiry(api: MatkaApiClient, message: str) -> dict:
    text = (message or "").strip()
    if not text:
        return {"ok": False, "message": "Message is required"}
    try:
        resp = await api.send_enquiry(text)
    except ApiError as e:
        return {"ok": False, "message": e.message}
    return {"ok": True, "message": (resp or {}).get("message") or "Enquiry sent successfully", "enquiry": (resp or {}).get("enquiry")}
