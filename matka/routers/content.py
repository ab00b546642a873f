from fastapi import APIRouter, Depends, HTTPException, Query

from matka.core.auth import AuthSession, require_auth
from matka.routers.deps import get_api, get_authed_api, get_storage, raise_api_error
from matka.schemas.wallet import EnquiryIn
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services import content_service
from matka.services.storage_service import LocalStorage, dismiss_install_prompt, should_show_install_prompt
from matka.services.wallet_service import load_main_settings

router = APIRouter(prefix="/api/content", tags=["content"])


@router.get("/banners")
async def banners(api: MatkaApiClient = Depends(get_api)):
    return {"banners": await content_service.load_banners(api)}


@router.get("/main-settings")
async def main_settings(api: MatkaApiClient = Depends(get_api)):
    return await load_main_settings(api)


@router.get("/contact")
async def contact(api: MatkaApiClient = Depends(get_api)):
    return await content_service.load_contact_settings(api)


@router.get("/how-to-play")
async def how_to_play(api: MatkaApiClient = Depends(get_api)):
    return await content_service.load_how_to_play(api)


@router.get("/enquiries")
async def my_enquiries(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return {"enquiries": await api.enquiries()}
    except ApiError as e:
        await raise_api_error(e, auth)


@router.post("/enquiries")
async def send_enquiry(
    data: EnquiryIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    out = await content_service.send_enquiry(api, data.message)
    if not out["ok"]:
        raise HTTPException(status_code=400, detail=out["message"])
    return out


# PWA 安装提示：关闭后 24 小时内不再弹出
@router.get("/install-prompt")
async def install_prompt(installed: bool = Query(False), storage: LocalStorage = Depends(get_storage)):
    return {"show": await should_show_install_prompt(storage, installed=installed)}


@router.post("/install-prompt/dismiss")
async def dismiss(storage: LocalStorage = Depends(get_storage)):
    return {"ok": True, "dismissed_at": await dismiss_install_prompt(storage)}
