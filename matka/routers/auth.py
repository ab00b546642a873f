import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from matka.core.auth import AuthSession, get_auth_session, require_auth
from matka.routers.deps import get_api, get_authed_api, raise_api_error
from matka.schemas.user import ChangePasswordIn, LoginIn, SessionOut, SignupIn, UserOut
from matka.services.api_client import ApiError, MatkaApiClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def _start_session(request: Request, data: dict) -> SessionOut:
    token = (data or {}).get("token")
    if not token:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="No token in login response")
    # 登录写入应用级登录态（落地到本地存储）
    await request.app.state.auth.acquire(token)
    poller = getattr(request.app.state, "poller", None)
    if poller is not None:
        poller.state.balance = None
    return SessionOut(authenticated=True, user=UserOut.model_validate(data.get("user") or {}))


@router.post("/login", response_model=SessionOut)
async def login(data: LoginIn, request: Request, api: MatkaApiClient = Depends(get_api)):
    try:
        resp = await api.login(data.mobileNumber.strip(), data.password)
    except ApiError as e:
        if e.status_code and e.status_code < 500:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
        await raise_api_error(e)
    return await _start_session(request, resp)


@router.post("/signup", response_model=SessionOut, status_code=201)
async def signup(data: SignupIn, request: Request, api: MatkaApiClient = Depends(get_api)):
    try:
        resp = await api.signup(data.name.strip(), data.mobileNumber.strip(), data.password)
    except ApiError as e:
        if e.errors:
            raise HTTPException(status_code=400, detail={"message": e.message, "errors": e.errors}) from e
        if e.status_code and e.status_code < 500:
            raise HTTPException(status_code=400, detail=e.message) from e
        await raise_api_error(e)
    return await _start_session(request, resp)


@router.post("/logout")
async def logout(request: Request):
    await request.app.state.auth.clear()
    return {"ok": True, "redirect_to": "/auth"}


@router.get("/session", response_model=SessionOut)
async def current_session(
    auth: AuthSession = Depends(get_auth_session),
    api: MatkaApiClient = Depends(get_api),
):
    """启动时校验本地令牌：401 清除令牌并视为未登录"""
    if not auth.is_authenticated:
        return SessionOut(authenticated=False)
    if auth.is_expired():
        await auth.clear()
        return SessionOut(authenticated=False)
    try:
        user = await api.auth_profile()
    except ApiError as e:
        if e.status_code == status.HTTP_401_UNAUTHORIZED:
            await auth.clear()
            return SessionOut(authenticated=False)
        await raise_api_error(e, auth)
    return SessionOut(authenticated=True, user=UserOut.model_validate(user))


@router.get("/profile", response_model=UserOut)
async def profile(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return UserOut.model_validate(await api.user_profile())
    except ApiError as e:
        await raise_api_error(e, auth)


@router.put("/profile", response_model=UserOut)
async def update_profile(
    payload: dict,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    allowed = {k: v for k, v in payload.items() if k in ("name", "email")}
    try:
        resp = await api.update_profile(allowed)
    except ApiError as e:
        await raise_api_error(e, auth)
    return UserOut.model_validate((resp or {}).get("user") or {})


@router.put("/change-password")
async def change_password(
    data: ChangePasswordIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    if data.currentPassword == data.newPassword:
        raise HTTPException(status_code=400, detail="New password must be different from current password")
    try:
        resp = await api.change_password(data.currentPassword, data.newPassword)
    except ApiError as e:
        await raise_api_error(e, auth)
    return {"ok": True, "message": (resp or {}).get("message") or "Password changed successfully"}
