from datetime import datetime
from typing import NoReturn, Optional

from fastapi import Depends, HTTPException, Request, status

from matka.core.auth import AuthSession, get_auth_session, require_auth
from matka.core.timeutil import now_local
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.storage_service import LocalStorage


def _client_for(request: Request, auth: AuthSession) -> MatkaApiClient:
    api: MatkaApiClient = request.app.state.api
    return api if auth is api.auth else api.with_auth(auth)


def get_api(request: Request, auth: AuthSession = Depends(get_auth_session)) -> MatkaApiClient:
    """公共接口用（可未登录）"""
    return _client_for(request, auth)


def get_authed_api(request: Request, auth: AuthSession = Depends(require_auth)) -> MatkaApiClient:
    return _client_for(request, auth)


def get_storage(request: Request) -> LocalStorage:
    return request.app.state.storage


def get_now() -> datetime:
    """下注时间判断用的时钟，测试里可覆盖"""
    return now_local()


async def raise_api_error(e: ApiError, auth: Optional[AuthSession] = None) -> NoReturn:
    """上游错误转成 HTTPException；401 时清掉本地令牌"""
    if e.status_code == status.HTTP_401_UNAUTHORIZED:
        if auth is not None:
            await auth.clear()
        raise HTTPException(status_code=401, detail="Session expired, please login again") from e
    code = e.status_code if e.status_code and 400 <= e.status_code < 500 else status.HTTP_502_BAD_GATEWAY
    raise HTTPException(status_code=code, detail={"message": e.message, "errors": e.errors}) from e
