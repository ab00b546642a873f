from datetime import datetime, timezone
import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from matka.core.config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class AuthSession:
    """
    登录态：持有 bearer token，并负责它在本地存储里的生命周期。
      - login 成功时 acquire()
      - logout / 令牌失效时 clear()
    API 客户端在构造时拿到这个对象，每次请求读取当前 token。
    """

    def __init__(self, storage=None, token: Optional[str] = None):
        self._storage = storage
        self._token = token

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    async def load(self) -> Optional[str]:
        if self._storage is not None:
            self._token = await self._storage.get_item(settings.TOKEN_STORAGE_KEY)
        return self._token

    async def acquire(self, token: str) -> None:
        self._token = token
        if self._storage is not None:
            await self._storage.set_item(settings.TOKEN_STORAGE_KEY, token)

    async def clear(self) -> None:
        self._token = None
        if self._storage is not None:
            await self._storage.remove_item(settings.TOKEN_STORAGE_KEY)

    def headers(self) -> dict:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def claims(self) -> dict:
        """不校验签名地读取 payload（签名由服务端负责）；无法解析返回 {}"""
        if not self._token:
            return {}
        try:
            return jwt.decode(self._token, options={"verify_signature": False})
        except jwt.PyJWTError:
            logger.warning("stored token is not a decodable JWT")
            return {}

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        exp = self.claims().get("exp")
        if exp is None:
            # 没有 exp 的令牌只能靠服务端 401 发现过期
            return False
        now = now or datetime.now(timezone.utc)
        return now.timestamp() >= float(exp)


def get_auth_session(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthSession:
    # 请求自带 bearer 时优先使用（不落地），否则用应用级登录态
    if creds is not None and creds.scheme.lower() == "bearer":
        return AuthSession(token=creds.credentials)
    return request.app.state.auth


def require_auth(auth: AuthSession = Depends(get_auth_session)) -> AuthSession:
    if not auth.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if auth.is_expired():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired, please login again")
    return auth
