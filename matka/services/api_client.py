"""上游 REST API 客户端（httpx.AsyncClient）。不做重试，不做去重。"""
from __future__ import annotations

import copy
import logging
from typing import Any, Optional

import httpx

from matka.core.auth import AuthSession
from matka.core.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    上游返回非 2xx 或网络异常。
      - message: 服务端的 message（没有就用调用方给的默认文案）
      - errors : 服务端结构化字段错误里的 msg 列表
    """

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []

    @classmethod
    def from_response(cls, resp: httpx.Response, default_message: str = "Request failed") -> "ApiError":
        message = default_message
        errors: list[str] = []
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or default_message
            raw = body.get("errors")
            if isinstance(raw, list):
                for e in raw:
                    if isinstance(e, dict) and e.get("msg"):
                        errors.append(str(e["msg"]))
                    elif isinstance(e, str):
                        errors.append(e)
        return cls(message, status_code=resp.status_code, errors=errors)

    def notifications(self) -> list[str]:
        # 有字段错误时逐条提示，否则只提示 message
        return list(self.errors) if self.errors else [self.message]


class MatkaApiClient:
    def __init__(
        self,
        auth: AuthSession,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.auth = auth
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        t = settings.API_TIMEOUT_SECONDS if timeout is None else timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=t if t and t > 0 else None,
        )

    def with_auth(self, auth: AuthSession) -> "MatkaApiClient":
        """共用底层连接池，换一个登录态"""
        clone = copy.copy(self)
        clone.auth = auth
        return clone

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MatkaApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
        authenticated: bool = True,
        default_error: str = "Request failed",
    ) -> Any:
        headers = self.auth.headers() if authenticated else {}
        try:
            resp = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(default_error) from e
        if resp.status_code >= 400:
            err = ApiError.from_response(resp, default_error)
            logger.info("%s %s -> %s %s", method, path, resp.status_code, err.message)
            raise err
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    # ------------------------------
    # 认证 / 用户
    # ------------------------------
    async def login(self, mobile_number: str, password: str) -> dict:
        return await self.request(
            "POST", "/auth/login",
            json={"mobileNumber": mobile_number, "password": password},
            authenticated=False, default_error="Login failed",
        )

    async def signup(self, name: str, mobile_number: str, password: str) -> dict:
        return await self.request(
            "POST", "/auth/signup",
            json={"name": name, "mobileNumber": mobile_number, "password": password},
            authenticated=False, default_error="Signup failed",
        )

    async def auth_profile(self) -> dict:
        data = await self.request("GET", "/auth/profile")
        return (data or {}).get("user") or {}

    async def user_profile(self) -> dict:
        data = await self.request("GET", "/user/profile")
        return (data or {}).get("user") or {}

    async def update_profile(self, payload: dict) -> dict:
        return await self.request("PUT", "/user/profile", json=payload, default_error="Failed to update profile")

    async def change_password(self, current_password: str, new_password: str) -> dict:
        return await self.request(
            "PUT", "/user/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
            default_error="Failed to change password",
        )

    async def get_bank_details(self) -> dict:
        data = await self.request("GET", "/user/bank-details")
        return (data or {}).get("bankDetails") or {}

    async def put_bank_details(self, payload: dict) -> dict:
        return await self.request("PUT", "/user/bank-details", json=payload, default_error="Failed to update bank details")

    async def get_payment_details(self) -> dict:
        data = await self.request("GET", "/user/payment-details")
        return (data or {}).get("paymentDetails") or {}

    async def put_payment_details(self, payload: dict) -> dict:
        return await self.request(
            "PUT", "/user/payment-details", json=payload, default_error="Failed to update payment details"
        )

    # ------------------------------
    # 游戏 / 结果 / 费率
    # ------------------------------
    async def list_games(self) -> list:
        return await self.request("GET", "/games", default_error="Failed to load games") or []

    async def game_rates(self) -> dict:
        return await self.request("GET", "/gamerates", authenticated=False, default_error="Failed to load game rates")

    async def session_results(self, game_id: Optional[str] = None) -> list:
        params = {"gameId": game_id} if game_id else None
        data = await self.request("GET", "/results-session", params=params)
        return (data or {}).get("results") or []

    # ------------------------------
    # 下注
    # ------------------------------
    async def place_bet(self, payload: dict) -> dict:
        return await self.request("POST", "/bets", json=payload, default_error="Failed to place bet") or {}

    async def my_bets(self) -> list:
        data = await self.request("GET", "/bets/me", default_error="Failed to load bidding history")
        return (data or {}).get("bets") or []

    # ------------------------------
    # 钱包
    # ------------------------------
    async def create_fund_request(self, amount: int, transaction_id: str, payment_method: str) -> dict:
        return await self.request(
            "POST", "/fund-request/create",
            json={"amount": amount, "transactionId": transaction_id, "paymentMethod": payment_method},
            default_error="Failed to create fund request",
        )

    async def fund_request_history(self) -> list:
        data = await self.request("GET", "/fund-request/history")
        return (data or {}).get("requests") or []

    async def request_withdrawal(self, amount: float, method: str) -> dict:
        return await self.request(
            "POST", "/withdraw/request",
            json={"amount": amount, "method": method},
            default_error="Failed to submit withdrawal request",
        )

    async def withdraw_history(self) -> list:
        data = await self.request("GET", "/withdraw/history")
        return (data or {}).get("withdrawals") or []

    # ------------------------------
    # 公共内容
    # ------------------------------
    async def main_settings(self) -> dict:
        return await self.request("GET", "/main-settings/public", authenticated=False) or {}

    async def banners(self) -> list:
        return await self.request("GET", "/banner-settings/public", authenticated=False) or []

    def banner_image_url(self, image_path: str) -> str:
        return f"{self.base_url}/banner-settings{image_path}"

    async def contact_settings(self) -> dict:
        return await self.request("GET", "/contact-settings", authenticated=False) or {}

    async def how_to_play(self) -> dict:
        return await self.request("GET", "/how-to-play", authenticated=False) or {}

    async def enquiries(self) -> list:
        return await self.request("GET", "/enquiry/user") or []

    async def send_enquiry(self, message: str) -> dict:
        return await self.request("POST", "/enquiry/user", json={"message": message}, default_error="Failed to send message")

    # ------------------------------
    # Starline
    # ------------------------------
    async def starline_games(self) -> list:
        data = await self.request("GET", "/starline/games", default_error="Failed to load games")
        if isinstance(data, dict) and data.get("success"):
            return (data.get("data") or {}).get("games") or []
        return []

    async def starline_rates(self) -> dict:
        return await self.request("GET", "/starline/gamerates") or {}

    async def starline_bets(self, params: Optional[dict] = None) -> list:
        data = await self.request("GET", "/starline/bets", params=params)
        if isinstance(data, dict) and data.get("success"):
            return (data.get("data") or {}).get("bets") or []
        return []

    async def place_starline_bet(self, payload: dict) -> dict:
        return await self.request("POST", "/starline/bets", json=payload, default_error="Failed to place bet") or {}

    async def starline_results(self, params: Optional[dict] = None) -> Any:
        return await self.request("GET", "/starline/results", params=params)
