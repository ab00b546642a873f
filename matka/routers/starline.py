import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from matka.core.auth import AuthSession, require_auth
from matka.routers.deps import get_authed_api, raise_api_error
from matka.schemas.bet import StarlineBetIn
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.session_window import starline_status
from matka.services.starline_service import (
    STARLINE_BET_TYPES, active_games, place_starline_bet, potential_win, transform_rates,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/starline", tags=["starline"])


async def _rates(api: MatkaApiClient) -> dict:
    try:
        return transform_rates(await api.starline_rates())
    except ApiError:
        logger.exception("load starline rates failed")
        return {}


@router.get("/games")
async def games(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        raw = await api.starline_games()
    except ApiError as e:
        await raise_api_error(e, auth)
    out = []
    for g in active_games(raw):
        out.append({
            "id": g.id,
            "name": g.gameName,
            "open_time": g.openTime,
            "min_bet": g.minBet,
            "max_bet": g.maxBet,
            **starline_status(g),
        })
    return {"games": out, "bet_types": list(STARLINE_BET_TYPES), "rates": await _rates(api)}


@router.get("/rates")
async def rates(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    return {"rates": await _rates(api)}


@router.get("/potential-win")
async def preview(
    bet_type: str = Query(...),
    bet_amount: str = Query(""),
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    return {"potential_win": potential_win(bet_type, bet_amount, await _rates(api))}


@router.post("/bets")
async def place_bet(
    data: StarlineBetIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    try:
        games = active_games(await api.starline_games())
        profile = await api.user_profile()
    except ApiError as e:
        await raise_api_error(e, auth)
    game = next((g for g in games if g.id == data.game_id), None)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")

    out = await place_starline_bet(
        api, game, data.bet_type, data.bet_number, data.bet_amount,
        balance=float(profile.get("balance") or 0),
    )
    if not out["ok"]:
        raise HTTPException(status_code=400, detail=out["message"])
    return out


@router.get("/bets")
async def history(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return {"bets": await api.starline_bets()}
    except ApiError as e:
        await raise_api_error(e, auth)


@router.get("/results")
async def results(
    date: str = Query(None),
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    try:
        data = await api.starline_results({"date": date} if date else None)
    except ApiError as e:
        await raise_api_error(e, auth)
    return data if isinstance(data, dict) else {"results": data or []}
