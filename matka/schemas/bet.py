from typing import List, Literal, Optional, Dict
from pydantic import BaseModel

# 下注表单入参（前端玩法名 + 原始输入）
class BetFormIn(BaseModel):
    game_id: Optional[str] = None
    bet_type: str
    session: Literal["open", "close"] = "open"
    bet_number: str = ""
    bet_amount: str | float | int = ""

# 提交给上游 /bets 的请求体
class BetPayload(BaseModel):
    gameId: str
    betType: str
    session: Optional[str]
    betNumber: str
    betAmount: float
    gameDate: str

class BetSummary(BaseModel):
    game: str
    session: Optional[str] = None
    bet: str
    amount: Optional[str] = None

class BetPlaceOut(BaseModel):
    ok: bool
    errors: Dict[str, str] = {}
    notifications: List[str] = []
    new_balance: Optional[float] = None
    redirect_to: Optional[str] = None
    redirect_after: Optional[float] = None
    potential_win: Optional[str] = None
    summary: Optional[BetSummary] = None

class BetHistoryFilters(BaseModel):
    betType: str = ""
    game: str = ""
    session: str = ""
    status: str = ""
    dateRange: str = ""
    fromDate: str = ""
    toDate: str = ""

class BetHistoryItem(BaseModel):
    id: str
    game_name: Optional[str] = None
    bet_type: str
    bet_type_name: str
    session: Optional[str] = None
    bet_number: str
    bet_amount: float
    status: str
    win_amount: float
    bet_date: Optional[str] = None
    result: Optional[str] = None

class BetHistoryResp(BaseModel):
    items: List[BetHistoryItem]
    page: int
    pages: int
    total: int

class WinningHistoryResp(BaseModel):
    items: List[BetHistoryItem]
    total_winnings: float

# Starline 下注
class StarlineBetIn(BaseModel):
    game_id: str
    bet_type: str = "single digit"
    bet_number: str = ""
    bet_amount: str | float | int = ""
