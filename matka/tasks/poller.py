# matka/tasks/poller.py
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from matka.core.config import settings
from matka.core.timeutil import now_local
from matka.schemas.game import Game, StarlineGame
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.session_window import sort_games_by_open_time

logger = logging.getLogger(__name__)

JOB_GAMES = "poll_games"
JOB_BALANCE = "poll_balance"
JOB_STARLINE = "poll_starline"


@dataclass
class ViewState:
    """各页面共享的展示数据（最后一次成功拉取的结果）"""
    games: list[Game] = field(default_factory=list)
    starline_games: list[StarlineGame] = field(default_factory=list)
    balance: Optional[float] = None
    updated_at: dict[str, datetime] = field(default_factory=dict)


class Poller:
    """
    定时刷新游戏列表 / 余额 / starline：
      - 任务可取消：stop() 移除任务并关闭调度器
      - 手动刷新与定时刷新可能重叠：每次拉取先领一个递增票号，
        只有票号比上次落地的新才写入 ViewState，旧请求晚到直接丢弃
    """

    def __init__(
        self,
        api: MatkaApiClient,
        state: Optional[ViewState] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.api = api
        self.state = state or ViewState()
        self.scheduler = scheduler or AsyncIOScheduler(timezone=settings.TZ)
        self._tickets = itertools.count(1)
        self._applied: dict[str, int] = {}

    def _take_ticket(self) -> int:
        return next(self._tickets)

    def _apply(self, key: str, ticket: int) -> bool:
        if ticket <= self._applied.get(key, 0):
            logger.info("drop stale %s result (ticket %s <= %s)", key, ticket, self._applied.get(key))
            return False
        self._applied[key] = ticket
        self.state.updated_at[key] = now_local()
        return True

    async def refresh_games(self) -> bool:
        ticket = self._take_ticket()
        raw = await self.api.list_games()
        games = sort_games_by_open_time(Game.model_validate(g) for g in raw)
        if not self._apply("games", ticket):
            return False
        self.state.games = games
        return True

    async def refresh_balance(self) -> bool:
        ticket = self._take_ticket()
        profile = await self.api.user_profile()
        if not self._apply("balance", ticket):
            return False
        self.state.balance = float(profile.get("balance") or 0)
        return True

    async def refresh_starline(self) -> bool:
        ticket = self._take_ticket()
        raw = await self.api.starline_games()
        games = sort_games_by_open_time(
            g for g in (StarlineGame.model_validate(x) for x in raw) if g.isActive
        )
        if not self._apply("starline", ticket):
            return False
        self.state.starline_games = games
        return True

    async def refresh_all(self) -> None:
        """手动刷新：和定时任务走同一套票号，不会被更早的定时结果覆盖"""
        await self.refresh_games()
        await self.refresh_balance()

    # ------------------------------
    # 调度器入口
    # ------------------------------
    async def games_job(self):
        if not self.api.auth.is_authenticated:
            return
        try:
            await self.refresh_games()
        except ApiError as e:
            logger.warning("[games_job] %s", e.message)
        except Exception as e:
            logger.exception("[games_job] error: %s", e)

    async def balance_job(self):
        if not self.api.auth.is_authenticated:
            return
        try:
            await self.refresh_balance()
        except ApiError as e:
            # 余额刷新失败保留旧值
            logger.warning("[balance_job] %s", e.message)
        except Exception as e:
            logger.exception("[balance_job] error: %s", e)

    async def starline_job(self):
        if not self.api.auth.is_authenticated:
            return
        try:
            await self.refresh_starline()
        except ApiError as e:
            logger.warning("[starline_job] %s", e.message)
        except Exception as e:
            logger.exception("[starline_job] error: %s", e)

    def start(self, with_starline: bool = True) -> None:
        self.scheduler.add_job(
            self.games_job,
            "interval",
            seconds=settings.GAMES_POLL_SECONDS,
            id=JOB_GAMES,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=10,
        )
        self.scheduler.add_job(
            self.balance_job,
            "interval",
            seconds=settings.BALANCE_POLL_SECONDS,
            id=JOB_BALANCE,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=10,
        )
        if with_starline:
            self.scheduler.add_job(
                self.starline_job,
                "interval",
                seconds=settings.STARLINE_POLL_SECONDS,
                id=JOB_STARLINE,
                replace_existing=True,
                coalesce=True,
                max_instances=1,
                misfire_grace_time=10,
            )

        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Poller started")

    async def stop(self) -> None:
        for job_id in (JOB_GAMES, JOB_BALANCE, JOB_STARLINE):
            if self.scheduler.get_job(job_id):
                self.scheduler.remove_job(job_id)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler 的 shutdown 经 call_soon_threadsafe 生效，让出一次事件循环
            await asyncio.sleep(0)
            logger.info("Poller stopped")
