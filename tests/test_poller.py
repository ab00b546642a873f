import asyncio

from conftest import GAME
from matka.core.auth import AuthSession
from matka.services.api_client import ApiError
from matka.tasks.poller import JOB_BALANCE, JOB_GAMES, JOB_STARLINE, Poller


class SlowApi:
    """list_games 按调用顺序返回各自的 future，测试里手动决定完成顺序"""

    def __init__(self, token="tok"):
        self.auth = AuthSession(token=token)
        self.pending: list[asyncio.Future] = []
        self.balance = 500

    async def list_games(self):
        fut = asyncio.get_running_loop().create_future()
        self.pending.append(fut)
        return await fut

    async def user_profile(self):
        return {"balance": self.balance}

    async def starline_games(self):
        raise ApiError("Failed to load games", status_code=500)


async def test_stale_refresh_is_dropped():
    api = SlowApi()
    poller = Poller(api)

    first = asyncio.create_task(poller.refresh_games())
    second = asyncio.create_task(poller.refresh_games())
    await asyncio.sleep(0)
    assert len(api.pending) == 2

    # 新请求先回来
    api.pending[1].set_result([{**GAME, "_id": "new"}])
    assert await second is True
    api.pending[0].set_result([{**GAME, "_id": "old"}])
    assert await first is False

    assert [g.id for g in poller.state.games] == ["new"]


async def test_games_with_bad_times_still_apply():
    api = SlowApi()
    poller = Poller(api)

    task = asyncio.create_task(poller.refresh_games())
    await asyncio.sleep(0)
    api.pending[0].set_result([{**GAME, "_id": "bad", "openTime": ""}, GAME])
    assert await task is True

    assert [g.id for g in poller.state.games] == ["g1", "bad"]


async def test_in_order_refreshes_apply():
    api = SlowApi()
    poller = Poller(api)

    task = asyncio.create_task(poller.refresh_games())
    await asyncio.sleep(0)
    api.pending[0].set_result([GAME])
    assert await task is True
    assert "games" in poller.state.updated_at

    assert await poller.refresh_balance() is True
    assert poller.state.balance == 500


async def test_job_failure_keeps_previous_state():
    api = SlowApi()
    poller = Poller(api)
    poller.state.starline_games = ["kept"]
    await poller.starline_job()
    assert poller.state.starline_games == ["kept"]


async def test_jobs_skip_when_logged_out():
    api = SlowApi(token=None)
    poller = Poller(api)
    await poller.balance_job()
    assert poller.state.balance is None


async def test_start_and_stop():
    poller = Poller(SlowApi())
    poller.start()
    try:
        assert {j.id for j in poller.scheduler.get_jobs()} == {JOB_GAMES, JOB_BALANCE, JOB_STARLINE}
        # 重复 start 不会重复加任务
        poller.start(with_starline=False)
        assert len(poller.scheduler.get_jobs()) == 3
    finally:
        await poller.stop()
    assert poller.scheduler.get_jobs() == []
    assert not poller.scheduler.running
