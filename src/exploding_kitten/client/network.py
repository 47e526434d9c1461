"""
HTTP 请求网关：把注册、抽牌、刷新排行榜三个动作翻译成 HTTP 请求。

网关本身无状态，不做自动重试（重复抽牌会多消耗一张牌），
失败统一抛出 NetworkError / ServerError / MalformedResponse。
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from exploding_kitten.shared.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SCHEME,
    ENDPOINT_DRAW_CARD,
    ENDPOINT_LEADERBOARD,
    ENDPOINT_START_GAME,
    REQUEST_TIMEOUT,
)
from exploding_kitten.shared.errors import MalformedResponse, NetworkError, ServerError
from exploding_kitten.shared.protocols import (
    DrawResult,
    LeaderboardEntry,
    Registration,
    extract_leaderboard,
    parse_draw,
    parse_entries,
    parse_registration,
)

logger = logging.getLogger(__name__)


class RequestGateway:
    """基于 aiohttp 的请求网关"""

    def __init__(
        self,
        base_url: str = f"{DEFAULT_SCHEME}://{DEFAULT_HOST}:{DEFAULT_PORT}",
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        # 外部注入的 session 由调用方负责关闭
        self._owns_session = session is None

    async def start(self) -> None:
        """创建 HTTP 会话"""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout, connect=min(5.0, self.timeout)),
                headers={"User-Agent": "ExplodingKitten-Client/0.1"},
            )
            self._owns_session = True

    async def close(self) -> None:
        """关闭 HTTP 会话"""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    # 业务动作
    async def register(self, username: str) -> Registration:
        data = await self._request("POST", ENDPOINT_START_GAME, {"username": username})
        return parse_registration(data)

    async def draw(self, username: str) -> DrawResult:
        data = await self._request("POST", ENDPOINT_DRAW_CARD, {"username": username})
        return parse_draw(data)

    async def fetch_leaderboard(self) -> Tuple[LeaderboardEntry, ...]:
        data = await self._request("GET", ENDPOINT_LEADERBOARD)
        entries, dropped = parse_entries(extract_leaderboard(data))
        if dropped:
            logger.warning("排行榜响应中有 %d 条记录不完整", dropped)
        return entries

    # 内部方法
    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        if self._session is None:
            await self.start()
        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(method, url, json=payload) as response:
                status = response.status
                try:
                    body = await response.json(content_type=None)
                except ValueError as exc:
                    if 200 <= status < 300:
                        raise MalformedResponse(f"{method} {path}: response is not JSON") from exc
                    body = None
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.warning("请求失败 %s %s: %s", method, path, exc)
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        if not 200 <= status < 300:
            logger.warning("服务器返回 %s: %s %s", status, method, path)
            raise ServerError(status, body)
        return body


__all__ = ["RequestGateway"]
