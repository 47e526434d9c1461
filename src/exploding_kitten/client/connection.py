"""
推送通道连接管理

在客户端整个生命周期内维护唯一一条到 /ws 的推送通道，网络抖动后自动重连。

状态机：
- DISCONNECTED --connect()--> CONNECTING
- CONNECTING --打开成功--> CONNECTED
- CONNECTING --打开失败--> DISCONNECTED + 安排一次重连
- CONNECTED --消息--> 解析排行榜并写入 SessionStore（不合法的帧记录后丢弃）
- CONNECTED --错误--> 只记录并通知，状态迁移由关闭事件负责
- CONNECTED --关闭--> DISCONNECTED + 安排一次重连
- close() 之后永久停止，迟到的事件一律忽略

任意时刻最多只有一个通道对象和一个待触发的重连定时器。
每次发起连接都会递增 generation，旧通道的回调凭 generation 识别并丢弃。
"""

from __future__ import annotations

import asyncio
import enum
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from exploding_kitten.client.session import SessionStore
from exploding_kitten.shared.constants import (
    EVT_CHANNEL_ERROR,
    EVT_GAVE_UP,
    EVT_STATE,
    RECONNECT_DELAY,
    RECONNECT_JITTER,
    RECONNECT_MAX_ATTEMPTS,
    RECONNECT_MAX_DELAY,
    RECONNECT_MULTIPLIER,
)
from exploding_kitten.shared.errors import ChannelError, MalformedResponse
from exploding_kitten.shared.protocols import decode_frame, extract_leaderboard

logger = logging.getLogger(__name__)

# 打开通道时视为临时故障的异常
OPEN_ERRORS = (OSError, WebSocketException, asyncio.TimeoutError)


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class ReconnectPolicy:
    """重连退避策略

    第 n 次重连等待 min(base_delay * multiplier**n, max_delay)，再叠加比例抖动。
    multiplier=1 且 jitter=0 时即固定间隔。max_attempts 为 None 表示不限次数。
    """

    base_delay: float = RECONNECT_DELAY
    max_delay: float = RECONNECT_MAX_DELAY
    multiplier: float = RECONNECT_MULTIPLIER
    jitter: float = RECONNECT_JITTER
    max_attempts: Optional[int] = RECONNECT_MAX_ATTEMPTS

    @classmethod
    def fixed(cls, delay: float = RECONNECT_DELAY) -> "ReconnectPolicy":
        return cls(base_delay=delay, max_delay=delay, multiplier=1.0, jitter=0.0)

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        delay = min(self.base_delay * (self.multiplier ** attempt), self.max_delay)
        if self.jitter > 0:
            delay += delay * self.jitter * rand()
        return delay

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt >= self.max_attempts


# 通道：可异步迭代出文本帧，并可 await close()
Channel = Any
Connector = Callable[[str], Awaitable[Channel]]


async def websocket_connector(url: str) -> Channel:
    """默认连接器：打开一条 websockets 连接"""
    return await websockets.connect(
        url,
        open_timeout=10,
        ping_interval=20,
        ping_timeout=30,
        close_timeout=5,
    )


class ConnectionManager:
    """推送通道的连接与重连管理"""

    def __init__(
        self,
        url: str,
        store: SessionStore,
        policy: Optional[ReconnectPolicy] = None,
        connector: Optional[Connector] = None,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self.url = url
        self.store = store
        self.policy = policy or ReconnectPolicy()
        self._connector = connector or websocket_connector
        self._rand = rand

        self._state = ConnectionState.DISCONNECTED
        self._channel: Optional[Channel] = None
        self._task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._generation = 0
        self._attempts = 0
        self._stopped = False
        self._handlers: Dict[str, List[Callable[[Any], None]]] = {}

        # 统计
        self.frames_received = 0
        self.frames_dropped = 0

    # 只读状态
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    @property
    def reconnecting(self) -> bool:
        """UI 用：尚未连上但仍在尝试"""
        return not self._stopped and self._state is not ConnectionState.CONNECTED and (
            self.reconnect_pending or self._state is ConnectionState.CONNECTING
        )

    # 事件订阅
    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def _emit(self, event: str, payload: Any = None) -> None:
        for cb in list(self._handlers.get(event, ())):
            try:
                cb(payload)
            except Exception:
                logger.exception("连接事件处理器出错: %s", event)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        logger.debug("推送通道状态 %s -> %s", self._state.value, state.value)
        self._state = state
        self._emit(EVT_STATE, state)

    def _is_stale(self, generation: int) -> bool:
        return self._stopped or generation != self._generation

    # 生命周期
    def connect(self) -> bool:
        """发起一次连接；必须在运行中的事件循环内调用。

        Returns:
            True 表示已开始连接；已停止或已在连接中时返回 False
        """
        if self._stopped:
            logger.debug("连接管理器已停止，忽略 connect()")
            return False
        if self._state is not ConnectionState.DISCONNECTED:
            return False
        self._cancel_reconnect()
        self._generation += 1
        generation = self._generation
        self._set_state(ConnectionState.CONNECTING)
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(generation))
        return True

    async def close(self) -> None:
        """停止并释放通道，可重复调用"""
        if self._stopped and self._channel is None and self._task is None:
            return
        self._stopped = True
        self._generation += 1
        self._cancel_reconnect()
        task, self._task = self._task, None
        channel, self._channel = self._channel, None
        if channel is not None:
            await self._close_channel(channel)
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("推送通道已关闭")

    # 内部流程
    async def _run(self, generation: int) -> None:
        try:
            channel = await self._connector(self.url)
        except OPEN_ERRORS as exc:
            self._on_error(generation, exc)
            self._on_close(generation)
            return
        if self._is_stale(generation):
            await self._close_channel(channel)
            return
        self._on_open(generation, channel)
        try:
            async for frame in channel:
                self._on_message(generation, frame)
        except ConnectionClosedOK:
            logger.debug("推送通道正常关闭")
        except (WebSocketException, OSError) as exc:
            self._on_error(generation, exc)
        finally:
            self._on_close(generation)

    def _on_open(self, generation: int, channel: Channel) -> None:
        if self._is_stale(generation):
            return
        self._channel = channel
        self._attempts = 0
        self._set_state(ConnectionState.CONNECTED)
        logger.info("推送通道已连接: %s", self.url)

    def _on_message(self, generation: int, frame: Any) -> None:
        if self._is_stale(generation):
            logger.debug("忽略过期通道的消息 (generation %s)", generation)
            return
        self.frames_received += 1
        try:
            entries = extract_leaderboard(decode_frame(frame))
        except MalformedResponse as exc:
            self.frames_dropped += 1
            logger.warning("丢弃不合法的推送帧: %s", exc)
            return
        self.store.apply_leaderboard(entries)

    def _on_error(self, generation: int, exc: BaseException) -> None:
        if self._is_stale(generation):
            return
        logger.warning("推送通道错误: %s", exc)
        self._emit(EVT_CHANNEL_ERROR, ChannelError(str(exc) or exc.__class__.__name__))

    def _on_close(self, generation: int) -> None:
        if self._is_stale(generation):
            return
        self._channel = None
        self._task = None
        self._set_state(ConnectionState.DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._stopped or self._reconnect_handle is not None:
            return
        if self.policy.exhausted(self._attempts):
            logger.error("推送通道重连 %d 次失败，放弃", self._attempts)
            self._emit(EVT_GAVE_UP, self._attempts)
            return
        delay = self.policy.delay_for(self._attempts, self._rand)
        self._attempts += 1
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(delay, self._fire_reconnect)
        logger.info("%.1f 秒后第 %d 次重连推送通道", delay, self._attempts)

    def _fire_reconnect(self) -> None:
        self._reconnect_handle = None
        if self._stopped:
            return
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    async def _close_channel(self, channel: Channel) -> None:
        try:
            await channel.close()
        except (OSError, WebSocketException) as exc:
            logger.debug("关闭推送通道时出错: %s", exc)


__all__ = [
    "ConnectionState",
    "ReconnectPolicy",
    "ConnectionManager",
    "websocket_connector",
]
