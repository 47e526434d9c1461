"""
客户端游戏逻辑模块

把 UI 动作、HTTP 网关、会话存储与推送通道组合到一起：
- 注册/抽牌/刷新排行榜走请求网关，成功后写入会话存储
- 推送通道独立运行，由连接管理器写入排行榜
- 请求失败只产生一次性的 error 通知，会话保持不变

该模块无 UI 依赖，便于被界面层调用，也便于在测试中注入替身。
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from exploding_kitten.client.config import ClientConfig
from exploding_kitten.client.connection import ConnectionManager, ReconnectPolicy
from exploding_kitten.client.network import RequestGateway
from exploding_kitten.client.session import SessionStore
from exploding_kitten.shared.constants import EVT_ERROR
from exploding_kitten.shared.errors import GameClientError, ServerError

logger = logging.getLogger(__name__)


class GameClient:
	"""客户端动作封装（UI 意图 -> 请求 -> 会话转换）"""

	def __init__(
		self,
		store: SessionStore,
		gateway: RequestGateway,
		connection: Optional[ConnectionManager] = None,
	):
		self.store = store
		self.gateway = gateway
		self.connection = connection
		# // 正在进行中的动作，避免重复抽牌/重复注册
		self._in_flight: set = set()
		self._ui_handlers: Dict[str, List[Callable[[Dict[str, Any]], None]]] = {}

	@classmethod
	def from_config(cls, config: ClientConfig, store: Optional[SessionStore] = None) -> "GameClient":
		"""按配置组装网关与连接管理器"""
		store = store or SessionStore()
		gateway = RequestGateway(config.base_url, timeout=config.request_timeout)
		policy = ReconnectPolicy(
			base_delay=config.reconnect_delay,
			max_delay=max(config.reconnect_delay, config.reconnect_max_delay),
			multiplier=config.reconnect_multiplier,
			jitter=config.reconnect_jitter,
			max_attempts=config.reconnect_max_attempts,
		)
		connection = ConnectionManager(config.ws_url, store, policy=policy)
		return cls(store, gateway, connection)

	# 事件派发到 UI 层
	def on_ui(self, event: str, handler: Callable[[Dict[str, Any]], None]) -> None:
		self._ui_handlers.setdefault(event, []).append(handler)

	def _emit_ui(self, event: str, payload: Dict[str, Any]) -> None:
		for cb in list(self._ui_handlers.get(event, ())):
			try:
				cb(payload)
			except Exception:
				logger.exception("UI 事件处理器出错: %s", event)

	def _fail(self, action: str, exc: GameClientError) -> bool:
		text = str(exc)
		if isinstance(exc, ServerError) and exc.server_message:
			text = exc.server_message
		logger.warning("%s 失败: %s", action, exc)
		self._emit_ui(EVT_ERROR, {"action": action, "error": exc, "text": text})
		return False

	@property
	def busy(self) -> bool:
		return bool(self._in_flight)

	# 连接
	async def start(self) -> None:
		await self.gateway.start()
		if self.connection is not None:
			self.connection.connect()

	async def stop(self) -> None:
		if self.connection is not None:
			await self.connection.close()
		await self.gateway.close()

	# 游戏动作
	async def register(self, username: str) -> bool:
		"""注册用户名并开始游戏"""
		username = (username or "").strip()
		check = self.store.check_registration(username)
		if not check:
			self._emit_ui(EVT_ERROR, {"action": "register", "error": check.error, "text": check.error})
			return False
		if "register" in self._in_flight:
			return False
		self._in_flight.add("register")
		try:
			reg = await self.gateway.register(username)
		except GameClientError as exc:
			return self._fail("register", exc)
		finally:
			self._in_flight.discard("register")
		if reg.resumed:
			logger.info("服务器恢复了 %s 的进行中游戏", username)
		return self.store.apply_registration(username, reg.deck_size).ok

	async def draw(self) -> bool:
		"""抽一张牌；会话不允许抽牌或已有抽牌在途时直接拒绝"""
		session = self.store.session
		if not session.can_draw or "draw" in self._in_flight:
			return False
		# // 记录发起时的纪元，会话在此期间重置则结果作废
		epoch = self.store.epoch
		self._in_flight.add("draw")
		try:
			result = await self.gateway.draw(session.username)
		except GameClientError as exc:
			return self._fail("draw", exc)
		finally:
			self._in_flight.discard("draw")
		return self.store.apply_draw_result(result.card, result.message, epoch=epoch).ok

	async def refresh_leaderboard(self) -> bool:
		"""手动刷新排行榜（推送通道之外的后备路径）"""
		try:
			entries = await self.gateway.fetch_leaderboard()
		except GameClientError as exc:
			return self._fail("leaderboard", exc)
		return self.store.apply_leaderboard(list(entries)).ok

	def leave(self) -> bool:
		"""离开当前游戏，回到注册界面；抽牌进行中时不允许"""
		if not self.store.session.registered or "draw" in self._in_flight:
			return False
		return self.store.reset().ok


__all__ = [
	"GameClient",
]
