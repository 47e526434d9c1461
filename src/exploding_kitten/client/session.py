"""
会话存储

客户端唯一的游戏状态来源，只能通过下列转换修改：
- apply_registration: 注册成功后写入用户名与牌堆大小
- apply_draw_result: 记录抽到的牌；出局时一次性清空会话
- apply_leaderboard: 整体替换排行榜
- reset: 主动离开当前游戏

所有转换都是同步的，在事件循环中天然原子；会话本身是不可变快照，
每次转换只做一次赋值，推送回调不可能读到半更新的状态。
转换从不抛出异常，而是返回 StoreResult。
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from exploding_kitten.shared.constants import (
	EVT_CARD_DRAWN,
	EVT_LEADERBOARD,
	EVT_LOST,
	EVT_REGISTERED,
	EVT_RESET,
)
from exploding_kitten.shared.errors import MalformedResponse
from exploding_kitten.shared.protocols import LeaderboardEntry, card_kind, is_elimination, parse_entries

logger = logging.getLogger(__name__)

# 服务器成功拆弹时的文案
DEFUSED_SIGNAL = "defused"


@dataclass(frozen=True)
class Session:
	"""当前玩家的游戏进度快照"""

	username: str = ""
	deck_size: int = 0
	last_card_drawn: Optional[str] = None
	game_over: bool = False
	has_defuse: bool = False
	last_message: Optional[str] = None

	@property
	def can_draw(self) -> bool:
		return bool(self.username) and not self.game_over

	@property
	def registered(self) -> bool:
		return bool(self.username)


@dataclass(frozen=True)
class StoreResult:
	"""转换结果：ok 为 False 时 error 给出原因"""

	ok: bool
	error: Optional[str] = None

	def __bool__(self) -> bool:
		return self.ok


INVALID_USERNAME = "invalid_username"
ALREADY_REGISTERED = "already_registered"
CANNOT_DRAW = "cannot_draw"
STALE_EPOCH = "stale_epoch"
MALFORMED = "malformed"

_OK = StoreResult(True)


class SessionStore:
	"""会话存储：持有唯一的 Session 与排行榜"""

	def __init__(self) -> None:
		self._session = Session()
		self._leaderboard: Tuple[LeaderboardEntry, ...] = ()
		# // 会话纪元：注册、出局、重置时递增，用于丢弃过期的请求结果
		self._epoch = 0
		self._handlers: Dict[str, List[Callable[[Any], None]]] = {}

	# 只读视图
	@property
	def session(self) -> Session:
		return self._session

	@property
	def leaderboard(self) -> Tuple[LeaderboardEntry, ...]:
		return self._leaderboard

	@property
	def epoch(self) -> int:
		return self._epoch

	@property
	def can_draw(self) -> bool:
		return self._session.can_draw

	# 事件订阅
	def on(self, event: str, handler: Callable[[Any], None]) -> None:
		self._handlers.setdefault(event, []).append(handler)

	def _emit(self, event: str, payload: Any = None) -> None:
		for cb in list(self._handlers.get(event, ())):
			try:
				cb(payload)
			except Exception:
				logger.exception("会话事件处理器出错: %s", event)

	def _commit(self, session: Session) -> None:
		# // 单次赋值完成转换
		self._session = session

	# 转换
	def check_registration(self, username: str) -> StoreResult:
		"""检查注册前置条件，不修改状态"""
		if not isinstance(username, str) or not username.strip():
			return StoreResult(False, INVALID_USERNAME)
		if self._session.username:
			return StoreResult(False, ALREADY_REGISTERED)
		return _OK

	def apply_registration(self, username: str, deck_size: int = 0) -> StoreResult:
		"""注册成功后写入会话；已注册时明确拒绝，保留进行中的游戏"""
		check = self.check_registration(username)
		if not check:
			logger.info("拒绝注册 %r: %s", username, check.error)
			return check
		if isinstance(deck_size, bool) or not isinstance(deck_size, int) or deck_size < 0:
			logger.warning("注册响应中的牌堆大小不合法: %r", deck_size)
			return StoreResult(False, MALFORMED)
		self._epoch += 1
		self._commit(Session(
			username=username.strip(),
			deck_size=deck_size,
		))
		logger.info("玩家 %s 注册成功，牌堆 %d 张", self._session.username, deck_size)
		self._emit(EVT_REGISTERED, self._session)
		return _OK

	def apply_draw_result(self, card: str, outcome_message: str, epoch: Optional[int] = None) -> StoreResult:
		"""记录一次抽牌结果。

		Args:
			card: 服务器返回的卡牌标识
			outcome_message: 服务器返回的结果文案，包含出局信号时清空会话
			epoch: 发起请求时的会话纪元；与当前不一致说明会话已重置，结果被丢弃

		牌堆大小与胜负由服务器决定，这里只记录服务器告知的内容。
		"""
		if epoch is not None and epoch != self._epoch:
			logger.info("丢弃过期的抽牌结果 %r (epoch %s != %s)", card, epoch, self._epoch)
			return StoreResult(False, STALE_EPOCH)
		current = self._session
		if not current.can_draw:
			return StoreResult(False, CANNOT_DRAW)
		if not isinstance(card, str) or not card or not isinstance(outcome_message, (str, type(None))):
			logger.warning("抽牌结果不合法: %r %r", card, outcome_message)
			return StoreResult(False, MALFORMED)

		if is_elimination(outcome_message):
			# // 出局：一次性清空会话，准备重新注册
			self._epoch += 1
			self._commit(Session(last_message=outcome_message))
			logger.info("玩家 %s 出局: %s", current.username, outcome_message)
			self._emit(EVT_LOST, {"username": current.username, "card": card, "message": outcome_message})
			return _OK

		kind = card_kind(card)
		has_defuse = current.has_defuse
		if kind == "defuse":
			has_defuse = True
		elif kind == "exploding_kitten" and DEFUSED_SIGNAL in (outcome_message or ""):
			has_defuse = False

		self._commit(dataclasses.replace(
			current,
			last_card_drawn=card,
			last_message=outcome_message,
			has_defuse=has_defuse,
		))
		self._emit(EVT_CARD_DRAWN, self._session)
		return _OK

	def apply_leaderboard(self, entries: Any) -> StoreResult:
		"""整体替换排行榜；缺字段的条目被丢弃"""
		try:
			parsed, dropped = parse_entries(entries)
		except MalformedResponse as exc:
			logger.warning("排行榜负载不合法: %s", exc)
			return StoreResult(False, MALFORMED)
		if dropped:
			logger.warning("排行榜丢弃 %d 条不完整记录", dropped)
		self._leaderboard = parsed
		self._emit(EVT_LEADERBOARD, parsed)
		return _OK

	def reset(self) -> StoreResult:
		"""清空会话（玩家主动离开当前游戏）"""
		self._epoch += 1
		self._commit(Session())
		self._emit(EVT_RESET, self._session)
		return _OK


__all__ = [
	"Session",
	"StoreResult",
	"SessionStore",
	"INVALID_USERNAME",
	"ALREADY_REGISTERED",
	"CANNOT_DRAW",
	"STALE_EPOCH",
	"MALFORMED",
]
