"""
协议定义

服务器交互使用的 JSON 数据结构与解析函数。解析函数只做结构校验，
不合法时抛出 MalformedResponse，由调用方决定如何处理。

- Registration: /start-game 响应
- DrawResult: /draw-card 响应
- LeaderboardEntry: 排行榜条目（HTTP 与推送通道共用）
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from exploding_kitten.shared.constants import (
    CARD_CAT,
    CARD_DEFUSE,
    CARD_EXPLODING_KITTEN,
    CARD_SHUFFLE,
    LOSS_SIGNAL,
    RESUME_SIGNAL,
)
from exploding_kitten.shared.errors import MalformedResponse

logger = logging.getLogger(__name__)

# 卡牌 emoji -> 类型
CARD_KINDS: Dict[str, str] = {
    CARD_CAT: "cat",
    CARD_DEFUSE: "defuse",
    CARD_SHUFFLE: "shuffle",
    CARD_EXPLODING_KITTEN: "exploding_kitten",
}


@dataclass(frozen=True)
class LeaderboardEntry:
    """排行榜条目"""

    username: str
    wins: int = 0
    losses: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "wins": self.wins, "losses": self.losses}


@dataclass(frozen=True)
class Registration:
    deck_size: int
    resumed: bool = False
    message: Optional[str] = None


@dataclass(frozen=True)
class DrawResult:
    card: str
    message: str

    @property
    def kind(self) -> str:
        return card_kind(self.card)

    @property
    def is_elimination(self) -> bool:
        return is_elimination(self.message)


def card_kind(card: Optional[str]) -> str:
    """根据服务器返回的 emoji 判断卡牌类型，未知的返回 "unknown"。"""
    if not card:
        return "unknown"
    return CARD_KINDS.get(card, "unknown")


def is_elimination(message: Optional[str]) -> bool:
    """出局判定。

    服务器没有结构化的结果码，只能匹配 message 中的固定文案。
    """
    return bool(message) and LOSS_SIGNAL in str(message)


def _as_count(value: Any) -> int:
    # 原服务器把数据存在 Redis hash 中，数字可能以字符串形式推送
    if isinstance(value, bool):
        raise ValueError("bool is not a count")
    if isinstance(value, int):
        count = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        count = int(value.strip())
    else:
        raise ValueError(f"not an integer: {value!r}")
    if count < 0:
        raise ValueError(f"negative count: {count}")
    return count


def parse_entry(raw: Any) -> LeaderboardEntry:
    """解析单条排行榜记录，缺少字段时抛出 MalformedResponse"""
    if not isinstance(raw, dict):
        raise MalformedResponse(f"leaderboard entry is not an object: {raw!r}")
    try:
        username = raw["username"]
        wins = _as_count(raw["wins"])
        losses = _as_count(raw["losses"])
    except (KeyError, ValueError) as exc:
        raise MalformedResponse(f"bad leaderboard entry {raw!r}: {exc}") from exc
    if not isinstance(username, str) or not username:
        raise MalformedResponse(f"bad leaderboard username: {raw!r}")
    return LeaderboardEntry(username=username, wins=wins, losses=losses)


def parse_entries(items: Any) -> Tuple[Tuple[LeaderboardEntry, ...], int]:
    """解析条目序列。

    不合法的条目被丢弃而不是让整个更新失败。

    Returns:
        (条目元组, 丢弃数量)
    """
    if not isinstance(items, (list, tuple)):
        raise MalformedResponse(f"leaderboard is not a list: {items!r}")
    entries: List[LeaderboardEntry] = []
    dropped = 0
    for raw in items:
        if isinstance(raw, LeaderboardEntry):
            entries.append(raw)
            continue
        try:
            entries.append(parse_entry(raw))
        except MalformedResponse as exc:
            dropped += 1
            logger.debug("丢弃排行榜条目: %s", exc)
    return tuple(entries), dropped


def extract_leaderboard(payload: Any) -> Any:
    """从负载中取出排行榜列表：裸数组或 {"leaderboard": [...]} 均可"""
    if isinstance(payload, dict):
        if "leaderboard" not in payload:
            raise MalformedResponse("missing 'leaderboard' field")
        payload = payload["leaderboard"]
    if not isinstance(payload, list):
        raise MalformedResponse(f"leaderboard is not a list: {payload!r}")
    return payload


def decode_frame(frame: Union[str, bytes]) -> Any:
    """解码推送通道中的一帧 JSON"""
    if isinstance(frame, (bytes, bytearray)):
        frame = frame.decode("utf-8", errors="replace")
    try:
        return json.loads(frame)
    except ValueError as exc:
        raise MalformedResponse(f"frame is not JSON: {exc}") from exc


def parse_registration(data: Any) -> Registration:
    """解析 /start-game 响应，只关心牌堆长度"""
    if not isinstance(data, dict):
        raise MalformedResponse("start-game response is not an object")
    deck = data.get("deck")
    if not isinstance(deck, list):
        raise MalformedResponse("start-game response has no 'deck' list")
    message = data.get("message")
    message = str(message) if message is not None else None
    resumed = bool(message) and RESUME_SIGNAL in message
    return Registration(deck_size=len(deck), resumed=resumed, message=message)


def parse_draw(data: Any) -> DrawResult:
    """解析 /draw-card 响应"""
    if not isinstance(data, dict):
        raise MalformedResponse("draw-card response is not an object")
    card = data.get("card")
    message = data.get("message")
    if not isinstance(card, str) or not card:
        raise MalformedResponse("draw-card response has no 'card'")
    if not isinstance(message, str):
        raise MalformedResponse("draw-card response has no 'message'")
    return DrawResult(card=card, message=message)


__all__ = [
    "CARD_KINDS",
    "LeaderboardEntry",
    "Registration",
    "DrawResult",
    "card_kind",
    "is_elimination",
    "parse_entry",
    "parse_entries",
    "extract_leaderboard",
    "decode_frame",
    "parse_registration",
    "parse_draw",
]
