"""
用户界面模块

提供基础 UI 组件以支撑客户端表现层：
- 卡牌视图 CardView：牌堆背面/最近抽到的牌，带简单的翻牌计时
- 排行榜 LeaderboardPanel：渲染 SessionStore.leaderboard
- 通知 Notifications：一次性的提示（出局、请求失败等）
- 状态栏 StatusLine：推送通道连接状态（"重连中"提示）

该模块与 Pygame 紧耦合用于渲染，只读取会话状态，不负责网络逻辑；
所有动作通过 `exploding_kitten.client.game.GameClient` 发起。
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pygame

from exploding_kitten.shared.constants import CARD_BACK, NOTIFICATION_DURATION
from exploding_kitten.shared.protocols import LeaderboardEntry


def load_font(size: int, name: Optional[str] = None) -> pygame.font.Font:
	"""按名称加载系统字体，失败时退回默认字体"""
	try:
		return pygame.font.SysFont(name, size)
	except (OSError, pygame.error):
		return pygame.font.Font(None, size)


class CardView:
	"""卡牌组件：点击区域 + 翻牌动画计时"""

	FLIP_TIME = 1.0

	def __init__(self, rect: pygame.Rect, font: Optional[pygame.font.Font] = None):
		self.rect = rect
		self._font = font or load_font(64, "Segoe UI Emoji")
		self._label_font = load_font(20)
		self._flip_until = 0.0

	def flip(self) -> None:
		self._flip_until = time.time() + self.FLIP_TIME

	@property
	def flipped(self) -> bool:
		return time.time() < self._flip_until

	def hit(self, pos: Tuple[int, int]) -> bool:
		return self.rect.collidepoint(pos)

	def render(self, surface: pygame.Surface, card: Optional[str], deck_size: int, enabled: bool) -> None:
		# // 翻牌中边框高亮，不可抽牌时卡面变灰
		bg = (250, 250, 250) if enabled else (210, 210, 210)
		border = (80, 120, 200) if self.flipped else (100, 100, 100)
		shadow = self.rect.move(4, 4)
		pygame.draw.rect(surface, (150, 150, 150), shadow, border_radius=12)
		pygame.draw.rect(surface, bg, self.rect, border_radius=12)
		pygame.draw.rect(surface, border, self.rect, 3, border_radius=12)

		face = card if card else CARD_BACK
		surf = self._font.render(face, True, (20, 20, 20))
		surface.blit(surf, surf.get_rect(center=self.rect.center))

		label = self._label_font.render(f"Deck: {deck_size}", True, (40, 40, 40))
		surface.blit(label, label.get_rect(midtop=(self.rect.centerx, self.rect.bottom + 10)))


class LeaderboardPanel:
	"""排行榜面板"""

	def __init__(self, rect: pygame.Rect, title_font: Optional[pygame.font.Font] = None,
				 item_font: Optional[pygame.font.Font] = None):
		self.rect = rect
		self._title_font = title_font or load_font(26)
		self._item_font = item_font or load_font(20)

	def render(self, surface: pygame.Surface, entries: Sequence[LeaderboardEntry], highlight: str = "") -> None:
		pygame.draw.rect(surface, (250, 250, 250), self.rect, border_radius=8)
		pygame.draw.rect(surface, (200, 200, 200), self.rect, 2, border_radius=8)
		title = self._title_font.render("Leaderboard", True, (10, 10, 10))
		surface.blit(title, (self.rect.left + 10, self.rect.top + 8))

		y = self.rect.top + 16 + self._title_font.get_linesize()
		line_h = self._item_font.get_linesize() + 4
		if not entries:
			empty = self._item_font.render("No players yet", True, (130, 130, 130))
			surface.blit(empty, (self.rect.left + 10, y))
			return
		# // 服务器决定排序，客户端按原顺序展示
		for idx, entry in enumerate(entries, start=1):
			if y + line_h > self.rect.bottom:
				break
			color = (60, 110, 220) if entry.username == highlight else (40, 40, 40)
			line = f"{idx}. {entry.username}  W {entry.wins} / L {entry.losses}"
			surface.blit(self._item_font.render(line, True, color), (self.rect.left + 10, y))
			y += line_h


@dataclass
class Notification:
	text: str
	color: Tuple[int, int, int]
	end_time: float


class Notifications:
	"""屏幕顶部的临时通知"""

	def __init__(self, font: Optional[pygame.font.Font] = None):
		self._font = font or load_font(22)
		self.items: List[Notification] = []

	def add(self, text: str, color=(50, 200, 50), duration: float = NOTIFICATION_DURATION) -> None:
		self.items.append(Notification(text, color, time.time() + duration))

	def prune(self, now: Optional[float] = None) -> None:
		now = time.time() if now is None else now
		self.items = [n for n in self.items if n.end_time > now]

	def render(self, surface: pygame.Surface) -> None:
		self.prune()
		y = 12
		for n in self.items:
			surf = self._font.render(n.text, True, (255, 255, 255))
			box = surf.get_rect(midtop=(surface.get_width() // 2, y)).inflate(24, 12)
			pygame.draw.rect(surface, n.color, box, border_radius=8)
			surface.blit(surf, surf.get_rect(center=box.center))
			y = box.bottom + 6


class StatusLine:
	"""推送通道状态栏"""

	def __init__(self, font: Optional[pygame.font.Font] = None):
		self._font = font or load_font(18)

	def render(self, surface: pygame.Surface, text: str, color=(90, 90, 90)) -> None:
		surf = self._font.render(text, True, color)
		surface.blit(surf, (10, surface.get_height() - surf.get_height() - 8))


__all__ = [
	"load_font",
	"CardView",
	"LeaderboardPanel",
	"Notification",
	"Notifications",
	"StatusLine",
]
