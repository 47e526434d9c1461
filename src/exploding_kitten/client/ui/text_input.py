import pygame
from typing import Callable, Optional, Tuple

from exploding_kitten.client.ui import load_font

MAX_LENGTH = 32


class TextInput:
    """
    简易文本输入框：用于输入用户名。

    功能特性：
    - 点击激活；Enter 提交内容；Esc 取消激活；Backspace 删除字符
    - 支持输入长度限制（最多 32 字符）
    - 占位符提示（输入框为空时显示）
    - `on_submit` 回调在提交时触发，参数为去掉首尾空白的文本
    """

    def __init__(
        self,
        rect: pygame.Rect,
        font_name: Optional[str] = None,
        font_size: int = 24,
        text_color: Tuple[int, int, int] = (0, 0, 0),
        bg_color: Tuple[int, int, int] = (240, 240, 240),
        placeholder: str = "Enter your username",
    ) -> None:
        self.rect = rect
        self.text = ""
        self.placeholder = placeholder
        self.text_color = text_color
        self.bg_color = bg_color
        self.active = False
        self.font = load_font(font_size, font_name)
        self.on_submit: Optional[Callable[[str], None]] = None

    def submit(self) -> None:
        """提交当前内容；空内容不触发回调"""
        value = self.text.strip()
        if value and self.on_submit:
            self.on_submit(value)

    def handle_event(self, event: pygame.event.Event) -> None:
        """处理键盘和鼠标事件

        TEXTINPUT 负责字符输入（支持输入法），KEYDOWN 只处理控制键。
        """
        if event.type == pygame.MOUSEBUTTONDOWN:
            was_active = self.active
            self.active = self.rect.collidepoint(event.pos)
            if self.active and not was_active:
                pygame.key.start_text_input()
            elif was_active and not self.active:
                pygame.key.stop_text_input()
        elif event.type == pygame.KEYDOWN and self.active:
            if event.key == pygame.K_RETURN:
                self.submit()
            elif event.key == pygame.K_ESCAPE:
                self.active = False
                pygame.key.stop_text_input()
            elif event.key == pygame.K_BACKSPACE:
                self.text = self.text[:-1]
        elif event.type == pygame.TEXTINPUT and self.active:
            remaining = MAX_LENGTH - len(self.text)
            if remaining > 0:
                self.text += event.text[:remaining]

    def clear(self) -> None:
        self.text = ""

    def draw(self, screen: pygame.Surface) -> None:
        """每帧渲染输入框到屏幕"""
        shadow = self.rect.move(3, 3)
        pygame.draw.rect(screen, (200, 200, 200), shadow, border_radius=6)
        pygame.draw.rect(screen, self.bg_color, self.rect, border_radius=6)
        # 激活时蓝色高亮边框
        border_color = (80, 120, 200) if self.active else (180, 180, 180)
        pygame.draw.rect(screen, border_color, self.rect, 2, border_radius=6)

        txt = self.text if (self.text or self.active) else self.placeholder
        color = self.text_color if self.text or self.active else (130, 130, 130)
        surf = self.font.render(txt, True, color)
        screen.blit(surf, (self.rect.x + 8, self.rect.y + (self.rect.height - surf.get_height()) // 2))
