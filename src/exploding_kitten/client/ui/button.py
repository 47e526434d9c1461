import pygame
from typing import Callable, Optional, Tuple

from exploding_kitten.client.ui import load_font


class Button:
    """
    A clickable button in the UI.

    Supports separate background (`bg_color`) and foreground/text (`fg_color`)
    colors, a hover color, and an `enabled` flag: a disabled button is drawn
    greyed out and ignores clicks (e.g. "Start Game" while a registration is
    already in flight).
    """

    def __init__(
        self,
        x,
        y,
        width,
        height,
        text,
        bg_color=(0, 0, 0),
        fg_color=(255, 255, 255),
        hover_bg_color: Optional[tuple] = None,
        font_size=24,
        font_name=None,
        on_click: Optional[Callable[[], None]] = None,
    ):
        self.rect = pygame.Rect(x, y, width, height)
        self.text = text
        self.bg_color = bg_color
        self.hover_bg_color = hover_bg_color
        self.fg_color = fg_color
        self.font = load_font(font_size, font_name)
        self.pressed: bool = False
        self.hovered: bool = False
        self.enabled: bool = True
        self.on_click: Optional[Callable[[], None]] = on_click
        self._render_text()

    def _render_text(self) -> None:
        self.text_surface = self.font.render(self.text, True, self.fg_color)
        self.text_rect = self.text_surface.get_rect(center=self.rect.center)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Handle pygame mouse events to manage pressed state and clicks.

        - MOUSEMOTION: update hovered state
        - MOUSEBUTTONDOWN (left): set pressed True when hovered
        - MOUSEBUTTONUP (left): if was pressed and still hovered, trigger click
        """
        if event.type == pygame.MOUSEMOTION:
            self.hovered = self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.enabled and self.rect.collidepoint(event.pos):
                self.pressed = True
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            if self.pressed:
                self.pressed = False
                if self.enabled and self.rect.collidepoint(event.pos) and self.on_click:
                    self.on_click()

    def draw(self, screen: pygame.Surface) -> None:
        """Draw the button with shadow and rounded corners."""
        current_bg: Tuple[int, int, int] = self.bg_color
        if not self.enabled:
            current_bg = (170, 170, 170)
        elif self.hovered and self.hover_bg_color:
            current_bg = self.hover_bg_color

        # 按下时缩短阴影并将文本向右下偏移，模拟凹陷
        shadow_offset = 2 if self.pressed else 4
        shadow_rect = self.rect.move(shadow_offset, shadow_offset)
        pygame.draw.rect(screen, (150, 150, 150), shadow_rect, border_radius=8)
        if self.pressed:
            current_bg = tuple(max(0, c - 20) for c in current_bg)
        pygame.draw.rect(screen, current_bg, self.rect, border_radius=8)
        pygame.draw.rect(screen, (100, 100, 100), self.rect, 2, border_radius=8)

        if self.pressed:
            screen.blit(self.text_surface, (self.text_rect.x + 2, self.text_rect.y + 2))
        else:
            screen.blit(self.text_surface, self.text_rect)

    def update_text(self, new_text):
        """Update the button's text and re-render the surface."""
        self.text = new_text
        self._render_text()

    def set_position(self, x, y):
        """Update the button's position."""
        self.rect.topleft = (x, y)
        self.text_rect = self.text_surface.get_rect(center=self.rect.center)
