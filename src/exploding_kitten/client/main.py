"""
客户端主程序入口

启动 Pygame 客户端：输入用户名开始游戏，点击牌堆抽牌，实时查看排行榜。
界面循环作为 asyncio 协程运行，与网络请求、推送通道共用同一个事件循环。
"""

import asyncio
import logging
from typing import Any, Set

import pygame

from exploding_kitten.client.config import load_config
from exploding_kitten.client.connection import ConnectionState
from exploding_kitten.client.game import GameClient
from exploding_kitten.client.ui import CardView, LeaderboardPanel, Notifications, StatusLine, load_font
from exploding_kitten.client.ui.button import Button
from exploding_kitten.client.ui.text_input import TextInput
from exploding_kitten.shared.constants import (
    BLUE,
    EVT_CARD_DRAWN,
    EVT_ERROR,
    EVT_GAVE_UP,
    EVT_LOST,
    EVT_REGISTERED,
    FPS,
    GRAY,
    GREEN,
    ORANGE,
    RED,
    WINDOW_HEIGHT,
    WINDOW_TITLE,
    WINDOW_WIDTH,
)

logger = logging.getLogger(__name__)

STATUS_TEXT = {
    ConnectionState.CONNECTED: ("Live updates connected", GREEN),
    ConnectionState.CONNECTING: ("Connecting...", ORANGE),
    ConnectionState.DISCONNECTED: ("Reconnecting...", ORANGE),
}


def setup_logging(level: str = "INFO") -> None:
    """配置日志：同时输出到 client.log 与终端"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler("client.log", encoding="utf-8"), logging.StreamHandler()],
    )


class ClientApp:
    """界面层：只读取会话状态，动作交给 GameClient"""

    def __init__(self, client: GameClient, screen: pygame.Surface) -> None:
        self.client = client
        self.screen = screen
        self.running = True
        self._tasks: Set[asyncio.Task] = set()

        w, h = screen.get_size()
        self.title_font = load_font(40)
        self.text_font = load_font(24)
        self.username_input = TextInput(pygame.Rect(w // 2 - 260, h // 2 - 30, 320, 48))
        self.username_input.on_submit = self._on_register
        self.start_button = Button(
            w // 2 + 80, h // 2 - 30, 180, 48, "Start Game",
            bg_color=BLUE, hover_bg_color=(80, 140, 240),
            on_click=lambda: self._on_register(self.username_input.text),
        )
        self.leave_button = Button(
            60, h - 120, 200, 44, "Leave game",
            bg_color=GRAY, hover_bg_color=(150, 150, 150),
            on_click=self.client.leave,
        )
        self.card_view = CardView(pygame.Rect(120, 170, 220, 300))
        self.leaderboard = LeaderboardPanel(pygame.Rect(w - 360, 110, 330, h - 180))
        self.notifications = Notifications()
        self.status = StatusLine()
        self._bind_events()

    def _bind_events(self) -> None:
        store = self.client.store
        store.on(EVT_REGISTERED, self._on_registered)
        store.on(EVT_CARD_DRAWN, self._on_card_drawn)
        store.on(EVT_LOST, lambda p: self.notifications.add(p["message"], RED, duration=4.0))
        self.client.on_ui(EVT_ERROR, lambda p: self.notifications.add(str(p["text"]), RED))
        if self.client.connection is not None:
            self.client.connection.on(
                EVT_GAVE_UP, lambda n: self.notifications.add("Live updates unavailable", GRAY, duration=4.0)
            )

    def _on_registered(self, session: Any) -> None:
        self.username_input.clear()
        self.username_input.active = False
        self.notifications.add(f"Welcome, {session.username}!")

    def _on_card_drawn(self, session: Any) -> None:
        self.card_view.flip()
        if session.last_message:
            self.notifications.add(session.last_message, BLUE)

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # 动作
    def _on_register(self, text: str) -> None:
        if text.strip():
            self._spawn(self.client.register(text))

    def _on_draw(self) -> None:
        if self.client.store.can_draw:
            self._spawn(self.client.draw())

    def _on_refresh(self) -> None:
        self._spawn(self.client.refresh_leaderboard())

    # 事件与渲染
    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.running = False
            return
        session = self.client.store.session
        if not session.registered:
            self.username_input.handle_event(event)
            self.start_button.handle_event(event)
        else:
            self.leave_button.handle_event(event)
        if (
            session.can_draw
            and event.type == pygame.MOUSEBUTTONUP
            and event.button == 1
            and self.card_view.hit(event.pos)
        ):
            self._on_draw()
        if event.type == pygame.KEYDOWN and not self.username_input.active:
            if event.key == pygame.K_SPACE:
                self._on_draw()
            elif event.key == pygame.K_r:
                self._on_refresh()

    def draw(self) -> None:
        store = self.client.store
        session = store.session
        self.screen.fill((235, 238, 245))
        title = self.title_font.render("Exploding Kitten", True, (20, 20, 20))
        self.screen.blit(title, (40, 40))

        if not session.registered:
            self.start_button.enabled = not self.client.busy
            self.username_input.draw(self.screen)
            self.start_button.draw(self.screen)
        else:
            welcome = self.text_font.render(f"Welcome, {session.username}!", True, (40, 40, 40))
            self.screen.blit(welcome, (40, 110))
            self.card_view.render(self.screen, session.last_card_drawn, session.deck_size, session.can_draw)
            if session.has_defuse:
                defuse = self.text_font.render("Defuse card ready", True, GREEN)
                self.screen.blit(defuse, (380, 200))
            if session.last_card_drawn:
                drawn = self.text_font.render(f"Card drawn: {session.last_card_drawn}", True, (40, 40, 40))
                self.screen.blit(drawn, (380, 170))
            self.leave_button.enabled = not self.client.busy
            self.leave_button.draw(self.screen)

        self.leaderboard.render(self.screen, store.leaderboard, highlight=session.username)
        connection = self.client.connection
        if connection is not None:
            text, color = STATUS_TEXT[connection.state]
            if connection.state is ConnectionState.DISCONNECTED and not connection.reconnecting:
                text, color = "Live updates offline (press R to refresh)", GRAY
            self.status.render(self.screen, text, color)
        self.notifications.render(self.screen)

    async def run(self) -> None:
        await self.client.start()
        try:
            while self.running:
                for event in pygame.event.get():
                    self.handle_event(event)
                self.draw()
                pygame.display.flip()
                # 让出事件循环给网络任务
                await asyncio.sleep(1 / FPS)
        finally:
            for task in list(self._tasks):
                task.cancel()
            await self.client.stop()


def main() -> None:
    """启动客户端主函数"""
    config = load_config()
    setup_logging(config.log_level)
    logger.info("=" * 50)
    logger.info("Exploding Kitten 客户端启动中...")
    logger.info("服务器地址: %s  推送通道: %s", config.base_url, config.ws_url)
    logger.info("=" * 50)

    pygame.init()
    screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.display.set_caption(WINDOW_TITLE)
    app = ClientApp(GameClient.from_config(config), screen)
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        logger.info("客户端正在关闭...")
    finally:
        pygame.quit()
        logger.info("客户端已停止")


if __name__ == "__main__":
    main()
