"""
常量定义

定义客户端使用的各种常量：服务器地址、接口路径、重连策略与窗口参数。
"""

# 网络配置
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_SCHEME = "http"
REQUEST_TIMEOUT = 10.0  # 秒

# HTTP 接口
ENDPOINT_START_GAME = "/start-game"
ENDPOINT_DRAW_CARD = "/draw-card"
ENDPOINT_LEADERBOARD = "/leaderboard"
# 推送通道
ENDPOINT_WS = "/ws"

# 重连策略
RECONNECT_DELAY = 3.0  # 秒
RECONNECT_MAX_DELAY = 30.0
RECONNECT_MULTIPLIER = 2.0
RECONNECT_JITTER = 0.1  # 相对抖动比例
RECONNECT_MAX_ATTEMPTS = None  # None 表示不限次数

# 服务器返回的失败信号（draw-card 的 message 字段包含此子串即为出局）
LOSS_SIGNAL = "You lose!"
RESUME_SIGNAL = "Resuming game"

# 卡牌（服务器返回 emoji）
CARD_CAT = "😼"
CARD_DEFUSE = "🙅‍♂️"
CARD_SHUFFLE = "🔀"
CARD_EXPLODING_KITTEN = "💣"
CARD_BACK = "🂠"

# 窗口配置
WINDOW_WIDTH = 960
WINDOW_HEIGHT = 640
WINDOW_TITLE = "Exploding Kitten"
FPS = 60

# 颜色定义 (RGB)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
RED = (220, 60, 60)
GREEN = (50, 200, 50)
BLUE = (60, 110, 220)
GRAY = (128, 128, 128)
LIGHT_GRAY = (200, 200, 200)
ORANGE = (255, 165, 0)

# 通知显示时长（秒）
NOTIFICATION_DURATION = 2.5

# 会话事件
EVT_REGISTERED = "registered"
EVT_CARD_DRAWN = "card_drawn"
EVT_LOST = "lost"
EVT_LEADERBOARD = "leaderboard"
EVT_RESET = "reset"
EVT_ERROR = "error"

# 连接事件
EVT_STATE = "state"
EVT_CHANNEL_ERROR = "channel_error"
EVT_GAVE_UP = "gave_up"
