"""
错误类型

请求类失败（NetworkError / ServerError / MalformedResponse）由网关抛出，
由 GameClient 转换为一次性通知；ChannelError 只在连接管理器内部使用，
不会作为致命错误传递给 UI。
"""

from typing import Any, Optional


class GameClientError(Exception):
    """客户端错误基类"""


class NetworkError(GameClientError):
    """请求无法发送或响应无法接收"""


class ServerError(GameClientError):
    """服务器返回非成功状态码"""

    def __init__(self, status: int, body: Any = None):
        self.status = status
        self.body = body
        super().__init__(f"server returned {status}: {body!r}")

    @property
    def server_message(self) -> Optional[str]:
        """服务器在错误响应中携带的 message/error 字段（若有）"""
        if isinstance(self.body, dict):
            msg = self.body.get("message") or self.body.get("error")
            if msg:
                return str(msg)
        return None


class MalformedResponse(GameClientError):
    """响应结构与约定不符（缺少字段、类型错误或不是 JSON）"""


class ChannelError(GameClientError):
    """推送通道传输故障，非致命，会触发重连"""


__all__ = [
    "GameClientError",
    "NetworkError",
    "ServerError",
    "MalformedResponse",
    "ChannelError",
]
