"""
客户端模块

负责会话状态、推送通道、HTTP 请求以及 Pygame 界面。

模块组成：
- session: 会话存储（唯一的客户端游戏状态来源）
- connection: 推送通道连接管理与重连策略
- network: 无状态的 HTTP 请求网关
- game: 把 UI 动作、网关、会话、连接组合到一起的 GameClient
- config: 从环境变量/设置文件读取服务器地址等配置
- ui: UI 组件（按钮、输入框、排行榜、通知），只读取会话状态

入口提示：
- 运行 exploding-kitten（或 python -m exploding_kitten.client.main）启动客户端
"""

from . import config, connection, game, network, session

__all__ = ["config", "connection", "game", "network", "session"]
