"""
Exploding Kitten - 联机抽卡游戏客户端

A real-time multiplayer card game client built with Python, asyncio and Pygame.
"""

__version__ = "0.1.0"
__author__ = "Exploding Kitten Team"
__license__ = "MIT"

# 导出主要组件
from . import client, shared

__all__ = ["client", "shared", "__version__"]
