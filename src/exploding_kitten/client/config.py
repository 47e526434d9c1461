"""
客户端配置

服务器地址等参数不写死在代码里：先读取可选的 JSON 设置文件，
再由环境变量覆盖。非法的数值会回退到默认值并记录警告。
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from exploding_kitten.shared.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SCHEME,
    ENDPOINT_WS,
    RECONNECT_DELAY,
    RECONNECT_JITTER,
    RECONNECT_MAX_ATTEMPTS,
    RECONNECT_MAX_DELAY,
    RECONNECT_MULTIPLIER,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "KITTEN_"


@dataclass
class ClientConfig:
    """客户端运行配置"""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    scheme: str = DEFAULT_SCHEME
    base_url_override: Optional[str] = None
    ws_url_override: Optional[str] = None
    request_timeout: float = REQUEST_TIMEOUT
    reconnect_delay: float = RECONNECT_DELAY
    reconnect_max_delay: float = RECONNECT_MAX_DELAY
    reconnect_multiplier: float = RECONNECT_MULTIPLIER
    reconnect_jitter: float = RECONNECT_JITTER
    reconnect_max_attempts: Optional[int] = RECONNECT_MAX_ATTEMPTS
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        if self.base_url_override:
            return self.base_url_override.rstrip("/")
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def ws_url(self) -> str:
        if self.ws_url_override:
            return self.ws_url_override
        ws_scheme = "wss" if self.scheme == "https" else "ws"
        return f"{ws_scheme}://{self.host}:{self.port}{ENDPOINT_WS}"


def _read_settings(path: Optional[Path]) -> Dict[str, Any]:
    """从 JSON 文件加载设置（如果存在）。"""
    if path is None or not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("加载设置失败: %s", exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("设置文件格式错误: %s", path)
        return {}
    return data


def _number(raw: Any, default, cast, name: str):
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        logger.warning("配置项 %s 非法: %r，使用默认值 %r", name, raw, default)
        return default
    if value < 0:
        logger.warning("配置项 %s 不能为负: %r，使用默认值 %r", name, raw, default)
        return default
    return value


def _url(raw: Any, name: str) -> Optional[str]:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        logger.warning("配置项 %s 必须是字符串: %r，已忽略", name, raw)
        return None
    return raw


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    settings_path: Optional[Path] = None,
) -> ClientConfig:
    """构建 ClientConfig：默认值 < 设置文件 < 环境变量"""
    env = os.environ if environ is None else environ
    if settings_path is None and env.get(ENV_PREFIX + "SETTINGS"):
        settings_path = Path(env[ENV_PREFIX + "SETTINGS"])
    values: Dict[str, Any] = _read_settings(settings_path)

    # 环境变量覆盖设置文件
    for key in (
        "host",
        "port",
        "scheme",
        "base_url",
        "ws_url",
        "request_timeout",
        "reconnect_delay",
        "reconnect_max_delay",
        "reconnect_multiplier",
        "reconnect_jitter",
        "reconnect_max_attempts",
        "log_level",
    ):
        raw = env.get(ENV_PREFIX + key.upper())
        if raw is not None and raw != "":
            values[key] = raw

    cfg = ClientConfig()
    cfg.host = str(values.get("host") or DEFAULT_HOST)
    cfg.port = _number(values.get("port"), DEFAULT_PORT, int, "port")
    scheme = str(values.get("scheme") or DEFAULT_SCHEME).lower()
    if scheme not in ("http", "https"):
        logger.warning("不支持的 scheme %r，使用 %s", scheme, DEFAULT_SCHEME)
        scheme = DEFAULT_SCHEME
    cfg.scheme = scheme
    cfg.base_url_override = _url(values.get("base_url"), "base_url")
    cfg.ws_url_override = _url(values.get("ws_url"), "ws_url")
    cfg.request_timeout = _number(values.get("request_timeout"), REQUEST_TIMEOUT, float, "request_timeout")
    cfg.reconnect_delay = _number(values.get("reconnect_delay"), RECONNECT_DELAY, float, "reconnect_delay")
    cfg.reconnect_max_delay = _number(
        values.get("reconnect_max_delay"), RECONNECT_MAX_DELAY, float, "reconnect_max_delay"
    )
    cfg.reconnect_multiplier = _number(
        values.get("reconnect_multiplier"), RECONNECT_MULTIPLIER, float, "reconnect_multiplier"
    )
    cfg.reconnect_jitter = _number(values.get("reconnect_jitter"), RECONNECT_JITTER, float, "reconnect_jitter")
    cfg.reconnect_max_attempts = _number(
        values.get("reconnect_max_attempts"), RECONNECT_MAX_ATTEMPTS, int, "reconnect_max_attempts"
    )
    cfg.log_level = str(values.get("log_level") or "INFO").upper()
    return cfg


__all__ = ["ClientConfig", "load_config"]
