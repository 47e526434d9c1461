"""
共享模块

存放客户端各层共用的代码，如常量、协议定义、错误类型。

组件说明：
- constants: 服务器地址、接口路径、重连参数、窗口参数、事件名
- protocols: 服务器 JSON 负载的数据结构与解析（排行榜、注册、抽卡）
- errors: 请求与推送通道的错误分类

提示：
- 解析函数遇到不合法负载统一抛出 errors.MalformedResponse
- 若新增公共工具，可在此模块下添加并在 __all__ 中显式导出
"""

from . import constants, errors, protocols

__all__ = ["constants", "errors", "protocols"]
