"""
Unified Browser MCP Server - 模块化结构

- config: 配置常量
- errors: 工具异常定义
- models: 数据模型
- capture: 网络请求 / 控制台消息捕获缓冲区
- browser_manager: 浏览器管理器核心类
- tools: MCP 工具定义与调用分发
"""

from .models import BrowserSession, NetworkRequest, ConsoleMessage
from .capture import CaptureBuffer
from .browser_manager import BrowserManager
from .tools import create_tools, handle_tool_call
from .config import DEFAULT_PORT, DEFAULT_HOST, DEFAULT_TRANSPORT

__all__ = [
    "BrowserSession",
    "NetworkRequest",
    "ConsoleMessage",
    "CaptureBuffer",
    "BrowserManager",
    "create_tools",
    "handle_tool_call",
    "DEFAULT_PORT",
    "DEFAULT_HOST",
    "DEFAULT_TRANSPORT",
]
