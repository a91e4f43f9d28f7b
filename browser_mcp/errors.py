"""
工具调用异常定义

所有异常都会在 tools.handle_tool_call 中被捕获，并转换为 "Error: ..." 文本结果。
"""


class BrowserToolError(Exception):
    """浏览器工具异常基类"""


class NoSessionError(BrowserToolError):
    """操作需要已启动的浏览器页面"""

    def __init__(self, message: str = "Browser not launched"):
        super().__init__(message)


class LaunchError(BrowserToolError):
    """浏览器启动失败"""


class NavigationError(BrowserToolError):
    """页面导航失败"""


class ElementNotFoundError(BrowserToolError):
    """选择器未匹配到任何元素"""


class ScriptError(BrowserToolError):
    """页面脚本执行抛出异常"""


class UnknownToolError(BrowserToolError):
    """未注册的工具名"""


class BodyCaptureError(BrowserToolError):
    """响应体读取失败（仅内部使用，不会返回给调用方）"""
