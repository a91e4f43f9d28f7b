"""
配置常量
"""
import os

# 服务器配置
SERVER_NAME = "unified-browser-mcp"
SERVER_VERSION = "1.0.0"
DEFAULT_HOST = os.getenv("BROWSER_MCP_HOST", "0.0.0.0")
DEFAULT_PORT = int(os.getenv("BROWSER_MCP_PORT", "3334"))

# 传输方式：stdio 或 sse
DEFAULT_TRANSPORT = os.getenv("BROWSER_MCP_TRANSPORT", "stdio")

# 日志配置
LOG_LEVEL = os.getenv("BROWSER_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 浏览器配置
DEFAULT_VIEWPORT = {"width": 1280, "height": 720}
ACTION_TIMEOUT_MS = 30000  # 与 Playwright 默认值一致

# 导航等待条件
DEFAULT_WAIT_UNTIL = "load"
WAIT_UNTIL_OPTIONS = ("load", "domcontentloaded", "networkidle")

# 控制台消息类型过滤
CONSOLE_TYPES = ("log", "warning", "error", "info", "all")

# 只抓取文本类响应体（避免二进制数据）
TEXT_CONTENT_MARKERS = ("text", "json")

NO_TIMING_DATA = {"error": "No navigation timing data available"}
