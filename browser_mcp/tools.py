"""
MCP 工具定义和调用处理
包含全部 13 个浏览器工具的定义
"""
import logging
from typing import Any, Dict, List, Optional

from mcp.types import Tool, TextContent

from .config import CONSOLE_TYPES, DEFAULT_VIEWPORT, DEFAULT_WAIT_UNTIL, WAIT_UNTIL_OPTIONS
from .errors import BrowserToolError, UnknownToolError

logger = logging.getLogger(__name__)

# 工具参数名（camelCase）到方法参数名的映射
ARGUMENT_ALIASES = {
    "waitUntil": "wait_until",
    "clearPrevious": "clear_previous",
    "waitForNavigation": "wait_for_navigation",
    "fullPage": "full_page",
    "filter": "url_filter",
    "type": "message_type",
}


def create_tools() -> List[Tool]:
    """创建并返回所有可用的浏览器工具列表"""
    return [
        Tool(
            name="launch_browser",
            description="Launch a new browser instance with DevTools monitoring enabled",
            inputSchema={
                "type": "object",
                "properties": {
                    "headless": {"type": "boolean", "description": "Run browser in headless mode", "default": False},
                    "viewport": {
                        "type": "object",
                        "properties": {
                            "width": {"type": "number", "default": DEFAULT_VIEWPORT["width"]},
                            "height": {"type": "number", "default": DEFAULT_VIEWPORT["height"]}
                        }
                    }
                }
            }
        ),
        Tool(
            name="navigate",
            description="Navigate to a URL",
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {"type": "string", "description": "URL to navigate to"},
                    "waitUntil": {"type": "string", "enum": list(WAIT_UNTIL_OPTIONS), "default": DEFAULT_WAIT_UNTIL}
                },
                "required": ["url"]
            }
        ),
        Tool(
            name="start_monitoring",
            description="Start capturing network requests, console messages, and other DevTools data",
            inputSchema={
                "type": "object",
                "properties": {
                    "clearPrevious": {"type": "boolean", "description": "Clear previously captured data", "default": True}
                }
            }
        ),
        Tool(
            name="fill_form_field",
            description="Fill a form field with a value",
            inputSchema={
                "type": "object",
                "properties": {
                    "selector": {"type": "string", "description": "CSS selector for the form field"},
                    "value": {"type": "string", "description": "Value to fill"}
                },
                "required": ["selector", "value"]
            }
        ),
        Tool(
            name="click_element",
            description="Click an element",
            inputSchema={
                "type": "object",
                "properties": {
                    "selector": {"type": "string", "description": "CSS selector for the element"},
                    "waitForNavigation": {"type": "boolean", "description": "Wait for navigation after click", "default": False}
                },
                "required": ["selector"]
            }
        ),
        Tool(
            name="submit_form",
            description="Submit a form",
            inputSchema={
                "type": "object",
                "properties": {
                    "selector": {"type": "string", "description": "CSS selector for the form or submit button"}
                },
                "required": ["selector"]
            }
        ),
        Tool(
            name="get_network_requests",
            description="Get all captured network requests with full headers and bodies",
            inputSchema={
                "type": "object",
                "properties": {
                    "filter": {"type": "string", "description": "Filter requests by URL pattern (optional)"}
                }
            }
        ),
        Tool(
            name="get_console_messages",
            description="Get all captured console messages",
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": list(CONSOLE_TYPES), "default": "all"}
                }
            }
        ),
        Tool(
            name="screenshot",
            description="Take a screenshot of the current page",
            inputSchema={
                "type": "object",
                "properties": {
                    "fullPage": {"type": "boolean", "description": "Capture full page", "default": False},
                    "selector": {"type": "string", "description": "CSS selector to screenshot specific element"}
                }
            }
        ),
        Tool(
            name="evaluate_script",
            description="Execute JavaScript in the page context",
            inputSchema={
                "type": "object",
                "properties": {
                    "script": {"type": "string", "description": "JavaScript code to execute"}
                },
                "required": ["script"]
            }
        ),
        Tool(
            name="get_performance_metrics",
            description="Get page performance metrics from Navigation Timing API",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="stop_monitoring",
            description="Stop monitoring and return summary",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="close_browser",
            description="Close the browser and cleanup",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
    ]


def _text(text: str) -> List[TextContent]:
    return [TextContent(type="text", text=text)]


async def handle_tool_call(browser_manager, name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
    """处理工具调用；任何异常都转换为 "Error: ..." 文本结果，不抛给传输层"""
    tool_methods = {
        "launch_browser": browser_manager.launch_browser,
        "navigate": browser_manager.navigate,
        "start_monitoring": browser_manager.start_monitoring,
        "fill_form_field": browser_manager.fill_form_field,
        "click_element": browser_manager.click_element,
        "submit_form": browser_manager.submit_form,
        "get_network_requests": browser_manager.get_network_requests,
        "get_console_messages": browser_manager.get_console_messages,
        "screenshot": browser_manager.screenshot,
        "evaluate_script": browser_manager.evaluate_script,
        "get_performance_metrics": browser_manager.get_performance_metrics,
        "stop_monitoring": browser_manager.stop_monitoring,
        "close_browser": browser_manager.close_browser,
    }

    try:
        if name not in tool_methods:
            raise UnknownToolError(f"Unknown tool: {name}")

        kwargs = {ARGUMENT_ALIASES.get(k, k): v for k, v in (arguments or {}).items()}
        result = await tool_methods[name](**kwargs)
        return _text(result)

    except BrowserToolError as e:
        logger.warning(f"工具 {name} 调用失败: {e}")
        return _text(f"Error: {e}")
    except Exception as e:
        logger.error(f"工具 {name} 调用异常: {e}", exc_info=True)
        return _text(f"Error: {e}")
