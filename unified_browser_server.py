#!/usr/bin/env python3
"""
基于官方 MCP SDK 的统一浏览器 MCP 服务器

支持两种传输方式（由 BROWSER_MCP_TRANSPORT 环境变量选择）：
- stdio（默认）
- sse：Starlette + uvicorn

项目结构：
- browser_mcp/
  ├── __init__.py          # 模块导出
  ├── config.py            # 配置常量
  ├── errors.py            # 工具异常定义
  ├── models.py            # 数据模型
  ├── capture.py           # 网络 / 控制台捕获缓冲区
  ├── browser_manager.py   # 浏览器管理器（核心逻辑）
  └── tools.py             # MCP 工具定义与分发
"""
import asyncio
import contextlib
import json
import logging

from mcp import types
from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from browser_mcp import (
    BrowserManager,
    create_tools,
    handle_tool_call,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TRANSPORT,
)
from browser_mcp.config import LOG_FORMAT, LOG_LEVEL, SERVER_NAME, SERVER_VERSION

# 配置日志（输出到 stderr，stdio 传输时不会污染协议流）
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# 全局浏览器管理器实例
browser_manager = BrowserManager()

# 创建 MCP 服务器
app = Server(SERVER_NAME, version=SERVER_VERSION)


# 注册所有工具
@app.list_tools()
async def list_tools() -> list[types.Tool]:
    """列出所有可用的浏览器工具"""
    return create_tools()


# 注册工具调用处理器
@app.call_tool(validate_input=False)
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    """处理工具调用"""
    return await handle_tool_call(browser_manager, name, arguments)


# SSE 传输
sse_transport = SseServerTransport("/messages/")


async def handle_sse(request):
    """处理 SSE 连接"""
    logger.info(f"收到 SSE 连接请求: {request.method} {request.url}")

    if request.method not in ["GET", "POST"]:
        return Response(
            content=json.dumps({"error": "Method not allowed"}),
            status_code=405,
            media_type="application/json"
        )

    try:
        async with sse_transport.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            init_options = app.create_initialization_options()
            await app.run(streams[0], streams[1], init_options)
        logger.info("MCP 会话已结束")
        return Response()
    except Exception as e:
        logger.error(f"SSE 连接错误: {e}", exc_info=True)
        return Response(
            content=json.dumps({"error": str(e)}),
            status_code=500,
            media_type="application/json"
        )


async def health_check(request):
    """健康检查"""
    return JSONResponse({
        "status": "ok",
        "service": SERVER_NAME,
        "version": SERVER_VERSION,
        "browser_launched": browser_manager.session.is_live,
        "monitoring": browser_manager.session.monitoring_enabled,
    })


@contextlib.asynccontextmanager
async def lifespan(_app):
    yield
    logger.info("正在关闭浏览器...")
    await browser_manager.stop()


starlette_app = Starlette(
    routes=[
        Route("/sse", endpoint=handle_sse, methods=["GET", "POST"]),
        Route("/mcp", endpoint=handle_sse, methods=["GET", "POST"]),
        Mount("/messages/", app=sse_transport.handle_post_message),
        Route("/health", endpoint=health_check, methods=["GET"]),
    ],
    lifespan=lifespan,
)


async def run_stdio():
    """通过 stdio 运行 MCP 服务器"""
    logger.info(f"{SERVER_NAME} 运行于 stdio")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(read_stream, write_stream, app.create_initialization_options())
    finally:
        await browser_manager.stop()


def run_sse(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
    """启动 SSE 服务器"""
    import uvicorn

    display_host = host if host != "0.0.0.0" else "localhost"
    print("=" * 60)
    print("Unified Browser MCP SSE Server")
    print("=" * 60)
    print(f"服务器地址: http://{display_host}:{port}")
    print(f"SSE 端点: http://{display_host}:{port}/sse")
    print(f"消息端点: http://{display_host}:{port}/messages/")
    print(f"健康检查: http://{display_host}:{port}/health")
    print("\n按 Ctrl+C 停止服务器")
    print("=" * 60)

    uvicorn.run(starlette_app, host=host, port=port)


def main():
    """按配置的传输方式启动服务器"""
    transport = DEFAULT_TRANSPORT.lower()
    if transport == "sse":
        run_sse()
    elif transport == "stdio":
        asyncio.run(run_stdio())
    else:
        raise SystemExit(f"Unknown transport: {DEFAULT_TRANSPORT} (expected 'stdio' or 'sse')")


if __name__ == "__main__":
    main()
