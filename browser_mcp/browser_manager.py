"""
Playwright 浏览器管理器核心类
持有唯一的 browser/context/page 会话，并实现所有浏览器工具操作
"""
import json
import logging
import re
from typing import Any, Dict, Optional

from playwright.async_api import (
    async_playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from .capture import CaptureBuffer
from .config import (
    ACTION_TIMEOUT_MS,
    DEFAULT_VIEWPORT,
    DEFAULT_WAIT_UNTIL,
    NO_TIMING_DATA,
    WAIT_UNTIL_OPTIONS,
)
from .errors import (
    ElementNotFoundError,
    LaunchError,
    NavigationError,
    NoSessionError,
    ScriptError,
)
from .models import BrowserSession

logger = logging.getLogger(__name__)


PERFORMANCE_METRICS_SCRIPT = """() => {
    const perfData = performance.getEntriesByType('navigation')[0];
    if (!perfData) {
        return null;
    }
    return {
        domContentLoaded: perfData.domContentLoadedEventEnd - perfData.domContentLoadedEventStart,
        loadComplete: perfData.loadEventEnd - perfData.loadEventStart,
        domInteractive: perfData.domInteractive - perfData.fetchStart,
        totalTime: perfData.loadEventEnd - perfData.fetchStart,
        dns: perfData.domainLookupEnd - perfData.domainLookupStart,
        tcp: perfData.connectEnd - perfData.connectStart,
        request: perfData.responseStart - perfData.requestStart,
        response: perfData.responseEnd - perfData.responseStart,
    };
}"""


# return 语句（不匹配 returnUrl、window.returnValue 等标识符）
RETURN_STATEMENT_PATTERN = re.compile(r'(^|[;{}\s])return\b')
# 单参数箭头函数，如 x => x、async el => el.id
ARROW_PARAM_PATTERN = re.compile(r'^(async\s+)?[A-Za-z_$][\w$]*\s*=>')


def normalize_script(script: str) -> str:
    """把包含 return 的函数体包装成箭头函数，函数表达式原样返回"""
    code = script.strip()

    is_function_expression = (
        code.startswith('function') or
        code.startswith('async function') or
        code.startswith('(') or
        code.startswith('()') or
        code.startswith('async (') or
        code.startswith('async ()') or
        ARROW_PARAM_PATTERN.match(code) is not None
    )

    if RETURN_STATEMENT_PATTERN.search(code) and not is_function_expression:
        code = f"() => {{\n{code}\n}}"
    return code


class BrowserManager:
    """Playwright 浏览器管理器（单会话）"""

    def __init__(self):
        self.session = BrowserSession()
        self.capture = CaptureBuffer()

    def require_page(self):
        """获取当前页面，浏览器未启动时立即失败"""
        if not self.session.is_live:
            raise NoSessionError()
        return self.session.page

    # 会话管理
    async def launch_browser(self, headless: bool = False, viewport: Optional[Dict[str, int]] = None) -> str:
        """启动浏览器；已有会话时先关闭旧会话"""
        await self._release_browser()

        size = dict(DEFAULT_VIEWPORT)
        if viewport:
            size.update({k: int(v) for k, v in viewport.items() if k in ("width", "height")})

        browser = None
        try:
            if self.session.playwright is None:
                self.session.playwright = await async_playwright().start()
            browser = await self.session.playwright.chromium.launch(headless=headless)
            context = await browser.new_context(viewport=size)
            page = await context.new_page()
        except PlaywrightError as e:
            if browser is not None:
                await self._close_quietly(browser)
            raise LaunchError(f"Failed to launch browser: {e.message}") from e

        self.session.browser = browser
        self.session.context = context
        self.session.page = page
        logger.info(f"浏览器已启动: headless={headless}, viewport={size['width']}x{size['height']}")
        return "Browser launched successfully"

    async def close_browser(self) -> str:
        """关闭浏览器（幂等）"""
        if self.session.browser is not None:
            await self._release_browser()
            logger.info("浏览器已关闭")
        return "Browser closed"

    async def stop(self):
        """关闭会话并停止 Playwright 驱动（进程退出时调用）"""
        await self._release_browser()
        if self.session.playwright is not None:
            await self.session.playwright.stop()
            self.session.playwright = None

    async def _release_browser(self):
        browser = self.session.browser
        self.session.clear_handles()
        if browser is not None:
            await self._close_quietly(browser)

    @staticmethod
    async def _close_quietly(browser):
        try:
            await browser.close()
        except PlaywrightError as e:
            logger.warning(f"关闭浏览器失败（已忽略）: {e.message}")

    # 导航操作
    async def navigate(self, url: str, wait_until: str = DEFAULT_WAIT_UNTIL) -> str:
        """导航到指定 URL"""
        page = self.require_page()
        if wait_until not in WAIT_UNTIL_OPTIONS:
            raise ValueError(
                f"Invalid waitUntil '{wait_until}', expected one of: {', '.join(WAIT_UNTIL_OPTIONS)}"
            )

        try:
            await page.goto(url, wait_until=wait_until)
        except PlaywrightError as e:
            raise NavigationError(f"Navigation to {url} failed: {e.message}") from e

        logger.info(f"已导航到 {url} (waitUntil={wait_until})")
        return f"Navigated to {url}"

    # 监控
    async def start_monitoring(self, clear_previous: bool = True) -> str:
        """开始捕获网络请求和控制台消息"""
        page = self.require_page()

        if clear_previous:
            self.capture.clear()

        # 每个页面只注册一次监听器，避免重复记录
        if not self.session.listeners_attached:
            page.on("request", self._on_request)
            page.on("response", self._on_response)
            page.on("console", self._on_console)
            self.session.listeners_attached = True

        self.session.monitoring_enabled = True
        logger.info(f"开始监控: clearPrevious={clear_previous}")
        return "Monitoring started - capturing network requests and console messages"

    async def stop_monitoring(self) -> str:
        """停止监控并返回汇总"""
        self.require_page()
        self.session.monitoring_enabled = False

        summary = self.capture.summary()
        logger.info(
            f"停止监控: {summary['totalRequests']} 个请求, {summary['totalConsoleMessages']} 条控制台消息"
        )
        return f"Monitoring stopped\n\nSummary:\n{json.dumps(summary, indent=2)}"

    def _on_request(self, request):
        if self.session.monitoring_enabled:
            self.capture.record_request(request)

    async def _on_response(self, response):
        await self.capture.record_response(response)

    def _on_console(self, msg):
        if self.session.monitoring_enabled:
            self.capture.record_console(msg)

    async def get_network_requests(self, url_filter: Optional[str] = None) -> str:
        """获取已捕获的网络请求（可按 URL 子串过滤）"""
        self.require_page()
        requests = self.capture.get_requests(url_filter)
        return json.dumps([r.to_dict() for r in requests], ensure_ascii=False, indent=2)

    async def get_console_messages(self, message_type: Optional[str] = "all") -> str:
        """获取已捕获的控制台消息（可按类型过滤）"""
        self.require_page()
        messages = self.capture.get_console_messages(message_type)
        return json.dumps([m.to_dict() for m in messages], ensure_ascii=False, indent=2)

    # 页面交互
    async def fill_form_field(self, selector: str, value: str) -> str:
        """填写表单字段"""
        page = self.require_page()
        if not selector:
            raise ValueError("selector must be a non-empty string")

        try:
            await page.fill(selector, value, timeout=ACTION_TIMEOUT_MS)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"No element found for selector: {selector}") from e

        return f"Filled field {selector} with value"

    async def click_element(self, selector: str, wait_for_navigation: bool = False) -> str:
        """点击元素；需要等待导航时先注册导航等待再点击"""
        page = self.require_page()

        if not wait_for_navigation:
            await self._click(page, selector)
            return f"Clicked element {selector}"

        # 点击超时在 async with 内部转换，退出时的超时只可能来自导航等待
        try:
            async with page.expect_navigation():
                await self._click(page, selector)
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Navigation after clicking {selector} did not happen: {e.message}") from e

        return f"Clicked element {selector}"

    @staticmethod
    async def _click(page, selector: str):
        try:
            await page.click(selector, timeout=ACTION_TIMEOUT_MS)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"No element found for selector: {selector}") from e

    async def submit_form(self, selector: str) -> str:
        """提交表单（点击表单或提交按钮）"""
        page = self.require_page()
        await self._click(page, selector)
        return f"Submitted form via {selector}"

    # 页面信息获取
    async def screenshot(self, full_page: bool = False, selector: Optional[str] = None) -> str:
        """截图，只返回字节数，不保存图片"""
        page = self.require_page()

        if selector:
            try:
                image = await page.locator(selector).screenshot(timeout=ACTION_TIMEOUT_MS)
            except PlaywrightTimeoutError as e:
                raise ElementNotFoundError(f"No element found for selector: {selector}") from e
        else:
            image = await page.screenshot(full_page=full_page)

        return f"Screenshot captured ({len(image)} bytes)"

    async def evaluate_script(self, script: str) -> str:
        """在页面上下文中执行 JavaScript，返回 JSON 序列化结果"""
        page = self.require_page()

        try:
            result = await page.evaluate(normalize_script(script))
        except PlaywrightError as e:
            raise ScriptError(f"Script evaluation failed: {e.message}") from e

        return json.dumps(result, ensure_ascii=False, indent=2, default=str)

    async def get_performance_metrics(self) -> str:
        """从 Navigation Timing API 计算页面性能指标"""
        page = self.require_page()

        metrics: Optional[Dict[str, Any]] = await page.evaluate(PERFORMANCE_METRICS_SCRIPT)
        if not metrics:
            metrics = dict(NO_TIMING_DATA)
        return json.dumps(metrics, indent=2)
