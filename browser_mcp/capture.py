"""
网络请求 / 控制台消息捕获缓冲区

请求与响应按 URL 关联：request_map 中每个 URL 只保留最近一次待响应的请求。
同一 URL 的两个请求在响应到达前交错时，第一个请求的响应会被记到第二条记录上，
这是沿用的兼容行为。
"""
import logging
import time
from collections import Counter
from typing import Any, Dict, List, Optional

from .config import TEXT_CONTENT_MARKERS
from .errors import BodyCaptureError
from .models import BodyStatus, ConsoleMessage, NetworkRequest

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def is_text_content(content_type: str) -> bool:
    """判断 content-type 是否为文本或 JSON"""
    return any(marker in content_type for marker in TEXT_CONTENT_MARKERS)


class CaptureBuffer:
    """内存中的网络请求与控制台消息缓冲区"""

    def __init__(self):
        self.network_requests: List[NetworkRequest] = []
        self.console_messages: List[ConsoleMessage] = []
        self.request_map: Dict[str, NetworkRequest] = {}

    def clear(self):
        self.network_requests = []
        self.console_messages = []
        self.request_map = {}

    # 事件记录
    def record_request(self, request) -> NetworkRequest:
        """记录新发出的请求，并覆盖该 URL 的关联索引"""
        try:
            post_data = request.post_data
        except UnicodeDecodeError:
            # 二进制请求体无法解码为文本
            post_data = None

        entry = NetworkRequest(
            url=request.url,
            method=request.method,
            timestamp=_now_ms(),
            headers=dict(request.headers),
            post_data=post_data or None,
        )
        self.network_requests.append(entry)
        self.request_map[request.url] = entry
        return entry

    async def record_response(self, response) -> Optional[NetworkRequest]:
        """用响应数据补充已记录的请求；响应体读取失败时静默忽略"""
        # 收到响应后移出索引，之后同一 URL 的未记录请求不会覆盖这条记录
        entry = self.request_map.pop(response.url, None)
        if entry is None:
            return None

        headers = dict(response.headers)
        entry.status = response.status
        entry.status_text = response.status_text
        entry.response_headers = headers

        if not is_text_content(headers.get("content-type", "")):
            entry.body_status = BodyStatus.NOT_TEXT
            return entry

        try:
            entry.response_body = await self._read_body(response)
            entry.body_status = BodyStatus.CAPTURED
        except BodyCaptureError as e:
            logger.debug(f"响应体读取失败 {response.url}: {e}")
            entry.body_status = BodyStatus.UNAVAILABLE
        return entry

    @staticmethod
    async def _read_body(response) -> str:
        try:
            return await response.text()
        except Exception as e:
            raise BodyCaptureError(str(e)) from e

    def record_console(self, msg) -> ConsoleMessage:
        """记录一条控制台消息，来源位置尽力获取"""
        location = (msg.location or {}).get("url") or None
        entry = ConsoleMessage(
            type=msg.type,
            text=msg.text,
            timestamp=_now_ms(),
            location=location,
        )
        self.console_messages.append(entry)
        return entry

    # 查询
    def get_requests(self, url_filter: Optional[str] = None) -> List[NetworkRequest]:
        """按 URL 子串过滤（区分大小写），保持捕获顺序"""
        if not url_filter:
            return list(self.network_requests)
        return [r for r in self.network_requests if url_filter in r.url]

    def get_console_messages(self, message_type: Optional[str] = None) -> List[ConsoleMessage]:
        """按消息类型过滤，"all" 或空表示不过滤"""
        if not message_type or message_type == "all":
            return list(self.console_messages)
        return [m for m in self.console_messages if m.type == message_type]

    def summary(self) -> Dict[str, Any]:
        requests_by_status = Counter(
            str(r.status) if r.status is not None else "unknown"
            for r in self.network_requests
        )
        messages_by_type = Counter(m.type or "unknown" for m in self.console_messages)
        return {
            "totalRequests": len(self.network_requests),
            "totalConsoleMessages": len(self.console_messages),
            "requestsByStatus": dict(requests_by_status),
            "messagesByType": dict(messages_by_type),
        }
