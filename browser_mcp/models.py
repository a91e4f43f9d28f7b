"""
数据模型定义
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright


class BodyStatus(str, Enum):
    """响应体抓取状态"""
    CAPTURED = "captured"
    NOT_TEXT = "not_text"
    UNAVAILABLE = "unavailable"


@dataclass
class BrowserSession:
    """浏览器会话（进程内唯一）"""
    playwright: Optional[Playwright] = None
    browser: Optional[Browser] = None
    context: Optional[BrowserContext] = None
    page: Optional[Page] = None
    monitoring_enabled: bool = False
    listeners_attached: bool = False

    @property
    def is_live(self) -> bool:
        return self.page is not None

    def clear_handles(self):
        """清空 browser/context/page 三个句柄（playwright 驱动保留）"""
        self.browser = None
        self.context = None
        self.page = None
        self.monitoring_enabled = False
        self.listeners_attached = False


@dataclass
class NetworkRequest:
    """网络请求记录，收到响应后原地补充响应字段"""
    url: str
    method: str
    timestamp: int
    headers: Dict[str, str] = field(default_factory=dict)
    post_data: Optional[str] = None
    status: Optional[int] = None
    status_text: Optional[str] = None
    response_headers: Optional[Dict[str, str]] = None
    response_body: Optional[str] = None
    body_status: Optional[BodyStatus] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "method": self.method,
            "timestamp": self.timestamp,
            "headers": self.headers,
        }
        optional = {
            "postData": self.post_data,
            "status": self.status,
            "statusText": self.status_text,
            "responseHeaders": self.response_headers,
            "responseBody": self.response_body,
            "responseBodyStatus": self.body_status.value if self.body_status else None,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data


@dataclass
class ConsoleMessage:
    """控制台消息记录"""
    type: str
    text: str
    timestamp: int
    location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "text": self.text,
            "timestamp": self.timestamp,
        }
        if self.location:
            data["location"] = self.location
        return data
