# tests/test_tools.py
import asyncio
import json

import pytest
from mcp.types import TextContent

from browser_mcp.browser_manager import BrowserManager
from browser_mcp.tools import create_tools, handle_tool_call

from _fakes import (
    FakeConsoleMessage,
    FakePage,
    FakeRequest,
    FakeResponse,
    make_fake_playwright,
    patch_async_playwright,
)

## We DO NOT use pytest-asyncio; drive coroutines with event_loop.run_until_complete().

TOOL_NAMES = [
    "launch_browser",
    "navigate",
    "start_monitoring",
    "fill_form_field",
    "click_element",
    "submit_form",
    "get_network_requests",
    "get_console_messages",
    "screenshot",
    "evaluate_script",
    "get_performance_metrics",
    "stop_monitoring",
    "close_browser",
]

# valid arguments for every tool that needs a launched browser
PRE_LAUNCH_CALLS = [
    ("navigate", {"url": "https://example.com"}),
    ("start_monitoring", {"clearPrevious": True}),
    ("fill_form_field", {"selector": "#q", "value": "x"}),
    ("click_element", {"selector": "#go", "waitForNavigation": True}),
    ("submit_form", {"selector": "form"}),
    ("get_network_requests", {"filter": "api"}),
    ("get_console_messages", {"type": "error"}),
    ("screenshot", {"fullPage": True}),
    ("evaluate_script", {"script": "1"}),
    ("get_performance_metrics", {}),
    ("stop_monitoring", {}),
]


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def fake_driver(monkeypatch):
    pw, browser, context, page = make_fake_playwright(FakePage())
    patch_async_playwright(monkeypatch, pw)
    return {"pw": pw, "browser": browser, "context": context, "page": page}


def call(event_loop, manager, name, arguments=None):
    result = event_loop.run_until_complete(handle_tool_call(manager, name, arguments))
    assert len(result) == 1
    assert isinstance(result[0], TextContent)
    assert result[0].type == "text"
    return result[0].text


def test_create_tools_lists_all_tools_with_schemas():
    tools = create_tools()

    assert [t.name for t in tools] == TOOL_NAMES
    by_name = {t.name: t for t in tools}
    assert by_name["navigate"].inputSchema["required"] == ["url"]
    assert by_name["navigate"].inputSchema["properties"]["waitUntil"]["enum"] == ["load", "domcontentloaded", "networkidle"]
    assert by_name["get_console_messages"].inputSchema["properties"]["type"]["default"] == "all"
    assert by_name["start_monitoring"].inputSchema["properties"]["clearPrevious"]["default"] is True
    assert by_name["fill_form_field"].inputSchema["required"] == ["selector", "value"]


@pytest.mark.parametrize("name, arguments", PRE_LAUNCH_CALLS)
def test_calls_before_launch_report_not_launched(event_loop, name, arguments):
    text = call(event_loop, BrowserManager(), name, arguments)

    assert text == "Error: Browser not launched"


def test_close_before_launch_is_a_no_op(event_loop):
    assert call(event_loop, BrowserManager(), "close_browser", {}) == "Browser closed"


def test_unknown_tool(event_loop):
    assert call(event_loop, BrowserManager(), "open_devtools", {}) == "Error: Unknown tool: open_devtools"


def test_none_arguments_are_accepted(event_loop, fake_driver):
    assert call(event_loop, BrowserManager(), "launch_browser", None) == "Browser launched successfully"


def test_bad_arguments_become_error_text(event_loop, fake_driver):
    manager = BrowserManager()
    call(event_loop, manager, "launch_browser", {"headless": True})

    text = call(event_loop, manager, "navigate", {})

    assert text.startswith("Error: ")
    assert "url" in text


def test_camel_case_arguments_are_mapped(event_loop, fake_driver):
    manager = BrowserManager()
    call(event_loop, manager, "launch_browser", {"headless": True, "viewport": {"width": 1024, "height": 768}})

    assert call(event_loop, manager, "navigate", {"url": "https://example.com", "waitUntil": "domcontentloaded"}) \
        == "Navigated to https://example.com"
    fake_driver["page"].goto.assert_awaited_once_with("https://example.com", wait_until="domcontentloaded")
    fake_driver["browser"].new_context.assert_awaited_once_with(viewport={"width": 1024, "height": 768})
    assert call(event_loop, manager, "screenshot", {"fullPage": True}) == "Screenshot captured (2048 bytes)"


def test_launch_close_round_trip(event_loop, fake_driver):
    manager = BrowserManager()

    assert call(event_loop, manager, "launch_browser", {}) == "Browser launched successfully"
    assert call(event_loop, manager, "close_browser", {}) == "Browser closed"

    for name, arguments in PRE_LAUNCH_CALLS:
        assert call(event_loop, manager, name, arguments) == "Error: Browser not launched"


def test_monitoring_scenario(event_loop, fake_driver):
    manager = BrowserManager()
    page = fake_driver["page"]

    call(event_loop, manager, "launch_browser", {"headless": True})
    call(event_loop, manager, "navigate", {"url": "https://shop.test/"})
    call(event_loop, manager, "start_monitoring", {})

    # the page fires one JSON XHR and one console.error
    event_loop.run_until_complete(page.emit("request", FakeRequest("https://shop.test/api/cart", method="GET")))
    event_loop.run_until_complete(page.emit("response", FakeResponse("https://shop.test/api/cart",
                                                                     body='{"items": 2}')))
    event_loop.run_until_complete(page.emit("console", FakeConsoleMessage("error", "cart failed to render",
                                                                          url="https://shop.test/app.js")))

    requests = json.loads(call(event_loop, manager, "get_network_requests", {"filter": "api"}))
    assert len(requests) == 1
    assert requests[0]["status"] == 200
    assert requests[0]["responseBody"] == '{"items": 2}'

    errors = json.loads(call(event_loop, manager, "get_console_messages", {"type": "error"}))
    assert [m["text"] for m in errors] == ["cart failed to render"]

    text = call(event_loop, manager, "stop_monitoring", {})
    summary = json.loads(text.split("Summary:\n", 1)[1])
    assert summary["totalRequests"] == 1
    assert summary["totalConsoleMessages"] == 1
    assert summary["messagesByType"] == {"error": 1}
    assert summary["requestsByStatus"] == {"200": 1}


def test_driver_errors_are_wrapped(event_loop, fake_driver):
    from playwright.async_api import Error as PlaywrightError

    manager = BrowserManager()
    call(event_loop, manager, "launch_browser", {})
    fake_driver["page"].evaluate.side_effect = PlaywrightError("TypeError: x is undefined")

    text = call(event_loop, manager, "evaluate_script", {"script": "x.y"})

    assert text == "Error: Script evaluation failed: TypeError: x is undefined"


def test_evaluate_script_result_is_json(event_loop, fake_driver):
    manager = BrowserManager()
    call(event_loop, manager, "launch_browser", {})
    fake_driver["page"].evaluate.return_value = [1, "two", None]

    assert json.loads(call(event_loop, manager, "evaluate_script", {"script": "[1, 'two', null]"})) == [1, "two", None]
