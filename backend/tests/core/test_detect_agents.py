"""Tests for user-agent detection — crawlers vs server clients vs browsers."""

from app.core.detect_agents import is_bot_agent, is_server_agent

CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


def test_browser_is_neither_bot_nor_server():
    assert is_bot_agent(CHROME) is False
    assert is_server_agent(CHROME) is False


def test_crawlers_are_bots():
    assert is_bot_agent("Mozilla/5.0 (compatible; Googlebot/2.1)") is True
    assert is_bot_agent("AhrefsBot/7.0") is True
    assert is_bot_agent("Mozilla/5.0 HeadlessChrome/120.0") is True


def test_http_libraries_are_server_clients():
    assert is_server_agent("curl/8.4.0") is True
    assert is_server_agent("python-requests/2.31") is True
    assert is_server_agent("UptimeRobot/2.0") is True


def test_empty_agent_is_server_not_bot():
    assert is_server_agent("") is True
    assert is_server_agent(None) is True
    assert is_server_agent("unknown") is True
    assert is_bot_agent("") is False
