"""User-Agent Detection — flags crawlers and non-browser (server/monitoring) clients.

Invariants:
    - Matching is case-insensitive substring search
    - An empty or "unknown" user agent is a server client, never a bot
"""

BOT_PATTERNS = (
    "bot", "crawl", "spider", "slurp", "bingpreview", "mediapartners",
    "facebookexternalhit", "twitterbot", "linkedinbot", "whatsapp",
    "telegrambot", "applebot", "google", "yandex", "baidu",
    "semrush", "ahrefs", "mj12bot", "dotbot", "petalbot",
    "headless", "phantom", "puppeteer", "playwright", "selenium",
)

SERVER_PATTERNS = (
    "curl", "wget", "httpie", "python-requests", "python-urllib",
    "node-fetch", "axios", "got/", "undici", "java/", "apache-httpclient",
    "go-http-client", "ruby", "perl", "php/", "libwww", "mechanize",
    "scrapy", "httpclient", "okhttp", "cron", "monitor", "uptime",
    "pingdom", "newrelic", "datadog", "statuspage", "uptimerobot",
    "site24x7", "nagios", "zabbix", "munin", "healthcheck",
    "vercel", "netlify", "cloudflare-worker", "aws-sdk",
    "google-cloud", "azure", "render", "railway",
)


def is_bot_agent(user_agent: str | None) -> bool:
    ua = (user_agent or "").lower()
    return any(p in ua for p in BOT_PATTERNS)


def is_server_agent(user_agent: str | None) -> bool:
    ua = (user_agent or "").strip().lower()
    if not ua or ua == "unknown":
        return True
    return any(p in ua for p in SERVER_PATTERNS)
