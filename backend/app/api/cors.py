"""CORS Policies — open policy for the tracking snippet, configured origins for everything else.

Invariants:
    - Collector paths (/events, /consent, /consent-config/*) accept any origin, without credentials
    - Every other path only answers the origins listed in CORS_ORIGINS, with credentials
    - Preflight OPTIONS on a collector path is answered before routing

Design Decisions:
    - Two Starlette CORSMiddleware instances behind one path switch: a wildcard origin
      cannot be combined with allow_credentials, so one policy cannot serve both audiences
"""

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

COLLECTOR_PATHS = ("/api/v1/events", "/api/v1/consent")
COLLECTOR_PREFIXES = ("/api/v1/consent-config/",)


def is_collector_path(path: str) -> bool:
    path = path.rstrip("/") or "/"
    return path in COLLECTOR_PATHS or path.startswith(COLLECTOR_PREFIXES)


class SplitCORSMiddleware:
    def __init__(self, app: ASGIApp, allow_origins: list[str]):
        self.app = app
        self.collector = CORSMiddleware(
            app,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
        self.dashboard = CORSMiddleware(
            app,
            allow_origins=allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        policy = self.collector if is_collector_path(scope["path"]) else self.dashboard
        await policy(scope, receive, send)
