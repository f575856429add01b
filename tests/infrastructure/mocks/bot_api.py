"""In-process stand-in for the Bot API upload endpoints.

Serve ``FakeBotAPI().app()`` with ``aiohttp.test_utils.TestServer`` and point
the bot channels at ``server.make_url("")``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from aiohttp import web


@dataclass
class BotRequest:
    token: str
    method: str
    fields: dict[str, str] = field(default_factory=dict)
    file_field: Optional[str] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None
    payload: bytes = b""


class FakeBotAPI:
    def __init__(self, *, valid_tokens: Optional[set[str]] = None) -> None:
        self.valid_tokens = valid_tokens
        self.requests: list[BotRequest] = []
        self.delay_s = 0.0
        self._scripted: dict[str, list[tuple[int, Any]]] = {}

    def fail(self, method: str, status: int, description: str, *, times: int = 1) -> None:
        """Make the next ``times`` calls of ``method`` fail like the real API."""
        body = {"ok": False, "error_code": status, "description": description}
        self._scripted.setdefault(method, []).extend([(status, body)] * times)

    def respond(self, method: str, status: int, body: Any) -> None:
        self._scripted.setdefault(method, []).append((status, body))

    def calls(self, method: Optional[str] = None) -> list[BotRequest]:
        return [r for r in self.requests if method is None or r.method == method]

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/bot{token}/{method}", self._handle)
        return app

    async def _handle(self, request: web.Request) -> web.Response:
        token = request.match_info["token"]
        method = request.match_info["method"]
        form = await request.post()

        record = BotRequest(token=token, method=method)
        for name, value in form.items():
            if isinstance(value, web.FileField):
                record.file_field = name
                record.filename = value.filename
                record.content_type = value.content_type
                record.payload = value.file.read()
            else:
                record.fields[name] = str(value)
        self.requests.append(record)

        if self.delay_s:
            await asyncio.sleep(self.delay_s)

        if self.valid_tokens is not None and token not in self.valid_tokens:
            return web.json_response(
                {"ok": False, "error_code": 401, "description": "Unauthorized"}, status=401
            )

        scripted = self._scripted.get(method)
        if scripted:
            status, body = scripted.pop(0)
            if isinstance(body, (dict, list)):
                return web.json_response(body, status=status)
            return web.Response(text=str(body), status=status)

        return web.json_response({"ok": True, "result": {"message_id": len(self.requests)}})


__all__ = ["BotRequest", "FakeBotAPI"]
