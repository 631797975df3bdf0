"""In-process stand-in for the notifications API and media host."""
import asyncio
import json

from aiohttp import web


class FakeApi:
    """
    Serves count/list/detail endpoints under ``/auth`` and media under ``/media``.

    Media responses echo the file name (``b"img:<name>"``) so tests can tell
    which URL a written file came from. Names starting with ``missing`` 404.
    """

    def __init__(self, entries=None, details=None, count=None):
        self.entries = entries or []
        self.details = details or {}
        self.count = len(self.entries) if count is None else count
        self.count_status = 200
        self.detail_status: dict[str, int] = {}
        self.detail_raw: dict[str, bytes] = {}
        self.detail_delay: dict[str, float] = {}
        self.requests: list[tuple[str, dict, str]] = []
        self.media_hits: list[str] = []

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/auth/notifications/count", self.handle_count)
        app.router.add_get("/auth/notifications", self.handle_list)
        app.router.add_get("/auth/notifications/{id}", self.handle_detail)
        app.router.add_get("/media/{name}", self.handle_media)
        return app

    def _record(self, request: web.Request) -> None:
        self.requests.append((
            request.path,
            dict(request.query),
            request.headers.get("Authorization", "")
        ))

    def calls(self, path: str) -> list[dict]:
        return [query for p, query, _ in self.requests if p == path]

    async def handle_count(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.count_status != 200:
            return web.Response(status=self.count_status, text="error")
        return web.json_response({"count": self.count})

    async def handle_list(self, request: web.Request) -> web.Response:
        self._record(request)
        offset = int(request.query["offset"])
        limit = int(request.query["limit"])
        return web.json_response(self.entries[offset:offset + limit])

    async def handle_detail(self, request: web.Request) -> web.Response:
        self._record(request)
        item_id = request.match_info["id"]

        if item_id in self.detail_delay:
            await asyncio.sleep(self.detail_delay[item_id])

        status = self.detail_status.get(item_id, 200)
        if item_id in self.detail_raw:
            return web.Response(status=status, body=self.detail_raw[item_id])
        if item_id not in self.details:
            return web.Response(status=404, text=json.dumps({"error": "not found"}))
        return web.json_response(self.details[item_id], status=status)

    async def handle_media(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        self.media_hits.append(name)
        if name.startswith("missing"):
            return web.Response(status=404)
        return web.Response(body=f"img:{name}".encode(), content_type="image/jpeg")
