from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from aiohttp import web

from .analysis import analyze_input
from .config import Config
from .errors import AnalysisError

log = logging.getLogger("server")

CONFIG_KEY = web.AppKey("config", Config)

INDEX_HTML = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>Reversal Backtester</title></head>
<body>
<h1>Reversal Backtester</h1>
<form action="/analyze" method="post" enctype="multipart/form-data">
  <input type="file" name="file" accept=".csv,.txt,.numbers,.zip">
  <button type="submit">Analyze</button>
</form>
</body>
</html>
"""


def _bad_request(msg: str) -> web.Response:
    return web.Response(status=400, text=msg)


async def _read_upload(request: web.Request) -> Tuple[Optional[bytes], Optional[str]]:
    reader = await request.multipart()
    data: Optional[bytes] = None
    file_name: Optional[str] = None
    while True:
        part = await reader.next()
        if part is None:
            break
        if part.name == "file":
            file_name = part.filename
            data = bytes(await part.read())
    return data, file_name


async def index(request: web.Request) -> web.Response:
    return web.Response(text=INDEX_HTML, content_type="text/html")


async def healthz(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def analyze(request: web.Request) -> web.Response:
    cfg = request.app[CONFIG_KEY]
    try:
        data, file_name = await _read_upload(request)
    except (KeyError, ValueError, AssertionError) as e:
        log.warning("analyze_bad_multipart err=%s", e)
        return _bad_request(str(e) or "Malformed multipart body.")

    if data is None:
        return _bad_request("Missing file field named 'file'.")

    loop = asyncio.get_running_loop()
    try:
        report = await loop.run_in_executor(None, analyze_input, data, file_name, cfg.strategy)
    except AnalysisError as e:
        log.info("analyze_rejected file=%s bytes=%d err=%s", file_name, len(data), e)
        return _bad_request(str(e))

    log.info(
        "analyze_ok file=%s bytes=%d candles=%d trades=%d",
        file_name, len(data), report.summary.candles, report.summary.trades,
    )
    return web.json_response(report.to_dict())


def create_app(cfg: Config) -> web.Application:
    app = web.Application(client_max_size=int(cfg.server.max_upload_mb) * 1024 * 1024)
    app[CONFIG_KEY] = cfg
    app.router.add_get("/", index)
    app.router.add_get("/healthz", healthz)
    app.router.add_post("/analyze", analyze)
    return app


def run_server(cfg: Config) -> None:
    log.info("server_start name=%s host=%s port=%s", cfg.app.name, cfg.server.host, cfg.server.port)
    web.run_app(create_app(cfg), host=cfg.server.host, port=int(cfg.server.port), print=None)
