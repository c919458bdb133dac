"""
wallboard/api.py
─────────────────────────────────────────────────────────────────────────────
Taxi Wallboard — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from wallboard.api import WallboardAPI
         api = WallboardAPI(engine)
         stats = api.get_stats()

  2. FastAPI HTTP server (started by `wallboard --serve`):
         wallboard --file portal.html --serve --port 8765

ENDPOINTS:
  GET  /health         — status line, parse count, version
  GET  /stats          — {total, sending, upcoming, completed}; ?filtered=true for the view
  GET  /badge          — badge counts + text/colour
  GET  /view           — displayed rows, row classes, counters
  GET  /records        — current snapshot, unfiltered
  GET  /diagnostics    — last parse diagnostics + table survey
  POST /ui             — filter / search / sort / mute
  POST /activity       — user activity (resets auto-scroll idle timer)
  POST /relay/test     — send a test payload to the relay endpoint
  POST /relay          — forward an arbitrary payload (default: current stats)
  GET  /config         — persisted settings (relay key redacted)
  POST /config         — update persisted settings

The server binds to 127.0.0.1 by default and shares the engine's event
loop. Handlers are async, so every request runs on the loop between timer
callbacks and never concurrently with a pipeline pass. Only the blocking
relay POST is handed to a worker thread.
"""

import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from wallboard import __version__
from wallboard.aggregators.presentation import View
from wallboard.aggregators.stats import badge_payload
from wallboard.config import load_config, update_config
from wallboard.engine import Engine
from wallboard.models.record import Record
from wallboard.relay import Relay, RelayResult

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8765


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Record):
        return record_to_dict(value)
    if is_dataclass(value) and not isinstance(value, type):
        return _jsonable(asdict(value))
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return value


def record_to_dict(record: Record) -> Dict[str, Any]:
    d = {k: _jsonable(v) for k, v in asdict(record).items()}
    d['id'] = record.id
    return d


def view_to_dict(view: View) -> Dict[str, Any]:
    rows = []
    for row in view.rows:
        rows.append({
            'record':         record_to_dict(row.record),
            'row_class':      row.row_class,
            'status_slug':    row.status_slug,
            'grouped':        row.grouped,
            'group_start':    row.group_start,
            'group_end':      row.group_end,
            'is_new':         row.is_new,
            'countdown':      row.countdown,
            'vehicle_colour': row.vehicle_colour,
        })
    return {'rows': rows, 'counters': asdict(view.counters)}


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class WallboardAPI:
    """
    Thin wrapper over a running Engine. Every method returns plain
    JSON-ready values; bad UI input raises ValueError.
    """

    def __init__(
        self,
        engine:      Engine,
        relay:       Optional[Relay] = None,
        config_path: Optional[Path]  = None,
    ):
        self.engine      = engine
        self.relay       = relay or Relay()
        self.config_path = config_path

    # ── QUERIES ───────────────────────────────────────────────────────────

    def get_stats(self, filtered: bool = False) -> Dict[str, int]:
        return self.engine.get_stats(filtered=filtered).to_dict()

    def get_badge(self) -> Dict[str, Any]:
        return badge_payload(self.engine.get_badge())

    def get_view(self) -> Dict[str, Any]:
        return {
            **view_to_dict(self.engine.view),
            'ui':     asdict(self.engine.ui),
            'status': self.engine.status(),
        }

    def get_records(self) -> List[Dict[str, Any]]:
        return [record_to_dict(r) for r in self.engine.records]

    def get_diagnostics(self) -> Dict[str, Any]:
        return _jsonable(self.engine.get_diagnostics())

    def health(self) -> Dict[str, Any]:
        return {
            'status':      'ok',
            'version':     __version__,
            'table_found': self.engine.table_found,
            'parse_count': self.engine.parse_count,
            'indicator':   self.engine.status(),
            'muted':       self.engine.muted,
        }

    # ── UI STATE ──────────────────────────────────────────────────────────

    def set_filter(self, status_filter: str) -> Dict[str, Any]:
        self.engine.set_filter(status_filter)
        return self.get_view()

    def set_search(self, search: str) -> Dict[str, Any]:
        self.engine.set_search(search)
        return self.get_view()

    def set_sort(self, key: str, direction: Optional[str] = None) -> Dict[str, Any]:
        self.engine.set_sort(key, direction)
        return self.get_view()

    def toggle_sort_direction(self) -> Dict[str, Any]:
        self.engine.toggle_sort_direction()
        return self.get_view()

    def set_muted(self, muted: bool) -> bool:
        """Mute is a persisted preference."""
        self.engine.set_muted(muted)
        update_config({'muted': bool(muted)}, self.config_path)
        return self.engine.muted

    def touch(self) -> None:
        self.engine.touch()

    # ── RELAY ─────────────────────────────────────────────────────────────

    def relay_test(self) -> Dict[str, Any]:
        return self.relay.test().to_dict()

    def relay_forward(self, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        result: RelayResult
        if payload:
            result = self.relay.forward(payload)
        else:
            result = self.relay.forward_stats(self.get_stats())
        return result.to_dict()

    # ── CONFIG ────────────────────────────────────────────────────────────

    def get_config(self) -> Dict[str, Any]:
        config = load_config(self.config_path)
        key_set = bool(config.get('relay_key'))
        config['relay_key'] = ''
        return {'config': config, 'relay_key_set': key_set}

    def save_config(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        config = update_config(changes, self.config_path)
        if 'relay_url' in changes or 'relay_key' in changes:
            self.relay = Relay(config.get('relay_url') or '', config.get('relay_key') or '')
            logger.info(f"Relay endpoint set to {self.relay.url or '(none)'}")
        if 'muted' in changes:
            self.engine.set_muted(bool(config['muted']))
        return self.get_config()


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class UIRequest(BaseModel):
    status_filter:    Optional[str]  = None
    search:           Optional[str]  = None
    sort_key:         Optional[str]  = None
    sort_direction:   Optional[str]  = None
    toggle_direction: bool           = False
    muted:            Optional[bool] = None


def _build_app(api: WallboardAPI) -> FastAPI:
    """Build the FastAPI application around one WallboardAPI."""
    _app = FastAPI(
        title       = "Taxi Wallboard API",
        description = "Live dispatch wallboard: bookings, alerts and badge state",
        version     = __version__,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = [
            "http://localhost",
            f"http://localhost:{DEFAULT_PORT}",
            "http://127.0.0.1",
            f"http://127.0.0.1:{DEFAULT_PORT}",
            "null",   # file:// origin
        ],
        allow_methods     = ["GET", "POST", "OPTIONS"],
        allow_headers     = ["Content-Type"],
        allow_credentials = False,
    )

    # ── ENDPOINTS ───────────────────────────────────────────────────────

    @_app.get("/health", summary="Health check")
    async def health():
        return api.health()

    @_app.get("/stats", summary="Booking counts")
    async def get_stats(filtered: bool = Query(False, description="Count the displayed view only")):
        return api.get_stats(filtered=filtered)

    @_app.get("/badge", summary="Badge counts and colour")
    async def get_badge():
        return api.get_badge()

    @_app.get("/view", summary="Displayed rows")
    async def get_view():
        return api.get_view()

    @_app.get("/records", summary="Current snapshot")
    async def get_records():
        data = api.get_records()
        return {"count": len(data), "records": data}

    @_app.get("/diagnostics", summary="Parse diagnostics")
    async def get_diagnostics():
        return api.get_diagnostics()

    @_app.post("/ui", summary="Update filter / search / sort / mute")
    async def update_ui(req: UIRequest):
        try:
            if req.status_filter is not None:
                api.engine.set_filter(req.status_filter)
            if req.search is not None:
                api.engine.set_search(req.search)
            if req.sort_key is not None:
                api.engine.set_sort(req.sort_key, req.sort_direction)
            elif req.sort_direction is not None:
                api.engine.set_sort(api.engine.ui.sort_key, req.sort_direction)
            if req.toggle_direction:
                api.engine.toggle_sort_direction()
            if req.muted is not None:
                api.set_muted(req.muted)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return api.get_view()

    @_app.post("/activity", summary="Register user activity")
    async def activity():
        api.touch()
        return {"status": "ok"}

    @_app.post("/relay/test", summary="Send relay test payload")
    async def relay_test():
        result = await run_in_threadpool(api.relay.test)
        return result.to_dict()

    @_app.post("/relay", summary="Forward a payload (default: current stats)")
    async def relay_forward(payload: Dict[str, Any] = Body(default_factory=dict)):
        # Stats are read on the loop; only the POST goes to a worker thread
        if payload:
            result = await run_in_threadpool(api.relay.forward, payload)
        else:
            result = await run_in_threadpool(api.relay.forward_stats, api.get_stats())
        return result.to_dict()

    @_app.get("/config", summary="Get persisted settings")
    async def get_config():
        return api.get_config()

    @_app.post("/config", summary="Save settings")
    async def save_config_endpoint(update: Dict[str, Any] = Body(default_factory=dict)):
        try:
            return api.save_config(update or {})
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except OSError as exc:
            logger.error(f"Config save failed: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(exc))

    return _app


async def serve(api: WallboardAPI, host: str = "127.0.0.1", port: int = DEFAULT_PORT) -> None:
    """Run uvicorn on the current event loop until it is told to exit."""
    import uvicorn

    config = uvicorn.Config(_build_app(api), host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()
