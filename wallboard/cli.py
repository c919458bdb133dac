"""
wallboard/cli.py
Command-line interface for the taxi wallboard.

USAGE:
  python -m wallboard.cli --file ./portal.html --once
  python -m wallboard.cli --url https://portal.example/bookings
  python -m wallboard.cli --file ./portal.html --serve --port 8765
  python -m wallboard.cli --relay-test

EXAMPLES:
  # One snapshot of the active bookings, sorted by vehicle
  python -m wallboard.cli --file portal.html --once --filter active --sort vehicle_id

  # Live board in the terminal (bell on chimes)
  python -m wallboard.cli --file portal.html

  # Live board + local HTTP API
  python -m wallboard.cli --file portal.html --serve
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

from wallboard import __version__
from wallboard.aggregators.filters import FILTERS
from wallboard.aggregators.grouping import ASCENDING, DESCENDING, SORT_KEYS
from wallboard.aggregators.presentation import UIState, View, format_time
from wallboard.audio import BellSounder, LoggingSounder
from wallboard.config import EngineSettings, load_config
from wallboard.engine import Engine
from wallboard.relay import Relay
from wallboard.scheduler import UpdateScheduler
from wallboard.sources import DocumentSource, FileDocumentSource, HttpDocumentSource

logger = logging.getLogger(__name__)

# ANSI colors
GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
DIM    = '\033[2m'
RESET  = '\033[0m'
BOLD   = '\033[1m'

ROW_COLOURS = {
    'sending':   RED,
    'upcoming':  YELLOW,
    'changed':   CYAN,
    'manual':    CYAN,
    'completed': DIM,
}


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog        = 'wallboard',
        description = 'Taxi Wallboard — live dispatch board from the booking portal table',
        formatter_class = argparse.RawDescriptionHelpFormatter,
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--url',
        help    = 'Booking page URL (http/https)',
    )
    source.add_argument(
        '--file', '-f',
        type    = Path,
        help    = 'Local HTML file holding the booking page',
    )
    parser.add_argument(
        '--embedded',
        action  = 'store_true',
        help    = 'Treat the page as a frame: search only it, no sub-frames',
    )
    parser.add_argument(
        '--once',
        action  = 'store_true',
        help    = 'Run one pass, print the board and diagnostics, then exit',
    )
    parser.add_argument(
        '--filter',
        choices = FILTERS,
        default = None,
        help    = 'Status filter (default: all)',
    )
    parser.add_argument(
        '--search', '-s',
        default = '',
        help    = 'Free-text search',
    )
    parser.add_argument(
        '--sort',
        choices = SORT_KEYS,
        default = None,
        help    = 'Sort key (default: from config, announce_time)',
    )
    parser.add_argument(
        '--desc',
        action  = 'store_true',
        help    = 'Sort descending',
    )
    parser.add_argument(
        '--mute',
        action  = 'store_true',
        help    = 'No sound',
    )
    parser.add_argument(
        '--serve',
        action  = 'store_true',
        help    = 'Start the HTTP API alongside the live board',
    )
    parser.add_argument(
        '--port',
        type    = int,
        default = 8765,
        help    = 'API port (default: 8765)',
    )
    parser.add_argument(
        '--host',
        default = '127.0.0.1',
        help    = 'API host — keep on localhost on shared networks',
    )
    parser.add_argument(
        '--relay-test',
        action  = 'store_true',
        help    = 'Send a test payload to the configured relay endpoint and exit',
    )
    parser.add_argument(
        '--config', '-c',
        type    = Path,
        default = None,
        help    = 'Config file (default: ./wallboard_config.json)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )

    args = parser.parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level   = log_level,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    config = load_config(args.config)

    # ── RELAY TEST ───────────────────────────────────────────
    if args.relay_test:
        relay = Relay(config.get('relay_url') or '', config.get('relay_key') or '')
        _step(f"Sending test payload to {relay.url or '(none)'}...")
        result = relay.test()
        if result.ok:
            _ok(f"Relay accepted ({result.status})")
            return 0
        _print(f"  {RED}✗ {result.reason}{RESET}")
        return 1

    # ── SOURCE ───────────────────────────────────────────────
    location = args.url or (str(args.file) if args.file else None) or config.get('source')
    if not location:
        _print(f"{RED}Error: no source. Pass --url/--file or set \"source\" in the config.{RESET}")
        return 1
    if args.file and not args.file.exists():
        _print(f"{RED}Error: File not found: {args.file}{RESET}")
        return 1

    ui = UIState(
        sort_key       = args.sort or config.get('sort_key') or 'announce_time',
        sort_direction = DESCENDING if args.desc else (config.get('sort_direction') or ASCENDING),
        status_filter  = args.filter or 'all',
        search         = args.search.strip(),
    )
    embedded = args.embedded or bool(config.get('embedded'))
    muted    = args.mute or bool(config.get('muted'))

    if args.once:
        return run_once(location, embedded, config, ui)

    _banner()
    _print(f"Source : {CYAN}{location}{RESET}")
    if args.serve:
        _print(f"API    : {CYAN}http://{args.host}:{args.port}{RESET}")
    _print("")

    try:
        asyncio.run(run_live(
            location    = location,
            embedded    = embedded,
            config      = config,
            ui          = ui,
            muted       = muted,
            serve       = args.serve,
            host        = args.host,
            port        = args.port,
            config_path = args.config,
        ))
    except KeyboardInterrupt:
        _print(f"\n{DIM}Stopped.{RESET}")
    return 0


def build_source(location: str, embedded: bool = False, loop: Optional[Any] = None) -> DocumentSource:
    if location.startswith(('http://', 'https://')):
        return HttpDocumentSource(location, embedded=embedded)
    return FileDocumentSource(Path(location), embedded=embedded, loop=loop)


# ── ONE-SHOT ─────────────────────────────────────────────────

def run_once(location: str, embedded: bool, config: Dict[str, Any], ui: UIState) -> int:
    loop = asyncio.new_event_loop()
    try:
        engine = Engine(
            build_source(location, embedded),
            loop,
            sounder  = LoggingSounder(muted=True),
            settings = EngineSettings.from_config(config),
            ui       = ui,
        )
        t0 = time.time()
        _step("Parsing booking page...")
        engine.run_pass()
        _ok(f"{len(engine.records)} bookings in {_elapsed(t0)}")
        _print("")
        _print_view(engine.view)
        _print_diagnostics(engine)
        engine.shutdown()
        return 0 if engine.table_found else 1
    finally:
        loop.close()


# ── LIVE ─────────────────────────────────────────────────────

async def run_live(
    location:    str,
    embedded:    bool,
    config:      Dict[str, Any],
    ui:          UIState,
    muted:       bool           = False,
    serve:       bool           = False,
    host:        str            = '127.0.0.1',
    port:        int            = 8765,
    config_path: Optional[Path] = None,
) -> None:
    loop     = asyncio.get_running_loop()
    settings = EngineSettings.from_config(config)
    engine   = Engine(
        build_source(location, embedded, loop),
        loop,
        sounder  = BellSounder(muted=muted),
        settings = settings,
        ui       = ui,
    )
    engine.on_view(lambda view: _print_status(engine, view))

    scheduler = UpdateScheduler(engine, loop, settings)
    scheduler.start()
    try:
        if serve:
            from wallboard.api import WallboardAPI, serve as serve_api
            relay = Relay(config.get('relay_url') or '', config.get('relay_key') or '')
            await serve_api(WallboardAPI(engine, relay, config_path), host=host, port=port)
        else:
            await asyncio.Event().wait()
    finally:
        scheduler.stop()


# ── PRINT HELPERS ────────────────────────────────────────────

def _banner():
    _print(f"""
{BOLD}{CYAN}  TAXI WALLBOARD  v{__version__}{RESET}
{DIM}  live dispatch board{RESET}""")

def _step(msg):  _print(f"  {CYAN}→{RESET} {msg}")
def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)

def _elapsed(t0: float) -> str:
    s = time.time() - t0
    return f"{s:.1f}s" if s < 60 else f"{int(s//60)}m {int(s%60)}s"


def _print_status(engine: Engine, view: View) -> None:
    status = engine.status()
    c = view.counters
    _print(
        f"  {BOLD}{status['text']}{RESET}  "
        f"{RED}{c.sending} sending{RESET} · {YELLOW}{c.upcoming} upcoming{RESET} · "
        f"{c.active} active · {DIM}{c.completed} completed{RESET}"
    )


def _print_view(view: View) -> None:
    header = f"  {'UTROP':<6} {'OPPM':<6} {'TAXI':<6} {'STATUS':<22} {'FRA':<24} {'TIL':<24} NAVN"
    _print(f"{BOLD}{header}{RESET}")
    for row in view.rows:
        r = row.record
        colour = ROW_COLOURS.get(row.row_class, '')
        marker = '┃' if row.grouped else ' '
        countdown = f" ({row.countdown})" if row.countdown else ''
        _print(
            f"{colour}{marker} {format_time(r.announce_time):<6} {format_time(r.meet_time):<6} "
            f"{r.vehicle_id[:6]:<6} {r.status[:22]:<22} {r.origin[:24]:<24} "
            f"{r.destination[:24]:<24} {r.name}{countdown}{RESET}"
        )
    c = view.counters
    _print(
        f"\n  Total {c.total} · {RED}Sending {c.sending}{RESET} · "
        f"{YELLOW}Upcoming {c.upcoming}{RESET} · Active {c.active} · Completed {c.completed}"
    )


def _print_diagnostics(engine: Engine) -> None:
    d = engine.registry.current.diagnostics
    _print(f"\n{BOLD}Diagnostics{RESET}")
    _print(f"  Documents scanned : {d.documents_scanned}")
    _print(f"  Table found       : {'yes' if d.table_found else 'no'}")
    if not d.table_found:
        for summary in engine.survey():
            _print(
                f"    {DIM}{summary.document}: {summary.row_count} rows, "
                f"{summary.cell_count} cells — {summary.header_text[:60]}{RESET}"
            )
        return
    _print(f"  Mapped columns    : {d.header_cols} ({', '.join(d.mapped_columns)})")
    _print(f"  Raw headers       : {' | '.join(d.raw_headers)}")
    _print(
        f"  Rows              : {d.parsed_rows}/{d.total_rows} parsed, "
        f"{d.skipped_empty} empty, {d.skipped_few_cells} few-cells, "
        f"{d.filtered_by_window} outside window"
    )


if __name__ == '__main__':
    sys.exit(main())
