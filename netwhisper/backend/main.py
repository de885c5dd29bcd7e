from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Mapping, NoReturn

import uvicorn

from .api.main import create_app
from .capture import ReplayCaptureSource
from .client import RecordBuffer, SyncClient, TrafficMonitor
from .config import settings
from .errors import NetWhisperError, SyncError
from .metrics import METRICS
from .models import TrafficRecord
from .storage import IngestStore

logger = logging.getLogger("netwhisper.main")


# ---------------------------------------------------------------------------
# serve: ingest server
# ---------------------------------------------------------------------------

def serve(host: str, port: int, log_level: str = "INFO") -> None:
    # The store lives exactly as long as this process.
    store = IngestStore()
    app = create_app(store=store)
    logger.info("NetWhisper ingest — API=http://%s:%d%s", host, port, settings.API_PREFIX)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())
    logger.info("NetWhisper stopped — %d log entries discarded", len(store))


# ---------------------------------------------------------------------------
# replay: feed a JSON capture through the client pipeline
# ---------------------------------------------------------------------------

def load_records(path: Path) -> list[TrafficRecord]:
    """
    Read wire-format packets from *path*.

    Accepts either a bare JSON list of packets or an object with a
    "packets" list (the body the server itself receives).
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("packets")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of packets")
    for i, p in enumerate(data):
        if not isinstance(p, Mapping):
            raise ValueError(f"{path}: packet {i} is not an object")
    return [TrafficRecord.from_wire(p) for p in data]


async def replay(path: Path, url: str, timeout: float) -> int:
    records = load_records(path)
    source = ReplayCaptureSource(records)
    monitor = TrafficMonitor(
        source=source,
        client=SyncClient(base_url=url, timeout=timeout),
        buffer=RecordBuffer(capacity=settings.BUFFER_CAPACITY),
    )

    monitor.start()
    monitor.stop()
    logger.info(
        "Replayed %d records — %d buffered, %d evicted",
        len(records), len(monitor.buffer), monitor.buffer.evicted,
    )

    try:
        report = await monitor.sync()
    except SyncError as exc:
        print(f"Sync failed: {exc}", file=sys.stderr)
        return 1

    if report is None:
        print("No data captured — nothing to sync", file=sys.stderr)
        return 1

    print(json.dumps(report.summary, indent=2))
    logger.info("Client metrics: %s", METRICS.as_dict())
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NetWhisper traffic telemetry")
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve_p = sub.add_parser("serve", help="run the ingest API")
    serve_p.add_argument("--host", default=settings.API_HOST)
    serve_p.add_argument("--port", type=int, default=settings.API_PORT)

    replay_p = sub.add_parser("replay", help="upload packets from a JSON file")
    replay_p.add_argument("file", type=Path)
    replay_p.add_argument("--url", default=settings.INGEST_URL)
    replay_p.add_argument("--timeout", type=float, default=settings.SYNC_TIMEOUT_SECONDS)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> NoReturn:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "serve":
        serve(host=args.host, port=args.port, log_level=args.log_level)
        sys.exit(0)

    try:
        code = asyncio.run(replay(args.file, url=args.url, timeout=args.timeout))
    except (OSError, ValueError, KeyError, NetWhisperError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
