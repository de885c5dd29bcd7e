"""
tests/test_main.py

Tests for main.py — JSON capture loading, argument parsing and the replay
command wired end-to-end against the in-process app.
"""

from __future__ import annotations

import json

import httpx
import pytest

from netwhisper.backend import main as cli
from netwhisper.backend.api.main import create_app
from netwhisper.backend.client import SyncClient
from netwhisper.backend.storage import IngestStore

PACKETS = [
    {"sourceIp": "10.0.0.1", "destIp": "8.8.8.8", "size": 100, "timestamp": 1000},
    {"sourceIp": "10.0.0.1", "destIp": "8.8.8.8", "size": 50, "timestamp": 1001},
]


@pytest.fixture
def capture_file(tmp_path):
    path = tmp_path / "capture.json"
    path.write_text(json.dumps(PACKETS), encoding="utf-8")
    return path


class TestLoadRecords:

    def test_bare_list(self, capture_file):
        records = cli.load_records(capture_file)
        assert [r.size_bytes for r in records] == [100, 50]

    def test_wrapped_in_packets_key(self, tmp_path):
        path = tmp_path / "body.json"
        path.write_text(json.dumps({"packets": PACKETS, "timestamp": 1}), encoding="utf-8")
        assert len(cli.load_records(path)) == 2

    def test_wrong_shape_raises(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"packets": "nope"}), encoding="utf-8")
        with pytest.raises(ValueError):
            cli.load_records(path)

    @pytest.mark.parametrize("body", [[1, 2], {"packets": [PACKETS[0], "x"]}, [None]])
    def test_non_object_packet_raises_value_error(self, tmp_path, body):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(body), encoding="utf-8")
        with pytest.raises(ValueError, match="is not an object"):
            cli.load_records(path)


class TestMain:

    def test_malformed_capture_exits_1(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["replay", str(path)])
        assert exc_info.value.code == 1
        assert "packet 0 is not an object" in capsys.readouterr().err

    def test_missing_field_exits_1(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"sourceIp": "10.0.0.1"}]), encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["replay", str(path)])
        assert exc_info.value.code == 1

    def test_serve_passes_log_level_to_uvicorn(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--log-level", "DEBUG", "serve", "--host", "127.0.0.1", "--port", "9001"])
        assert exc_info.value.code == 0
        assert calls == [{"host": "127.0.0.1", "port": 9001, "log_level": "debug"}]


class TestParseArgs:

    def test_serve_defaults(self):
        args = cli._parse_args(["serve"])
        assert args.command == "serve"
        assert args.port == 8080

    def test_replay(self, capture_file):
        args = cli._parse_args(["replay", str(capture_file), "--url", "http://x/api"])
        assert args.command == "replay"
        assert args.file == capture_file
        assert args.url == "http://x/api"


class TestReplay:

    @pytest.mark.asyncio
    async def test_replay_uploads_and_prints_summary(self, capture_file, monkeypatch, capsys):
        store = IngestStore()
        transport = httpx.ASGITransport(app=create_app(store=store, api_prefix="/api"))

        def client_factory(base_url, timeout):
            return SyncClient(base_url=base_url, timeout=timeout, transport=transport)

        monkeypatch.setattr(cli, "SyncClient", client_factory)

        code = await cli.replay(capture_file, url="http://testserver/api", timeout=5.0)

        assert code == 0
        assert len(store) == 1
        printed = json.loads(capsys.readouterr().out)
        assert printed["totalBytes"] == 150

    @pytest.mark.asyncio
    async def test_replay_empty_file_fails(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")
        code = await cli.replay(path, url="http://unused/api", timeout=1.0)
        assert code == 1

    @pytest.mark.asyncio
    async def test_replay_sync_failure_returns_1(self, capture_file, monkeypatch):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        def client_factory(base_url, timeout):
            return SyncClient(
                base_url=base_url, timeout=timeout, transport=httpx.MockTransport(refuse),
            )

        monkeypatch.setattr(cli, "SyncClient", client_factory)
        code = await cli.replay(capture_file, url="http://testserver/api", timeout=1.0)
        assert code == 1
