"""
tests/test_explain.py

Tests for the explain package: keyword risk scoring, rule-based fallbacks,
the gatekeeper, the Ollama-backed RiskExplainer (httpx.MockTransport) and
the POST /api/explain route.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from netwhisper.backend.api.main import create_app
from netwhisper.backend.explain import ExplainGatekeeper, RiskExplainer, determine_risk_score
from netwhisper.backend.explain.fallbacks import LARGE_TRANSFER_BYTES, fallback_explanation
from netwhisper.backend.storage import IngestStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def ollama_reply(content: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": {"role": "assistant", "content": content}})
    return handler


def llm_explainer(handler, **kwargs) -> RiskExplainer:
    kwargs.setdefault("gatekeeper", ExplainGatekeeper(max_calls_per_minute=100, cooldown_seconds=0))
    return RiskExplainer(
        base_url="http://ollama.test",
        enabled=True,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# determine_risk_score
# ---------------------------------------------------------------------------

class TestRiskScore:

    @pytest.mark.parametrize("text, expected", [
        ("This looks safe.", "Low"),
        ("Totally NORMAL streaming traffic", "Low"),
        ("A legitimate update server.", "Low"),
        ("This is suspicious.", "Medium"),
        ("An unusual amount of data", "Medium"),
        ("Proceed with caution", "Medium"),
        ("This is dangerous", "High"),
        ("Known malware host", "High"),
        ("A possible threat actor", "High"),
    ])
    def test_keywords(self, text, expected):
        assert determine_risk_score(text) == expected

    def test_no_keyword_defaults_to_medium(self):
        assert determine_risk_score("A device talked to a server.") == "Medium"
        assert determine_risk_score("") == "Medium"

    def test_low_keywords_take_precedence(self):
        assert determine_risk_score("Safe, not malware.") == "Low"
        assert determine_risk_score("Unusual but likely a threat") == "Medium"

    def test_keywords_match_at_word_start(self):
        assert determine_risk_score("Threats were reported") == "High"
        assert determine_risk_score("This is unsafe and dangerous") == "High"
        assert determine_risk_score("abnormal activity") == "Medium"


# ---------------------------------------------------------------------------
# fallback_explanation
# ---------------------------------------------------------------------------

class TestFallbacks:

    @pytest.mark.parametrize("dst", ["192.168.1.10", "10.0.0.5", "127.0.0.1", "fe80::1"])
    def test_local_destination_is_low(self, dst):
        text = fallback_explanation(dst, LARGE_TRANSFER_BYTES * 10)
        assert dst in text
        assert determine_risk_score(text) == "Low"

    def test_large_transfer_is_medium(self):
        text = fallback_explanation("93.184.216.34", LARGE_TRANSFER_BYTES)
        assert determine_risk_score(text) == "Medium"

    def test_small_transfer_is_low(self):
        text = fallback_explanation("93.184.216.34", LARGE_TRANSFER_BYTES - 1)
        assert determine_risk_score(text) == "Low"

    def test_hostname_treated_as_internet_host(self):
        text = fallback_explanation("tracker.example", 5_000_000)
        assert "tracker.example" in text
        assert determine_risk_score(text) == "Medium"


# ---------------------------------------------------------------------------
# ExplainGatekeeper
# ---------------------------------------------------------------------------

class TestGatekeeper:

    def test_approves_first_call(self):
        assert ExplainGatekeeper().should_call("8.8.8.8") == (True, "APPROVED")

    def test_cooldown_per_destination(self):
        gk = ExplainGatekeeper(cooldown_seconds=30)
        with patch("netwhisper.backend.explain.gatekeeper.time.time", return_value=1000.0):
            gk.should_call("8.8.8.8")
            assert gk.should_call("8.8.8.8") == (False, "COOLDOWN")
            assert gk.should_call("1.1.1.1") == (True, "APPROVED")
        with patch("netwhisper.backend.explain.gatekeeper.time.time", return_value=1031.0):
            assert gk.should_call("8.8.8.8") == (True, "APPROVED")

    def test_rate_limit_sliding_window(self):
        gk = ExplainGatekeeper(max_calls_per_minute=2, cooldown_seconds=0)
        with patch("netwhisper.backend.explain.gatekeeper.time.time", return_value=1000.0):
            assert gk.should_call("a")[0]
            assert gk.should_call("b")[0]
            assert gk.should_call("c") == (False, "RATE_LIMITED")
        with patch("netwhisper.backend.explain.gatekeeper.time.time", return_value=1061.0):
            assert gk.should_call("c") == (True, "APPROVED")


# ---------------------------------------------------------------------------
# RiskExplainer
# ---------------------------------------------------------------------------

class TestRiskExplainer:

    @pytest.mark.asyncio
    async def test_disabled_uses_fallback_without_network(self):
        def fail(request):
            raise AssertionError("no request expected")

        explainer = RiskExplainer(enabled=False, transport=httpx.MockTransport(fail))
        result = await explainer.explain("93.184.216.34", 100)
        assert result.fallback_used is True
        assert result.risk_score == "Low"
        assert explainer.stats["calls_made"] == 0

    @pytest.mark.asyncio
    async def test_llm_reply_is_scored(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return ollama_reply("  This looks like malware phoning home.  ")(request)

        explainer = llm_explainer(handler, model="mistral")
        result = await explainer.explain("93.184.216.34", 4096)

        assert result.explanation == "This looks like malware phoning home."
        assert result.risk_score == "High"
        assert result.fallback_used is False
        body = seen[0]
        assert body["model"] == "mistral"
        assert body["stream"] is False
        assert "4096 bytes to 93.184.216.34" in body["messages"][-1]["content"]

    @pytest.mark.asyncio
    async def test_long_reply_truncated(self):
        explainer = llm_explainer(ollama_reply("safe " * 200))
        result = await explainer.explain("93.184.216.34", 1)
        assert len(result.explanation) <= 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handler", [
        lambda request: httpx.Response(503),
        lambda request: httpx.Response(200, content=b"not json"),
        lambda request: httpx.Response(200, json={"message": {"content": "   "}}),
        lambda request: httpx.Response(200, json=["unexpected"]),
    ])
    async def test_bad_llm_response_falls_back(self, handler):
        explainer = llm_explainer(handler)
        result = await explainer.explain("93.184.216.34", 100)
        assert result.fallback_used is True
        assert explainer.stats["fallbacks_used"] == 1

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        explainer = llm_explainer(slow)
        result = await explainer.explain("93.184.216.34", 100)
        assert result.fallback_used is True
        assert explainer.stats["timeouts"] == 1

    @pytest.mark.asyncio
    async def test_unreachable_falls_back(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await llm_explainer(refuse).explain("93.184.216.34", 100)
        assert result.fallback_used is True

    @pytest.mark.asyncio
    async def test_gated_call_falls_back(self):
        explainer = llm_explainer(
            ollama_reply("This is dangerous."),
            gatekeeper=ExplainGatekeeper(cooldown_seconds=300),
        )
        first = await explainer.explain("93.184.216.34", 100)
        second = await explainer.explain("93.184.216.34", 100)
        assert first.fallback_used is False
        assert second.fallback_used is True
        assert explainer.stats["calls_made"] == 1


# ---------------------------------------------------------------------------
# POST /api/explain
# ---------------------------------------------------------------------------

def make_client(explainer: RiskExplainer) -> TestClient:
    return TestClient(create_app(store=IngestStore(), api_prefix="/api", explainer=explainer))


class TestExplainRoute:

    def test_fallback_response(self):
        with make_client(RiskExplainer(enabled=False)) as client:
            resp = client.post(
                "/api/explain",
                json={"destinationIp": "192.168.1.20", "packetSize": 2048, "timestamp": "12:00:01"},
            )
        assert resp.status_code == 200
        body = resp.json()
        assert body["riskScore"] == "Low"
        assert body["fallbackUsed"] is True
        assert "192.168.1.20" in body["explanation"]

    def test_llm_response(self):
        explainer = llm_explainer(ollama_reply("Suspicious upload to an unknown server."))
        with make_client(explainer) as client:
            resp = client.post("/api/explain", json={"destinationIp": "93.184.216.34", "packetSize": 1})
        assert resp.status_code == 200
        assert resp.json() == {
            "riskScore": "Medium",
            "explanation": "Suspicious upload to an unknown server.",
            "fallbackUsed": False,
        }

    @pytest.mark.parametrize("body", [
        {"packetSize": 10},
        {"destinationIp": "", "packetSize": 10},
        {"destinationIp": "8.8.8.8", "packetSize": -1},
        {"destinationIp": "8.8.8.8", "packetSize": "10"},
        {"destinationIp": "8.8.8.8", "packetSize": True},
    ])
    def test_invalid_body_is_400(self, body):
        with make_client(RiskExplainer()) as client:
            resp = client.post("/api/explain", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"

    def test_unexpected_failure_is_500(self, monkeypatch):
        explainer = RiskExplainer()

        async def broken(destination, packet_size):
            raise RuntimeError("model exploded")

        monkeypatch.setattr(explainer, "explain", broken)
        with make_client(explainer) as client:
            resp = client.post("/api/explain", json={"destinationIp": "8.8.8.8", "packetSize": 1})
        assert resp.status_code == 500
        body = resp.json()
        assert body["riskScore"] == "Error"
        assert "try again" in body["explanation"]
