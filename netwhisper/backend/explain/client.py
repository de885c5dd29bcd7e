"""
explain/client.py

RiskExplainer: one-sentence, parent-friendly verdict on traffic to a single
destination, with a keyword-derived risk score.

Responsibilities:
  - Ask an Ollama server (/api/chat) for the sentence when the LLM is enabled
  - Enforce a hard timeout per call
  - Fall back to the rule-based sentence on any failure or when gated
  - Score whichever sentence is returned with determine_risk_score()

Usage:
    explainer = RiskExplainer(base_url="http://localhost:11434", enabled=True)
    result = await explainer.explain("142.250.72.14", 5120)
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from .fallbacks import fallback_explanation
from .gatekeeper import ExplainGatekeeper
from .models import RiskExplanation
from .risk import determine_risk_score

logger = logging.getLogger(__name__)

_LLM_TIMEOUT_SECONDS = 8.0
_MAX_EXPLANATION_LEN = 500

_SYSTEM_PROMPT = (
    "You are a friendly IT expert helping a parent understand what the "
    "devices in their home are doing on the internet."
)


def build_prompt(destination: str, packet_size: int) -> str:
    return (
        f"A home device is sending {packet_size} bytes to {destination}. "
        "Is this safe? Explain in one short sentence for a non-technical parent."
    )


class RiskExplainer:
    """
    Args:
        base_url:  Ollama server URL, e.g. "http://localhost:11434"
        model:     Ollama model tag
        enabled:   When False every answer comes from the fallback rules
        timeout:   Seconds before an LLM call is abandoned
        gatekeeper: Rate limit / cooldown guard (a default one is created)
        transport: Optional httpx transport (MockTransport in tests)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "phi3:3.8b",
        enabled: bool = False,
        timeout: float = _LLM_TIMEOUT_SECONDS,
        gatekeeper: ExplainGatekeeper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.enabled = enabled
        self.timeout = timeout
        self._gatekeeper = gatekeeper or ExplainGatekeeper()
        self._transport = transport
        self.stats: dict[str, int] = {
            "calls_made": 0,
            "fallbacks_used": 0,
            "timeouts": 0,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def explain(self, destination: str, packet_size: int) -> RiskExplanation:
        """
        Return a RiskExplanation for traffic of *packet_size* bytes to
        *destination*.

        Never raises for LLM problems: those produce the fallback.
        """
        if not self.enabled:
            return self._fallback(destination, packet_size)

        should_call, reason = self._gatekeeper.should_call(destination)
        if not should_call:
            logger.debug("LLM skipped for %s reason=%s", destination, reason)
            return self._fallback(destination, packet_size)

        self.stats["calls_made"] += 1
        text = await self._call_llm(build_prompt(destination, packet_size))
        if text is None:
            return self._fallback(destination, packet_size)

        text = text[:_MAX_EXPLANATION_LEN]
        result = RiskExplanation(risk_score=determine_risk_score(text), explanation=text)
        logger.info("LLM explained %s: risk=%s", destination, result.risk_score)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fallback(self, destination: str, packet_size: int) -> RiskExplanation:
        self.stats["fallbacks_used"] += 1
        text = fallback_explanation(destination, packet_size)
        return RiskExplanation(
            risk_score=determine_risk_score(text),
            explanation=text,
            fallback_used=True,
        )

    async def _call_llm(self, prompt: str) -> str | None:
        """POST to Ollama /api/chat. Returns the reply text or None on any failure."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user",   "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": 0.1, "num_predict": 80},
        }

        try:
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(
                    timeout=self.timeout + 1, transport=self._transport,
                ) as client:
                    resp = await client.post(f"{self.base_url}/api/chat", json=payload)
                    resp.raise_for_status()
                    data = resp.json()
        except (TimeoutError, httpx.TimeoutException):
            self.stats["timeouts"] += 1
            logger.warning("LLM call timed out after %.1fs", self.timeout)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("LLM call failed: %s", exc)
            return None

        # Ollama /api/chat response: {"message": {"content": "..."}}
        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            logger.warning("LLM returned an empty or malformed reply")
            return None
        return content.strip()
