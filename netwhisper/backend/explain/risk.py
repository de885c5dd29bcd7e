"""
explain/risk.py

Keyword-based risk scoring of an explanation sentence.

The score is derived from the text alone, so an LLM answer and a rule-based
fallback are graded the same way. Levels are checked in a fixed order
(Low, Medium, High) and the first level with a matching keyword wins; text
with no keyword at all scores Medium.

Keywords match at the start of a word: "safely" and "threats" count,
"unsafe" and "abnormal" do not.
"""

from __future__ import annotations

import re

from .models import RiskScore

_LEVELS: tuple[tuple[RiskScore, re.Pattern[str]], ...] = (
    ("Low",    re.compile(r"\b(?:safe|normal|legitimate)")),
    ("Medium", re.compile(r"\b(?:suspicious|unusual|caution)")),
    ("High",   re.compile(r"\b(?:dangerous|malware|threat)")),
)

DEFAULT_RISK: RiskScore = "Medium"


def determine_risk_score(explanation: str) -> RiskScore:
    text = explanation.lower()
    for level, pattern in _LEVELS:
        if pattern.search(text):
            return level
    return DEFAULT_RISK
