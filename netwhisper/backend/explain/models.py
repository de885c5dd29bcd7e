"""
explain/models.py

Data model for plain-language risk explanations of a single destination.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

RiskScore = Literal["Low", "Medium", "High"]


@dataclass(frozen=True, slots=True)
class RiskExplanation:
    """One-sentence verdict on traffic to a destination, plus its risk score."""

    risk_score: RiskScore
    explanation: str
    """Short sentence aimed at a non-technical reader."""

    fallback_used: bool = False
    """True if the text came from the built-in rules instead of the LLM."""
