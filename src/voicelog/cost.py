"""Token and price heuristic for one ingestion.

Counts are a coarse 4-characters-per-token approximation, not a real
tokenizer, and the resulting figure is never authoritative billing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from voicelog.core.models import CostEstimate

CHARS_PER_TOKEN = 4
_PER_MILLION = Decimal(1_000_000)
_FOUR_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class Pricing:
    """USD price per million tokens for input and output."""

    input_per_mtok: Decimal
    output_per_mtok: Decimal

    @classmethod
    def of(cls, input_per_mtok: float | str | Decimal, output_per_mtok: float | str | Decimal) -> Pricing:
        """Build from floats or strings without binary rounding artifacts."""
        return cls(Decimal(str(input_per_mtok)), Decimal(str(output_per_mtok)))


def estimate_tokens(text: str) -> int:
    """ceil(len(text) / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_cost(transcript: str, serialized_analysis: str, pricing: Pricing) -> CostEstimate:
    """Estimate tokens and USD cost for a transcript and its analysis.

    Args:
        transcript: Full recognized text (the analysis input).
        serialized_analysis: The analysis as serialized JSON (the output).
        pricing: Per-million-token prices.

    Returns:
        CostEstimate with cost rounded half-up to 4 decimal places.
    """
    tokens_in = estimate_tokens(transcript)
    tokens_out = estimate_tokens(serialized_analysis)
    cost = (
        Decimal(tokens_in) / _PER_MILLION * pricing.input_per_mtok
        + Decimal(tokens_out) / _PER_MILLION * pricing.output_per_mtok
    )
    return CostEstimate(
        tokens_in=tokens_in,
        tokens_out=tokens_out,
        cost_usd=cost.quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP),
    )
