"""
Model pricing and cost estimation.

Costs are estimated from a static table of per-million-token rates with
separate prices for input, output, prompt-cache writes and prompt-cache reads.

Lookup is an exact match first, then a substring match in either direction so
that dated or aliased model names still resolve (e.g. a transcript reporting
"claude-3-5-haiku-20241022-v2"). The substring pass takes the first hit in
table order, so overlapping families depend on the order below:

    >>> find_pricing("claude-opus-4") is MODEL_PRICING["claude-opus-4-20250514"]
    True

Unknown models cost 0.0.
"""

from __future__ import annotations

from dataclasses import dataclass

from ccsync.core.transcript.models import UsageBreakdown


@dataclass(frozen=True)
class ModelPricing:
    """USD rates per million tokens."""

    input: float
    output: float
    cache_write: float
    cache_read: float


# Pricing per million tokens (USD)
# Source: https://www.anthropic.com/pricing
# Order matters for substring matching, see find_pricing()
MODEL_PRICING: dict[str, ModelPricing] = {
    "claude-sonnet-4-20250514": ModelPricing(3.00, 15.00, 3.75, 0.30),
    "claude-opus-4-20250514": ModelPricing(15.00, 75.00, 18.75, 1.50),
    "claude-opus-4-5-20251101": ModelPricing(15.00, 75.00, 18.75, 1.50),
    "claude-3-5-sonnet-20241022": ModelPricing(3.00, 15.00, 3.75, 0.30),
    "claude-3-opus-20240229": ModelPricing(15.00, 75.00, 18.75, 1.50),
    "claude-3-5-haiku-20241022": ModelPricing(0.80, 4.00, 1.00, 0.08),
    "claude-sonnet-4-5-20250929": ModelPricing(3.00, 15.00, 3.75, 0.30),
    "claude-3-7-sonnet-20250219": ModelPricing(3.00, 15.00, 3.75, 0.30),
    "claude-3-haiku-20240307": ModelPricing(0.25, 1.25, 0.30, 0.03),
}


def find_pricing(model: str | None) -> ModelPricing | None:
    """
    Look up rates for a model identifier.

    Args:
        model: Model identifier as reported by Claude Code

    Returns:
        ModelPricing, or None if the model is unknown

    Examples:
        >>> find_pricing("claude-sonnet-4-20250514").output
        15.0
        >>> find_pricing("gpt-4o") is None
        True
    """
    if not model:
        return None

    pricing = MODEL_PRICING.get(model)
    if pricing is not None:
        return pricing

    # First match in table order; ambiguous for overlapping model families
    for key, candidate in MODEL_PRICING.items():
        if key in model or model in key:
            return candidate

    return None


def calculate_cost(model: str | None, usage: UsageBreakdown) -> float:
    """
    Estimate the cost in USD of a session's token usage.

    Args:
        model: Model identifier (may be None)
        usage: Token counters by billing class

    Returns:
        Cost in USD; 0.0 if the model is missing or not priced

    Examples:
        >>> calculate_cost(
        ...     "claude-sonnet-4-20250514",
        ...     UsageBreakdown(input=1_000_000, output=1_000_000),
        ... )
        18.0
    """
    pricing = find_pricing(model)
    if pricing is None:
        return 0.0

    total = (
        usage.input * pricing.input
        + usage.output * pricing.output
        + usage.cache_write * pricing.cache_write
        + usage.cache_read * pricing.cache_read
    )
    return total / 1_000_000
