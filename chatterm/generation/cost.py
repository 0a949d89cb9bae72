"""Cost estimation from token usage.

Rates are dollars per token. Values stay unrounded floats until they are
formatted for display.
"""

from chatterm.models import CostEstimate, TokenUsage

PROMPT_RATE = 1.1 / 1_000_000  # $1.10 per million input tokens
COMPLETION_RATE = 4.4 / 1_000_000  # $4.40 per million output tokens


def estimate_cost(
    usage: TokenUsage,
    *,
    prompt_rate: float = PROMPT_RATE,
    completion_rate: float = COMPLETION_RATE,
) -> CostEstimate:
    return CostEstimate(
        input_cost=usage.input_tokens * prompt_rate,
        output_cost=usage.output_tokens * completion_rate,
    )


def format_token_report(usage: TokenUsage, cost: CostEstimate) -> list[str]:
    """Two console lines: token totals, then the cost breakdown."""
    return [
        f"Token Count: {usage.total_tokens}"
        f" (Input: {usage.input_tokens}, Output: {usage.output_tokens})",
        f"Cost: ${cost.input_cost:.6f} prompt, ${cost.output_cost:.6f} completion,"
        f" Total: ${cost.total_cost:.6f}",
    ]
