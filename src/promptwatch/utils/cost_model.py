"""Token usage cost calculation utilities."""

from dataclasses import dataclass
from typing import Iterable

from promptwatch.types.messages import Message, MessageKind


@dataclass(frozen=True)
class PricingRates:
    """Per 1M tokens, in USD."""
    input: float = 3.00
    cache_write: float = 3.00
    cache_read: float = 0.30
    output: float = 15.00


DEFAULT_RATES = PricingRates()


def calculate_cost(
    input_tokens: int,
    cache_write_tokens: int,
    cache_read_tokens: int,
    output_tokens: int,
    rates: PricingRates = DEFAULT_RATES,
) -> tuple[float, float]:
    """Return (cost, cache_savings) in USD for the given token counts.

    Savings are what the cache reads would have cost at the regular input
    rate, minus what they actually cost.
    """
    cost = (
        input_tokens * rates.input
        + cache_write_tokens * rates.input
        + cache_read_tokens * rates.cache_read
        + output_tokens * rates.output
    ) / 1_000_000

    savings = 0.0
    if cache_read_tokens > 0:
        savings = cache_read_tokens * (rates.input - rates.cache_read) / 1_000_000
    return cost, savings


def message_cost(message: Message, rates: PricingRates = DEFAULT_RATES) -> tuple[float, float]:
    """Cost of one message. Only assistant responses are billed."""
    if message.kind != MessageKind.ASSISTANT_RESPONSE:
        return 0.0, 0.0
    return calculate_cost(
        message.input_tokens,
        message.cache_write_tokens,
        message.cache_read_tokens,
        message.output_tokens,
        rates,
    )


def session_cost(messages: Iterable[Message], rates: PricingRates = DEFAULT_RATES) -> tuple[float, float]:
    total_cost = 0.0
    total_savings = 0.0
    for msg in messages:
        cost, savings = message_cost(msg, rates)
        total_cost += cost
        total_savings += savings
    return total_cost, total_savings


def calculate_ratio(input_tokens: int, output_tokens: int) -> tuple[float, int]:
    """Return (input/output ratio, output share of total in percent)."""
    total = input_tokens + output_tokens
    if total == 0:
        return 0.0, 0
    if output_tokens == 0:
        return float(input_tokens), 0
    return input_tokens / output_tokens, round(100 * output_tokens / total)
