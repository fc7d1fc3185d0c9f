"""Fixed-height message cards and viewport slicing for the session detail view."""

from typing import Optional, Sequence

from promptwatch.types.messages import Message, MessageKind, MessageRole
from promptwatch.utils.cost_model import DEFAULT_RATES, PricingRates, calculate_ratio, message_cost
from promptwatch.utils.formatting import format_relative_gap
from promptwatch.utils.scroll import DEFAULT_CARD_HEIGHT

_KIND_LABELS = {
    MessageKind.PROMPT: "USER",
    MessageKind.ASSISTANT_RESPONSE: "ASSISTANT",
    MessageKind.TOOL_RESULT: "TOOL RESULT",
}


def _fit(text: str, width: int) -> str:
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[:width - 3] + "..."


def card_header(message: Message, number: int, previous: Optional[Message] = None) -> str:
    label = _KIND_LABELS.get(message.kind, message.role.value.upper())
    parts = [f"#{number}", label]
    if message.tool_name:
        parts.append(f"[{message.tool_name}]")
    if message.timestamp is not None:
        parts.append(message.timestamp.strftime("%H:%M:%S"))
    gap = format_relative_gap(message.timestamp, previous.timestamp if previous else None)
    if gap:
        parts.append(gap)
    return " ".join(parts)


def card_metrics(message: Message, rates: PricingRates = DEFAULT_RATES) -> str:
    """Token and cost line. Empty for messages that are not billed."""
    if message.role != MessageRole.ASSISTANT or message.kind != MessageKind.ASSISTANT_RESPONSE:
        return ""
    cost, savings = message_cost(message, rates)
    ratio, out_pct = calculate_ratio(message.input_tokens, message.output_tokens)
    line = (
        f"in {message.input_tokens} | out {message.output_tokens} | "
        f"cache w/r {message.cache_write_tokens}/{message.cache_read_tokens} | "
        f"${cost:.4f}"
    )
    if savings > 0:
        line += f" (saved ${savings:.4f})"
    line += f" | ratio {ratio:.1f} ({out_pct}% out)"
    return line


def render_card(
    message: Message,
    number: int,
    previous: Optional[Message] = None,
    width: int = 80,
    card_height: int = DEFAULT_CARD_HEIGHT,
    rates: PricingRates = DEFAULT_RATES,
) -> tuple[str, ...]:
    """Exactly card_height lines: header, content, metrics, separator."""
    lines = [
        _fit(card_header(message, number, previous), width),
        _fit(message.content, width),
        _fit(card_metrics(message, rates), width),
    ]
    # Extra height is padding; the separator always closes the card
    lines = lines[:max(card_height - 1, 0)]
    while len(lines) < card_height - 1:
        lines.append("")
    if card_height > 0:
        lines.append("-" * width)
    return tuple(lines)


class CardArena:
    """Pre-rendered cards for a message list, addressed by line offset.

    Card i occupies lines [i * card_height, (i + 1) * card_height).
    """

    def __init__(
        self,
        messages: Sequence[Message],
        width: int = 80,
        card_height: int = DEFAULT_CARD_HEIGHT,
        rates: PricingRates = DEFAULT_RATES,
    ):
        self.card_height = card_height
        self._cards: list[tuple[str, ...]] = []
        previous = None
        for number, message in enumerate(messages, start=1):
            self._cards.append(render_card(message, number, previous, width, card_height, rates))
            previous = message

    def __len__(self) -> int:
        return len(self._cards)

    @property
    def total_lines(self) -> int:
        return len(self._cards) * self.card_height

    def card(self, index: int) -> tuple[str, ...]:
        return self._cards[index]

    def window(self, offset: int, height: int, selected: int = -1) -> list[str]:
        """Lines visible in a viewport starting at offset, selection marked with '>'."""
        if height <= 0 or not self._cards or self.card_height <= 0:
            return []
        offset = max(offset, 0)
        lines = []
        for line_no in range(offset, min(offset + height, self.total_lines)):
            index, row = divmod(line_no, self.card_height)
            marker = "> " if index == selected and row == 0 else "  "
            lines.append(marker + self._cards[index][row])
        return lines
