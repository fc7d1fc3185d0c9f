"""Viewport offset arithmetic for lists of fixed-height cards."""

DEFAULT_CARD_HEIGHT = 4


def scroll_offset_for(
    selected_index: int,
    viewport_height: int,
    total_items: int,
    card_height: int = DEFAULT_CARD_HEIGHT,
) -> int:
    """Top line offset that centers the selected card in the viewport.

    Clamped to [0, max(0, total_items * card_height - viewport_height)].
    """
    if total_items <= 0 or selected_index < 0:
        return 0
    target = selected_index * card_height - viewport_height // 2 + card_height // 2
    max_offset = max(0, total_items * card_height - viewport_height)
    return min(max(target, 0), max_offset)
