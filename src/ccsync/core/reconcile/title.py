"""Session title derivation."""

TITLE_MAX_LENGTH = 80
ELLIPSIS = "..."

# A word break is only used if it keeps more than this many characters
_MIN_WORD_BREAK = 40


def generate_title(prompt: str) -> str:
    """
    Derive a session title from the first user prompt.

    Prompts longer than 80 characters are cut at 80, then shortened to the
    last word break if that still keeps more than 40 characters, and marked
    with "...".

    Args:
        prompt: First user prompt

    Returns:
        Title text

    Examples:
        >>> generate_title("fix bug")
        'fix bug'
        >>> generate_title("a" * 100) == "a" * 80 + "..."
        True
    """
    cut = prompt[:TITLE_MAX_LENGTH].strip()
    if len(prompt) <= TITLE_MAX_LENGTH:
        return cut

    last_space = cut.rfind(" ")
    if last_space > _MIN_WORD_BREAK:
        return cut[:last_space] + ELLIPSIS
    return cut + ELLIPSIS
