"""Custom Jinja2 filters for site templates."""

from datetime import date


def date_format(value: date | None, format_str: str = "%Y-%m-%d") -> str:
    """Format a date.

    Args:
        value: Date to format
        format_str: strftime format string

    Returns:
        Formatted date string, empty for ``None``

    """
    if value is None:
        return ""
    if not isinstance(value, date):
        return str(value)
    return value.strftime(format_str)


def truncate_words(text: str, max_words: int = 50, suffix: str = "...") -> str:
    """Truncate text to a maximum number of words."""
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + suffix
