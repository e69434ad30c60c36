"""Text formatting helpers for the display layer."""


def elapsed_time(seconds: int) -> str:
    """Format a duration in seconds as ``HH:MM:SS``. Hours do not wrap."""
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_fraction(fraction: float) -> str:
    """Format a fraction in [0, 1] as a percentage."""
    return f"{fraction * 100:5.1f}%"


def progress_bar(fraction: float, width: int = 20, color: str = "green") -> str:
    """
    Build a Rich markup progress bar.

    Args:
        fraction: Completion in [0, 1]; values outside are clamped.
        width: Number of cells in the bar.
        color: Rich color of the filled part.
    """
    fraction = min(max(fraction, 0.0), 1.0)
    filled = int(fraction * width)
    bar = f"[{color}]" + "█" * filled + f"[/{color}]" + "[dim]" + "░" * (width - filled) + "[/dim]"
    # Escape the opening bracket so Rich does not read the bar container as markup
    return f"\\[{bar}] {format_fraction(fraction)}"
