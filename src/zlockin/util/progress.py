"""Text progress indicator for long measurement sessions."""

from __future__ import annotations


def format_progress(completed: int, total: int, width: int = 20) -> str:
    """Render a fixed-width progress bar.

    Parameters
    ----------
    completed : int
        Number of bursts processed so far
    total : int
        Total number of bursts in the session
    width : int
        Number of cells in the bar, by default 20

    Returns
    -------
    str
        e.g. ``"[##########          ]  50% (500/1000)"``

    Examples
    --------
    >>> format_progress(1, 4, width=4)
    '[#   ]  25% (1/4)'
    """
    if total <= 0:
        raise ValueError(f"total must be positive, got {total}")
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")
    completed = min(max(completed, 0), total)
    filled = (completed * width) // total
    percent = (completed * 100) // total
    bar = "#" * filled + " " * (width - filled)
    return f"[{bar}] {percent:3d}% ({completed}/{total})"
