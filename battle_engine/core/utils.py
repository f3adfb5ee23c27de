"""
Utilities module for the battle engine.

Provides console printing with rich formatting and the numeric coercion
helpers used wherever content data may hold missing or malformed numbers.
"""

from __future__ import annotations

import math
from typing import Any

from rich.console import Console
from rich.rule import Rule

# Initialize the rich console.
_console = Console(markup=True, width=120, force_terminal=True, force_jupyter=False)


def cprint(*args: Any, **kwargs: Any) -> None:
    """
    Custom print function to handle colored output.

    Args:
        *args: Arguments to pass to the console print function.
        **kwargs: Keyword arguments to pass to the console print function.

    """
    _console.print(*args, **kwargs)


def crule(*args: Any, **kwargs: Any) -> None:
    """
    Custom print function to handle colored output with a rule.

    Args:
        *args: Arguments to pass to the Rule constructor.
        **kwargs: Keyword arguments to pass to the Rule constructor.

    """
    _console.print(Rule(*args, **kwargs))


# ---- Numeric coercion ----


def as_number(value: Any, default: float = 0.0) -> float:
    """
    Coerces a value to a finite float.

    Args:
        value (Any): A number, a numeric string, None or anything else.
        default (float): Returned when the value is missing or not finite.

    Returns:
        float: The coerced value.

    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamps a value into [lower, upper]; non-finite values collapse to lower."""
    if not math.isfinite(value):
        return lower
    return max(lower, min(upper, value))


def make_bar(current: int, maximum: int, width: int = 20, color: str = "green") -> str:
    """
    Builds a rich-markup progress bar such as ``[green]████░░░░[/]``.

    Args:
        current (int): Current value.
        maximum (int): Maximum value.
        width (int): Number of cells in the bar.
        color (str): Rich color of the filled cells.

    Returns:
        str: The bar markup.

    """
    ratio = current / maximum if maximum > 0 else 0.0
    filled = int(round(clamp(ratio, 0.0, 1.0) * width))
    return f"[{color}]{'█' * filled}[/][dim]{'░' * (width - filled)}[/]"
