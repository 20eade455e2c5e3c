"""Choose between paginated and virtualized result presentation."""

from dataclasses import dataclass
from enum import Enum

DEFAULT_VIRTUALIZATION_THRESHOLD = 500

# Below this many results a plain paginated list is always recommended
SMALL_RESULT_SET = 100


class RenderMode(str, Enum):
    """Presentation mode; ``AUTO`` defers to the result count."""

    AUTO = "auto"
    PAGINATED = "paginated"
    VIRTUALIZED = "virtualized"


@dataclass(frozen=True, slots=True)
class RenderAdvice:
    """Rough cost estimate shown next to the mode toggle."""

    memory_impact: str
    rendering_cost: str
    recommendation: str


def select_mode(
    total_results: int,
    threshold: int = DEFAULT_VIRTUALIZATION_THRESHOLD,
    manual_override: RenderMode = RenderMode.AUTO,
) -> RenderMode:
    """Return ``PAGINATED`` or ``VIRTUALIZED`` for the given result count.

    A manual override is honoured unconditionally. In auto mode the list is
    virtualized once ``total_results`` reaches ``threshold``.
    """
    if manual_override is not RenderMode.AUTO:
        return manual_override
    if total_results >= threshold:
        return RenderMode.VIRTUALIZED
    return RenderMode.PAGINATED


def advise(
    result_count: int, threshold: int = DEFAULT_VIRTUALIZATION_THRESHOLD
) -> RenderAdvice:
    """Estimate the memory and rendering impact of ``result_count`` rows."""
    if result_count <= 0:
        return RenderAdvice("minimal", "low", "either")
    if result_count < SMALL_RESULT_SET:
        return RenderAdvice("minimal", "low", RenderMode.PAGINATED.value)
    if result_count < threshold:
        return RenderAdvice("moderate", "moderate", "either")
    return RenderAdvice("high", "high", RenderMode.VIRTUALIZED.value)


def should_suggest_virtualization(
    total_results: int,
    threshold: int = DEFAULT_VIRTUALIZATION_THRESHOLD,
    manual_override: RenderMode = RenderMode.AUTO,
) -> bool:
    """True when results are paginated although the count exceeds the threshold."""
    mode = select_mode(total_results, threshold, manual_override)
    return mode is RenderMode.PAGINATED and total_results > threshold
