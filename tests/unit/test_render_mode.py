"""Unit tests for render mode selection."""

import pytest

from nimbus_search.search.render_mode import (
    RenderMode,
    advise,
    select_mode,
    should_suggest_virtualization,
)


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (0, RenderMode.PAGINATED),
        (499, RenderMode.PAGINATED),
        (500, RenderMode.VIRTUALIZED),
        (10_000, RenderMode.VIRTUALIZED),
    ],
)
def test_auto_mode_uses_threshold(count, expected):
    assert select_mode(count) is expected


def test_manual_override_wins():
    assert select_mode(10_000, manual_override=RenderMode.PAGINATED) is RenderMode.PAGINATED
    assert select_mode(0, manual_override=RenderMode.VIRTUALIZED) is RenderMode.VIRTUALIZED


def test_custom_threshold():
    assert select_mode(20, threshold=20) is RenderMode.VIRTUALIZED
    assert select_mode(19, threshold=20) is RenderMode.PAGINATED


def test_auto_mode_is_monotonic():
    modes = [select_mode(n) for n in range(0, 1000, 7)]
    first_virtualized = modes.index(RenderMode.VIRTUALIZED)

    assert all(m is RenderMode.PAGINATED for m in modes[:first_virtualized])
    assert all(m is RenderMode.VIRTUALIZED for m in modes[first_virtualized:])


def test_advise_tiers():
    assert advise(0).recommendation == "either"
    assert advise(50).recommendation == "paginated"
    assert advise(250).memory_impact == "moderate"
    assert advise(500).recommendation == "virtualized"
    assert advise(500).rendering_cost == "high"


def test_should_suggest_virtualization():
    assert should_suggest_virtualization(600, manual_override=RenderMode.PAGINATED)
    assert not should_suggest_virtualization(600)
    assert not should_suggest_virtualization(100, manual_override=RenderMode.PAGINATED)
