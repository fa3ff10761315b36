import pytest

from zlockin.util import format_progress


def test_format_progress_partial():
    assert format_progress(1, 4, width=4) == "[#   ]  25% (1/4)"


def test_format_progress_bounds():
    assert format_progress(0, 10, width=5) == "[     ]   0% (0/10)"
    assert format_progress(10, 10, width=5) == "[#####] 100% (10/10)"


def test_format_progress_clamps():
    assert format_progress(12, 10, width=5) == format_progress(10, 10, width=5)
    assert format_progress(-1, 10, width=5) == format_progress(0, 10, width=5)


def test_format_progress_default_width():
    bar = format_progress(500, 1000)
    assert bar.startswith("[" + "#" * 10 + " " * 10 + "]")
    assert bar.endswith(" 50% (500/1000)")


@pytest.mark.parametrize("total, width", [(0, 10), (-5, 10), (10, 0)])
def test_format_progress_invalid(total, width):
    with pytest.raises(ValueError):
        format_progress(1, total, width=width)
