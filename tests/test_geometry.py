import pytest

from box_shadow_widths.geometry import Rect, outset_rect, quad_bounds
from box_shadow_widths.shadow import EdgeWidths, box_shadow_widths


def test_quad_bounds():
    quad = [10, 20, 40, 20, 40, 60, 10, 60]
    assert quad_bounds(quad) == Rect(10.0, 20.0, 30.0, 40.0)


def test_quad_bounds_requires_eight_numbers():
    with pytest.raises(ValueError):
        quad_bounds([0, 0, 1, 1])


def test_outset_rect_applies_each_edge():
    r = Rect(100.0, 50.0, 200.0, 80.0)
    w = box_shadow_widths("2px 4px 6px 1px rgba(0,0,0,0.5)")
    out = outset_rect(r, w)
    # top=0 right=6 bottom=8 left=2
    assert out == Rect(98.0, 50.0, 208.0, 88.0)
    assert (out.right, out.bottom) == (r.right + 6.0, r.bottom + 8.0)


def test_outset_rect_negative_widths_pull_edges_in():
    r = Rect(0.0, 0.0, 10.0, 10.0)
    out = outset_rect(r, EdgeWidths(top=-5.0, right=3.0, bottom=5.0, left=-3.0))
    assert out == Rect(3.0, 5.0, 10.0, 10.0)
