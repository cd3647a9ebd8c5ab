import pytest

from cabalhelper.core import coords
from cabalhelper.core.coords import WindowGeometry

GEO = WindowGeometry(100, 50, 800, 600)


def test_rect_roundtrip_and_resize():
    n = coords.normalize(GEO, (200, 150, 400, 300))
    assert n == pytest.approx((0.25, 0.25, 0.5, 0.5))
    assert coords.denormalize(GEO, n) == (200, 150, 400, 300)
    # window doubled in size: the area scales with it
    big = WindowGeometry(0, 0, 1600, 1200)
    assert coords.denormalize(big, n) == (400, 300, 800, 600)


def test_denormalize_clamps_size_to_client_edge():
    assert coords.denormalize(GEO, (0.9, 0.9, 0.5, 0.5)) == (720, 540, 80, 60)


def test_normalize_clamps_components():
    n = coords.normalize(GEO, (-10, 0, 2000, 60))
    assert n == pytest.approx((0.0, 0.0, 1.0, 0.1))


@pytest.mark.parametrize("geometry", [None, WindowGeometry(0, 0, 0, 600), WindowGeometry(0, 0, 800, 0)])
def test_invalid_geometry_yields_none(geometry):
    assert coords.normalize(geometry, (0, 0, 1, 1)) is None
    assert coords.denormalize(geometry, (0, 0, 1, 1)) is None
    assert coords.normalize_point(geometry, (1, 1)) is None
    assert coords.denormalize_point(geometry, (0.5, 0.5)) is None


def test_points_map_onto_last_pixel():
    assert coords.normalize_point(GEO, (799, 599)) == (1.0, 1.0)
    assert coords.denormalize_point(GEO, (1.0, 1.0)) == (799, 599)
    assert coords.denormalize_point(GEO, (0.0, 0.0)) == (0, 0)
    assert coords.denormalize_point(GEO, (0.5, 0.5)) == (400, 300)
    assert coords.denormalize_point(GEO, coords.normalize_point(GEO, (123, 456))) == (123, 456)


def test_contains_and_relative():
    assert coords.contains(GEO, (100, 50))
    assert coords.contains(GEO, (899, 649))
    assert not coords.contains(GEO, (900, 50))
    assert not coords.contains(GEO, (99, 60))
    assert not coords.contains(None, (100, 50))
    assert coords.to_window_relative(GEO, (300, 250)) == (200, 200)
    assert coords.to_window_relative(None, (300, 250)) is None
    assert coords.to_screen(GEO, (200, 200)) == (300, 250)
