import pathlib, sys
import pytest

# ensure package root
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[2]))

from star_visibility_pkg.astro_utils import validate_coords, validate_location
from star_visibility_pkg.models import GeoLocation, StarCoordinate


def test_validate_coords_ok():
    ra, dec = validate_coords(10, 89.9999999)
    assert ra == pytest.approx(10)
    assert dec == pytest.approx(89.9999999)


def test_validate_coords_wrap():
    ra, dec = validate_coords(-1, 0)
    assert 0 <= ra < 360
    assert ra == pytest.approx(359.0)
    assert dec == 0
    assert validate_coords(360.0, 0)[0] == 0.0


def test_validate_coords_clamps_jitter():
    _, dec = validate_coords(0, 90.0000001)
    assert dec == 90.0


def test_validate_coords_error():
    with pytest.raises(ValueError):
        validate_coords(10, 100)
    with pytest.raises(ValueError):
        validate_coords(float("nan"), 0)


def test_validate_location_wraps_longitude():
    assert validate_location(10, 190) == (10.0, pytest.approx(-170.0))
    assert validate_location(10, -180) == (10.0, 180.0)
    assert validate_location(-33.9, 18.4) == (-33.9, pytest.approx(18.4))


def test_validate_location_error():
    with pytest.raises(ValueError):
        validate_location(91, 0)
    with pytest.raises(ValueError):
        validate_location(0, float("inf"))


def test_value_types_validate_on_construction():
    assert StarCoordinate(370.0, 10.0).ra_deg == pytest.approx(10.0)
    assert GeoLocation(45.0, 540.0).lon_deg == 180.0
    with pytest.raises(ValueError):
        StarCoordinate(10.0, -91.0)
    with pytest.raises(ValueError):
        GeoLocation(-95.0, 0.0)
