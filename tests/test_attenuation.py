import numpy as np
import pytest

from eewsim.attenuation import (
    IntensityCategory,
    estimate_pga,
    estimate_pgv,
    intensity,
    intensity_gear,
    invert_magnitude,
    to_discrete_scale,
    tsunami_height,
)
from eewsim.models import Terrain, WaveType


def test_intensity_is_clamped():
    assert intensity(9.5, 0.0, 0.0, Terrain.BASIN) == 12.0
    assert intensity(2.0, 800.0, 50.0, Terrain.OFFSHORE) == 0.0


def test_intensity_non_increasing_with_distance():
    for wave in WaveType:
        values = [
            intensity(7.0, d, 10.0, Terrain.PLAIN, wave)
            for d in np.linspace(0.0, 600.0, 121)
        ]
        assert all(b <= a for a, b in zip(values, values[1:]))
        assert all(0.0 <= v <= 12.0 for v in values)


def test_intensity_floors_short_distances():
    # Both hypocentral distances are under 5 km and read as 5 km.
    near = intensity(6.0, 0.0, 0.0, Terrain.PLAIN)
    close = intensity(6.0, 3.0, 2.0, Terrain.PLAIN)
    assert near == pytest.approx(close)


def test_p_wave_reads_lower_than_s_wave():
    for distance in (10.0, 50.0, 100.0):
        s = intensity(7.6, distance, 8.0, Terrain.PLAIN, WaveType.S)
        p = intensity(7.6, distance, 8.0, Terrain.PLAIN, WaveType.P)
        assert 2.0 <= s - p <= 3.5


def test_p_wave_decays_faster():
    s_drop = intensity(7.0, 10.0, 10.0, Terrain.PLAIN, WaveType.S) - intensity(
        7.0, 100.0, 10.0, Terrain.PLAIN, WaveType.S
    )
    p_drop = intensity(7.0, 10.0, 10.0, Terrain.PLAIN, WaveType.P) - intensity(
        7.0, 100.0, 10.0, Terrain.PLAIN, WaveType.P
    )
    assert p_drop > s_drop


def test_site_amplification_order():
    values = {
        terrain: intensity(6.5, 40.0, 10.0, terrain) for terrain in Terrain
    }
    assert values[Terrain.BASIN] > values[Terrain.PLAIN] > values[Terrain.VALLEY]
    assert values[Terrain.VALLEY] > values[Terrain.MOUNTAIN] > values[Terrain.OFFSHORE]


def test_intensity_jitter_is_bounded_and_seeded():
    base = intensity(6.5, 40.0, 10.0, Terrain.PLAIN)
    a = intensity(6.5, 40.0, 10.0, Terrain.PLAIN, rng=np.random.default_rng(3))
    b = intensity(6.5, 40.0, 10.0, Terrain.PLAIN, rng=np.random.default_rng(3))
    assert a == b
    assert abs(a - base) <= 0.075


def test_invert_magnitude_recovers_source():
    observed = intensity(7.2, 35.0, 12.0, Terrain.MOUNTAIN, WaveType.S)
    assert invert_magnitude(observed, 35.0, 12.0, Terrain.MOUNTAIN) == pytest.approx(7.2)


@pytest.mark.parametrize(
    "value,expected",
    [
        (0.0, IntensityCategory.LEVEL_1),
        (1.49, IntensityCategory.LEVEL_1),
        (1.5, IntensityCategory.LEVEL_2),
        (4.5, IntensityCategory.LEVEL_5_LOWER),
        (5.5, IntensityCategory.LEVEL_5_UPPER),
        (7.49, IntensityCategory.LEVEL_6_LOWER),
        (8.49, IntensityCategory.LEVEL_6_UPPER),
        (8.5, IntensityCategory.LEVEL_7),
        (12.0, IntensityCategory.LEVEL_7),
    ],
)
def test_to_discrete_scale(value, expected):
    assert to_discrete_scale(value) is expected


def test_discrete_scale_has_nine_ordered_labels():
    labels = [category.label for category in IntensityCategory]
    assert labels == ["1", "2", "3", "4", "5-", "5+", "6-", "6+", "7"]


@pytest.mark.parametrize(
    "value,gear",
    [(0.0, 1), (1.5, 2), (2.5, 3), (3.5, 4), (4.5, 5), (5.9, 5), (6.0, 6), (7.5, 7), (12.0, 7)],
)
def test_intensity_gear(value, gear):
    assert intensity_gear(value) == gear


def test_peak_ground_motion_is_monotonic():
    values = np.linspace(0.0, 12.0, 49)
    pga = [estimate_pga(v) for v in values]
    pgv = [estimate_pgv(v) for v in values]
    assert all(b > a for a, b in zip(pga, pga[1:]))
    assert all(b > a for a, b in zip(pgv, pgv[1:]))


def test_tsunami_height():
    near = tsunami_height(8.2, 50.0, 10.0)
    far = tsunami_height(8.2, 500.0, 10.0)
    assert near > far > 0
    assert tsunami_height(7.0, 50.0, 10.0) < near
    assert tsunami_height(8.2, 50.0, 80.0) == 0.0
