"""Toy ground-motion model.

Intensity is an MMI-like continuous scalar in [0, 12]:

    I = a*M - b*log10(R) - c*R + d + site(terrain)

with R the hypocentral distance floored at 5 km. P and S waves use separate
coefficient sets; P decays faster and reads roughly 2.5-3 units below S at the
same distance. The discrete scale returned by ``to_discrete_scale`` is for
display only.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

from .geometry import MIN_HYPOCENTRAL_KM, hypocentral_distance
from .models import Terrain, WaveType

MAX_INTENSITY = 12.0
JITTER_WIDTH = 0.15

# (a, b, c, d)
WAVE_COEFFICIENTS = {
    WaveType.S: (1.62, 4.1, 0.0015, 0.2),
    WaveType.P: (1.62, 4.4, 0.0025, -1.9),
}

SITE_AMPLIFICATION = {
    Terrain.BASIN: 0.9,
    Terrain.PLAIN: 0.3,
    Terrain.VALLEY: 0.0,
    Terrain.MOUNTAIN: -0.5,
    Terrain.OFFSHORE: -0.8,
}

GEAR_THRESHOLDS = (1.5, 2.5, 3.5, 4.5, 6.0, 7.5)


class IntensityCategory(IntEnum):
    LEVEL_1 = 1
    LEVEL_2 = 2
    LEVEL_3 = 3
    LEVEL_4 = 4
    LEVEL_5_LOWER = 5
    LEVEL_5_UPPER = 6
    LEVEL_6_LOWER = 7
    LEVEL_6_UPPER = 8
    LEVEL_7 = 9

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    IntensityCategory.LEVEL_1: "1",
    IntensityCategory.LEVEL_2: "2",
    IntensityCategory.LEVEL_3: "3",
    IntensityCategory.LEVEL_4: "4",
    IntensityCategory.LEVEL_5_LOWER: "5-",
    IntensityCategory.LEVEL_5_UPPER: "5+",
    IntensityCategory.LEVEL_6_LOWER: "6-",
    IntensityCategory.LEVEL_6_UPPER: "6+",
    IntensityCategory.LEVEL_7: "7",
}

# upper (exclusive) edge of every category but the last
_CATEGORY_EDGES = (1.5, 2.5, 3.5, 4.5, 5.5, 6.5, 7.5, 8.5)


def intensity_array(
    magnitude: float,
    distance_km: np.ndarray,
    depth_km: float,
    site_amp: np.ndarray,
    wave: WaveType,
    jitter: np.ndarray | None = None,
) -> np.ndarray:
    a, b, c, d = WAVE_COEFFICIENTS[wave]
    r = np.maximum(hypocentral_distance(np.asarray(distance_km, dtype=float), depth_km),
                   MIN_HYPOCENTRAL_KM)
    values = a * magnitude - b * np.log10(r) - c * r + d + site_amp
    if jitter is not None:
        values = values + jitter
    return np.clip(values, 0.0, MAX_INTENSITY)


def intensity(
    magnitude: float,
    distance_km: float,
    depth_km: float,
    terrain: Terrain,
    wave: WaveType = WaveType.S,
    rng: np.random.Generator | None = None,
) -> float:
    """Scalar intensity at one site; jitter is applied only when ``rng`` is given."""
    jitter = None
    if rng is not None:
        jitter = (rng.random() - 0.5) * JITTER_WIDTH
    value = intensity_array(
        magnitude, distance_km, depth_km, SITE_AMPLIFICATION[terrain], wave, jitter
    )
    return float(value)


def invert_magnitude(
    observed: float,
    distance_km: float,
    depth_km: float,
    terrain: Terrain,
) -> float:
    """Magnitude that would produce ``observed`` S-wave intensity at this site."""
    a, b, c, d = WAVE_COEFFICIENTS[WaveType.S]
    r = max(float(hypocentral_distance(distance_km, depth_km)), MIN_HYPOCENTRAL_KM)
    return (observed + b * np.log10(r) + c * r - d - SITE_AMPLIFICATION[terrain]) / a


def to_discrete_scale(value: float) -> IntensityCategory:
    for level, edge in enumerate(_CATEGORY_EDGES, start=1):
        if value < edge:
            return IntensityCategory(level)
    return IntensityCategory.LEVEL_7


def intensity_gear(value: float) -> int:
    gear = 1
    for threshold in GEAR_THRESHOLDS:
        if value >= threshold:
            gear += 1
    return gear


def estimate_pga(value: float) -> float:
    """Peak ground acceleration in gal."""
    return float(10 ** (value * 0.53 - 0.6))


def estimate_pgv(value: float) -> float:
    """Peak ground velocity in cm/s."""
    return estimate_pga(value) / 17.5


def tsunami_height(magnitude: float, distance_km: float, depth_km: float) -> float:
    """Coastal wave height in metres; deep sources do not displace the seafloor enough."""
    base = 10 ** (0.5 * magnitude - 3.3)
    depth_factor = max(0.0, 1.0 - depth_km / 70.0)
    return float(base * depth_factor / np.sqrt(1.0 + distance_km / 50.0))
