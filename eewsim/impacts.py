from __future__ import annotations

import logging

import numpy as np

from .attenuation import JITTER_WIDTH, SITE_AMPLIFICATION, intensity_array
from .geometry import (
    ASH_SPEED_KM_S,
    VELOCITY_FACTOR,
    VP_KM_S,
    VS_KM_S,
    haversine_distance,
    hypocentral_distance,
)
from .models import Epicenter, EventType, Station, StationImpact, WaveType

logger = logging.getLogger(__name__)

ASH_MAX_RADIUS_KM = 150.0


def compile_impacts(
    stations: list[Station],
    epicenter: Epicenter,
    magnitude: float,
    depth: float,
    event_type: EventType = EventType.MAIN,
    rng: np.random.Generator | None = None,
) -> list[StationImpact]:
    """Precompute one event's effect on every station, nearest first.

    The engine walks the result with monotonic P/S cursors, so the order must
    follow arrival order; distance is used as its proxy. Jitter is drawn from
    ``rng`` when given, independently for the P and S intensities.
    """
    if not stations:
        return []

    lats = np.array([s.lat for s in stations], dtype=float)
    lngs = np.array([s.lng for s in stations], dtype=float)
    site_amp = np.array([SITE_AMPLIFICATION[s.terrain] for s in stations], dtype=float)
    velocity = np.array([VELOCITY_FACTOR[s.terrain] for s in stations], dtype=float)

    distances = haversine_distance(epicenter.lat, epicenter.lng, lats, lngs)
    hypo = hypocentral_distance(distances, depth)
    p_times = hypo / (VP_KM_S * velocity)
    s_times = hypo / (VS_KM_S * velocity)

    p_jitter = s_jitter = None
    if rng is not None:
        p_jitter = (rng.random(len(stations)) - 0.5) * JITTER_WIDTH
        s_jitter = (rng.random(len(stations)) - 0.5) * JITTER_WIDTH
    p_intensity = intensity_array(magnitude, distances, depth, site_amp, WaveType.P, p_jitter)
    s_intensity = intensity_array(magnitude, distances, depth, site_amp, WaveType.S, s_jitter)

    ash_times = None
    if event_type == EventType.VOLCANO:
        ash_times = np.where(distances <= ASH_MAX_RADIUS_KM, distances / ASH_SPEED_KM_S, np.nan)

    order = np.argsort(distances, kind="stable")
    impacts: list[StationImpact] = []
    for idx in order:
        ash_time = None
        if ash_times is not None and not np.isnan(ash_times[idx]):
            ash_time = float(ash_times[idx])
        impacts.append(
            StationImpact(
                station=stations[idx],
                distance_km=float(distances[idx]),
                p_intensity=float(p_intensity[idx]),
                s_intensity=float(s_intensity[idx]),
                p_time=float(p_times[idx]),
                s_time=float(s_times[idx]),
                ash_time=ash_time,
            )
        )

    logger.debug(
        "Compiled impacts: stations=%d magnitude=%.1f depth=%.1f type=%s max_s_intensity=%.2f",
        len(impacts),
        magnitude,
        depth,
        event_type.value,
        float(s_intensity.max()),
    )
    return impacts


def arrival_order(impacts: list[StationImpact], wave: WaveType) -> list[int]:
    """Indices into ``impacts`` sorted by arrival time of ``wave``.

    Terrain changes wave speed, so arrival order can differ from distance order.
    """
    if wave == WaveType.P:
        times = np.array([impact.p_time for impact in impacts], dtype=float)
    else:
        times = np.array([impact.s_time for impact in impacts], dtype=float)
    return [int(idx) for idx in np.argsort(times, kind="stable")]
