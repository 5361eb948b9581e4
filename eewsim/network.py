from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .geometry import is_offshore
from .models import Region, Station, StationType, Terrain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Zone:
    prefix: str
    count: int
    lat_min: float
    lat_max: float
    lng_min: float
    lng_max: float
    offshore_keep_ratio: float
    tsunami_gauges: int


MAJOR_CITIES = [
    ("Taipei", 25.03, 121.56, Terrain.BASIN),
    ("New Taipei", 25.01, 121.46, Terrain.BASIN),
    ("Taichung", 24.14, 120.67, Terrain.BASIN),
    ("Kaohsiung", 22.62, 120.30, Terrain.PLAIN),
    ("Hualien", 23.98, 121.60, Terrain.VALLEY),
    ("Taitung", 22.75, 121.15, Terrain.VALLEY),
    ("Naha", 26.21, 127.68, Terrain.OFFSHORE),
    ("Fukuoka", 33.59, 130.40, Terrain.PLAIN),
    ("Hiroshima", 34.38, 132.45, Terrain.PLAIN),
    ("Osaka", 34.69, 135.50, Terrain.BASIN),
    ("Nagoya", 35.18, 136.90, Terrain.PLAIN),
    ("Tokyo", 35.68, 139.76, Terrain.PLAIN),
    ("Niigata", 37.91, 139.02, Terrain.PLAIN),
    ("Sendai", 38.26, 140.87, Terrain.PLAIN),
    ("Sapporo", 43.06, 141.35, Terrain.BASIN),
]

VOLCANOES = [
    ("Tatun", 25.17, 121.55),
    ("Guishan Island", 24.84, 121.95),
    ("Suwanosejima", 29.64, 129.71),
    ("Sakurajima", 31.58, 130.66),
    ("Kirishima", 31.93, 130.87),
    ("Unzen", 32.76, 130.30),
    ("Aso", 32.88, 131.10),
    ("Fuji", 35.36, 138.73),
    ("Ontake", 35.89, 137.48),
    ("Asama", 36.41, 138.52),
    ("Kusatsu-Shirane", 36.62, 138.53),
    ("Zao", 38.14, 140.44),
    ("Usu", 42.54, 140.84),
    ("Tokachi", 43.42, 142.69),
]

# Japan runs seafloor networks, so its zones keep more offshore sensors than Taiwan.
ZONES = [
    Zone("TW", 1200, 21.0, 26.0, 119.0, 123.0, 0.10, 40),
    Zone("RYUKYU", 300, 24.0, 30.0, 123.0, 130.0, 0.25, 60),
    Zone("KYU", 800, 31.0, 34.5, 129.5, 134.5, 0.25, 40),
    Zone("W-HONSHU", 1200, 34.0, 36.0, 132.0, 136.0, 0.25, 0),
    Zone("E-HONSHU", 2000, 35.0, 41.5, 137.0, 142.0, 0.25, 80),
    Zone("HOKKAIDO", 700, 41.5, 45.5, 139.5, 146.0, 0.25, 0),
]


def build_station(
    station_id: str,
    name: str,
    lat: float,
    lng: float,
    terrain: Terrain | None = None,
    station_type: StationType = StationType.SEISMIC,
    is_major: bool = False,
) -> Station:
    offshore = is_offshore(lat, lng)
    if terrain is None:
        terrain = Terrain.OFFSHORE if offshore else Terrain.MOUNTAIN
    return Station(
        id=station_id,
        name=name,
        lat=lat,
        lng=lng,
        terrain=terrain,
        region=Region.OFFSHORE if offshore else Region.INLAND,
        station_type=station_type,
        is_major=is_major,
    )


def _random_point(zone: Zone, rng: np.random.Generator) -> tuple[float, float]:
    lat = zone.lat_min + rng.random() * (zone.lat_max - zone.lat_min)
    lng = zone.lng_min + rng.random() * (zone.lng_max - zone.lng_min)
    return float(lat), float(lng)


def generate_zone(zone: Zone, start_id: int, rng: np.random.Generator) -> list[Station]:
    stations: list[Station] = []
    attempts = 0
    max_attempts = zone.count * 5
    while len(stations) < zone.count and attempts < max_attempts:
        attempts += 1
        lat, lng = _random_point(zone, rng)
        offshore = is_offshore(lat, lng)
        if offshore and rng.random() > zone.offshore_keep_ratio:
            continue

        if offshore:
            terrain = Terrain.OFFSHORE
        elif rng.random() > 0.6:
            terrain = Terrain.PLAIN
        else:
            terrain = Terrain.MOUNTAIN

        stations.append(
            build_station(
                f"{zone.prefix}-{start_id + len(stations)}",
                f"{zone.prefix}-Sea" if offshore else f"{zone.prefix}-Stn",
                lat,
                lng,
                terrain=terrain,
            )
        )
    logger.debug(
        "Generated zone: prefix=%s stations=%d requested=%d attempts=%d",
        zone.prefix,
        len(stations),
        zone.count,
        attempts,
    )
    return stations


def generate_tsunami_gauges(zone: Zone, rng: np.random.Generator) -> list[Station]:
    gauges: list[Station] = []
    attempts = 0
    max_attempts = zone.tsunami_gauges * 20
    while len(gauges) < zone.tsunami_gauges and attempts < max_attempts:
        attempts += 1
        lat, lng = _random_point(zone, rng)
        if not is_offshore(lat, lng):
            continue
        gauges.append(
            build_station(
                f"TSU-{zone.prefix}-{len(gauges) + 1}",
                f"{zone.prefix}-Gauge",
                lat,
                lng,
                terrain=Terrain.OFFSHORE,
                station_type=StationType.TSUNAMI,
            )
        )
    return gauges


def generate_network(rng: np.random.Generator) -> list[Station]:
    stations: list[Station] = [
        build_station(f"CITY-{name}", name, lat, lng, terrain=terrain, is_major=True)
        for name, lat, lng, terrain in MAJOR_CITIES
    ]

    next_id = 1
    for zone in ZONES:
        stations.extend(generate_zone(zone, next_id, rng))
        next_id += zone.count

    for zone in ZONES:
        stations.extend(generate_tsunami_gauges(zone, rng))

    stations.extend(
        build_station(
            f"VOL-{name}",
            name,
            lat,
            lng,
            terrain=Terrain.MOUNTAIN,
            station_type=StationType.VOLCANO,
        )
        for name, lat, lng in VOLCANOES
    )

    logger.info(
        "Station network generated: stations=%d seismic=%d tsunami=%d volcano=%d",
        len(stations),
        sum(1 for s in stations if s.station_type == StationType.SEISMIC),
        sum(1 for s in stations if s.station_type == StationType.TSUNAMI),
        sum(1 for s in stations if s.station_type == StationType.VOLCANO),
    )
    return stations
