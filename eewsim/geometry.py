import numpy as np

from .models import Terrain

VP_KM_S = 6.0
VS_KM_S = 3.5
ASH_SPEED_KM_S = 0.5
MIN_HYPOCENTRAL_KM = 5.0

# Harder rock carries waves faster than sediment or water-saturated seafloor.
VELOCITY_FACTOR = {
    Terrain.MOUNTAIN: 1.10,
    Terrain.VALLEY: 1.00,
    Terrain.PLAIN: 1.00,
    Terrain.BASIN: 0.90,
    Terrain.OFFSHORE: 0.92,
}

# (name, lat_min, lat_max, lng_min, lng_max), checked in order
AREAS = [
    ("Taiwan", 21.0, 26.0, 119.0, 123.0),
    ("Ryukyu Islands", 24.0, 30.0, 123.0, 130.0),
    ("Kyushu", 30.0, 34.0, 128.5, 132.0),
    ("Shikoku", 32.5, 34.5, 132.0, 135.0),
    ("Western Honshu", 33.5, 36.5, 130.5, 137.0),
    ("Kanto-Chubu", 33.5, 38.0, 137.0, 142.5),
    ("Tohoku", 38.0, 41.5, 138.0, 143.5),
    ("Hokkaido", 41.5, 46.0, 139.0, 147.0),
]


def haversine_distance(lat1, lon1, lat2, lon2):
    """Calculate great circle distance in km using haversine formula."""
    R = 6371.0
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(lat2 - lat1)
    dlon = np.radians(lon2 - lon1)
    a = (
        np.sin(dlat / 2) ** 2
        + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    )
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return R * c


def hypocentral_distance(distance_km, depth_km):
    return np.sqrt(distance_km**2 + depth_km**2)


def arrival_times(distance_km: float, depth_km: float, terrain: Terrain) -> tuple[float, float]:
    """P and S travel times in seconds along a straight hypocentral path."""
    hypo = float(hypocentral_distance(distance_km, depth_km))
    factor = VELOCITY_FACTOR[terrain]
    return hypo / (VP_KM_S * factor), hypo / (VS_KM_S * factor)


def is_offshore(lat: float, lng: float) -> bool:
    # Taiwan main island, a strip tilted north-east
    if 21.8 < lat < 25.4 and 120.0 < lng < 122.0:
        center_lng = 120.8 + (lat - 22.0) * 0.25
        if abs(lng - center_lng) < 0.6:
            return False

    # Kyushu
    if 31.0 < lat < 34.0 and 129.5 < lng < 132.0:
        return False

    # Shikoku
    if 32.7 < lat < 34.5 and 132.0 < lng < 134.8:
        return False

    # Honshu
    if 34.0 < lat < 41.5 and 131.0 < lng < 142.0:
        if lat < 35.0 and lng > 137.0:
            return True  # south of Tokyo
        if lat > 38.0 and lng < 138.0:
            return True  # Sea of Japan
        return False

    # Hokkaido
    if 41.5 < lat < 45.5 and 139.5 < lng < 146.0:
        return False

    return True


def region_name(lat: float, lng: float) -> str:
    offshore = is_offshore(lat, lng)
    for name, lat_min, lat_max, lng_min, lng_max in AREAS:
        if lat_min <= lat <= lat_max and lng_min <= lng <= lng_max:
            return f"Off {name}" if offshore else name
    return "Western Pacific" if offshore else "Unknown"
