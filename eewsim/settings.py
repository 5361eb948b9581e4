from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class Settings:
    speed: float = 1.0
    seed: Optional[int] = None
    deterministic: bool = False
    max_duration_seconds: float = 300.0
    step_seconds: float = 1.0 / 60.0
    realtime: bool = False
    preset: str = ""
    lat: float = 23.85
    lng: float = 120.9
    magnitude: float = 7.2
    depth_km: float = 12.0
    event_type: str = "MAIN"
    composite: bool = False
    p_trigger_intensity: float = 0.5
    inland_trigger_threshold: int = 15
    offshore_trigger_threshold: int = 10
    alert_min_magnitude: float = 5.0
    alert_moderate_magnitude: float = 4.0
    alert_moderate_intensity: float = 1.5
    tsunami_min_magnitude: float = 7.0
    tsunami_max_depth_km: float = 35.0
    tsunami_radius_km: float = 800.0
    alarm_interval_seconds: float = 5.0
    report_interval_seconds: float = 0.6
    report_min_stations: int = 6
    report_noise_floor: float = 1.8
    countdown_min_intensity: float = 1.5
    countdown_size: int = 5
    live_decay: float = 0.95
    tsunami_live_decay: float = 0.99
    log_level: str = "INFO"


def parse_args(argv: Optional[List[str]] = None) -> Settings:
    parser = argparse.ArgumentParser(description="Headless earthquake early warning simulator")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Simulated seconds per real second")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the random generator; omit for a random run")
    parser.add_argument("--deterministic", action="store_true",
                        help="Zero all jitter and fix randomized delays at their midpoints")
    parser.add_argument("--max-duration-seconds", type=float, default=300.0)
    parser.add_argument("--step-seconds", type=float, default=1.0 / 60.0,
                        help="Real seconds per tick in the headless loop")
    parser.add_argument("--realtime", action="store_true",
                        help="Sleep between ticks instead of running as fast as possible")
    parser.add_argument("--preset", default="",
                        help="Named scenario: 921 or 0403")
    parser.add_argument("--lat", type=float, default=23.85)
    parser.add_argument("--lng", type=float, default=120.9)
    parser.add_argument("--magnitude", type=float, default=7.2)
    parser.add_argument("--depth-km", type=float, default=12.0)
    parser.add_argument("--event-type", default="MAIN",
                        choices=["MAIN", "AFTERSHOCK", "VOLCANO"])
    parser.add_argument("--composite", action="store_true",
                        help="Volcanic eruption followed by an offshore megathrust event")
    parser.add_argument("--p-trigger-intensity", type=float, default=0.5)
    parser.add_argument("--inland-trigger-threshold", type=int, default=15)
    parser.add_argument("--offshore-trigger-threshold", type=int, default=10)
    parser.add_argument("--alert-min-magnitude", type=float, default=5.0)
    parser.add_argument("--alert-moderate-magnitude", type=float, default=4.0)
    parser.add_argument("--alert-moderate-intensity", type=float, default=1.5)
    parser.add_argument("--tsunami-min-magnitude", type=float, default=7.0)
    parser.add_argument("--tsunami-max-depth-km", type=float, default=35.0)
    parser.add_argument("--tsunami-radius-km", type=float, default=800.0)
    parser.add_argument("--alarm-interval-seconds", type=float, default=5.0)
    parser.add_argument("--report-interval-seconds", type=float, default=0.6)
    parser.add_argument("--report-min-stations", type=int, default=6)
    parser.add_argument("--report-noise-floor", type=float, default=1.8)
    parser.add_argument("--countdown-min-intensity", type=float, default=1.5)
    parser.add_argument("--countdown-size", type=int, default=5)
    parser.add_argument("--live-decay", type=float, default=0.95)
    parser.add_argument("--tsunami-live-decay", type=float, default=0.99)
    parser.add_argument("--log-level", default="INFO",
                        help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    args = parser.parse_args(argv)

    return Settings(
        speed=args.speed,
        seed=args.seed,
        deterministic=args.deterministic,
        max_duration_seconds=args.max_duration_seconds,
        step_seconds=args.step_seconds,
        realtime=args.realtime,
        preset=args.preset,
        lat=args.lat,
        lng=args.lng,
        magnitude=args.magnitude,
        depth_km=args.depth_km,
        event_type=args.event_type,
        composite=args.composite,
        p_trigger_intensity=args.p_trigger_intensity,
        inland_trigger_threshold=args.inland_trigger_threshold,
        offshore_trigger_threshold=args.offshore_trigger_threshold,
        alert_min_magnitude=args.alert_min_magnitude,
        alert_moderate_magnitude=args.alert_moderate_magnitude,
        alert_moderate_intensity=args.alert_moderate_intensity,
        tsunami_min_magnitude=args.tsunami_min_magnitude,
        tsunami_max_depth_km=args.tsunami_max_depth_km,
        tsunami_radius_km=args.tsunami_radius_km,
        alarm_interval_seconds=args.alarm_interval_seconds,
        report_interval_seconds=args.report_interval_seconds,
        report_min_stations=args.report_min_stations,
        report_noise_floor=args.report_noise_floor,
        countdown_min_intensity=args.countdown_min_intensity,
        countdown_size=args.countdown_size,
        live_decay=args.live_decay,
        tsunami_live_decay=args.tsunami_live_decay,
        log_level=args.log_level.upper(),
    )
