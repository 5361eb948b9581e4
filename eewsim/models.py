from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Terrain(str, Enum):
    BASIN = "BASIN"
    PLAIN = "PLAIN"
    MOUNTAIN = "MOUNTAIN"
    VALLEY = "VALLEY"
    OFFSHORE = "OFFSHORE"


class Region(str, Enum):
    INLAND = "INLAND"
    OFFSHORE = "OFFSHORE"


class StationType(str, Enum):
    SEISMIC = "SEISMIC"
    TSUNAMI = "TSUNAMI"
    VOLCANO = "VOLCANO"


class EventType(str, Enum):
    MAIN = "MAIN"
    AFTERSHOCK = "AFTERSHOCK"
    VOLCANO = "VOLCANO"


class WaveType(str, Enum):
    P = "P"
    S = "S"


class EventState(str, Enum):
    DETECTING = "DETECTING"
    COMPUTING = "COMPUTING"
    ALERTING = "ALERTING"
    DISMISSED = "DISMISSED"


class TsunamiState(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    ALERTED = "ALERTED"


class SystemStatus(str, Enum):
    IDLE = "IDLE"
    DETECTING = "DETECTING"
    COMPUTING = "COMPUTING"
    ALERTING = "ALERTING"
    ENDED = "ENDED"


@dataclass(frozen=True)
class Station:
    id: str
    name: str
    lat: float
    lng: float
    terrain: Terrain
    region: Region
    station_type: StationType = StationType.SEISMIC
    is_major: bool = False


@dataclass(frozen=True)
class StationImpact:
    station: Station
    distance_km: float
    p_intensity: float
    s_intensity: float
    p_time: float
    s_time: float
    ash_time: float | None = None

    @property
    def id(self) -> str:
        return self.station.id

    @property
    def name(self) -> str:
        return self.station.name

    @property
    def lat(self) -> float:
        return self.station.lat

    @property
    def lng(self) -> float:
        return self.station.lng

    @property
    def terrain(self) -> Terrain:
        return self.station.terrain

    @property
    def region(self) -> Region:
        return self.station.region

    @property
    def station_type(self) -> StationType:
        return self.station.station_type

    @property
    def is_major(self) -> bool:
        return self.station.is_major


@dataclass(frozen=True)
class Epicenter:
    lat: float
    lng: float


@dataclass
class ActiveEvent:
    """Mutable per-event detection state, owned by a single engine.

    ``first_trigger_time``, ``alert_time`` and ``tsunami_alert_time`` are
    event-local seconds, measured from ``start_time`` on the shared clock.
    """

    id: str
    event_type: EventType
    magnitude: float
    depth: float
    epicenter: Epicenter
    start_time: float
    impacts: list[StationImpact]
    processing_delay: float
    tsunami_risk: bool
    tsunami_delay: float
    next_p_index: int = 0
    next_s_index: int = 0
    next_ash_index: int = 0
    triggered_inland: int = 0
    triggered_offshore: int = 0
    first_trigger_time: float | None = None
    max_local_intensity: float = 0.0
    alerted: bool = False
    alert_time: float | None = None
    dismissed: bool = False
    tsunami_alerted: bool = False
    tsunami_alert_time: float | None = None
    # (station_id, eased target) pairs for tsunami gauges in range
    tsunami_targets: list[tuple[str, float]] = field(default_factory=list)
    major_impacts: list[StationImpact] = field(default_factory=list)
    # impact indices in P and S arrival order, walked by next_p_index / next_s_index
    p_order: list[int] = field(default_factory=list)
    s_order: list[int] = field(default_factory=list)

    @property
    def total_triggers(self) -> int:
        return self.triggered_inland + self.triggered_offshore

    @property
    def state(self) -> EventState:
        if self.dismissed:
            return EventState.DISMISSED
        if self.alerted:
            return EventState.ALERTING
        if self.first_trigger_time is not None:
            return EventState.COMPUTING
        return EventState.DETECTING

    @property
    def tsunami_state(self) -> TsunamiState:
        if self.tsunami_alerted:
            return TsunamiState.ALERTED
        if self.tsunami_risk and self.alerted:
            return TsunamiState.PENDING
        return TsunamiState.NONE


@dataclass(frozen=True)
class EEWReport:
    report_num: int
    time: float
    magnitude: float
    depth: float
    stations: int
    is_offshore: bool
    predicted_max_intensity: float


@dataclass(frozen=True)
class StationDelta:
    station_id: str
    peak: float
    live: float
    ash_covered: bool = False


@dataclass(frozen=True)
class Wavefront:
    event_id: str
    event_type: EventType
    p_radius_km: float
    s_radius_km: float
    ash_radius_km: float | None = None


@dataclass(frozen=True)
class Countdown:
    station_id: str
    name: str
    seconds: float
    intensity: float
    category: str
    event_type: EventType


@dataclass(frozen=True)
class AlarmSignal:
    event_id: str
    event_type: EventType
    reason: str
    priority: int
    time: float
    override: bool = False


@dataclass(frozen=True)
class GearSignal:
    gear: int
    intensity: float
    time: float


@dataclass(frozen=True)
class AlertFlags:
    main: bool = False
    tsunami: bool = False
    volcano: bool = False


@dataclass(frozen=True)
class EventSummary:
    event_id: str
    event_type: EventType
    magnitude: float
    depth: float
    epicenter: Epicenter
    region_name: str
    state: EventState
    tsunami_alerted: bool


@dataclass(frozen=True)
class AnalysisRequest:
    events: list[EventSummary]
    max_intensity: float
    max_intensity_category: str

    @property
    def is_multi_event(self) -> bool:
        return len(self.events) > 1


@dataclass(frozen=True)
class FrameDelta:
    elapsed: float
    status: SystemStatus
    stations: list[StationDelta] = field(default_factory=list)
    wavefronts: list[Wavefront] = field(default_factory=list)
    main_countdowns: list[Countdown] = field(default_factory=list)
    secondary_countdowns: list[Countdown] = field(default_factory=list)
    new_reports: list[EEWReport] = field(default_factory=list)
    alarms: list[AlarmSignal] = field(default_factory=list)
    gears: list[GearSignal] = field(default_factory=list)
    alerts: AlertFlags = field(default_factory=AlertFlags)
    triggered_stations: int = 0
    max_intensity: float = 0.0
    current_pga: float = 0.0
    predicted_magnitude: float | None = None
    predicted_max_intensity: float | None = None
    finished: bool = False
    analysis: AnalysisRequest | None = None
