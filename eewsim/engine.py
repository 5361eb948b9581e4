from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from .attenuation import (
    estimate_pga,
    intensity,
    intensity_gear,
    invert_magnitude,
    to_discrete_scale,
    tsunami_height,
)
from .geometry import ASH_SPEED_KM_S, VP_KM_S, VS_KM_S, haversine_distance, is_offshore, region_name
from .impacts import ASH_MAX_RADIUS_KM, arrival_order, compile_impacts
from .models import (
    ActiveEvent,
    AlarmSignal,
    AlertFlags,
    AnalysisRequest,
    Countdown,
    EEWReport,
    Epicenter,
    EventState,
    EventSummary,
    EventType,
    FrameDelta,
    GearSignal,
    Region,
    StationDelta,
    StationType,
    SystemStatus,
    Terrain,
    WaveType,
    Wavefront,
)
from .settings import Settings

logger = logging.getLogger(__name__)

LIVE_EPSILON = 0.05
FRAMES_PER_SECOND = 60.0
TSUNAMI_EASING = 0.1
TSUNAMI_EASE_START = 2.0
TSUNAMI_EASE_END = 30.0
TSUNAMI_VISUAL_SCALE = 0.5
PROCESSING_DELAY_RANGE = (5.0, 7.0)
TSUNAMI_DELAY_RANGE = (8.0, 10.0)
DEFAULT_ESTIMATED_DEPTH_KM = 10.0

PRESETS = {
    "921": (Epicenter(23.85, 120.82), 7.6, 8.0),
    "0403": (Epicenter(23.77, 121.67), 7.4, 15.0),
}


@dataclass
class SimulationState:
    """Everything a run mutates. Replaced wholesale on reset."""

    elapsed: float = 0.0
    running: bool = False
    ended: bool = False
    events: list[ActiveEvent] = field(default_factory=list)
    peak: dict[str, float] = field(default_factory=dict)
    live: dict[str, float] = field(default_factory=dict)
    ash_covered: set[str] = field(default_factory=set)
    reports: list[EEWReport] = field(default_factory=list)
    last_report_time: float = 0.0
    last_alarm_time: float | None = None
    last_alarm_priority: int = 0
    gear: int = 0
    main_alert: bool = False
    tsunami_alert: bool = False
    volcano_alert: bool = False
    predicted_magnitude: float | None = None
    predicted_max_intensity: float | None = None
    main_countdowns: list[Countdown] = field(default_factory=list)
    secondary_countdowns: list[Countdown] = field(default_factory=list)
    event_seq: int = 0


class SimulationEngine:
    def __init__(self, stations, settings: Settings | None = None,
                 rng: np.random.Generator | None = None):
        self.settings = settings if settings is not None else Settings()
        if self.settings.speed <= 0:
            raise ValueError("speed must be > 0")
        self.stations = list(stations)
        self.rng = rng if rng is not None else np.random.default_rng(self.settings.seed)
        self.state = SimulationState()
        self._stations_by_id = {s.id: s for s in self.stations}
        self._tsunami_gauges = [
            s for s in self.stations if s.station_type == StationType.TSUNAMI
        ]

    # -- read-only views ------------------------------------------------

    @property
    def events(self) -> list[ActiveEvent]:
        return list(self.state.events)

    @property
    def reports(self) -> list[EEWReport]:
        return list(self.state.reports)

    @property
    def elapsed(self) -> float:
        return self.state.elapsed

    @property
    def is_running(self) -> bool:
        return self.state.running

    @property
    def alerts(self) -> AlertFlags:
        return AlertFlags(
            main=self.state.main_alert,
            tsunami=self.state.tsunami_alert,
            volcano=self.state.volcano_alert,
        )

    @property
    def status(self) -> SystemStatus:
        if self.state.ended:
            return SystemStatus.ENDED
        if not self.state.running:
            return SystemStatus.IDLE
        states = {event.state for event in self.state.events}
        if EventState.ALERTING in states:
            return SystemStatus.ALERTING
        if EventState.COMPUTING in states:
            return SystemStatus.COMPUTING
        return SystemStatus.DETECTING

    def peak_intensity(self, station_id: str) -> float:
        return self.state.peak.get(station_id, 0.0)

    def live_intensity(self, station_id: str) -> float:
        return self.state.live.get(station_id, 0.0)

    # -- randomness -----------------------------------------------------

    def _jitter_rng(self) -> np.random.Generator | None:
        return None if self.settings.deterministic else self.rng

    def _uniform(self, low: float, high: float) -> float:
        if self.settings.deterministic:
            return (low + high) / 2.0
        return float(self.rng.uniform(low, high))

    # -- lifecycle ------------------------------------------------------

    def spawn(
        self,
        epicenter: Epicenter,
        magnitude: float,
        depth: float,
        event_type: EventType = EventType.MAIN,
        delay: float = 0.0,
    ) -> ActiveEvent | None:
        if not self.stations:
            logger.warning(
                "Spawn ignored, no stations loaded: lat=%.3f lng=%.3f magnitude=%.1f",
                epicenter.lat,
                epicenter.lng,
                magnitude,
            )
            return None
        if depth < 0:
            raise ValueError("depth must be >= 0")
        if delay < 0:
            raise ValueError("delay must be >= 0")
        event_type = EventType(event_type)

        if not self.state.running:
            self._start_run()

        s = self.settings
        state = self.state
        offshore = is_offshore(epicenter.lat, epicenter.lng)
        tsunami_risk = (
            magnitude >= s.tsunami_min_magnitude
            and depth < s.tsunami_max_depth_km
            and offshore
        )
        impacts = compile_impacts(
            self.stations, epicenter, magnitude, depth, event_type, rng=self._jitter_rng()
        )

        tsunami_targets: list[tuple[str, float]] = []
        if tsunami_risk:
            for gauge in self._tsunami_gauges:
                dist = float(haversine_distance(epicenter.lat, epicenter.lng, gauge.lat, gauge.lng))
                if dist >= s.tsunami_radius_km:
                    continue
                target = tsunami_height(magnitude, dist, depth) * TSUNAMI_VISUAL_SCALE
                if target > 0:
                    tsunami_targets.append((gauge.id, target))

        state.event_seq += 1
        event = ActiveEvent(
            id=f"EVT-{state.event_seq:03d}",
            event_type=event_type,
            magnitude=magnitude,
            depth=depth,
            epicenter=epicenter,
            start_time=state.elapsed + delay,
            impacts=impacts,
            processing_delay=self._uniform(*PROCESSING_DELAY_RANGE),
            tsunami_risk=tsunami_risk,
            tsunami_delay=self._uniform(*TSUNAMI_DELAY_RANGE),
            tsunami_targets=tsunami_targets,
            major_impacts=[impact for impact in impacts if impact.is_major],
            p_order=arrival_order(impacts, WaveType.P),
            s_order=arrival_order(impacts, WaveType.S),
        )
        state.events.append(event)
        logger.info(
            "Event spawned: event_id=%s type=%s magnitude=%.1f depth=%.1f lat=%.3f lng=%.3f "
            "region=%s start_time=%.2f tsunami_risk=%s",
            event.id,
            event.event_type.value,
            magnitude,
            depth,
            epicenter.lat,
            epicenter.lng,
            region_name(epicenter.lat, epicenter.lng),
            event.start_time,
            tsunami_risk,
        )
        return event

    def spawn_preset(self, name: str) -> ActiveEvent | None:
        preset = PRESETS.get(name)
        if preset is None:
            logger.warning("Unknown preset: name=%s known=%s", name, sorted(PRESETS))
            return None
        epicenter, magnitude, depth = preset
        return self.spawn(epicenter, magnitude, depth, EventType.MAIN)

    def spawn_composite(self) -> list[ActiveEvent]:
        """Eruption at a random volcano, then an offshore M8.2 five seconds later."""
        volcanoes = [s for s in self.stations if s.station_type == StationType.VOLCANO]
        if not volcanoes:
            logger.warning("Composite scenario ignored, no volcano stations")
            return []
        target = volcanoes[int(self.rng.integers(len(volcanoes)))]
        spawned = []
        eruption = self.spawn(Epicenter(target.lat, target.lng), 6.0, 1.0, EventType.VOLCANO)
        if eruption is not None:
            spawned.append(eruption)

        shifts = [(1.0, 1.0), (1.0, -1.0), (-1.0, 1.0), (-1.0, -1.0)]
        candidates = [
            Epicenter(target.lat + shifts[i][0], target.lng + shifts[i][1])
            for i in self.rng.permutation(len(shifts))
        ]
        location = next(
            (c for c in candidates if is_offshore(c.lat, c.lng)),
            candidates[0],
        )
        quake = self.spawn(location, 8.2, 10.0, EventType.MAIN, delay=5.0)
        if quake is not None:
            spawned.append(quake)
        return spawned

    def _start_run(self) -> None:
        self.state = SimulationState(running=True)
        logger.info("Simulation started: stations=%d speed=%.2f", len(self.stations),
                    self.settings.speed)

    def stop(self) -> None:
        if not self.state.running:
            return
        self.state.running = False
        self.state.ended = True
        logger.info("Simulation stopped: elapsed=%.2f events=%d", self.state.elapsed,
                    len(self.state.events))

    def reset(self) -> None:
        self.state = SimulationState()
        logger.info("Simulation reset")

    def dismiss_tsunami(self) -> None:
        self.state.tsunami_alert = False
        logger.info("Tsunami alert dismissed: elapsed=%.2f", self.state.elapsed)

    def finish(self) -> AnalysisRequest:
        state = self.state
        state.running = False
        state.ended = True
        state.main_countdowns = []
        state.secondary_countdowns = []

        max_intensity = max(state.peak.values(), default=0.0)
        request = AnalysisRequest(
            events=[
                EventSummary(
                    event_id=event.id,
                    event_type=event.event_type,
                    magnitude=event.magnitude,
                    depth=event.depth,
                    epicenter=event.epicenter,
                    region_name=region_name(event.epicenter.lat, event.epicenter.lng),
                    state=event.state,
                    tsunami_alerted=event.tsunami_alerted,
                )
                for event in state.events
            ],
            max_intensity=max_intensity,
            max_intensity_category=to_discrete_scale(max_intensity).label,
        )
        logger.info(
            "Simulation finished: elapsed=%.2f events=%d reports=%d max_intensity=%.2f",
            state.elapsed,
            len(state.events),
            len(state.reports),
            max_intensity,
        )
        return request

    # -- tick -----------------------------------------------------------

    def tick(self, real_elapsed_seconds: float) -> FrameDelta:
        if real_elapsed_seconds < 0:
            raise ValueError("real_elapsed_seconds must be >= 0")
        state = self.state
        if not state.running:
            return FrameDelta(
                elapsed=state.elapsed,
                status=self.status,
                alerts=self.alerts,
                finished=state.ended,
            )

        s = self.settings
        sim_dt = real_elapsed_seconds * s.speed
        state.elapsed += sim_dt
        now = state.elapsed
        frames = sim_dt * FRAMES_PER_SECOND

        dirty: set[str] = set()
        alarms: list[AlarmSignal] = []
        gears: list[GearSignal] = []
        new_reports: list[EEWReport] = []

        self._decay(frames, dirty)

        countdowns: dict[tuple[str, EventType], Countdown] = {}
        for event in state.events:
            event_elapsed = now - event.start_time
            if event_elapsed < 0:
                continue
            self._advance_ash(event, event_elapsed, dirty)
            self._advance_p(event, event_elapsed, dirty)
            self._advance_s(event, event_elapsed, dirty)
            self._check_detection(event, event_elapsed)
            self._check_alert(event, event_elapsed, now, alarms)
            self._update_tsunami(event, event_elapsed, now, frames, alarms, dirty)
            if event.alerted:
                self._collect_countdowns(event, event_elapsed, countdowns)

        ordered = sorted(countdowns.values(), key=lambda c: c.seconds)
        state.main_countdowns = [
            c for c in ordered if c.event_type in (EventType.MAIN, EventType.VOLCANO)
        ][: s.countdown_size]
        state.secondary_countdowns = [
            c for c in ordered if c.event_type == EventType.AFTERSHOCK
        ][: s.countdown_size]

        max_intensity = max(state.peak.values(), default=0.0)
        if state.peak:
            gear = intensity_gear(max_intensity)
            if gear > state.gear:
                state.gear = gear
                gears.append(GearSignal(gear=gear, intensity=max_intensity, time=now))
                logger.debug("Intensity gear raised: gear=%d intensity=%.2f", gear, max_intensity)

        if (
            now - state.last_report_time > s.report_interval_seconds
            and len(state.peak) >= s.report_min_stations
        ):
            state.last_report_time = now
            report = self._estimate(now)
            if report is not None:
                new_reports.append(report)

        wavefronts = self._wavefronts(now)
        station_deltas = [
            StationDelta(
                station_id=sid,
                peak=state.peak.get(sid, 0.0),
                live=state.live.get(sid, 0.0),
                ash_covered=sid in state.ash_covered,
            )
            for sid in sorted(dirty)
        ]
        main_countdowns = state.main_countdowns
        secondary_countdowns = state.secondary_countdowns

        analysis = None
        if now > s.max_duration_seconds:
            analysis = self.finish()

        return FrameDelta(
            elapsed=now,
            status=self.status,
            stations=station_deltas,
            wavefronts=wavefronts,
            main_countdowns=main_countdowns,
            secondary_countdowns=secondary_countdowns,
            new_reports=new_reports,
            alarms=alarms,
            gears=gears,
            alerts=self.alerts,
            triggered_stations=len(state.peak),
            max_intensity=max_intensity,
            current_pga=estimate_pga(max_intensity) if max_intensity > 0 else 0.0,
            predicted_magnitude=state.predicted_magnitude,
            predicted_max_intensity=state.predicted_max_intensity,
            finished=state.ended,
            analysis=analysis,
        )

    def _decay(self, frames: float, dirty: set[str]) -> None:
        s = self.settings
        live = self.state.live
        for sid, value in list(live.items()):
            station = self._stations_by_id.get(sid)
            is_gauge = station is not None and station.station_type == StationType.TSUNAMI
            factor = s.tsunami_live_decay if is_gauge else s.live_decay
            decayed = value * factor ** frames
            if decayed > LIVE_EPSILON:
                live[sid] = decayed
            else:
                del live[sid]
            dirty.add(sid)

    def _raise(self, sid: str, value: float, dirty: set[str]) -> None:
        state = self.state
        if value > state.live.get(sid, 0.0):
            state.live[sid] = value
            dirty.add(sid)
        if value > state.peak.get(sid, 0.0):
            state.peak[sid] = value
            dirty.add(sid)

    def _advance_ash(self, event: ActiveEvent, event_elapsed: float, dirty: set[str]) -> None:
        if event.event_type != EventType.VOLCANO:
            return
        impacts = event.impacts
        # ash times grow with distance, so the impact order is also ash order
        while event.next_ash_index < len(impacts):
            impact = impacts[event.next_ash_index]
            if impact.ash_time is None or event_elapsed < impact.ash_time:
                break
            if impact.id not in self.state.ash_covered:
                self.state.ash_covered.add(impact.id)
                dirty.add(impact.id)
            event.next_ash_index += 1

    def _advance_p(self, event: ActiveEvent, event_elapsed: float, dirty: set[str]) -> None:
        threshold = self.settings.p_trigger_intensity
        impacts = event.impacts
        while event.next_p_index < len(event.p_order):
            impact = impacts[event.p_order[event.next_p_index]]
            if event_elapsed < impact.p_time:
                break
            if impact.p_intensity > threshold:
                if impact.region == Region.INLAND:
                    event.triggered_inland += 1
                else:
                    event.triggered_offshore += 1
                event.max_local_intensity = max(event.max_local_intensity, impact.p_intensity)
                self._raise(impact.id, impact.p_intensity, dirty)
            event.next_p_index += 1

    def _advance_s(self, event: ActiveEvent, event_elapsed: float, dirty: set[str]) -> None:
        impacts = event.impacts
        while event.next_s_index < len(event.s_order):
            impact = impacts[event.s_order[event.next_s_index]]
            if event_elapsed < impact.s_time:
                break
            self._raise(impact.id, impact.s_intensity, dirty)
            event.max_local_intensity = max(event.max_local_intensity, impact.s_intensity)
            event.next_s_index += 1

    def _check_detection(self, event: ActiveEvent, event_elapsed: float) -> None:
        if event.first_trigger_time is not None:
            return
        s = self.settings
        if event.triggered_offshore > event.triggered_inland:
            threshold = s.offshore_trigger_threshold
        else:
            threshold = s.inland_trigger_threshold
        if event.total_triggers > threshold:
            event.first_trigger_time = event_elapsed
            logger.info(
                "Event detected: event_id=%s inland=%d offshore=%d threshold=%d first_trigger_time=%.2f",
                event.id,
                event.triggered_inland,
                event.triggered_offshore,
                threshold,
                event_elapsed,
            )

    def _meets_alert_criteria(self, event: ActiveEvent) -> bool:
        s = self.settings
        return (
            event.tsunami_risk
            or event.magnitude >= s.alert_min_magnitude
            or (
                event.magnitude >= s.alert_moderate_magnitude
                and event.max_local_intensity >= s.alert_moderate_intensity
            )
            or event.event_type == EventType.VOLCANO
        )

    def _check_alert(self, event: ActiveEvent, event_elapsed: float, now: float,
                     alarms: list[AlarmSignal]) -> None:
        if event.first_trigger_time is None or event.alerted or event.dismissed:
            return
        if event_elapsed - event.first_trigger_time < event.processing_delay:
            return

        if not self._meets_alert_criteria(event):
            event.dismissed = True
            logger.info(
                "Event dismissed: event_id=%s magnitude=%.1f max_local_intensity=%.2f",
                event.id,
                event.magnitude,
                event.max_local_intensity,
            )
            return

        event.alerted = True
        event.alert_time = event_elapsed
        self.state.main_alert = True
        if event.event_type == EventType.VOLCANO:
            self.state.volcano_alert = True
        logger.info(
            "Event alerted: event_id=%s type=%s magnitude=%.1f alert_time=%.2f",
            event.id,
            event.event_type.value,
            event.magnitude,
            event_elapsed,
        )
        self._trigger_alarm(event, "ALERT", now, alarms)

    def _update_tsunami(self, event: ActiveEvent, event_elapsed: float, now: float,
                        frames: float, alarms: list[AlarmSignal], dirty: set[str]) -> None:
        if not (event.alerted and event.tsunami_risk) or event.alert_time is None:
            return
        since_alert = event_elapsed - event.alert_time

        if not event.tsunami_alerted and since_alert >= event.tsunami_delay:
            event.tsunami_alerted = True
            event.tsunami_alert_time = event_elapsed
            if not self.state.volcano_alert:
                self.state.tsunami_alert = True
            logger.info(
                "Tsunami alerted: event_id=%s magnitude=%.1f depth=%.1f gauges=%d",
                event.id,
                event.magnitude,
                event.depth,
                len(event.tsunami_targets),
            )
            self._trigger_alarm(event, "TSUNAMI", now, alarms)

        if TSUNAMI_EASE_START <= since_alert < TSUNAMI_EASE_END:
            alpha = 1.0 - (1.0 - TSUNAMI_EASING) ** frames
            state = self.state
            for sid, target in event.tsunami_targets:
                current = state.live.get(sid, 0.0)
                if current < target:
                    eased = current + (target - current) * alpha
                    state.live[sid] = eased
                    if eased > state.peak.get(sid, 0.0):
                        state.peak[sid] = eased
                    dirty.add(sid)

    def _trigger_alarm(self, event: ActiveEvent, reason: str, now: float,
                       alarms: list[AlarmSignal]) -> None:
        state = self.state
        is_volcano = event.event_type == EventType.VOLCANO
        if state.volcano_alert and not is_volcano:
            logger.info(
                "Alarm suppressed by volcano alert: event_id=%s reason=%s", event.id, reason
            )
            return

        if is_volcano:
            priority = 2
        elif reason == "TSUNAMI":
            priority = 1
        else:
            priority = 0

        override = False
        if (
            state.last_alarm_time is not None
            and now - state.last_alarm_time < self.settings.alarm_interval_seconds
        ):
            # inside the window only a volcano or a higher-priority alarm may fire
            if not is_volcano and priority <= state.last_alarm_priority:
                logger.debug(
                    "Alarm suppressed inside re-fire window: event_id=%s reason=%s since_last=%.2f",
                    event.id,
                    reason,
                    now - state.last_alarm_time,
                )
                return
            override = True

        state.last_alarm_time = now
        state.last_alarm_priority = priority
        alarms.append(
            AlarmSignal(
                event_id=event.id,
                event_type=event.event_type,
                reason=reason,
                priority=priority,
                time=now,
                override=override,
            )
        )
        logger.info(
            "Alarm fired: event_id=%s type=%s reason=%s priority=%d override=%s time=%.2f",
            event.id,
            event.event_type.value,
            reason,
            priority,
            override,
            now,
        )

    def _collect_countdowns(self, event: ActiveEvent, event_elapsed: float,
                            countdowns: dict[tuple[str, EventType], Countdown]) -> None:
        min_intensity = self.settings.countdown_min_intensity
        for impact in event.major_impacts:
            if impact.s_intensity <= min_intensity:
                continue
            seconds = max(0.0, impact.s_time - event_elapsed)
            key = (impact.name, event.event_type)
            current = countdowns.get(key)
            if current is None or seconds < current.seconds:
                countdowns[key] = Countdown(
                    station_id=impact.id,
                    name=impact.name,
                    seconds=seconds,
                    intensity=impact.s_intensity,
                    category=to_discrete_scale(impact.s_intensity).label,
                    event_type=event.event_type,
                )

    def _estimate_depth(self, true_depth: float, station_count: int, noise_width: float) -> float:
        noise = 0.0
        if not self.settings.deterministic:
            noise = (float(self.rng.random()) - 0.5) * noise_width
        if station_count > 40:
            depth = true_depth + noise
        elif station_count > 10:
            weight = (station_count - 10) / 30.0
            depth = DEFAULT_ESTIMATED_DEPTH_KM * (1 - weight) + true_depth * weight + noise * 2
        else:
            depth = DEFAULT_ESTIMATED_DEPTH_KM + noise * 5
        return max(0.0, depth)

    def _estimate(self, now: float) -> EEWReport | None:
        state = self.state
        event = next((e for e in state.events if now >= e.start_time), None)
        if event is None:
            return None

        station_count = len(state.peak)
        noise_width = max(0.1, 5.0 / np.sqrt(station_count))
        magnitudes: list[float] = []
        depths: list[float] = []
        for sid, observed in state.peak.items():
            station = self._stations_by_id.get(sid)
            if station is None or station.station_type != StationType.SEISMIC:
                continue
            if observed <= self.settings.report_noise_floor:
                continue
            dist = float(haversine_distance(event.epicenter.lat, event.epicenter.lng,
                                            station.lat, station.lng))
            depth = self._estimate_depth(event.depth, station_count, noise_width)
            magnitudes.append(invert_magnitude(observed, dist, depth, station.terrain))
            depths.append(depth)

        if not magnitudes:
            return None

        magnitude = round(float(np.mean(magnitudes)), 1)
        depth = round(float(np.mean(depths)), 1)
        predicted = intensity(magnitude, 0.0, depth, Terrain.BASIN, WaveType.S)
        report = EEWReport(
            report_num=len(state.reports) + 1,
            time=now,
            magnitude=magnitude,
            depth=depth,
            stations=len(magnitudes),
            is_offshore=is_offshore(event.epicenter.lat, event.epicenter.lng),
            predicted_max_intensity=predicted,
        )
        state.reports.append(report)
        state.predicted_magnitude = magnitude
        state.predicted_max_intensity = predicted
        logger.info(
            "EEW report: num=%d time=%.2f event_id=%s magnitude=%.1f depth=%.1f stations=%d "
            "predicted_intensity=%s",
            report.report_num,
            now,
            event.id,
            magnitude,
            depth,
            report.stations,
            to_discrete_scale(predicted).label,
        )
        return report

    def _wavefronts(self, now: float) -> list[Wavefront]:
        fronts: list[Wavefront] = []
        for event in self.state.events:
            event_elapsed = now - event.start_time
            if event_elapsed < 0:
                continue
            ash = None
            if event.event_type == EventType.VOLCANO:
                ash = min(event_elapsed * ASH_SPEED_KM_S, ASH_MAX_RADIUS_KM)
            fronts.append(
                Wavefront(
                    event_id=event.id,
                    event_type=event.event_type,
                    p_radius_km=event_elapsed * VP_KM_S,
                    s_radius_km=event_elapsed * VS_KM_S,
                    ash_radius_km=ash,
                )
            )
        return fronts
