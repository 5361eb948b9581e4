import logging
import time

import numpy as np

from eewsim.engine import SimulationEngine
from eewsim.models import Epicenter, EventType
from eewsim.network import generate_network
from eewsim.settings import parse_args


def spawn_scenario(engine: SimulationEngine, settings, logger: logging.Logger) -> list:
    if settings.composite:
        return engine.spawn_composite()
    if settings.preset:
        event = engine.spawn_preset(settings.preset)
        return [event] if event is not None else []
    event = engine.spawn(
        Epicenter(settings.lat, settings.lng),
        settings.magnitude,
        settings.depth_km,
        EventType(settings.event_type),
    )
    if event is None:
        logger.warning("No event spawned")
        return []
    return [event]


def run_headless(engine: SimulationEngine, settings, logger: logging.Logger) -> dict:
    ticks = 0
    reports = 0
    alarms = 0
    delta = None
    try:
        while engine.is_running:
            delta = engine.tick(settings.step_seconds)
            ticks += 1
            for report in delta.new_reports:
                reports += 1
                logger.info(
                    "Report #%d t=%.1fs M%.1f depth=%.1fkm stations=%d offshore=%s",
                    report.report_num,
                    report.time,
                    report.magnitude,
                    report.depth,
                    report.stations,
                    report.is_offshore,
                )
            for alarm in delta.alarms:
                alarms += 1
                logger.info(
                    "ALARM %s event=%s type=%s t=%.1fs",
                    alarm.reason,
                    alarm.event_id,
                    alarm.event_type.value,
                    alarm.time,
                )
            if settings.realtime:
                time.sleep(settings.step_seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping simulation")
        engine.stop()

    events = engine.events
    if delta is not None and delta.analysis is not None:
        logger.info(
            "Analysis ready: events=%d multi_event=%s max_intensity=%s",
            len(delta.analysis.events),
            delta.analysis.is_multi_event,
            delta.analysis.max_intensity_category,
        )
    metrics = {
        "ticks": ticks,
        "events": len(events),
        "alerted": sum(1 for e in events if e.alerted),
        "reports": reports,
        "alarms": alarms,
        "elapsed": engine.elapsed,
    }
    logger.info(
        "Run complete: ticks=%d events=%d alerted=%d reports=%d alarms=%d elapsed=%.1f",
        metrics["ticks"],
        metrics["events"],
        metrics["alerted"],
        metrics["reports"],
        metrics["alarms"],
        metrics["elapsed"],
    )
    return metrics


def main() -> None:
    settings = parse_args()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger("eewsim.main")
    logger.info("Starting EEW simulator")

    rng = np.random.default_rng(settings.seed)
    stations = generate_network(rng)
    engine = SimulationEngine(stations, settings=settings, rng=rng)

    if not spawn_scenario(engine, settings, logger):
        return
    run_headless(engine, settings, logger)


if __name__ == "__main__":
    main()
