import pytest

from eewsim.settings import Settings, parse_args


def test_parse_args_defaults(monkeypatch):
    monkeypatch.setattr("sys.argv", ["prog"])
    settings = parse_args()

    assert settings == Settings()
    assert settings.speed == 1.0
    assert settings.seed is None
    assert settings.max_duration_seconds == 300.0
    assert settings.alarm_interval_seconds == 5.0
    assert settings.log_level == "INFO"


def test_parse_args_custom_values(monkeypatch):
    monkeypatch.setattr(
        "sys.argv",
        [
            "prog",
            "--speed",
            "2.5",
            "--seed",
            "42",
            "--deterministic",
            "--preset",
            "921",
            "--event-type",
            "VOLCANO",
            "--offshore-trigger-threshold",
            "8",
            "--tsunami-radius-km",
            "500",
            "--log-level",
            "debug",
        ],
    )
    settings = parse_args()

    assert settings.speed == 2.5
    assert settings.seed == 42
    assert settings.deterministic is True
    assert settings.preset == "921"
    assert settings.event_type == "VOLCANO"
    assert settings.offshore_trigger_threshold == 8
    assert settings.tsunami_radius_km == 500.0
    assert settings.log_level == "DEBUG"


def test_parse_args_explicit_argv():
    settings = parse_args(["--lat", "24.1", "--lng", "121.6", "--magnitude", "6.4",
                           "--depth-km", "20", "--composite"])
    assert (settings.lat, settings.lng) == (24.1, 121.6)
    assert settings.magnitude == 6.4
    assert settings.depth_km == 20.0
    assert settings.composite is True


def test_parse_args_rejects_unknown_event_type():
    with pytest.raises(SystemExit):
        parse_args(["--event-type", "METEOR"])
