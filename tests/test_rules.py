import pytest
from pydantic import ValidationError

from judo_core import (
    ConfigError,
    RuleConfig,
    format_clock,
    format_seconds,
    format_tenths,
    load_rules,
    load_rules_json,
    parse_clock_preset,
)


def test_default_rules_are_valid():
    rules = load_rules()
    assert rules.total_time == 300000
    assert rules.tick_period == 10
    assert rules.pin_major_time == 10000
    assert rules.pin_ippon_time == 20000
    assert rules.pin_minor_time is None
    assert rules.majors_per_ippon == 2
    for name in ("total_time", "pin_warn_unassigned", "pin_major_time", "pin_ippon_time", "pin_max_time"):
        assert getattr(rules, name) % rules.tick_period == 0


def test_load_rules_returns_same_model():
    rules = RuleConfig(total_time=240000)
    assert load_rules(rules) is rules


def test_total_time_must_be_tick_multiple():
    with pytest.raises(ConfigError) as exc:
        load_rules({"total_time": 240005})
    assert "tick_period" in str(exc.value)
    assert exc.value.errors


def test_pin_thresholds_must_be_tick_multiples():
    with pytest.raises(ConfigError):
        load_rules({"tick_period": 100, "pin_major_time": 10050})
    with pytest.raises(ConfigError):
        load_rules({"pin_warn_unassigned": 2001})
    with pytest.raises(ConfigError):
        load_rules({"unassigned_reminder_period": 15})


def test_pin_thresholds_must_escalate():
    with pytest.raises(ConfigError):
        load_rules({"pin_major_time": 20000, "pin_ippon_time": 10000})
    with pytest.raises(ConfigError):
        load_rules({"pin_minor_time": 10000, "pin_major_time": 10000})
    # minor vs ippon is compared when major is disabled
    with pytest.raises(ConfigError):
        load_rules({"pin_minor_time": 15000, "pin_major_time": None, "pin_ippon_time": 10000})


def test_ippon_may_equal_but_not_exceed_max_time():
    rules = load_rules({"pin_ippon_time": 20000, "pin_max_time": 20000})
    assert rules.pin_max_time == 20000
    with pytest.raises(ConfigError):
        load_rules({"pin_ippon_time": 25000, "pin_max_time": 20000})


def test_disabled_thresholds_skip_checks():
    rules = load_rules(
        {
            "pin_warn_unassigned": None,
            "pin_major_time": None,
            "pin_ippon_time": None,
            "pin_max_time": None,
            "majors_per_ippon": None,
        }
    )
    assert rules.pin_max_time is None


def test_non_positive_values_rejected():
    with pytest.raises(ConfigError):
        load_rules({"total_time": 0})
    with pytest.raises(ConfigError):
        load_rules({"stop_clock_on_ippon_multiple": 0})
    with pytest.raises(ConfigError):
        load_rules({"pin_major_time": -10000})


def test_booleans_and_fractions_rejected():
    with pytest.raises(ConfigError):
        load_rules({"majors_per_ippon": True})
    with pytest.raises(ConfigError):
        load_rules({"total_time": 1000.5})
    assert load_rules({"total_time": 240000.0}).total_time == 240000


def test_unknown_rule_rejected():
    with pytest.raises(ConfigError):
        load_rules({"enable_reset_by_enter": True})


def test_non_mapping_rejected():
    with pytest.raises(ConfigError):
        load_rules(["total_time"])


def test_rules_are_frozen():
    rules = RuleConfig()
    with pytest.raises(ValidationError):
        rules.total_time = 1000


def test_load_rules_json():
    rules = load_rules_json('{"total_time": 240000, "stop_clock_on_category4_multiple": null}')
    assert rules.total_time == 240000
    assert rules.stop_clock_on_category4_multiple is None
    with pytest.raises(ConfigError):
        load_rules_json("{not json")
    with pytest.raises(ConfigError):
        load_rules_json('{"tick_period": 7}')


def test_format_clock():
    assert format_clock(300000) == "5:00"
    assert format_clock(65999) == "1:05"
    assert format_clock(0) == "0:00"
    assert format_clock(-1500) == "0:01"


def test_format_seconds_and_tenths():
    assert format_seconds(19990) == "19"
    assert format_tenths(1250) == "2"
    assert format_tenths(-1250) == "2"
    assert format_tenths(999) == "9"


def test_parse_clock_preset_handles_valid_and_invalid():
    assert parse_clock_preset("4:00") == 240000
    assert parse_clock_preset("0:30") == 30000
    assert parse_clock_preset(" 10:05 ") == 605000
    assert parse_clock_preset("") is None
    assert parse_clock_preset(None) is None
    assert parse_clock_preset("1:75") is None
    assert parse_clock_preset("abc") is None
    assert parse_clock_preset("1:2:3") is None
