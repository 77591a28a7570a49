import pytest

from core.exceptions import ConfigurationError
from core.settings import (
    BeamConfig, RebarSettings, RuleConfig, SpliceZone, parse_diameter_range, parse_leg_rules,
)

INVENTORY = (10, 12, 14, 16, 18, 20, 22, 25, 28, 32)


def test_default_main_bar_diameters():
    assert RebarSettings().main_bar_diameters == [16, 18, 20, 22, 25]


def test_parse_diameter_range():
    assert parse_diameter_range("19-29", INVENTORY) == [20, 22, 25, 28]
    assert parse_diameter_range("16, 22,32", INVENTORY) == [16, 22, 32]
    assert parse_diameter_range("", INVENTORY) == list(INVENTORY)
    with pytest.raises(ConfigurationError):
        parse_diameter_range("D16-D25", INVENTORY)


def test_even_diameter_preference():
    settings = RebarSettings(beam=BeamConfig(main_bar_range="12-22", prefer_even_diameter=True))
    assert settings.main_bar_diameters == [12, 14, 16, 18, 20, 22]
    settings = RebarSettings(available_diameters=(13, 16, 19, 22), beam=BeamConfig(main_bar_range="13-22",
                                                                                     prefer_even_diameter=True))
    assert settings.main_bar_diameters == [16, 22]


def test_parse_leg_rules():
    assert parse_leg_rules("600-6 250-2 400-4") == [(250, 2), (400, 4), (600, 6)]
    for bad in ("", "250", "250-x", "0-2"):
        with pytest.raises(ValueError):
            parse_leg_rules(bad)


def test_validation():
    with pytest.raises(ConfigurationError) as exc:
        RuleConfig(safety_factor=2.5)
    assert exc.value.field_name == "safety_factor"
    with pytest.raises(ConfigurationError):
        BeamConfig(max_layers=3)
    with pytest.raises(ConfigurationError):
        RebarSettings(available_diameters=(20, 21))


def test_from_dict_nested():
    settings = RebarSettings.from_dict({
        "beam": {"max_layers": 1, "main_bar_range": "16-22"},
        "stirrup": {"enable_advanced_rules": True, "leg_table": {"4": 2, "4+": 4}},
        "detailing": {"beam_rule": {"top_splice_zone": "quarter_span"}},
        "anchorage": {"manual_splice_lengths": {"20": 1000}},
        "rules": {"safety_factor": 1.1},
    })
    assert settings.beam.max_layers == 1
    assert settings.beam.cover_side == 25.0
    assert settings.stirrup.leg_table == {(4, False): 2, (4, True): 4}
    assert settings.detailing.beam_rule.top_splice_zone is SpliceZone.QUARTER_SPAN
    assert settings.anchorage.get_splice_length(20) == 1000.0
    assert settings.rules.safety_factor == 1.1


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigurationError) as exc:
        RebarSettings.from_dict({"beam": {"cover": 30}})
    assert exc.value.field_name == "cover"
    with pytest.raises(ConfigurationError):
        RebarSettings.from_dict({"detailing": {"beam_rule": {"top_splice_zone": "ANYWHERE"}}})


def test_arrangement_rule_by_group_type():
    detailing = RebarSettings().detailing
    assert detailing.get_rule("GIRDER").top_splice_zone is SpliceZone.QUARTER_SPAN
    assert detailing.get_rule("BEAM").top_splice_zone is SpliceZone.MID_SPAN
    assert detailing.get_rule(None).bot_splice_zone is SpliceZone.SUPPORT
