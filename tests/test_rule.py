"""
Tests for Rule construction, validation, builder and canonical text.
"""

import pytest
from datetime import date, datetime

import pytz

from recur.errors import ConfigurationError
from recur.frequency import Frequency
from recur.occurrence import Occurrence
from recur.rule import Rule
from recur.stages import Part
from recur.values import Day, WeekDay


class TestRuleConstruction:
    """Test validation at construction time."""

    def test_minimal(self):
        """Test a frequency alone is a valid rule with effective defaults."""
        rule = Rule(Frequency.DAILY)
        assert rule.interval == 1
        assert rule.raw_interval is None
        assert rule.week_start is Day.MO
        assert rule.raw_week_start is None
        assert rule.count is None and rule.until is None
        assert all(stage is None for stage in rule.stages)

    def test_frequency_required(self):
        """Test a missing frequency is a configuration error."""
        with pytest.raises(ConfigurationError):
            Rule(None)
        with pytest.raises(ConfigurationError):
            Rule("FORTNIGHTLY")

    def test_count_and_until_exclusive(self):
        """Test COUNT and UNTIL together are rejected."""
        with pytest.raises(ConfigurationError):
            Rule("DAILY", count=5, until="20241231T000000Z")

    @pytest.mark.parametrize("kwargs", [
        {"interval": "two"},
        {"count": 2.5},
        {"month_list": [13]},
        {"month_list": [0]},
        {"month_day_list": [-32]},
        {"hour_list": "24"},
        {"set_pos_list": [0]},
        {"day_list": "XX"},
    ])
    def test_invalid_values(self, kwargs):
        """Test invalid values fail fast."""
        with pytest.raises(ConfigurationError):
            Rule(Frequency.YEARLY, **kwargs)

    @pytest.mark.parametrize("frequency,kwargs", [
        (Frequency.MONTHLY, {"week_no_list": [1]}),
        (Frequency.DAILY, {"week_no_list": [1]}),
        (Frequency.WEEKLY, {"year_day_list": [1]}),
        (Frequency.MONTHLY, {"year_day_list": [100]}),
        (Frequency.WEEKLY, {"month_day_list": [1]}),
    ])
    def test_undefined_combinations_rejected(self, frequency, kwargs):
        """Test parts RFC-5545 does not define for the frequency."""
        with pytest.raises(ConfigurationError):
            Rule(frequency, **kwargs)

    def test_interval_below_one_means_one(self, occ):
        """Test INTERVAL=0 and negative intervals step by one period."""
        rule = Rule("DAILY", interval=0)
        assert rule.interval == 1
        assert rule.raw_interval == 0
        assert str(rule) == "FREQ=DAILY;INTERVAL=0"
        seed = occ("20080401")
        assert Rule("DAILY", interval=-2).next_after(seed, seed) == occ("20080402")

    def test_count_below_one_means_unbounded(self, occ):
        """Test COUNT=0 places no bound on the series."""
        rule = Rule("DAILY", count=0)
        assert rule.count is None
        assert rule.raw_count == 0
        assert str(rule) == "FREQ=DAILY;COUNT=0"
        seed = occ("20080401")
        assert len(rule.enumerate(seed, seed, occ("20080405"))) == 5
        assert Rule.builder(rule).build() == rule

    def test_until_conversions(self):
        """Test UNTIL accepts text, dates and datetimes."""
        assert Rule("DAILY", until="20080421T063000").until.is_floating
        assert Rule("DAILY", until=date(2008, 4, 21)).until.date_only
        aware = Rule("DAILY", until=pytz.utc.localize(datetime(2008, 4, 21)))
        assert aware.until.utc
        with pytest.raises(ConfigurationError):
            Rule("DAILY", until="2008-04-21")

    def test_stages_indexed_by_part(self):
        """Test active stages sit at their evaluation position."""
        rule = Rule(Frequency.YEARLY, month_list=[4], day_list="1SU")
        assert rule.stages[Part.BYMONTH.value].part is Part.BYMONTH
        assert rule.stages[Part.BYDAY.value].mode is Frequency.MONTHLY
        assert rule.stages[Part.BYHOUR.value] is None
        assert rule.byday_mode is Frequency.MONTHLY

    def test_list_accessors_are_tuples(self):
        """Test list accessors cannot mutate the rule."""
        rule = Rule(Frequency.MONTHLY, month_day_list="1,-1")
        assert rule.month_day_list == (1, -1)
        assert rule.day_list == ()


class TestRuleEquality:
    """Test field-by-field equality."""

    def test_equal_rules(self):
        """Test rules built differently compare equal."""
        a = Rule("MONTHLY", interval=2, day_list="3MO")
        b = Rule.builder().frequency(Frequency.MONTHLY).interval(2).day_list([WeekDay(Day.MO, 3)]).build()
        assert a == b
        assert hash(a) == hash(b)

    def test_explicit_defaults_differ(self):
        """Test an explicit INTERVAL=1 is a different rule text."""
        assert Rule("DAILY") != Rule("DAILY", interval=1)


class TestCanonicalString:
    """Test canonical serialization."""

    def test_part_order(self):
        """Test parts are emitted in canonical order."""
        rule = Rule(Frequency.YEARLY, week_start=Day.SU, count=4, interval=2,
                    set_pos_list="-1", second_list="0", minute_list="30", hour_list="9",
                    day_list="MO,TU", month_day_list="1,2", month_list="1,2,3")
        assert rule.to_canonical_string() == (
            "FREQ=YEARLY;WKST=SU;COUNT=4;INTERVAL=2;BYMONTH=1,2,3;BYMONTHDAY=1,2;"
            "BYDAY=MO,TU;BYHOUR=9;BYMINUTE=30;BYSECOND=0;BYSETPOS=-1"
        )

    def test_until_rendering(self):
        """Test UNTIL in each date form."""
        assert str(Rule("WEEKLY", until="20080421T063000")) == "FREQ=WEEKLY;UNTIL=20080421T063000"
        assert str(Rule("WEEKLY", until="20080421")) == "FREQ=WEEKLY;UNTIL=20080421"
        zoned = Occurrence.zoned(datetime(2024, 7, 1, 9, 0), "Europe/Chisinau")
        assert str(Rule("WEEKLY", until=zoned)) == "FREQ=WEEKLY;UNTIL=20240701T060000Z"

    def test_round_trip(self, rule):
        """Test parsing the canonical text reproduces an equal rule."""
        texts = [
            "FREQ=MONTHLY;WKST=MO;INTERVAL=1;BYMONTH=2,3,9,10;BYMONTHDAY=28,29,30,31;BYSETPOS=-1",
            "FREQ=YEARLY;COUNT=4;INTERVAL=2;BYMONTH=1,2,3;BYMONTHDAY=-1",
            "FREQ=WEEKLY;UNTIL=20080421T063000Z;BYDAY=MO,-1FR",
            "FREQ=YEARLY;BYWEEKNO=1,-1;BYDAY=TU",
        ]
        for text in texts:
            parsed = rule(text)
            assert rule(str(parsed)) == parsed
            assert str(rule(str(parsed))) == str(parsed)


class TestRuleBuilder:
    """Test the fluent builder."""

    def test_build_all_fields(self):
        """Test setting every field."""
        rule = (Rule.builder()
                .frequency("yearly")
                .interval(3)
                .until(date(2030, 1, 1))
                .week_start("SU")
                .second_list([0])
                .minute_list([15])
                .hour_list([8])
                .day_list("MO")
                .year_day_list([100])
                .month_list([4])
                .set_pos_list([1])
                .build())
        assert rule.frequency is Frequency.YEARLY
        assert rule.interval == 3
        assert rule.week_start is Day.SU
        assert rule.year_day_list == (100,)
        assert rule.byday_mode is Frequency.DAILY

    def test_builder_from_rule(self, rule):
        """Test copying a rule into a builder and changing one field."""
        original = rule("FREQ=MONTHLY;COUNT=3;BYMONTHDAY=12")
        changed = Rule.builder(original).count(None).until("20161231").build()
        assert changed.count is None
        assert changed.month_day_list == (12,)
        assert str(changed) == "FREQ=MONTHLY;UNTIL=20161231;BYMONTHDAY=12"

    def test_builder_missing_frequency(self):
        """Test building without a frequency fails."""
        with pytest.raises(ConfigurationError):
            Rule.builder().count(3).build()
