"""Unit tests for keyframe schedule string parsing."""

from framecue.utils.parsing.schedules import parse_keyframe_schedule, parse_schedule_value


class TestParseKeyframeSchedule:
    """Test parse_keyframe_schedule function."""

    def test_basic_schedule(self):
        result = parse_keyframe_schedule("0:(1.0), 30:(2.0), 60:(1.5)")
        assert result == [(0, 1.0), (30, 2.0), (60, 1.5)]

    def test_single_value_no_frame(self):
        assert parse_keyframe_schedule("10") == [(0, 10.0)]
        assert parse_keyframe_schedule("3.14159") == [(0, 3.14159)]

    def test_empty_string(self):
        assert parse_keyframe_schedule("") == [(0, 0.0)]
        assert parse_keyframe_schedule("   ") == [(0, 0.0)]

    def test_invalid_string(self):
        assert parse_keyframe_schedule("invalid") == [(0, 0.0)]

    def test_out_of_order_frames(self):
        result = parse_keyframe_schedule("30:(2.0), 0:(1.0), 60:(3.0)")
        assert result == [(0, 1.0), (30, 2.0), (60, 3.0)]

    def test_whitespace_handling(self):
        result = parse_keyframe_schedule("0: (1.0),  30 : ( 2.0 ), 60 :(1.5)")
        assert result == [(0, 1.0), (30, 2.0), (60, 1.5)]

    def test_fractional_frames(self):
        assert parse_keyframe_schedule("0:(0), 12.5:(1)") == [(0, 0.0), (12.5, 1.0)]

    def test_string_values(self):
        result = parse_keyframe_schedule('0:("Intro"), 60:(\'Outro\'), 90:(plain)')
        assert result == [(0, "Intro"), (60, "Outro"), (90, "plain")]

    def test_empty_values_are_skipped(self):
        assert parse_keyframe_schedule("0:(), 10:(5)") == [(10, 5.0)]

    def test_equal_frames_keep_order(self):
        assert parse_keyframe_schedule("10:(1), 10:(2)") == [(10, 1.0), (10, 2.0)]


class TestParseScheduleValue:
    """Test parse_schedule_value function."""

    def test_number(self):
        assert parse_schedule_value(" -2.5 ") == -2.5

    def test_quoted(self):
        assert parse_schedule_value('"a b"') == "a b"

    def test_mismatched_quotes_kept(self):
        assert parse_schedule_value("\"a'") == "\"a'"
