"""MouthAnalyzer 单元测试"""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from detectors.mouth_analyzer import MouthAnalyzer, calculate_mar, update_yawn_run

coords = st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False)


def _mouth(mar):
    """左右嘴角距离 1.0、上下唇距离 mar 的 13 点嘴唇"""
    pts = [(0.5, -0.2)] * 13
    pts[0] = (0.0, 0.0)
    pts[6] = (1.0, 0.0)
    pts[3] = (0.5, 0.0)
    pts[9] = (0.5, mar)
    return pts


class TestCalculateMAR:
    def test_known_value(self):
        assert calculate_mar(_mouth(0.7)) == pytest.approx(0.7)

    def test_zero_horizontal_returns_zero(self):
        pts = _mouth(0.7)
        pts[6] = pts[0]
        assert calculate_mar(pts) == 0.0

    def test_missing_bottom_point_returns_zero(self):
        """缺点后列表不足 10 个，底唇位置不存在"""
        assert calculate_mar(_mouth(0.7)[:9]) == 0.0

    @given(st.lists(st.tuples(coords, coords), min_size=0, max_size=13))
    def test_never_nan_or_negative(self, mouth):
        mar = calculate_mar(mouth)
        assert not math.isnan(mar)
        assert math.isfinite(mar)
        assert mar >= 0.0


class TestYawnRun:
    def test_yawn_increments(self):
        assert update_yawn_run(2, True) == 3

    def test_closed_mouth_resets(self):
        assert update_yawn_run(9, False) == 0


class TestMouthAnalyzer:
    def test_yawn_counter(self):
        analyzer = MouthAnalyzer(yawn_threshold=0.6)
        for i in range(1, 4):
            result = analyzer.analyze(_mouth(0.8))
            assert result.is_yawning is True
            assert result.frame_count == i

        result = analyzer.analyze(_mouth(0.3))
        assert result.is_yawning is False
        assert result.frame_count == 0

    def test_threshold_is_strict(self):
        analyzer = MouthAnalyzer(yawn_threshold=0.5)
        assert analyzer.analyze(_mouth(0.5)).is_yawning is False

    def test_reset(self):
        analyzer = MouthAnalyzer()
        analyzer.analyze(_mouth(0.9))
        analyzer.reset()
        assert analyzer.frame_count == 0
