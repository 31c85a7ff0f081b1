"""SessionHistory / AlertLog 单元测试"""

import pytest

from evaluators.alert_log import ALERT_MESSAGES, AlertLog
from evaluators.session_stats import SessionHistory
from models.data_models import AlertLevel, AnalysisResult, Metrics


def _result(avg_ear=0.3, level=AlertLevel.NORMAL):
    metrics = Metrics(
        left_ear=avg_ear, right_ear=avg_ear, avg_ear=avg_ear,
        blink_rate=0, closed_eye_frames=0, yawn_frames=0,
    )
    return AnalysisResult(
        metrics=metrics, alert_level=level, confidence=1.0, mar=0.2,
        left_eye=[], right_eye=[], mouth=[], eye_regions={"left": None, "right": None},
    )


class TestSessionHistory:
    def test_empty_stats(self):
        stats = SessionHistory().stats()
        assert stats.avg_ear == 0.0
        assert stats.total_alerts == 0
        assert stats.drowsy_percentage == 0.0
        assert stats.session_duration_minutes == 0.0
        assert stats.frame_count == 0

    def test_stats(self):
        history = SessionHistory()
        history.record(_result(0.3, AlertLevel.NORMAL), 0.0)
        history.record(_result(0.2, AlertLevel.TIRED), 60000.0)
        history.record(_result(0.1, AlertLevel.DROWSY), 120000.0)
        history.record(_result(0.2, AlertLevel.DROWSY), 180000.0)

        stats = history.stats()
        assert stats.avg_ear == pytest.approx(0.2)
        assert stats.total_alerts == 3
        assert stats.drowsy_percentage == pytest.approx(50.0)
        assert stats.session_duration_minutes == pytest.approx(3.0)
        assert stats.frame_count == 4

    def test_keeps_most_recent_records(self):
        history = SessionHistory(max_records=3)
        for i in range(5):
            history.record(_result(), float(i))
        assert len(history) == 3
        assert [r["timestamp"] for r in history.records()] == [2.0, 3.0, 4.0]

    def test_default_capacity(self):
        history = SessionHistory()
        for i in range(100):
            history.record(_result(), float(i))
        assert len(history) == SessionHistory.MAX_RECORDS

    def test_clear(self):
        history = SessionHistory()
        history.record(_result(), 0.0)
        history.clear()
        assert len(history) == 0


class TestAlertLog:
    def test_normal_does_not_alert(self):
        log = AlertLog()
        assert log.update(AlertLevel.NORMAL, 0.0) is None
        assert log.events() == []

    def test_alert_on_level_change(self):
        log = AlertLog()
        event = log.update(AlertLevel.TIRED, 1000.0)
        assert event.level == AlertLevel.TIRED
        assert event.timestamp == 1000.0
        assert event.message == ALERT_MESSAGES[AlertLevel.TIRED]

    def test_same_level_alerts_once(self):
        log = AlertLog()
        log.update(AlertLevel.TIRED, 0.0)
        assert log.update(AlertLevel.TIRED, 33.0) is None
        assert len(log.events()) == 1

    def test_escalation_and_recurrence(self):
        log = AlertLog()
        log.update(AlertLevel.TIRED, 0.0)
        log.update(AlertLevel.DROWSY, 1.0)
        log.update(AlertLevel.NORMAL, 2.0)
        log.update(AlertLevel.TIRED, 3.0)
        assert [e.level for e in log.events()] == [AlertLevel.TIRED, AlertLevel.DROWSY, AlertLevel.TIRED]

    def test_keeps_latest_entries(self):
        log = AlertLog(max_entries=10)
        for i in range(15):
            log.update(AlertLevel.TIRED if i % 2 else AlertLevel.DROWSY, float(i))
        events = log.events()
        assert len(events) == 10
        assert events[0].timestamp == 14.0

    def test_clear(self):
        log = AlertLog()
        log.update(AlertLevel.DROWSY, 0.0)
        log.clear()
        assert log.events() == []
        assert log.update(AlertLevel.DROWSY, 1.0) is not None
