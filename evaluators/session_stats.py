"""会话统计模块：保留最近的逐帧记录并汇总平均 EAR、警报次数、困倦占比和会话时长"""

from collections import deque
from typing import List

from models.data_models import AlertLevel, AnalysisResult, SessionStats


class SessionHistory:
    """滚动保存最近 max_records 条分析记录"""

    MAX_RECORDS = 51

    def __init__(self, max_records: int = MAX_RECORDS):
        self._records = deque(maxlen=max_records)

    def __len__(self):
        return len(self._records)

    def record(self, result: AnalysisResult, timestamp: float) -> None:
        """
        记录一帧结果。

        Args:
            result: analyze_frame 的返回值
            timestamp: 毫秒时间戳
        """
        self._records.append({
            "timestamp": timestamp,
            "avg_ear": result.metrics.avg_ear,
            "alert_level": result.alert_level,
            "confidence": result.confidence,
        })

    def records(self) -> List[dict]:
        return list(self._records)

    def stats(self) -> SessionStats:
        """汇总统计，无记录时全部为 0"""
        n = len(self._records)
        if n == 0:
            return SessionStats(
                avg_ear=0.0, total_alerts=0, drowsy_percentage=0.0,
                session_duration_minutes=0.0, frame_count=0,
            )

        avg_ear = sum(r["avg_ear"] for r in self._records) / n
        drowsy_count = sum(1 for r in self._records if r["alert_level"] == AlertLevel.DROWSY)
        total_alerts = sum(1 for r in self._records if r["alert_level"] != AlertLevel.NORMAL)
        duration_ms = self._records[-1]["timestamp"] - self._records[0]["timestamp"]

        return SessionStats(
            avg_ear=avg_ear,
            total_alerts=total_alerts,
            drowsy_percentage=drowsy_count / n * 100.0,
            session_duration_minutes=duration_ms / 1000.0 / 60.0,
            frame_count=n,
        )

    def clear(self) -> None:
        self._records.clear()
