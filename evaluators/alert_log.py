"""警报记录模块，在警觉等级变为非正常时追加一条警报"""

import logging
from typing import List, Optional

from models.data_models import AlertEvent, AlertLevel

logger = logging.getLogger(__name__)

ALERT_MESSAGES = {
    AlertLevel.DROWSY: "严重困倦！请立即靠边停车休息！",
    AlertLevel.TIRED: "检测到疲劳迹象，建议稍作休息。",
    AlertLevel.NORMAL: "驾驶员状态清醒。",
}


class AlertLog:
    """保存最近的警报，最新的在前"""

    MAX_ENTRIES = 10

    def __init__(self, max_entries: int = MAX_ENTRIES):
        self.max_entries = max_entries
        self._events: List[AlertEvent] = []
        self._last_level: Optional[AlertLevel] = None

    def update(self, level: AlertLevel, timestamp: float) -> Optional[AlertEvent]:
        """
        报告当前等级，等级变化且非正常时生成一条警报。

        Returns:
            新生成的 AlertEvent，未生成时返回 None
        """
        changed = level != self._last_level
        self._last_level = level

        if not changed or level == AlertLevel.NORMAL:
            return None

        event = AlertEvent(level=level, timestamp=timestamp, message=ALERT_MESSAGES[level])
        self._events.insert(0, event)
        del self._events[self.max_entries:]
        logger.warning("警报 [%s]: %s", level.value, event.message)
        return event

    def events(self) -> List[AlertEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events = []
        self._last_level = None
