"""眨眼频率统计模块，按固定时长的翻转窗口累计眨眼次数"""

import time
from typing import Callable, Optional, Tuple

BLINK_WINDOW_MS = 60000.0


def wall_clock_ms() -> float:
    """当前墙钟时间（毫秒）"""
    return time.time() * 1000.0


def advance_blink_window(
    blink_count: int,
    window_start: float,
    now: float,
    window_ms: float = BLINK_WINDOW_MS,
) -> Tuple[int, float, int]:
    """
    窗口状态转移。

    窗口未满时上报 0；窗口到期的那一帧上报累计次数，然后清零并以 now 开启新窗口。

    Returns:
        (新的眨眼计数, 新的窗口起点, 本帧上报的眨眼频率)
    """
    if now - window_start < window_ms:
        return blink_count, window_start, 0
    return 0, now, blink_count


class BlinkRateWindow:
    """维护当前窗口内的眨眼计数和窗口起点"""

    def __init__(self, window_ms: float = BLINK_WINDOW_MS, clock: Optional[Callable[[], float]] = None):
        self.window_ms = window_ms
        self._clock = clock or wall_clock_ms
        self.blink_count = 0
        # 起点为 0，墙钟下第一帧即翻转并以该帧时间开启首个窗口
        self.window_start = 0.0

    def record_blink(self):
        self.blink_count += 1

    def tick(self) -> int:
        """推进窗口，返回本帧的眨眼频率（次/分钟，仅在窗口边界非零）"""
        self.blink_count, self.window_start, rate = advance_blink_window(
            self.blink_count, self.window_start, self._clock(), self.window_ms,
        )
        return rate

    def reset(self):
        self.blink_count = 0
        self.window_start = 0.0
