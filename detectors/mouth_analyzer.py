"""嘴巴状态分析模块，负责计算 MAR 值并维护哈欠帧计数"""

import math
from typing import List

from models.data_models import MouthResult, Point

# 13 点嘴唇轮廓中参与 MAR 计算的位置
_TOP, _BOTTOM = 3, 9
_LEFT, _RIGHT = 0, 6


def calculate_mar(mouth_points: List[Point]) -> float:
    """
    计算 MAR 值。

    公式: MAR = |top-bottom| / |left-right|

    Args:
        mouth_points: 按索引表顺序排列的嘴唇关键点

    Returns:
        MAR 值；所需点缺失或水平距离为零时返回 0.0
    """
    if len(mouth_points) <= max(_TOP, _BOTTOM, _LEFT, _RIGHT):
        return 0.0

    horizontal = math.dist(mouth_points[_LEFT], mouth_points[_RIGHT])

    if horizontal == 0.0:
        return 0.0

    mar = math.dist(mouth_points[_TOP], mouth_points[_BOTTOM]) / horizontal
    if not math.isfinite(mar):
        return 0.0
    return mar


def update_yawn_run(frame_count: int, is_yawning: bool) -> int:
    """哈欠帧计数的状态转移"""
    return frame_count + 1 if is_yawning else 0


class MouthAnalyzer:
    """计算 MAR 值，维护连续哈欠帧计数器"""

    def __init__(self, yawn_threshold: float = 0.6):
        """初始化阈值和帧计数器"""
        self.yawn_threshold = yawn_threshold
        self._frame_counter = 0

    @property
    def frame_count(self) -> int:
        return self._frame_counter

    def analyze(self, mouth_points: List[Point]) -> MouthResult:
        """
        分析嘴巴状态。

        Args:
            mouth_points: 嘴唇关键点

        Returns:
            MouthResult(mar, is_yawning, frame_count)
        """
        mar = calculate_mar(mouth_points)

        is_yawning = mar > self.yawn_threshold
        self._frame_counter = update_yawn_run(self._frame_counter, is_yawning)

        return MouthResult(
            mar=mar,
            is_yawning=is_yawning,
            frame_count=self._frame_counter,
        )

    def reset(self):
        """重置帧计数器"""
        self._frame_counter = 0
