"""眼睛状态分析模块，负责计算 EAR 值、维护闭眼帧计数并识别眨眼"""

import math
from typing import List, Tuple

from models.data_models import EyeResult, Point

# 16 点眼睛轮廓中参与 EAR 计算的位置
_CORNER_A, _CORNER_B = 0, 3
_UPPER_1, _LOWER_1 = 1, 5
_UPPER_2, _LOWER_2 = 2, 4
_MIN_EYE_POINTS = 6


def calculate_ear(eye_points: List[Point]) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = (|p1-p5| + |p2-p4|) / (2 * |p0-p3|)

    Args:
        eye_points: 按索引表顺序排列的眼睛关键点 [(x,y), ...]

    Returns:
        EAR 值；点数不足 6 个或水平距离为零时返回 0.0
    """
    if len(eye_points) < _MIN_EYE_POINTS:
        return 0.0

    vertical_1 = math.dist(eye_points[_UPPER_1], eye_points[_LOWER_1])
    vertical_2 = math.dist(eye_points[_UPPER_2], eye_points[_LOWER_2])
    horizontal = math.dist(eye_points[_CORNER_A], eye_points[_CORNER_B])

    if horizontal == 0.0:
        return 0.0

    ear = (vertical_1 + vertical_2) / (2.0 * horizontal)
    if not math.isfinite(ear):
        return 0.0
    return ear


def update_closed_eye_run(frame_count: int, is_closed: bool) -> Tuple[int, bool]:
    """
    闭眼帧计数的状态转移。

    Returns:
        (新的闭眼帧计数, 本帧是否结束了一次眨眼)
    """
    if is_closed:
        return frame_count + 1, False
    return 0, frame_count > 0


class EyeAnalyzer:
    """计算双眼 EAR，维护连续闭眼帧计数器，闭眼结束时报告一次眨眼"""

    def __init__(self, ear_threshold: float = 0.25):
        """初始化阈值和帧计数器"""
        self.ear_threshold = ear_threshold
        self._frame_counter = 0

    @property
    def frame_count(self) -> int:
        return self._frame_counter

    def analyze(self, left_eye: List[Point], right_eye: List[Point]) -> EyeResult:
        """
        分析双眼状态。

        Args:
            left_eye: 左眼关键点
            right_eye: 右眼关键点

        Returns:
            EyeResult(left_ear, right_ear, ear, is_closed, frame_count, blink_completed)
        """
        left_ear = calculate_ear(left_eye)
        right_ear = calculate_ear(right_eye)
        avg_ear = (left_ear + right_ear) / 2.0

        is_closed = avg_ear < self.ear_threshold
        self._frame_counter, blink_completed = update_closed_eye_run(self._frame_counter, is_closed)

        return EyeResult(
            left_ear=left_ear,
            right_ear=right_ear,
            ear=avg_ear,
            is_closed=is_closed,
            frame_count=self._frame_counter,
            blink_completed=blink_completed,
        )

    def reset(self):
        """重置帧计数器"""
        self._frame_counter = 0
