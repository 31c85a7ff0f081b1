"""警觉等级判定与置信度计算"""

from typing import Optional

from models.data_models import AlertLevel, AnalyzerConfig

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0


def classify_alert_level(
    avg_ear: float,
    closed_eye_frames: int,
    yawn_frames: int,
    config: Optional[AnalyzerConfig] = None,
) -> AlertLevel:
    """
    根据当前帧的 EAR 和两个连续帧计数判定警觉等级，按优先级首个命中生效。

    Args:
        avg_ear: 双眼平均 EAR
        closed_eye_frames: 连续闭眼帧数
        yawn_frames: 连续哈欠帧数
        config: 阈值配置，缺省使用默认值

    Returns:
        AlertLevel.DROWSY | AlertLevel.TIRED | AlertLevel.NORMAL
    """
    config = config or AnalyzerConfig()

    if (closed_eye_frames > config.closed_eye_frame_threshold
            or yawn_frames > config.yawn_drowsy_frames):
        return AlertLevel.DROWSY

    if (avg_ear < config.ear_threshold * config.tired_ear_multiplier
            or closed_eye_frames > config.closed_eye_frame_threshold / 2
            or yawn_frames > config.yawn_tired_frames):
        return AlertLevel.TIRED

    return AlertLevel.NORMAL


def calculate_confidence(avg_ear: float, closed_eye_frames: int) -> float:
    """EAR 为 0 说明几何退化，闭眼过程中关键点质量也会下降"""
    confidence = 1.0

    if avg_ear == 0:
        confidence *= 0.5
    if closed_eye_frames > 0:
        confidence *= 0.8

    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))
