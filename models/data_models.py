"""核心数据模型定义"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

Point = Tuple[float, float]

# 关键点索引 -> 像素坐标 (x, y)，参考拓扑为 468 个点
LandmarkFrame = Dict[int, Point]


class AlertLevel(str, Enum):
    """三级警觉状态"""
    NORMAL = "normal"
    TIRED = "tired"
    DROWSY = "drowsy"


@dataclass
class AnalyzerConfig:
    """分析器可调参数"""
    ear_threshold: float = 0.25
    closed_eye_frame_threshold: int = 15
    yawn_threshold: float = 0.6
    tired_ear_multiplier: float = 1.2
    yawn_tired_frames: int = 5
    yawn_drowsy_frames: int = 10
    blink_window_ms: float = 60000.0


@dataclass
class EyeRegion:
    """单只眼睛关键点的包围盒"""
    x: float
    y: float
    width: float
    height: float


@dataclass
class EyeResult:
    """眼睛分析结果"""
    left_ear: float
    right_ear: float
    ear: float
    is_closed: bool
    frame_count: int
    blink_completed: bool


@dataclass
class MouthResult:
    """嘴巴分析结果"""
    mar: float
    is_yawning: bool
    frame_count: int


@dataclass(frozen=True)
class Metrics:
    """单帧输出指标"""
    left_ear: float
    right_ear: float
    avg_ear: float
    blink_rate: int
    closed_eye_frames: int
    yawn_frames: int


@dataclass
class AnalysisResult:
    """单帧分析结果，附带用于可视化的关键点子集和眼部区域"""
    metrics: Metrics
    alert_level: AlertLevel
    confidence: float
    mar: float
    left_eye: List[Point]
    right_eye: List[Point]
    mouth: List[Point]
    eye_regions: Dict[str, Optional[EyeRegion]]

    def to_dict(self) -> dict:
        """转换为可 JSON 序列化的字典"""
        return {
            "metrics": asdict(self.metrics),
            "alert_level": self.alert_level.value,
            "confidence": self.confidence,
            "mar": self.mar,
            "left_eye": [list(p) for p in self.left_eye],
            "right_eye": [list(p) for p in self.right_eye],
            "mouth": [list(p) for p in self.mouth],
            "eye_regions": {
                side: asdict(region) if region is not None else None
                for side, region in self.eye_regions.items()
            },
        }


@dataclass(frozen=True)
class AnalyzerState:
    """分析器内部计数器快照"""
    closed_eye_frame_count: int
    yawn_frame_count: int
    blink_count: int
    window_start: float


@dataclass
class SessionStats:
    """会话统计"""
    avg_ear: float
    total_alerts: int
    drowsy_percentage: float
    session_duration_minutes: float
    frame_count: int


@dataclass
class AlertEvent:
    """警报记录"""
    level: AlertLevel
    timestamp: float
    message: str


@dataclass
class CalibrationResult:
    """阈值校准结果"""
    optimal_ear_threshold: float
    optimal_mar_threshold: float
    ear_accuracy: float
    ear_recall: float
    mar_accuracy: float
    mar_recall: float
    ear_distribution: dict = field(default_factory=dict)
    mar_distribution: dict = field(default_factory=dict)
