"""驾驶员困倦分析器：逐帧计算 EAR/MAR，维护眨眼与哈欠计数，输出警觉等级和置信度"""

import logging
from dataclasses import replace
from typing import Callable, Optional

import numpy as np

from detectors.eye_analyzer import EyeAnalyzer
from detectors.landmarks import (
    LEFT_EYE_INDICES,
    MOUTH_INDICES,
    RIGHT_EYE_INDICES,
    eye_region,
    select_points,
)
from detectors.mouth_analyzer import MouthAnalyzer
from evaluators.alert_classifier import calculate_confidence, classify_alert_level
from evaluators.blink_rate import BlinkRateWindow
from models.data_models import (
    AnalysisResult,
    AnalyzerConfig,
    AnalyzerState,
    LandmarkFrame,
    Metrics,
)
from models.errors import InitializationError, NotInitialized

logger = logging.getLogger(__name__)


def load_face_detector():
    """延迟加载 MediaPipe 关键点检测器"""
    from detectors.face_detector import FaceDetector
    return FaceDetector()


class DrowsinessAnalyzer:
    """
    单会话的有状态分析器。

    时序记忆完全由三部分独立状态承担：闭眼连续帧计数（EyeAnalyzer）、
    哈欠连续帧计数（MouthAnalyzer）、眨眼统计窗口（BlinkRateWindow）。
    不支持并发调用，每帧调用一次 analyze_frame。
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        provider_factory: Optional[Callable[[], object]] = load_face_detector,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            config: 阈值配置，缺省使用默认值
            provider_factory: 构造关键点检测器的工厂；为 None 时关键点由调用方提供
            clock: 返回毫秒时间戳的时钟，缺省为墙钟
        """
        self.config = config or AnalyzerConfig()
        self._provider_factory = provider_factory
        self._clock = clock
        self._provider = None
        self._ready = False
        self._build_state()

    def _build_state(self):
        self.eye_analyzer = EyeAnalyzer(ear_threshold=self.config.ear_threshold)
        self.mouth_analyzer = MouthAnalyzer(yawn_threshold=self.config.yawn_threshold)
        self.blink_window = BlinkRateWindow(window_ms=self.config.blink_window_ms, clock=self._clock)

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def state(self) -> AnalyzerState:
        return AnalyzerState(
            closed_eye_frame_count=self.eye_analyzer.frame_count,
            yawn_frame_count=self.mouth_analyzer.frame_count,
            blink_count=self.blink_window.blink_count,
            window_start=self.blink_window.window_start,
        )

    def initialize(self):
        """
        加载关键点检测器并清零所有状态。

        Raises:
            InitializationError: 检测器加载失败，ready 保持 False
        """
        if self._ready:
            return

        if self._provider_factory is not None:
            try:
                self._provider = self._provider_factory()
            except Exception as e:
                logger.error("关键点检测器加载失败: %s", e)
                raise InitializationError(f"关键点检测器加载失败: {e}") from e

        self._build_state()
        self._ready = True
        logger.info("困倦分析器已就绪")

    def analyze_frame(self, landmarks: Optional[LandmarkFrame]) -> Optional[AnalysisResult]:
        """
        分析一帧关键点。

        Args:
            landmarks: 第一张人脸的关键点帧；None 表示本帧未检测到人脸

        Returns:
            AnalysisResult；未检测到人脸时返回 None，且不改变任何内部状态

        Raises:
            NotInitialized: 未初始化或已清理
        """
        if not self._ready:
            raise NotInitialized("分析器未初始化")

        if landmarks is None:
            return None

        left_eye = select_points(landmarks, LEFT_EYE_INDICES)
        right_eye = select_points(landmarks, RIGHT_EYE_INDICES)
        mouth = select_points(landmarks, MOUTH_INDICES)

        eye_result = self.eye_analyzer.analyze(left_eye, right_eye)
        mouth_result = self.mouth_analyzer.analyze(mouth)

        if eye_result.blink_completed:
            self.blink_window.record_blink()
        blink_rate = self.blink_window.tick()

        metrics = Metrics(
            left_ear=eye_result.left_ear,
            right_ear=eye_result.right_ear,
            avg_ear=eye_result.ear,
            blink_rate=blink_rate,
            closed_eye_frames=eye_result.frame_count,
            yawn_frames=mouth_result.frame_count,
        )

        alert_level = classify_alert_level(
            metrics.avg_ear, metrics.closed_eye_frames, metrics.yawn_frames, self.config,
        )

        return AnalysisResult(
            metrics=metrics,
            alert_level=alert_level,
            confidence=calculate_confidence(metrics.avg_ear, metrics.closed_eye_frames),
            mar=mouth_result.mar,
            left_eye=left_eye,
            right_eye=right_eye,
            mouth=mouth,
            eye_regions={
                "left": eye_region(left_eye),
                "right": eye_region(right_eye),
            },
        )

    def process_image(self, image: np.ndarray) -> Optional[AnalysisResult]:
        """用已加载的检测器提取关键点后分析，BGR 图像输入"""
        if not self._ready:
            raise NotInitialized("分析器未初始化")
        if self._provider is None:
            raise InitializationError("未配置关键点检测器")

        return self.analyze_frame(self._provider.detect(image))

    def update_config(self, **changes):
        """更新阈值配置并重置计数器"""
        self.config = replace(self.config, **changes)
        self._build_state()

    def reset(self):
        """清零计数器并重新开始眨眼统计窗口，不释放检测器"""
        self.eye_analyzer.reset()
        self.mouth_analyzer.reset()
        self.blink_window.reset()

    def cleanup(self):
        """释放检测器资源，之后调用 analyze_frame 将抛出 NotInitialized"""
        if self._provider is not None and hasattr(self._provider, "close"):
            self._provider.close()
        self._provider = None
        self._ready = False
