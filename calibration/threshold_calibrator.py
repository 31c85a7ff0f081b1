"""阈值校准模块，利用带标签的 EAR/MAR 样本做 ROC 分析，优化检测阈值"""

import logging
import math
import os
from datetime import datetime
from typing import List, Optional, Tuple

import cv2
import numpy as np
from sklearn.metrics import accuracy_score, recall_score, roc_curve

from config import DEFAULTS, save_config
from detectors.eye_analyzer import calculate_ear
from detectors.landmarks import LEFT_EYE_INDICES, MOUTH_INDICES, RIGHT_EYE_INDICES, select_points
from detectors.mouth_analyzer import calculate_mar
from models.data_models import CalibrationResult, LandmarkFrame

logger = logging.getLogger(__name__)

# 数据集子目录 -> 样本标签
EAR_DIRS = {"open": "open", "closed": "closed"}
MAR_DIRS = {"no_yawn": "normal", "yawn": "yawn"}


def compute_stats(values: list) -> dict:
    """
    计算一组数值的统计信息。

    Args:
        values: 非空浮点数列表

    Returns:
        {"mean": float, "std": float, "min": float, "max": float}
    """
    n = len(values)
    mean = sum(values) / n
    std = math.sqrt(sum((x - mean) ** 2 for x in values) / n)
    return {
        "mean": mean,
        "std": std,
        "min": min(values),
        "max": max(values),
    }


def _youden_threshold(scores: np.ndarray, labels: np.ndarray) -> Optional[float]:
    """ROC 曲线上 tpr - fpr 最大处的阈值，落在无穷远端点时返回 None"""
    fpr, tpr, thresholds = roc_curve(labels, scores)
    best = float(thresholds[int(np.argmax(tpr - fpr))])
    return best if math.isfinite(best) else None


class ThresholdCalibrator:
    """收集带标签的 EAR/MAR 样本，统计分布并通过 ROC 分析输出最优阈值"""

    def __init__(self):
        self._ear_data: List[Tuple[float, str]] = []  # (ear_value, label)
        self._mar_data: List[Tuple[float, str]] = []  # (mar_value, label)
        self._source: str = "samples"
        self._calibration_result: Optional[CalibrationResult] = None

    def add_ear_sample(self, ear: float, label: str) -> None:
        """label: "open" | "closed" """
        if label not in EAR_DIRS.values():
            raise ValueError(f"不支持的 EAR 标签: {label}")
        self._ear_data.append((ear, label))

    def add_mar_sample(self, mar: float, label: str) -> None:
        """label: "normal" | "yawn" """
        if label not in MAR_DIRS.values():
            raise ValueError(f"不支持的 MAR 标签: {label}")
        self._mar_data.append((mar, label))

    def add_landmarks(self, landmarks: LandmarkFrame, ear_label: Optional[str] = None,
                      mar_label: Optional[str] = None) -> None:
        """从一帧关键点计算 EAR/MAR 并按给定标签记录"""
        if ear_label is not None:
            left_ear = calculate_ear(select_points(landmarks, LEFT_EYE_INDICES))
            right_ear = calculate_ear(select_points(landmarks, RIGHT_EYE_INDICES))
            self.add_ear_sample((left_ear + right_ear) / 2.0, ear_label)
        if mar_label is not None:
            self.add_mar_sample(calculate_mar(select_points(landmarks, MOUTH_INDICES)), mar_label)

    def load_dataset(self, dataset_path: str, detector=None) -> None:
        """
        从图像目录加载样本。

        目录结构: open/ closed/ 提供 EAR 样本，no_yawn/ yawn/ 提供 MAR 样本，缺失的子目录跳过。

        Args:
            dataset_path: 数据集根目录路径
            detector: 具有 detect(image) 方法的关键点检测器，缺省使用 FaceDetector
        """
        if not os.path.isdir(dataset_path):
            raise ValueError(f"数据集路径无效: {dataset_path}")

        self._source = os.path.basename(os.path.normpath(dataset_path))
        owns_detector = detector is None
        if owns_detector:
            from detectors.face_detector import FaceDetector
            detector = FaceDetector()

        try:
            for subdir, label in EAR_DIRS.items():
                for landmarks in self._iter_landmarks(os.path.join(dataset_path, subdir), detector):
                    self.add_landmarks(landmarks, ear_label=label)
            for subdir, label in MAR_DIRS.items():
                for landmarks in self._iter_landmarks(os.path.join(dataset_path, subdir), detector):
                    self.add_landmarks(landmarks, mar_label=label)
        finally:
            if owns_detector:
                detector.close()

        logger.info(
            "数据集加载完成: EAR 样本 %d 条, MAR 样本 %d 条",
            len(self._ear_data),
            len(self._mar_data),
        )

    @staticmethod
    def _iter_landmarks(dir_path: str, detector):
        """逐张读取目录中的图像，产出检测到人脸的关键点帧"""
        if not os.path.isdir(dir_path):
            logger.warning("子目录不存在: %s", dir_path)
            return

        for filename in sorted(os.listdir(dir_path)):
            filepath = os.path.join(dir_path, filename)
            image = cv2.imread(filepath)
            if image is None:
                logger.warning("无法读取图像: %s", filepath)
                continue
            landmarks = detector.detect(image)
            if landmarks is not None:
                yield landmarks

    def compute_statistics(self) -> dict:
        """
        计算各类别的 EAR/MAR 分布统计。

        Returns:
            {
                "ear": {"open": {mean, std, min, max}, "closed": {...}},
                "mar": {"normal": {mean, std, min, max}, "yawn": {...}},
            }
        """
        result: dict = {"ear": {}, "mar": {}}

        for key, data in (("ear", self._ear_data), ("mar", self._mar_data)):
            groups = {}  # type: dict
            for value, label in data:
                groups.setdefault(label, []).append(value)
            for label, values in groups.items():
                result[key][label] = compute_stats(values)

        return result

    def optimize_thresholds(self) -> CalibrationResult:
        """
        基于 ROC 曲线分析输出最优 EAR 和 MAR 阈值。

        使用 Youden's J statistic (max(tpr - fpr)) 确定最优阈值，两类样本不全时保留默认值。

        Returns:
            CalibrationResult 包含最优阈值和评估指标
        """
        stats = self.compute_statistics()

        # EAR："closed" 为正类，闭眼时值低，所以用 -EAR 作为 score
        ear_optimal, ear_acc, ear_rec = DEFAULTS["ear_threshold"], 0.0, 0.0
        if self._ear_data:
            ear_values = np.array([v for v, _ in self._ear_data])
            ear_labels = np.array([1 if lab == "closed" else 0 for _, lab in self._ear_data])

            if len(np.unique(ear_labels)) == 2:
                best = _youden_threshold(-ear_values, ear_labels)
                if best is not None:
                    # 判定规则为 ear < threshold，向上取下一个浮点数使阈值本身也判为闭眼
                    ear_optimal = float(np.nextafter(-best, np.inf))
                ear_preds = (ear_values < ear_optimal).astype(int)
                ear_acc = float(accuracy_score(ear_labels, ear_preds))
                ear_rec = float(recall_score(ear_labels, ear_preds))

        # MAR："yawn" 为正类，MAR 越高越可能哈欠
        mar_optimal, mar_acc, mar_rec = DEFAULTS["yawn_threshold"], 0.0, 0.0
        if self._mar_data:
            mar_values = np.array([v for v, _ in self._mar_data])
            mar_labels = np.array([1 if lab == "yawn" else 0 for _, lab in self._mar_data])

            if len(np.unique(mar_labels)) == 2:
                best = _youden_threshold(mar_values, mar_labels)
                if best is not None:
                    # 判定规则为 mar > threshold，同理向下取
                    mar_optimal = float(np.nextafter(best, -np.inf))
                mar_preds = (mar_values > mar_optimal).astype(int)
                mar_acc = float(accuracy_score(mar_labels, mar_preds))
                mar_rec = float(recall_score(mar_labels, mar_preds))

        self._calibration_result = CalibrationResult(
            optimal_ear_threshold=float(ear_optimal),
            optimal_mar_threshold=float(mar_optimal),
            ear_accuracy=ear_acc,
            ear_recall=ear_rec,
            mar_accuracy=mar_acc,
            mar_recall=mar_rec,
            ear_distribution=stats.get("ear", {}),
            mar_distribution=stats.get("mar", {}),
        )

        return self._calibration_result

    def export_config(self, output_path: str, base_config: Optional[dict] = None) -> None:
        """
        导出分析器配置文件。

        Args:
            output_path: 输出 JSON 文件路径
            base_config: 其余参数的来源，缺省使用默认值
        """
        if self._calibration_result is None:
            self.optimize_thresholds()

        result = self._calibration_result

        config = dict(base_config or DEFAULTS)
        config["ear_threshold"] = result.optimal_ear_threshold
        config["yawn_threshold"] = result.optimal_mar_threshold
        config["calibration_info"] = {
            "ear_accuracy": result.ear_accuracy,
            "ear_recall": result.ear_recall,
            "mar_accuracy": result.mar_accuracy,
            "mar_recall": result.mar_recall,
            "calibrated_at": datetime.now().isoformat(),
            "source": self._source,
        }

        save_config(config, output_path)
