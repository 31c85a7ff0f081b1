"""人脸关键点检测模块，基于 MediaPipe FaceMesh"""

import logging
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import LandmarkFrame

logger = logging.getLogger(__name__)


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测人脸关键点，输出索引 -> 像素坐标的关键点帧"""

    def __init__(
        self,
        max_num_faces: int = 1,
        min_detection_confidence: float = 0.5,
        refine_landmarks: bool = True,
    ):
        """初始化 MediaPipe FaceMesh"""
        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=max_num_faces,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=0.5,
            refine_landmarks=refine_landmarks,
        )
        logger.info("FaceMesh 已加载 (max_num_faces=%d)", max_num_faces)

    def detect(self, frame: np.ndarray) -> Optional[LandmarkFrame]:
        """
        检测单帧图像中的人脸关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            第一张人脸的关键点帧 {index: (x, y)}；未检测到人脸时返回 None
        """
        h, w = frame.shape[:2]

        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return None

        face = results.multi_face_landmarks[0]

        # 将归一化坐标转换为像素坐标
        return {
            i: (lm.x * w, lm.y * h) for i, lm in enumerate(face.landmark)
        }

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
