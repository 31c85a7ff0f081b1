"""关键点索引表与选取工具（MediaPipe FaceMesh 拓扑）"""

from typing import Iterable, List, Optional

from models.data_models import EyeRegion, LandmarkFrame, Point

# 眼睛轮廓 16 点，从外眼角开始沿下眼睑到内眼角，再沿上眼睑返回
LEFT_EYE_INDICES = [33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246]
RIGHT_EYE_INDICES = [362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398]

# 嘴唇内轮廓 13 点
MOUTH_INDICES = [78, 191, 80, 81, 82, 13, 312, 311, 310, 415, 308, 324, 318]


def select_points(landmarks: LandmarkFrame, indices: Iterable[int]) -> List[Point]:
    """
    按索引表从关键点帧中取点，缺失的索引直接丢弃。

    Args:
        landmarks: 索引 -> (x, y) 的关键点帧
        indices: 索引表

    Returns:
        按索引表顺序排列的点列表（可能少于索引表长度）
    """
    return [tuple(landmarks[i]) for i in indices if landmarks.get(i) is not None]


def eye_region(eye_points: List[Point]) -> Optional[EyeRegion]:
    """计算眼部关键点的包围盒，无点时返回 None"""
    if not eye_points:
        return None

    xs = [p[0] for p in eye_points]
    ys = [p[1] for p in eye_points]

    return EyeRegion(
        x=min(xs),
        y=min(ys),
        width=max(xs) - min(xs),
        height=max(ys) - min(ys),
    )
