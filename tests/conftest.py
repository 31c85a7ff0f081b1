import sys
import os

# Add project root to sys.path so tests can import from all modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from hypothesis import settings

from detectors.landmarks import LEFT_EYE_INDICES, MOUTH_INDICES, RIGHT_EYE_INDICES

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=100)
# Default to dev profile
settings.load_profile("dev")


def _eye_points(ear, x0):
    """16 点眼睛轮廓：水平距离 1.0，两条竖直距离都等于 ear，因此 EAR == ear"""
    pts = [(x0 + 0.5, -0.1)] * 16
    pts[0] = (x0, 0.0)
    pts[3] = (x0 + 1.0, 0.0)
    pts[1] = (x0 + 0.25, 0.0)
    pts[5] = (x0 + 0.25, ear)
    pts[2] = (x0 + 0.75, 0.0)
    pts[4] = (x0 + 0.75, ear)
    return pts


def _mouth_points(mar, x0=20.0):
    """13 点嘴唇轮廓：水平距离 1.0，竖直距离 mar，因此 MAR == mar"""
    pts = [(x0 + 0.5, -0.2)] * 13
    pts[0] = (x0, 0.0)
    pts[6] = (x0 + 1.0, 0.0)
    pts[3] = (x0 + 0.5, 0.0)
    pts[9] = (x0 + 0.5, mar)
    return pts


def build_frame(ear=0.3, mar=0.2, right_ear=None):
    """构造只包含眼睛和嘴巴索引的合成关键点帧"""
    frame = {}
    frame.update(zip(LEFT_EYE_INDICES, _eye_points(ear, 0.0)))
    frame.update(zip(RIGHT_EYE_INDICES, _eye_points(ear if right_ear is None else right_ear, 10.0)))
    frame.update(zip(MOUTH_INDICES, _mouth_points(mar)))
    return frame


@pytest.fixture
def make_frame():
    return build_frame


class FakeClock:
    """可手动推进的毫秒时钟"""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()
