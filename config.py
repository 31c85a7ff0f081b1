"""分析器参数配置：默认值、JSON 配置文件读写"""

import json
import logging
import math
import os
from typing import Optional

from models.data_models import AnalyzerConfig

logger = logging.getLogger(__name__)

# 默认阈值
DEFAULTS = {
    "ear_threshold": 0.25,
    "closed_eye_frame_threshold": 15,
    "yawn_threshold": 0.6,
    "tired_ear_multiplier": 1.2,
    "yawn_tired_frames": 5,
    "yawn_drowsy_frames": 10,
    "blink_window_ms": 60000.0,
}


def coerce_config_value(key: str, value):
    """按默认值的类型转换配置值，非数值或非有限值抛出 ValueError"""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"配置项 {key} 必须是数值: {value!r}")
    try:
        number = float(value)
    except ValueError as e:
        raise ValueError(f"配置项 {key} 必须是数值: {value!r}") from e
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"配置项 {key} 必须是非负有限数值: {value!r}")
    return int(number) if isinstance(DEFAULTS[key], int) else number


def coerce_config(changes: dict) -> dict:
    """筛选已知字段并转换类型，忽略 None 与未知字段"""
    return {
        key: coerce_config_value(key, value)
        for key, value in changes.items()
        if key in DEFAULTS and value is not None
    }


def load_config(config_path: Optional[str] = None) -> dict:
    """从 JSON 配置文件加载阈值参数，缺失字段使用默认值。"""
    config = dict(DEFAULTS)

    if config_path is None:
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认阈值", config_path)
        return config
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
        return config

    if not isinstance(data, dict):
        logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
        return config

    # 用配置文件中的值覆盖默认值，非法值保留默认
    for key in DEFAULTS:
        if data.get(key) is None:
            continue
        try:
            config[key] = coerce_config_value(key, data[key])
        except ValueError as e:
            logger.warning("%s，使用默认值 %s", e, DEFAULTS[key])

    return config


def save_config(config: dict, output_path: str) -> None:
    """保存阈值参数，已知字段缺失时补默认值，其余字段原样附加。"""
    data = {key: config.get(key, DEFAULTS[key]) for key in DEFAULTS}
    data.update({k: v for k, v in config.items() if k not in DEFAULTS})

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4, ensure_ascii=False)

    logger.info("配置文件已保存: %s", output_path)


def build_analyzer_config(config: dict) -> AnalyzerConfig:
    """由配置字典构造 AnalyzerConfig，忽略未知字段"""
    return AnalyzerConfig(**{key: config.get(key, DEFAULTS[key]) for key in DEFAULTS})
