"""分析器异常定义"""


class InitializationError(Exception):
    """关键点检测模型加载失败，分析器不可用"""


class NotInitialized(Exception):
    """分析器尚未初始化或已被清理"""
