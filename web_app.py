"""Flask JSON API - 接收前端逐帧上传的人脸关键点并返回困倦分析结果"""

import logging
import math
import os
import threading

from flask import Flask, jsonify, request

from config import DEFAULTS, build_analyzer_config, coerce_config, load_config, save_config
from detectors.drowsiness_analyzer import DrowsinessAnalyzer
from evaluators.alert_log import AlertLog
from evaluators.blink_rate import wall_clock_ms
from evaluators.session_stats import SessionHistory
from main import parse_landmarks
from models.errors import NotInitialized

logger = logging.getLogger(__name__)

CONFIG_PATH = os.environ.get("DROWSINESS_CONFIG", "config.json")


class WebAnalysisSession:
    """Web 版分析会话：分析器 + 会话统计 + 警报记录，所有访问串行化。"""

    def __init__(self, config=None):
        self._lock = threading.Lock()
        self.config = dict(config or DEFAULTS)
        # 关键点由浏览器端的模型提供，服务端不加载检测器
        self.analyzer = DrowsinessAnalyzer(
            config=build_analyzer_config(self.config),
            provider_factory=None,
        )
        self.history = SessionHistory()
        self.alert_log = AlertLog()

    def start(self):
        with self._lock:
            self.analyzer.initialize()
        logger.info("分析会话已启动")

    def stop(self):
        with self._lock:
            self.analyzer.cleanup()
        logger.info("分析会话已停止")

    def analyze(self, landmarks, timestamp=None):
        """分析一帧，返回可 JSON 序列化的字典"""
        timestamp = wall_clock_ms() if timestamp is None else timestamp
        with self._lock:
            result = self.analyzer.analyze_frame(landmarks)
            if result is None:
                return {"face_detected": False}
            self.history.record(result, timestamp)
            event = self.alert_log.update(result.alert_level, timestamp)

        data = {"face_detected": True, **result.to_dict()}
        if event is not None:
            data["alert"] = {"level": event.level.value, "message": event.message}
        return data

    def update_config(self, changes):
        """动态更新阈值配置，忽略未知字段；非数值抛出 ValueError 且不改动配置。"""
        known = coerce_config(changes)
        with self._lock:
            self.config.update(known)
            self.analyzer.update_config(**known)
        return dict(self.config)

    def reset(self):
        with self._lock:
            self.analyzer.reset()
            self.history.clear()
            self.alert_log.clear()


def create_app(session=None, config_path=None):
    app = Flask(__name__)
    session = session or WebAnalysisSession(load_config(config_path))
    app.config["SESSION"] = session

    @app.errorhandler(NotInitialized)
    def handle_not_initialized(e):
        return jsonify({"success": False, "message": "分析器未启动"}), 409

    @app.route("/api/start", methods=["POST"])
    def api_start():
        session.start()
        return jsonify({"success": True, "message": "分析器已启动"})

    @app.route("/api/stop", methods=["POST"])
    def api_stop():
        session.stop()
        return jsonify({"success": True, "message": "分析器已停止"})

    @app.route("/api/analyze", methods=["POST"])
    def api_analyze():
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict) or "landmarks" not in data:
            return jsonify({"success": False, "message": "缺少 landmarks 字段"}), 400
        try:
            landmarks = parse_landmarks(data["landmarks"])
        except (AttributeError, TypeError, ValueError, IndexError):
            return jsonify({"success": False, "message": "landmarks 格式错误"}), 400
        timestamp = data.get("timestamp")
        if timestamp is not None:
            try:
                timestamp = float(timestamp)
            except (TypeError, ValueError):
                return jsonify({"success": False, "message": "timestamp 格式错误"}), 400
            if not math.isfinite(timestamp):
                return jsonify({"success": False, "message": "timestamp 格式错误"}), 400
        return jsonify(session.analyze(landmarks, timestamp))

    @app.route("/api/config", methods=["GET", "POST"])
    def api_config():
        if request.method == "GET":
            return jsonify(session.config)
        data = request.get_json(force=True, silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"success": False, "message": "配置必须是 JSON 对象"}), 400
        try:
            config = session.update_config(data)
        except ValueError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        if data.get("persist"):
            save_config(config, config_path or CONFIG_PATH)
        return jsonify({"success": True, "config": config})

    @app.route("/api/stats")
    def api_stats():
        stats = session.history.stats()
        return jsonify({
            "avg_ear": round(stats.avg_ear, 3),
            "total_alerts": stats.total_alerts,
            "drowsy_percentage": round(stats.drowsy_percentage, 1),
            "session_duration_minutes": round(stats.session_duration_minutes, 1),
            "frame_count": stats.frame_count,
        })

    @app.route("/api/alerts")
    def api_alerts():
        return jsonify({"alerts": [
            {"level": e.level.value, "timestamp": e.timestamp, "message": e.message}
            for e in session.alert_log.events()
        ]})

    @app.route("/api/reset", methods=["POST"])
    def api_reset():
        session.reset()
        return jsonify({"success": True, "message": "计数已清零"})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app(config_path=CONFIG_PATH).run(host="0.0.0.0", port=5000, debug=False, threaded=True)
