"""困倦分析命令行入口：回放录制的关键点序列、校准阈值、导出默认配置"""

import argparse
import json
import sys

from config import DEFAULTS, build_analyzer_config, load_config, save_config
from detectors.drowsiness_analyzer import DrowsinessAnalyzer
from evaluators.alert_log import AlertLog
from evaluators.session_stats import SessionHistory

_LEVEL_NAMES = {"normal": "正常", "tired": "疲劳", "drowsy": "困倦"}


def parse_landmarks(raw):
    """JSON 中的关键点 {"33": [x, y], ...} -> {33: (x, y)}；null 表示无人脸"""
    if raw is None:
        return None
    return {int(index): (float(point[0]), float(point[1])) for index, point in raw.items()}


def read_frames(path):
    """逐行读取 JSON Lines 录制文件，产出 (timestamp, landmarks)"""
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"第 {line_no} 行不是合法 JSON: {e}") from e
            yield float(record.get("timestamp", 0.0)), parse_landmarks(record.get("landmarks"))


class ReplaySession:
    """用录制时间戳驱动分析器时钟，回放一段关键点序列。"""

    def __init__(self, config):
        self._now = 0.0
        self.analyzer = DrowsinessAnalyzer(
            config=build_analyzer_config(config),
            provider_factory=None,
            clock=lambda: self._now,
        )
        self.history = SessionHistory()
        self.alert_log = AlertLog()

    def run(self, frames, output=None):
        self.analyzer.initialize()
        for timestamp, landmarks in frames:
            self._now = timestamp
            result = self.analyzer.analyze_frame(landmarks)
            if result is None:
                print(f"[{timestamp:>10.0f}] 未检测到人脸")
                record = {"timestamp": timestamp, "face_detected": False}
            else:
                self.history.record(result, timestamp)
                self.alert_log.update(result.alert_level, timestamp)
                m = result.metrics
                print(
                    f"[{timestamp:>10.0f}] EAR={m.avg_ear:.3f} 闭眼帧={m.closed_eye_frames} "
                    f"哈欠帧={m.yawn_frames} 眨眼频率={m.blink_rate} "
                    f"状态={_LEVEL_NAMES[result.alert_level.value]} 置信度={result.confidence:.2f}"
                )
                record = {"timestamp": timestamp, "face_detected": True, **result.to_dict()}

            if output is not None:
                output.write(json.dumps(record, ensure_ascii=False) + "\n")

        self.analyzer.cleanup()

    def print_summary(self):
        stats = self.history.stats()
        print("=" * 50)
        print(f"分析帧数: {stats.frame_count}")
        print(f"平均 EAR: {stats.avg_ear:.3f}")
        print(f"警报帧数: {stats.total_alerts}")
        print(f"困倦占比: {stats.drowsy_percentage:.1f}%")
        print(f"会话时长: {stats.session_duration_minutes:.1f} 分钟")
        for event in self.alert_log.events():
            print(f"  [{event.timestamp:.0f}] {event.message}")


def cmd_replay(args):
    config = load_config(args.config)
    session = ReplaySession(config)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as out:
            session.run(read_frames(args.frames), output=out)
    else:
        session.run(read_frames(args.frames))

    session.print_summary()
    return 0


def cmd_calibrate(args):
    from calibration.threshold_calibrator import ThresholdCalibrator

    calibrator = ThresholdCalibrator()
    calibrator.load_dataset(args.dataset)
    result = calibrator.optimize_thresholds()
    calibrator.export_config(args.output, base_config=load_config(args.config))

    print(f"EAR 阈值: {result.optimal_ear_threshold:.3f} (准确率 {result.ear_accuracy:.2%}, 召回率 {result.ear_recall:.2%})")
    print(f"MAR 阈值: {result.optimal_mar_threshold:.3f} (准确率 {result.mar_accuracy:.2%}, 召回率 {result.mar_recall:.2%})")
    print(f"配置已导出到 {args.output}")
    return 0


def cmd_defaults(args):
    save_config(DEFAULTS, args.output)
    print(f"默认配置已写入 {args.output}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="驾驶员困倦分析")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="回放 JSON Lines 关键点录制文件")
    replay.add_argument("frames", help="录制文件，每行 {\"timestamp\": ms, \"landmarks\": {...} | null}")
    replay.add_argument("--config", type=str, default=None, help="JSON 阈值配置文件路径")
    replay.add_argument("--output", type=str, default=None, help="逐帧结果输出路径 (JSON Lines)")
    replay.set_defaults(func=cmd_replay)

    calibrate = sub.add_parser("calibrate", help="用带标签的图像目录校准 EAR/MAR 阈值")
    calibrate.add_argument("dataset", help="数据集根目录，包含 open/ closed/ yawn/ no_yawn/ 子目录")
    calibrate.add_argument("--config", type=str, default=None, help="其余参数的来源配置文件")
    calibrate.add_argument("--output", type=str, default="config.json", help="输出路径")
    calibrate.set_defaults(func=cmd_calibrate)

    defaults = sub.add_parser("defaults", help="导出默认配置文件")
    defaults.add_argument("--output", type=str, default="config.json", help="输出路径")
    defaults.set_defaults(func=cmd_defaults)

    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (OSError, ValueError) as e:
        print(f"错误: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
