from wallboard.detectors.alert_scheduler import AlertScheduler, AlertState
from wallboard.detectors.change_detector import ChangeReport, RecordRegistry

__all__ = [
    "AlertScheduler",
    "AlertState",
    "ChangeReport",
    "RecordRegistry",
]
