from columnar_core.cancellation import CancellationToken
from columnar_core.resize import ResizeCallback, ResizeDetector, ResizeService
from columnar_core.scheduler import CooperativeScheduler, ManualClock, ScheduledTask

__all__ = [
    "CancellationToken",
    "CooperativeScheduler",
    "ManualClock",
    "ResizeCallback",
    "ResizeDetector",
    "ResizeService",
    "ScheduledTask",
]
