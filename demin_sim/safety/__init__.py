from demin_sim.safety.alarms import LevelAlarm
from demin_sim.safety.exhaustion import ExhaustionDetector
from demin_sim.safety.overflow import OverflowGuard, stream_loads

__all__ = ["ExhaustionDetector", "LevelAlarm", "OverflowGuard", "stream_loads"]
