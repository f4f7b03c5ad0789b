from .calendar_tools import CalendarTools
from .duration_estimator import DurationEstimator
from .weight_converter import WeightConverter

__all__ = ["CalendarTools", "DurationEstimator", "WeightConverter"]
