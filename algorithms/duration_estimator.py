from typing import Iterable


class DurationEstimator:
    """Estimate how long a custom workout takes from its exercise list."""

    MINUTES_PER_SET: int = 2
    MINIMUM_MINUTES: int = 10

    @classmethod
    def estimate(cls, exercises: Iterable) -> int:
        """Return estimated minutes for objects exposing ``sets`` and ``rest_time``.

        Every set counts ``MINUTES_PER_SET`` minutes and the rest between
        sets adds ``(sets - 1) * rest_time // 60`` minutes per exercise. The
        result never drops below ``MINIMUM_MINUTES``.
        """
        work = 0
        rest = 0
        for exercise in exercises:
            work += exercise.sets * cls.MINUTES_PER_SET
            rest += (exercise.sets - 1) * exercise.rest_time // 60
        return max(cls.MINIMUM_MINUTES, work + rest)
