from stats_service import StatisticsService


class GamificationService:
    """Award badges for progress milestones."""

    WEEKLY_TARGET = 5
    STREAK_TARGET = 7
    MINUTES_TARGET = 600

    def __init__(self, statistics: StatisticsService) -> None:
        self.statistics = statistics

    def achievements(self) -> list[dict[str, object]]:
        stats = self.statistics
        return [
            {
                "name": "First Workout",
                "description": "Complete your first workout",
                "unlocked": stats.total_workouts > 0,
            },
            {
                "name": "Week Warrior",
                "description": f"Complete {self.WEEKLY_TARGET} workouts in a week",
                "unlocked": stats.weekly_stats.workouts_completed >= self.WEEKLY_TARGET,
            },
            {
                "name": "Streak Master",
                "description": f"Maintain a {self.STREAK_TARGET}-day streak",
                "unlocked": stats.current_streak >= self.STREAK_TARGET,
            },
            {
                "name": "Time Champion",
                "description": f"Complete {self.MINUTES_TARGET // 60} hours of workouts",
                "unlocked": stats.total_workout_time >= self.MINUTES_TARGET,
            },
        ]

    def unlocked(self) -> list[str]:
        return [a["name"] for a in self.achievements() if a["unlocked"]]
