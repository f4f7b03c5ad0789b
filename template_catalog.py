from typing import List

from models import Exercise, WorkoutDifficulty, WorkoutTemplate


_CATALOG = [
    (
        "Zen Strength",
        "Full body strength training",
        [("Push-ups", 3, 12, 60), ("Squats", 3, 15, 60), ("Plank", 3, 30, 45), ("Lunges", 3, 10, 60)],
        30,
        WorkoutDifficulty.BEGINNER,
    ),
    (
        "Core Zen",
        "Focus on core strength",
        [("Crunches", 3, 20, 45), ("Russian Twists", 3, 15, 45), ("Leg Raises", 3, 12, 60), ("Mountain Climbers", 3, 20, 45)],
        25,
        WorkoutDifficulty.INTERMEDIATE,
    ),
    (
        "Zen Cardio",
        "High intensity cardio",
        [("Burpees", 3, 10, 90), ("Jumping Jacks", 3, 30, 60), ("High Knees", 3, 20, 60), ("Mountain Climbers", 3, 25, 60)],
        35,
        WorkoutDifficulty.ADVANCED,
    ),
    (
        "Upper Body Zen",
        "Focus on arms and chest",
        [("Push-ups", 4, 15, 60), ("Diamond Push-ups", 3, 8, 75), ("Tricep Dips", 3, 12, 60), ("Arm Circles", 3, 20, 45)],
        28,
        WorkoutDifficulty.INTERMEDIATE,
    ),
    (
        "Lower Body Zen",
        "Focus on legs and glutes",
        [("Squats", 4, 20, 60), ("Lunges", 3, 12, 60), ("Wall Sit", 3, 45, 60), ("Calf Raises", 3, 25, 45)],
        32,
        WorkoutDifficulty.BEGINNER,
    ),
    (
        "Zen HIIT",
        "High intensity interval training",
        [("Burpees", 4, 15, 90), ("Mountain Climbers", 4, 30, 60), ("Jump Squats", 3, 20, 75), ("Plank Jacks", 3, 25, 60)],
        40,
        WorkoutDifficulty.ADVANCED,
    ),
    (
        "Morning Zen",
        "Quick morning energizer",
        [("Sun Salutation", 3, 5, 30), ("Jumping Jacks", 2, 20, 45), ("Arm Circles", 2, 15, 30), ("Deep Breathing", 2, 10, 30)],
        15,
        WorkoutDifficulty.BEGINNER,
    ),
    (
        "Evening Zen",
        "Relaxing evening routine",
        [("Gentle Stretches", 3, 10, 30), ("Cat-Cow Stretch", 2, 8, 30), ("Child's Pose", 2, 30, 45), ("Meditation", 1, 300, 0)],
        20,
        WorkoutDifficulty.BEGINNER,
    ),
]


def default_templates() -> List[WorkoutTemplate]:
    """Build the built-in catalog with fresh identities."""
    return [
        WorkoutTemplate(
            name=name,
            description=description,
            exercises=[
                Exercise(name=ex_name, sets=sets, reps=reps, rest_time=rest)
                for ex_name, sets, reps, rest in exercises
            ],
            estimated_duration=minutes,
            difficulty=difficulty,
        )
        for name, description, exercises, minutes, difficulty in _CATALOG
    ]
