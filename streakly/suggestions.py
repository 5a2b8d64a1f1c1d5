"""
Suggestions - Rule-based task, habit and routine suggestions

Static heuristics keyed off time of day, completion rates and which kinds
of habits the user already tracks. Nothing here calls out to a model.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from streakly.models import Habit, Task
from streakly.scoring import calculate_completion_rate

logger = logging.getLogger(__name__)

# Habit suggestions, offered when none of the keywords appear in an existing habit name
HABIT_SUGGESTIONS = [
    {
        "keywords": ("water", "hydrat"),
        "id": "habit-water-1",
        "name": "Drink 8 Glasses of Water",
        "description": "Stay hydrated throughout the day for better focus and energy",
        "category": "health",
        "frequency": "daily",
        "difficulty": "easy",
        "reasoning": "Proper hydration improves cognitive function and productivity",
    },
    {
        "keywords": ("exercise", "workout"),
        "id": "habit-exercise-1",
        "name": "20-Minute Morning Exercise",
        "description": "Start your day with light exercise or stretching",
        "category": "fitness",
        "frequency": "daily",
        "difficulty": "medium",
        "reasoning": "Morning exercise boosts energy and mental clarity for the day",
    },
    {
        "keywords": ("read", "book"),
        "id": "habit-reading-1",
        "name": "Read for 15 Minutes",
        "description": "Read books, articles, or educational content daily",
        "category": "learning",
        "frequency": "daily",
        "difficulty": "easy",
        "reasoning": "Regular reading enhances knowledge and cognitive abilities",
    },
    {
        "keywords": ("meditat", "mindful"),
        "id": "habit-meditation-1",
        "name": "10-Minute Meditation",
        "description": "Practice mindfulness or meditation to reduce stress",
        "category": "wellness",
        "frequency": "daily",
        "difficulty": "medium",
        "reasoning": "Meditation improves focus, reduces stress, and enhances emotional well-being",
    },
]

OPTIMAL_SCHEDULE = [
    ("6:00-7:00 AM", "Morning Routine & Exercise",
     "Start with energy-boosting activities when willpower is highest"),
    ("7:00-9:00 AM", "Deep Work - High Priority Tasks",
     "Peak cognitive performance time for complex problem-solving"),
    ("9:00-12:00 PM", "Focused Work Sessions",
     "Maintain momentum with structured work blocks and short breaks"),
    ("12:00-1:00 PM", "Lunch & Mental Break",
     "Recharge with proper nutrition and mental rest"),
    ("1:00-3:00 PM", "Collaborative Work & Meetings",
     "Social energy peaks are ideal for teamwork and communication"),
    ("3:00-5:00 PM", "Administrative Tasks & Planning",
     "Handle routine tasks when decision fatigue starts to set in"),
    ("5:00-7:00 PM", "Personal Time & Light Activities",
     "Transition to personal life with relaxing or light physical activities"),
    ("7:00-9:00 PM", "Learning & Skill Development",
     "Evening is great for passive learning and creative activities"),
    ("9:00-10:00 PM", "Reflection & Tomorrow's Planning",
     "End the day with reflection and preparation for tomorrow"),
]


def generate_task_suggestions(tasks: List[Task], now: datetime) -> List[Dict[str, Any]]:
    """
    Suggest tasks for the current part of the day.

    Args:
        tasks: Current task snapshot
        now: Current local time

    Returns:
        List of task suggestion dicts
    """
    suggestions = []
    completed = sum(1 for t in tasks if t.completed)
    hour = now.hour

    if 6 <= hour < 12 and completed < 3:
        suggestions.append(
            {
                "id": "morning-focus-1",
                "title": "Deep Work Session",
                "description": "Tackle your most challenging task while your mind is fresh",
                "priority": "high",
                "category": "productivity",
                "estimated_time": 90,
                "reasoning": "Morning hours are optimal for complex cognitive tasks",
            }
        )
    elif 12 <= hour < 17:
        suggestions.append(
            {
                "id": "afternoon-org-1",
                "title": "Inbox Zero Challenge",
                "description": "Clear and organize your email inbox",
                "priority": "medium",
                "category": "organization",
                "estimated_time": 30,
                "reasoning": "Afternoon energy is perfect for administrative tasks",
            }
        )
    elif 17 <= hour < 22:
        suggestions.append(
            {
                "id": "evening-reflect-1",
                "title": "Daily Review & Planning",
                "description": "Review today's accomplishments and plan tomorrow",
                "priority": "medium",
                "category": "planning",
                "estimated_time": 15,
                "reasoning": "Evening reflection helps consolidate learning and prepare for tomorrow",
            }
        )

    if tasks and completed / len(tasks) < 0.5:
        suggestions.append(
            {
                "id": "quick-win-1",
                "title": "Quick Win Task",
                "description": "Complete a simple 5-minute task to build momentum",
                "priority": "low",
                "category": "motivation",
                "estimated_time": 5,
                "reasoning": "Small wins create positive momentum for larger tasks",
            }
        )

    return suggestions


def generate_habit_suggestions(habits: List[Habit]) -> List[Dict[str, Any]]:
    """Suggest common habits the user does not track yet."""
    names = [h.name.lower() for h in habits]
    suggestions = []
    for suggestion in HABIT_SUGGESTIONS:
        keywords = suggestion["keywords"]
        if any(keyword in name for name in names for keyword in keywords):
            continue
        suggestions.append({k: v for k, v in suggestion.items() if k != "keywords"})
    return suggestions


def generate_optimization_suggestions(
    tasks: List[Task], habits: List[Habit], productivity_score: int
) -> List[Dict[str, Any]]:
    """
    Suggest routine changes based on score, streaks and completion rate.

    Rules:
    - productivity score below 60: schedule optimization
    - more than half the habits under a 7-day streak: habit stacking
    - task completion below 70%: goal setting
    """
    suggestions = []

    if productivity_score < 60:
        suggestions.append(
            {
                "id": "opt-schedule-1",
                "type": "schedule",
                "title": "Optimize Your Daily Schedule",
                "description": "Your productivity score suggests room for improvement in time management",
                "impact": "high",
                "action_steps": [
                    "Time-block your most important tasks",
                    "Identify and eliminate time wasters",
                    "Set specific work hours and break times",
                    "Use the Pomodoro Technique for focused work",
                ],
            }
        )

    low_streaks = sum(1 for h in habits if h.streak < 7)
    if low_streaks > len(habits) * 0.5:
        suggestions.append(
            {
                "id": "opt-habit-1",
                "type": "habit",
                "title": "Implement Habit Stacking",
                "description": "Many habits have low streaks. Try linking new habits to existing routines",
                "impact": "medium",
                "action_steps": [
                    "Choose one existing strong routine",
                    "Attach a new small habit immediately after",
                    "Start with just 2-3 minutes per habit",
                    "Track completion consistently",
                ],
            }
        )

    if calculate_completion_rate(tasks) < 70:
        suggestions.append(
            {
                "id": "opt-goal-1",
                "type": "goal",
                "title": "Refine Your Goal Setting",
                "description": "Your task completion rate could be improved with better goal setting",
                "impact": "high",
                "action_steps": [
                    "Break large tasks into smaller, actionable steps",
                    "Set deadlines for each task",
                    "Prioritize tasks using the Eisenhower Matrix",
                    "Review and adjust goals weekly",
                ],
            }
        )

    return suggestions


def optimal_schedule() -> List[Dict[str, str]]:
    return [
        {"time_slot": slot, "activity": activity, "reasoning": reasoning}
        for slot, activity, reasoning in OPTIMAL_SCHEDULE
    ]


__all__ = [
    "generate_task_suggestions",
    "generate_habit_suggestions",
    "generate_optimization_suggestions",
    "optimal_schedule",
]
