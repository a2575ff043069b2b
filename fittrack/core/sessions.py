"""Session Grouping - Pure functions over workout session set timings.

All functions are pure: same input always produces same output, no side effects.
"""

from .dates import to_day_key
from .models import ExerciseSetPoint, GroupedExercise, SessionRecord, SetTiming


def exercise_key(timing: SetTiming) -> str:
    """Name used to group a set: its exercise name, else an id placeholder.

    Never the position in the list, since server-side set lists can be
    reordered or sparse.
    """
    if timing.exercise_name and timing.exercise_name.strip():
        return timing.exercise_name
    exercise_id = timing.exercise_id if timing.exercise_id is not None else "?"
    return f"Exercise {exercise_id}"


def group_session_exercises(set_timings: list[SetTiming]) -> list[GroupedExercise]:
    """Group a session's sets by exercise.

    Groups keep the order in which each exercise first appears. Sets within
    a group are sorted by set_index; ties keep their input order.

    Args:
        set_timings: Flat list of set timings for one session

    Returns:
        List of GroupedExercise
    """
    groups: dict[str, list[SetTiming]] = {}
    for timing in set_timings:
        groups.setdefault(exercise_key(timing), []).append(timing)

    return [
        GroupedExercise(
            exercise_name=name,
            sets=sorted(sets, key=lambda s: s.set_index),
        )
        for name, sets in groups.items()
    ]


def group_sessions_by_day(sessions: list[SessionRecord]) -> dict[str, list[SessionRecord]]:
    """Bucket sessions by the local day of their start time, newest day first."""
    grouped: dict[str, list[SessionRecord]] = {}
    for session in sessions:
        key = to_day_key(session.start_time)
        if not key:
            continue
        grouped.setdefault(key, []).append(session)
    return {key: grouped[key] for key in sorted(grouped, reverse=True)}


def exercise_history(sessions: list[SessionRecord], exercise_name: str) -> list[ExerciseSetPoint]:
    """Flatten every set of one exercise across sessions, oldest first.

    Args:
        sessions: Sessions with their set timings
        exercise_name: Grouping name of the exercise to collect

    Returns:
        List of ExerciseSetPoint sorted by date
    """
    points: list[ExerciseSetPoint] = []
    for session in sessions:
        for timing in session.set_timings:
            if exercise_key(timing).strip() != exercise_name.strip():
                continue
            weight = timing.weight or 0.0
            reps = timing.reps or 0.0
            when = timing.end_time or session.start_time
            points.append(
                ExerciseSetPoint(
                    date=str(when) if when is not None else "",
                    weight=weight,
                    reps=reps,
                    volume=weight * reps,
                    day_number=session.day_number or 0,
                    set_number=timing.set_index + 1,
                )
            )
    return sorted(points, key=lambda p: p.date)
