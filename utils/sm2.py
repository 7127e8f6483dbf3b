"""SM-2 derived scheduling math.

Pure functions only; persistence lives in ``utils.scheduler``.
"""
import math
from datetime import datetime, timedelta

from config import SchedulerSettings
from models.progress import Grade, Phase, StudyDirection, StudyProgress
from utils.clock import local_day

HARD_INTERVAL_FACTOR = 0.5
MEDIUM_INTERVAL_FACTOR = 0.85
EASY_INTERVAL_FACTOR = 1.3
HARD_EASE_PENALTY = 0.2
EASY_EASE_BONUS = 0.1
MIN_INTERVAL_DAYS = 1.0


def clamp_ease(ease: float, settings: SchedulerSettings) -> float:
    return min(settings.max_ease, max(settings.min_ease, ease))


def initial_progress(
    user_id: str,
    concept_id: int,
    direction: StudyDirection,
    now: datetime,
    settings: SchedulerSettings,
) -> StudyProgress:
    """State of a freshly kept concept: learning, due immediately."""
    return StudyProgress(
        user_id=user_id,
        concept_id=concept_id,
        direction=direction,
        phase=Phase.LEARNING,
        interval_days=0.0,
        ease_factor=clamp_ease(settings.default_ease, settings),
        due_at=now,
    )


def due_after(now: datetime, interval_days: float) -> datetime:
    """Intervals are scheduled in whole days, rounding up."""
    return now + timedelta(days=math.ceil(interval_days))


def next_state(
    progress: StudyProgress,
    grade: Grade,
    now: datetime,
    settings: SchedulerSettings,
) -> StudyProgress:
    """Compute the scheduling state that follows a graded review."""
    grade = Grade(grade)
    interval = max(0.0, progress.interval_days)
    ease = clamp_ease(progress.ease_factor, settings)
    lapses = progress.lapses
    phase = progress.phase

    if grade is Grade.HARD:
        lapses += 1
        interval = max(MIN_INTERVAL_DAYS, interval * HARD_INTERVAL_FACTOR)
        ease = clamp_ease(ease - HARD_EASE_PENALTY, settings)
        phase = Phase.LEARNING
    elif grade is Grade.MEDIUM:
        interval = max(MIN_INTERVAL_DAYS, interval * ease * MEDIUM_INTERVAL_FACTOR)
        if phase is Phase.LEARNING:
            if progress.successful_reviews > 0:
                phase = Phase.REVIEW
        else:
            phase = Phase.REVIEW
    else:
        interval = max(MIN_INTERVAL_DAYS, interval * ease * EASY_INTERVAL_FACTOR)
        ease = clamp_ease(ease + EASY_EASE_BONUS, settings)
        phase = Phase.REVIEW

    threshold = settings.mastery_threshold_days
    if phase is Phase.REVIEW and interval >= threshold:
        phase = Phase.MASTERED
    elif interval >= threshold:
        # phase/interval invariant: only mastered rows sit at or above the threshold
        interval = max(MIN_INTERVAL_DAYS, threshold - 1)

    mastered_at = progress.mastered_at
    if phase is Phase.MASTERED and progress.phase is not Phase.MASTERED:
        mastered_at = now
    elif phase is not Phase.MASTERED:
        mastered_at = None

    return progress.model_copy(
        update={
            "phase": phase,
            "interval_days": interval,
            "ease_factor": ease,
            "lapses": lapses,
            "due_at": due_after(now, interval),
            "review_count": progress.review_count + 1,
            "last_review_at": now,
            "last_review_day": local_day(now),
            "mastered_at": mastered_at,
        }
    )


def describe_due(due_at: datetime, now: datetime) -> str:
    """Human readable time until the next review."""
    seconds = int((due_at - now).total_seconds())
    if seconds <= 0:
        return "now"
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    weeks = days // 7
    months = days // 30
    if seconds < 60:
        return _plural(seconds, "second")
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    if weeks < 4:
        return _plural(weeks, "week")
    if months >= 1:
        return _plural(months, "month")
    return _plural(days, "day")


def _plural(count: int, unit: str) -> str:
    return f"in {count} {unit}{'' if count == 1 else 's'}"
