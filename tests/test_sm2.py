from datetime import datetime, timedelta, timezone

import pytest

from config import SchedulerSettings
from models.progress import Grade, Phase, StudyDirection
from utils.sm2 import describe_due, initial_progress, next_state

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
SETTINGS = SchedulerSettings()


def fresh():
    return initial_progress("u1", 1, StudyDirection.FRONT_TO_BACK, NOW, SETTINGS)


def grade_many(progress, grade, times):
    history = []
    for _ in range(times):
        progress = next_state(progress, grade, NOW, SETTINGS)
        history.append(progress)
    return history


def test_initial_progress_is_learning_and_due_now():
    progress = fresh()
    assert progress.phase is Phase.LEARNING
    assert progress.interval_days == 0
    assert progress.ease_factor == 2.5
    assert progress.due_at == NOW


def test_four_easy_grades_reach_mastery_on_the_fourth():
    history = grade_many(fresh(), Grade.EASY, 4)

    intervals = [step.interval_days for step in history]
    assert intervals == pytest.approx([1.0, 3.25, 10.5625, 34.328125])
    assert [step.phase for step in history] == [Phase.REVIEW, Phase.REVIEW, Phase.REVIEW, Phase.MASTERED]
    assert history[-1].mastered_at == NOW
    assert history[-1].review_count == 4


def test_easy_grades_never_shrink_the_interval():
    history = grade_many(fresh(), Grade.EASY, 3)
    intervals = [step.interval_days for step in history]
    assert intervals == sorted(intervals)


def test_hard_grades_keep_interval_and_ease_floors():
    history = grade_many(fresh(), Grade.HARD, 3)
    for step in history:
        assert step.interval_days >= 1
        assert step.ease_factor >= 1.3
        assert step.phase is Phase.LEARNING
    assert history[-1].lapses == 3
    assert history[-1].ease_factor == pytest.approx(1.9)

    floor = grade_many(history[-1], Grade.HARD, 5)[-1]
    assert floor.ease_factor == pytest.approx(1.3)
    assert floor.interval_days == 1


def test_hard_drops_review_back_to_learning():
    review = fresh().model_copy(update={"phase": Phase.REVIEW, "interval_days": 8.0, "review_count": 3})
    after = next_state(review, Grade.HARD, NOW, SETTINGS)
    assert after.phase is Phase.LEARNING
    assert after.interval_days == 4.0
    assert after.ease_factor == pytest.approx(2.3)


def test_medium_needs_a_prior_success_to_leave_learning():
    first = next_state(fresh(), Grade.MEDIUM, NOW, SETTINGS)
    assert first.phase is Phase.LEARNING
    assert first.interval_days == 1
    assert first.ease_factor == 2.5

    second = next_state(first, Grade.MEDIUM, NOW, SETTINGS)
    assert second.phase is Phase.REVIEW
    assert second.interval_days == pytest.approx(2.125)


def test_medium_after_only_lapses_stays_in_learning():
    lapsed = grade_many(fresh(), Grade.HARD, 2)[-1]
    after = next_state(lapsed, Grade.MEDIUM, NOW, SETTINGS)
    assert after.phase is Phase.LEARNING


def test_medium_crossing_threshold_masters_review_concept():
    review = fresh().model_copy(update={"phase": Phase.REVIEW, "interval_days": 12.0, "review_count": 4})
    after = next_state(review, Grade.MEDIUM, NOW, SETTINGS)
    assert after.interval_days == pytest.approx(25.5)
    assert after.phase is Phase.MASTERED


def test_hard_on_mastered_concept_leaves_mastery_below_threshold():
    mastered = fresh().model_copy(
        update={"phase": Phase.MASTERED, "interval_days": 60.0, "review_count": 6, "mastered_at": NOW}
    )
    after = next_state(mastered, Grade.HARD, NOW, SETTINGS)
    assert after.phase is Phase.LEARNING
    assert after.interval_days < SETTINGS.mastery_threshold_days
    assert after.mastered_at is None


def test_due_time_rounds_interval_up_to_whole_days():
    review = fresh().model_copy(update={"phase": Phase.REVIEW, "interval_days": 1.0, "review_count": 1})
    after = next_state(review, Grade.EASY, NOW, SETTINGS)
    assert after.interval_days == pytest.approx(3.25)
    assert after.due_at == NOW + timedelta(days=4)


def test_custom_threshold_is_respected():
    settings = SchedulerSettings(mastery_threshold_days=5)
    history = []
    progress = fresh()
    for _ in range(2):
        progress = next_state(progress, Grade.EASY, NOW, settings)
        history.append(progress.phase)
    assert history == [Phase.REVIEW, Phase.REVIEW]
    progress = next_state(progress, Grade.EASY, NOW, settings)
    assert progress.phase is Phase.MASTERED


@pytest.mark.parametrize(
    "delta, label",
    [
        (timedelta(0), "now"),
        (timedelta(seconds=30), "in 30 seconds"),
        (timedelta(minutes=1), "in 1 minute"),
        (timedelta(hours=5), "in 5 hours"),
        (timedelta(days=3), "in 3 days"),
        (timedelta(days=14), "in 2 weeks"),
        (timedelta(days=65), "in 2 months"),
    ],
)
def test_describe_due(delta, label):
    assert describe_due(NOW + delta, NOW) == label


def test_capped_interval_never_drops_below_one_day():
    settings = SchedulerSettings(mastery_threshold_days=1.5)
    mastered = fresh().model_copy(
        update={"phase": Phase.MASTERED, "interval_days": 10.0, "review_count": 5, "mastered_at": NOW}
    )

    after = next_state(mastered, Grade.HARD, NOW, settings)

    assert after.phase is Phase.LEARNING
    assert after.interval_days == 1
    assert after.due_at == NOW + timedelta(days=1)
