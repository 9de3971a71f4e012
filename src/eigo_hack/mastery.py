"""Per-question mastery levels and review scheduling.

A stepped variant of SM-2: every correct answer moves a question one level up
(new -> learning -> reviewing -> mastered) and stretches its review interval
geometrically; a miss moves it one level down and makes it due again by tomorrow.
Three correct answers in a row reach ``mastered``, which drops the question out
of review entirely.
"""
from dataclasses import replace
from datetime import date, timedelta

from eigo_hack.models import MASTERY_LEVELS, MasteryRecord

FIRST_INTERVAL = 1
INTERVAL_GROWTH = 2.5
RELEARN_INTERVAL = 1


def _as_date(value) -> date:
    if isinstance(value, date):
        return value
    # Strip any time-of-day part so a review due "today" is never missed.
    return date.fromisoformat(str(value)[:10])


def new_record(today: date) -> MasteryRecord:
    return MasteryRecord(level="new", next_review_date=today.isoformat())


def is_due(record: MasteryRecord, as_of: date) -> bool:
    if record.level == "mastered":
        return False
    if not record.next_review_date:
        return True
    return _as_date(record.next_review_date) <= _as_date(as_of)


def questions_due_for_review(mastery: dict, as_of: date) -> set[int]:
    return {qid for qid, record in mastery.items() if is_due(record, as_of)}


def count_due(mastery: dict, as_of: date) -> int:
    return len(questions_due_for_review(mastery, as_of))


def next_record(record: MasteryRecord, was_correct: bool, today: date) -> MasteryRecord:
    """Calculate the record that follows one answer."""
    step = MASTERY_LEVELS.index(record.level)
    current_due = _as_date(record.next_review_date) if record.next_review_date else today

    if was_correct:
        interval = FIRST_INTERVAL if record.interval <= 0 else round(record.interval * INTERVAL_GROWTH)
        level = MASTERY_LEVELS[min(step + 1, len(MASTERY_LEVELS) - 1)]
        next_review = max(current_due, today + timedelta(days=interval))
        return replace(
            record,
            level=level,
            interval=interval,
            streak=record.streak + 1,
            next_review_date=next_review.isoformat(),
        )

    # Incorrect: step back, never below "new", and review again soon.
    level = MASTERY_LEVELS[max(step - 1, 0)]
    next_review = min(current_due, today + timedelta(days=RELEARN_INTERVAL))
    return replace(record, level=level, interval=0, streak=0, next_review_date=next_review.isoformat())


def update_mastery(mastery: dict, question_id: int, was_correct: bool, today: date) -> MasteryRecord:
    """Apply one answer to ``mastery`` in place and return the updated record."""
    record = mastery.get(question_id) or new_record(today)
    updated = next_record(record, was_correct, today)
    mastery[question_id] = updated
    return updated


def record_session_mastery(mastery: dict, answers: dict, today: date) -> dict:
    """Return a copy of ``mastery`` with every answered question updated."""
    updated = dict(mastery)
    for question_id, was_correct in answers.items():
        update_mastery(updated, question_id, was_correct, today)
    return updated
