# tests/test_session.py
import random
from datetime import date
from unittest.mock import patch

import pytest

from eigo_hack.catalog import get_question
from eigo_hack.models import CategoryStat, ChallengeEntry, DailyMission, MasteryRecord, MissionState, Stats, UserInfo
from eigo_hack.session import (
    PlaySession, SessionOutcome, finish_session, login, logout, notification_delay,
    report_challenge, reset_progress, start_session, update_incorrect,
)
from eigo_hack.selection import NoticeKind
from eigo_hack.store import (
    load_incorrect, load_mastery, load_mission_state, load_stats, load_user_info,
    save_incorrect, save_mastery, save_mission_state, save_stats,
)

TODAY = date(2024, 5, 10)


def _play(db_path, ids, correct_ids, category="未来", mode="test"):
    questions = [get_question(db_path, i) for i in ids]
    session = PlaySession(mode, category, questions)
    for q in questions:
        answer = q.answer if q.id in correct_ids else "zzz"
        session.record_answer(q, answer, elapsed_seconds=0)
    return session


def test_record_answer_tracks_points(seeded_db):
    session = _play(seeded_db, [1, 2, 3], correct_ids={1, 2})
    assert session.answers == {1: True, 2: True, 3: False}
    assert session.raw_score == 40


def test_start_session_for_category(seeded_db, rng):
    session = start_session(seeded_db, "select", "未来", today=TODAY, rng=rng)
    assert [q.id for q in session.questions] == [1]
    assert session.notice is None


def test_start_review_with_nothing_due(seeded_db):
    session = start_session(seeded_db, "test", "review", today=TODAY)
    assert session.questions == []
    assert session.notice is NoticeKind.NO_REVIEW_DUE
    assert session.message


def test_start_review_uses_stored_mastery(seeded_db, rng):
    save_mastery(seeded_db, {
        4: MasteryRecord("learning", "2024-05-09"),
        5: MasteryRecord("mastered", "2024-05-01"),
        6: MasteryRecord("learning", "2024-06-01"),
    })
    session = start_session(seeded_db, "test", "review", today=TODAY, rng=rng)
    assert [q.id for q in session.questions] == [4]


def test_start_weakness_uses_incorrect_history(seeded_db, rng):
    finish_session(seeded_db, _play(seeded_db, [7, 8], correct_ids=set(), category="不定詞"), today=TODAY, rng=rng)
    session = start_session(seeded_db, "test", "weakness", today=TODAY, rng=rng)
    assert sorted(q.id for q in session.questions) == [7, 8]


def test_start_challenge_replays_explicit_ids(seeded_db):
    challenge = ChallengeEntry("c-1", "select", "未来", [3, 7, 99], 200, "Aoi")
    session = start_session(seeded_db, "input", "all", challenge=challenge, today=TODAY)
    assert [q.id for q in session.questions] == [3, 7]
    assert session.mode == "select"
    assert session.challenge is challenge


def test_finish_session_updates_everything(seeded_db, rng):
    session = _play(seeded_db, [1, 2, 3], correct_ids={1, 2})
    outcome = finish_session(seeded_db, session, today=TODAY, rng=rng)

    assert outcome.result.correct_answers == 2
    assert outcome.result.total_questions == 3
    # 40 * (2/3)^2 = 17.8
    assert outcome.result.score == 18

    stats = load_stats(seeded_db)
    assert stats.category_stats["未来"] == CategoryStat(correct=2, total=3)

    assert [item.id for item in load_incorrect(seeded_db)] == [3]

    mastery = load_mastery(seeded_db)
    assert mastery[1].level == "learning"
    assert mastery[3].level == "new"

    missions = {m.id: m for m in load_mission_state(seeded_db).missions}
    assert missions["total_1"].progress == 3
    assert missions["cat_generic_1"].progress == 2
    assert outcome.missions == load_mission_state(seeded_db)


def test_finish_session_grants_exp_and_levels_up(seeded_db):
    save_stats(seeded_db, Stats(level=1, exp=90))
    save_mission_state(seeded_db, MissionState(TODAY.isoformat(), [
        DailyMission("total_1", "answer_total", "d", 3, 50),
    ]))
    outcome = finish_session(seeded_db, _play(seeded_db, [1, 2, 3], correct_ids=set()), today=TODAY)
    assert outcome.exp_gained == 50
    assert outcome.did_level_up
    assert outcome.previous_level == 1
    assert outcome.stats.level == 2
    assert outcome.stats.exp == 40
    assert load_stats(seeded_db).level == 2
    assert [m.id for m in outcome.newly_completed] == ["total_1"]


def test_completed_mission_never_regrants(seeded_db):
    save_mission_state(seeded_db, MissionState(TODAY.isoformat(), [
        DailyMission("total_1", "answer_total", "d", 3, 50),
    ]))
    finish_session(seeded_db, _play(seeded_db, [1, 2, 3], correct_ids=set()), today=TODAY)
    second = finish_session(seeded_db, _play(seeded_db, [1, 2, 3], correct_ids=set()), today=TODAY)
    assert second.exp_gained == 0
    assert second.newly_completed == []
    assert load_stats(seeded_db).exp == 50
    assert load_mission_state(seeded_db).missions[0].progress == 3


def test_weakness_session_clears_corrected_questions(seeded_db, rng):
    finish_session(seeded_db, _play(seeded_db, [1, 2], correct_ids=set()), today=TODAY, rng=rng)
    finish_session(seeded_db, _play(seeded_db, [1, 2], correct_ids={1}, category="weakness"), today=TODAY, rng=rng)
    assert [item.id for item in load_incorrect(seeded_db)] == [2]


def test_normal_session_keeps_history_of_later_correct_answers(seeded_db, rng):
    finish_session(seeded_db, _play(seeded_db, [1], correct_ids=set()), today=TODAY, rng=rng)
    finish_session(seeded_db, _play(seeded_db, [1], correct_ids={1}), today=TODAY, rng=rng)
    assert [item.id for item in load_incorrect(seeded_db)] == [1]


def test_update_incorrect_deduplicates(seeded_db):
    q = get_question(seeded_db, 1)
    items = update_incorrect([], [q], {1: False}, "未来")
    items = update_incorrect(items, [q], {1: False}, "未来")
    assert len(items) == 1
    assert items[0].answer == q.answer


def test_finish_session_failure_leaves_store_untouched(seeded_db, rng):
    save_stats(seeded_db, Stats(level=1, exp=10))
    session = _play(seeded_db, [1, 2], correct_ids={1, 2})
    with patch("eigo_hack.session.apply_exp", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            finish_session(seeded_db, session, today=TODAY, rng=rng)
    assert load_stats(seeded_db) == Stats(level=1, exp=10)
    assert load_mastery(seeded_db) == {}
    assert load_mission_state(seeded_db) is None


def test_notification_delay():
    base = dict(result=None, stats=Stats(level=2), previous_level=1, missions=None, exp_gained=100, levels_gained=1)
    assert notification_delay(SessionOutcome(newly_completed=["m"], did_level_up=True, **base)) == 2.5
    assert notification_delay(SessionOutcome(newly_completed=[], did_level_up=True, **base)) == 0.5
    assert notification_delay(SessionOutcome(newly_completed=["m"], did_level_up=False, **base)) is None


class _RecordingClient:
    def __init__(self):
        self.calls = []

    def notify_outcome(self, challenge_id, status, score=None):
        self.calls.append((challenge_id, status, score))
        return True


def test_report_challenge(seeded_db, rng):
    session = _play(seeded_db, [3, 7], correct_ids={3, 7}, mode="select")
    session.challenge = ChallengeEntry("c-9", "select", "未来", [3, 7])
    outcome = finish_session(seeded_db, session, today=TODAY, rng=rng)
    client = _RecordingClient()
    assert report_challenge(client, session, outcome)
    assert client.calls == [("c-9", "completed", outcome.result.score)]


def test_report_challenge_without_challenge(seeded_db, rng):
    session = _play(seeded_db, [1], correct_ids={1})
    outcome = finish_session(seeded_db, session, today=TODAY, rng=rng)
    client = _RecordingClient()
    assert not report_challenge(client, session, outcome)
    assert client.calls == []


def test_login_logout_and_reset(seeded_db):
    user = UserInfo("2", "1", "15")
    state = login(seeded_db, user, today=TODAY, rng=random.Random(0))
    assert state.date == "2024-05-10"
    assert load_user_info(seeded_db) == user

    save_incorrect(seeded_db, [])
    save_stats(seeded_db, Stats(level=5, exp=3))
    reset_progress(seeded_db)
    assert load_stats(seeded_db) == Stats()
    assert load_mission_state(seeded_db) is None
    assert load_user_info(seeded_db) == user

    logout(seeded_db)
    assert load_user_info(seeded_db) is None
