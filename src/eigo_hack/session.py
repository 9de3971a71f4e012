"""Play session lifecycle: start, answer, finish, plus login and reset.

``finish_session`` is the single write-back point after a game. It reads the
learner's slots, applies the result to every component and writes everything
back in one transaction, so a failure part way leaves the store untouched.
"""
import random
from dataclasses import dataclass, field, replace
from datetime import date

from loguru import logger

from eigo_hack.catalog import all_questions, check_answer
from eigo_hack.challenges import ChallengeClient
from eigo_hack.config import get_settings
from eigo_hack.db import transaction
from eigo_hack.leveling import apply_exp
from eigo_hack.mastery import questions_due_for_review, record_session_mastery
from eigo_hack.missions import apply_result, ensure_daily_missions, refresh_mission_state
from eigo_hack.models import CategoryStat, ChallengeEntry, GameResult, IncorrectQuestion, MissionState, Stats, UserInfo
from eigo_hack.scoring import answer_points, compute_result
from eigo_hack.selection import NOTICE_MESSAGES, NoticeKind, select_questions
from eigo_hack.store import (
    INCORRECT, MASTERY, MISSIONS, STATS, USER_INFO,
    clear_slots, decode_incorrect, decode_mastery, decode_missions, decode_stats,
    encode_incorrect, encode_mastery, load_incorrect, load_mastery, read_slot,
    save_user_info, write_slot,
)

MISSION_NOTICE_DELAY = 2.5
LEVEL_UP_DELAY = 0.5


@dataclass
class PlaySession:
    mode: str
    category: str
    questions: list
    challenge: ChallengeEntry | None = None
    notice: NoticeKind | None = None
    answers: dict = field(default_factory=dict)
    raw_score: int = 0

    @property
    def message(self) -> str | None:
        return NOTICE_MESSAGES[self.notice] if self.notice else None

    def record_answer(self, question, user_answer: str, elapsed_seconds: float) -> bool:
        is_correct = check_answer(question, user_answer)
        self.answers[question.id] = is_correct
        self.raw_score += answer_points(is_correct, elapsed_seconds)
        return is_correct


@dataclass
class SessionOutcome:
    result: GameResult
    stats: Stats
    previous_level: int
    missions: MissionState
    newly_completed: list
    exp_gained: int
    did_level_up: bool
    levels_gained: int


def notification_delay(outcome: SessionOutcome) -> float | None:
    """Seconds to wait before showing the level-up notice, or None when there is none."""
    if not outcome.did_level_up:
        return None
    return MISSION_NOTICE_DELAY if outcome.newly_completed else LEVEL_UP_DELAY


def start_session(
    db_path: str,
    mode: str,
    category: str,
    challenge: ChallengeEntry | None = None,
    today: date | None = None,
    rng: random.Random | None = None,
) -> PlaySession:
    """Build a session; an empty one carries a notice instead of questions."""
    today = today or date.today()
    if challenge is not None:
        mode, category = challenge.mode, challenge.category
    selection = select_questions(
        all_questions(db_path),
        mode,
        category,
        challenge.question_ids if challenge is not None else None,
        due_ids=questions_due_for_review(load_mastery(db_path), today) if category == "review" else frozenset(),
        incorrect_ids={q.id for q in load_incorrect(db_path)} if category == "weakness" else frozenset(),
        session_size=get_settings().session_size,
        rng=rng,
    )
    return PlaySession(mode, category, selection.questions, challenge, selection.notice)


def update_category_stats(stats: Stats, questions: list, answers: dict) -> Stats:
    category_stats = {cat: replace(s) for cat, s in stats.category_stats.items()}
    for q in questions:
        if q.id not in answers:
            continue
        stat = category_stats.setdefault(q.category, CategoryStat())
        stat.total += 1
        stat.correct += int(answers[q.id])
    return replace(stats, category_stats=category_stats)


def update_incorrect(incorrect: list, questions: list, answers: dict, category: str) -> list:
    """Add this session's misses; a weakness drill also clears what it got right."""
    by_id = {item.id: item for item in incorrect}
    for q in questions:
        if q.id not in answers:
            continue
        if not answers[q.id]:
            by_id.setdefault(q.id, IncorrectQuestion.from_question(q))
        elif category == "weakness":
            by_id.pop(q.id, None)
    return list(by_id.values())


def finish_session(
    db_path: str,
    session: PlaySession,
    today: date | None = None,
    rng: random.Random | None = None,
) -> SessionOutcome:
    today = today or date.today()
    correct = sum(1 for ok in session.answers.values() if ok)
    result = compute_result(session.raw_score, correct, len(session.answers))

    with transaction(db_path) as conn:
        stats = decode_stats(read_slot(conn, STATS))
        missions = refresh_mission_state(decode_missions(read_slot(conn, MISSIONS)), stats, today, rng)

        stats = update_category_stats(stats, session.questions, session.answers)
        incorrect = update_incorrect(
            decode_incorrect(read_slot(conn, INCORRECT)), session.questions, session.answers, session.category,
        )
        mastery = record_session_mastery(decode_mastery(read_slot(conn, MASTERY)), session.answers, today)

        update = apply_result(missions, result, session.category)
        level_up = apply_exp(stats, update.total_exp)

        write_slot(conn, STATS, level_up.stats.to_dict())
        write_slot(conn, MISSIONS, update.state.to_dict())
        write_slot(conn, INCORRECT, encode_incorrect(incorrect))
        write_slot(conn, MASTERY, encode_mastery(mastery))

    if level_up.did_level_up:
        logger.info("Level up: {} -> {}", stats.level, level_up.stats.level)
    return SessionOutcome(
        result=result,
        stats=level_up.stats,
        previous_level=stats.level,
        missions=update.state,
        newly_completed=update.newly_completed,
        exp_gained=update.total_exp,
        did_level_up=level_up.did_level_up,
        levels_gained=level_up.levels_gained,
    )


def report_challenge(client: ChallengeClient, session: PlaySession, outcome: SessionOutcome) -> bool:
    if session.challenge is None:
        return False
    return client.notify_outcome(session.challenge.challenge_id, "completed", outcome.result.score)


def login(db_path: str, user: UserInfo, today: date | None = None, rng: random.Random | None = None) -> MissionState:
    save_user_info(db_path, user)
    logger.info("Logged in as {}", user.player_id)
    return ensure_daily_missions(db_path, today or date.today(), rng)


def logout(db_path: str) -> None:
    clear_slots(db_path, USER_INFO)


def reset_progress(db_path: str) -> None:
    """Forget stats, mastery, missions and incorrect history; keep the login."""
    clear_slots(db_path, STATS, MASTERY, MISSIONS, INCORRECT)
    logger.warning("Learner progress reset for {}", db_path)
