"""Resolve the question set for a play session."""
import random
from dataclasses import dataclass, field
from enum import Enum

from eigo_hack.models import CATEGORIES, GAME_MODES, PSEUDO_CATEGORIES, QUESTION_TYPES

SESSION_SIZE = 20


class NoticeKind(str, Enum):
    NO_REVIEW_DUE = "no_review_due"
    NO_QUESTIONS = "no_questions"


NOTICE_MESSAGES = {
    NoticeKind.NO_REVIEW_DUE: "本日の復習問題はありません。素晴らしい！",
    NoticeKind.NO_QUESTIONS: "このカテゴリまたはモードには問題がありません。",
}


@dataclass
class Selection:
    questions: list = field(default_factory=list)
    notice: NoticeKind | None = None

    @property
    def message(self) -> str | None:
        return NOTICE_MESSAGES[self.notice] if self.notice else None

    def __bool__(self) -> bool:
        return bool(self.questions)


def replay_questions(catalog, explicit_ids) -> list:
    """Questions for ``explicit_ids`` in the given order; unknown ids are dropped."""
    by_id = {q.id: q for q in catalog}
    return [by_id[qid] for qid in explicit_ids if qid in by_id]


def resolve_pool(catalog, category: str, due_ids=frozenset(), incorrect_ids=frozenset()) -> list:
    if category == "all":
        return list(catalog)
    if category == "review":
        return [q for q in catalog if q.id in due_ids]
    if category == "weakness":
        return [q for q in catalog if q.id in incorrect_ids]
    if category in CATEGORIES:
        return [q for q in catalog if q.category == category]
    raise ValueError(f"Unknown category: {category!r}")


def filter_by_mode(pool, mode: str) -> list:
    if mode not in GAME_MODES:
        raise ValueError(f"Unknown game mode: {mode!r}")
    if mode in QUESTION_TYPES:
        return [q for q in pool if q.type == mode]
    return list(pool)


def select_questions(
    catalog,
    mode: str,
    category: str,
    explicit_ids=None,
    *,
    due_ids=frozenset(),
    incorrect_ids=frozenset(),
    session_size: int = SESSION_SIZE,
    rng: random.Random | None = None,
) -> Selection:
    """Pick the questions for one session.

    With ``explicit_ids`` (a challenge replay) the given questions come back
    exactly as listed. Otherwise the pool for ``category`` is filtered by
    ``mode``, shuffled and cut to ``session_size``.
    """
    if explicit_ids is not None:
        questions = replay_questions(catalog, explicit_ids)
        return Selection(questions, None if questions else NoticeKind.NO_QUESTIONS)

    if category not in PSEUDO_CATEGORIES and category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category!r}")
    if category == "review" and not due_ids:
        return Selection([], NoticeKind.NO_REVIEW_DUE)

    pool = filter_by_mode(resolve_pool(catalog, category, due_ids, incorrect_ids), mode)
    if not pool:
        notice = NoticeKind.NO_REVIEW_DUE if category == "review" else NoticeKind.NO_QUESTIONS
        return Selection([], notice)

    rng = rng or random.Random()
    rng.shuffle(pool)
    return Selection(pool[:session_size])
