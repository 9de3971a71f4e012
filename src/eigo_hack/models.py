"""Data classes for the learner progression domain model.

Persisted records carry a ``version`` key. ``from_dict`` accepts the current
shape as well as the unversioned camelCase shape written by the browser
build of the app, so stores migrated from there load without a conversion step.
"""
from dataclasses import dataclass, field, replace
from typing import Optional

SCHEMA_VERSION = 1

CATEGORIES = (
    "未来", "動名詞", "不定詞", "助動詞【must】", "助動詞【have to】", "助動詞【その他】",
    "比較", "there is", "接続詞", "受け身", "現在完了", "現在完了進行形", "不定詞2", "その他",
)
PSEUDO_CATEGORIES = ("all", "review", "weakness")
QUESTION_TYPES = ("select", "input", "sort")
GAME_MODES = QUESTION_TYPES + ("test",)

MASTERY_LEVELS = ("new", "learning", "reviewing", "mastered")
MISSION_TYPES = ("solve_category", "get_rank", "answer_total", "perfect_game")
RANKS = ("S", "A", "B", "C", "D")


def _pick(data: dict, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Question:
    id: int
    category: str
    type: str
    question: str
    answers: tuple = ()
    choices: tuple = ()
    explanation: str = ""

    @property
    def answer(self) -> str:
        return self.answers[0] if self.answers else ""

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        answers = _pick(data, "answers", "answer", default=())
        if isinstance(answers, str):
            answers = [answers]
        return cls(
            id=int(data["id"]),
            category=data["category"],
            type=data["type"],
            question=data["question"],
            answers=tuple(answers),
            choices=tuple(data.get("choices") or ()),
            explanation=data.get("explanation") or "",
        )


@dataclass
class MasteryRecord:
    level: str = "new"
    next_review_date: str = ""
    interval: int = 0
    streak: int = 0

    def to_dict(self) -> dict:
        return {
            "version": SCHEMA_VERSION,
            "level": self.level,
            "next_review_date": self.next_review_date,
            "interval": self.interval,
            "streak": self.streak,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MasteryRecord":
        level = data.get("level", "new")
        if level not in MASTERY_LEVELS:
            level = "learning"
        # Browser builds stored a full ISO timestamp; only the date part matters.
        next_review = str(_pick(data, "next_review_date", "nextReviewDate", default=""))[:10]
        return cls(
            level=level,
            next_review_date=next_review,
            interval=int(data.get("interval", 0)),
            streak=int(data.get("streak", 0)),
        )


@dataclass
class CategoryStat:
    correct: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return self.correct / self.total if self.total else 0.0


@dataclass
class Stats:
    level: int = 1
    exp: int = 0
    category_stats: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "version": SCHEMA_VERSION,
            "level": self.level,
            "exp": self.exp,
            "category_stats": {
                cat: {"correct": s.correct, "total": s.total}
                for cat, s in self.category_stats.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Stats":
        raw = _pick(data, "category_stats", "categoryStats", default={})
        return cls(
            level=max(1, int(data.get("level", 1))),
            exp=max(0, int(data.get("exp", 0))),
            category_stats={
                cat: CategoryStat(int(s.get("correct", 0)), int(s.get("total", 0)))
                for cat, s in raw.items()
            },
        )


@dataclass
class IncorrectQuestion:
    id: int
    question: str
    answer: str

    def to_dict(self) -> dict:
        return {"id": self.id, "question": self.question, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: dict) -> "IncorrectQuestion":
        return cls(id=int(data["id"]), question=data.get("question", ""), answer=data.get("answer", ""))

    @classmethod
    def from_question(cls, question: Question) -> "IncorrectQuestion":
        return cls(id=question.id, question=question.question, answer=question.answer)


@dataclass
class DailyMission:
    id: str
    type: str
    description: str
    target: int
    exp_reward: int
    progress: int = 0
    completed: bool = False
    category: Optional[str] = None
    rank: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "target": self.target,
            "exp_reward": self.exp_reward,
            "progress": self.progress,
            "completed": self.completed,
            "category": self.category,
            "rank": self.rank,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyMission":
        return cls(
            id=data["id"],
            type=data["type"],
            description=data.get("description", ""),
            target=int(data["target"]),
            exp_reward=int(_pick(data, "exp_reward", "expReward", default=0)),
            progress=int(data.get("progress", 0)),
            completed=bool(data.get("completed", False)),
            category=data.get("category"),
            rank=data.get("rank"),
        )


@dataclass
class MissionState:
    date: str
    missions: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "version": SCHEMA_VERSION,
            "date": self.date,
            "missions": [m.to_dict() for m in self.missions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MissionState":
        return cls(
            date=data["date"],
            missions=[DailyMission.from_dict(m) for m in data.get("missions", [])],
        )

    def copy(self) -> "MissionState":
        return MissionState(date=self.date, missions=[replace(m) for m in self.missions])


@dataclass(frozen=True)
class GameResult:
    score: int
    correct_answers: int
    total_questions: int
    rank: str
    comment: str


@dataclass
class UserInfo:
    grade: str
    class_name: str
    student_id: str

    @property
    def player_id(self) -> str:
        return f"{self.grade}-{self.class_name}-{self.student_id}"

    def to_dict(self) -> dict:
        return {"grade": self.grade, "class": self.class_name, "studentId": self.student_id}

    @classmethod
    def from_dict(cls, data: dict) -> "UserInfo":
        return cls(
            grade=str(data["grade"]),
            class_name=str(_pick(data, "class", "class_name")),
            student_id=str(_pick(data, "studentId", "student_id")),
        )


@dataclass
class ChallengeEntry:
    challenge_id: str
    mode: str
    category: str
    question_ids: list
    target_score: int = 0
    challenger_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ChallengeEntry":
        challenger = data.get("challenger") or {}
        return cls(
            challenge_id=str(data["challengeId"]),
            mode=data.get("mode", "test"),
            category=data.get("category", "all"),
            question_ids=[int(i) for i in data.get("questionIds") or []],
            target_score=int(data.get("targetScore", 0)),
            challenger_name=challenger.get("name", ""),
        )


@dataclass
class AppSettings:
    show_logout_button: bool = False
    show_reset_button: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        return cls(
            show_logout_button=bool(data.get("showLogoutButton", False)),
            show_reset_button=bool(data.get("showResetButton", False)),
        )
