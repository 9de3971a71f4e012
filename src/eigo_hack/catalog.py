"""Question catalog: seeding, importing and lookup."""
import json
import re
from pathlib import Path

import yaml
from loguru import logger

from eigo_hack.db import get_connection, transaction
from eigo_hack.models import CATEGORIES, QUESTION_TYPES, Question

CONTENT_DIR = Path(__file__).parent / "content"


def _row_to_question(row) -> Question:
    return Question(
        id=row["id"],
        category=row["category"],
        type=row["type"],
        question=row["question"],
        answers=tuple(json.loads(row["answers"])),
        choices=tuple(json.loads(row["choices"] or "[]")),
        explanation=row["explanation"] or "",
    )


def validate_question(question: Question) -> None:
    if question.category not in CATEGORIES:
        raise ValueError(f"Question {question.id}: unknown category {question.category!r}")
    if question.type not in QUESTION_TYPES:
        raise ValueError(f"Question {question.id}: unknown type {question.type!r}")
    if not question.answers:
        raise ValueError(f"Question {question.id}: no accepted answer")
    if question.type == "select" and question.answer not in question.choices:
        raise ValueError(f"Question {question.id}: answer is not among the choices")


def add_questions(db_path: str, questions: list, source: str = "seeded") -> int:
    """Insert or replace catalog entries. Returns the number written."""
    for q in questions:
        validate_question(q)
    with transaction(db_path) as conn:
        conn.executemany(
            """INSERT OR REPLACE INTO questions
            (id, category, type, question, answers, choices, explanation, source)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            [
                (q.id, q.category, q.type, q.question,
                 json.dumps(list(q.answers), ensure_ascii=False),
                 json.dumps(list(q.choices), ensure_ascii=False),
                 q.explanation, source)
                for q in questions
            ],
        )
    return len(questions)


def read_question_file(file_path: str) -> list[Question]:
    path = Path(file_path)
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".json":
        data = json.loads(text)
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        raise ValueError(f"Unsupported question file format: {suffix or path.name}")
    if isinstance(data, dict):
        data = data.get("questions", [])
    return [Question.from_dict(item) for item in data]


def import_questions(db_path: str, file_path: str) -> dict:
    """Import a JSON or YAML question file into the catalog."""
    questions = read_question_file(file_path)
    count = add_questions(db_path, questions, source="imported")
    logger.info("Imported {} questions from {}", count, file_path)
    return {"filename": Path(file_path).name, "count": count}


def is_seeded(db_path: str) -> bool:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    conn.close()
    return count > 0


def seed_catalog(db_path: str) -> None:
    """Load the bundled question set unless the catalog already has questions."""
    if is_seeded(db_path):
        return
    add_questions(db_path, read_question_file(str(CONTENT_DIR / "questions.json")))


def all_questions(db_path: str) -> list[Question]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM questions ORDER BY id").fetchall()
    conn.close()
    return [_row_to_question(r) for r in rows]


def questions_for_category(db_path: str, category: str) -> list[Question]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM questions WHERE category = ? ORDER BY id", (category,)
    ).fetchall()
    conn.close()
    return [_row_to_question(r) for r in rows]


def get_question(db_path: str, question_id: int) -> Question | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchone()
    conn.close()
    return _row_to_question(row) if row else None


def _normalize(text: str) -> str:
    text = text.strip().lower().replace("’", "'")
    text = re.sub(r"\s+", " ", text)
    return text.rstrip(".?!")


def check_answer(question: Question, user_answer: str) -> bool:
    given = _normalize(user_answer)
    return any(given == _normalize(accepted) for accepted in question.answers)
