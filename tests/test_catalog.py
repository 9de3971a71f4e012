import json

import pytest

from eigo_hack.catalog import (
    add_questions, all_questions, check_answer, get_question, import_questions,
    is_seeded, questions_for_category, seed_catalog,
)
from eigo_hack.db import init_db
from eigo_hack.models import CATEGORIES, QUESTION_TYPES, Question


def test_is_seeded(tmp_db):
    init_db(tmp_db)
    assert not is_seeded(tmp_db)
    seed_catalog(tmp_db)
    assert is_seeded(tmp_db)


def test_seeded_catalog_covers_categories_and_types(seeded_db):
    questions = all_questions(seeded_db)
    assert len(questions) >= 30
    assert {q.category for q in questions} == set(CATEGORIES)
    assert {q.type for q in questions} == set(QUESTION_TYPES)
    ids = [q.id for q in questions]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_seed_catalog_idempotent(seeded_db):
    count = len(all_questions(seeded_db))
    seed_catalog(seeded_db)  # second call should be no-op
    assert len(all_questions(seeded_db)) == count


def test_questions_for_category(seeded_db):
    questions = questions_for_category(seeded_db, "比較")
    assert questions
    assert all(q.category == "比較" for q in questions)


def test_get_question(seeded_db):
    q = get_question(seeded_db, 1)
    assert q.category == "未来"
    assert q.type == "select"
    assert q.answer in q.choices
    assert get_question(seeded_db, 9999) is None


def test_import_json(tmp_db, tmp_path):
    init_db(tmp_db)
    f = tmp_path / "extra.json"
    f.write_text(json.dumps([
        {"id": 500, "category": "受け身", "type": "input", "question": "Q", "answer": "made"},
    ]), encoding="utf-8")
    result = import_questions(tmp_db, str(f))
    assert result == {"filename": "extra.json", "count": 1}
    assert get_question(tmp_db, 500).answers == ("made",)


def test_import_yaml(tmp_db, tmp_path):
    init_db(tmp_db)
    f = tmp_path / "extra.yaml"
    f.write_text(
        "questions:\n"
        "  - id: 600\n"
        "    category: 未来\n"
        "    type: sort\n"
        "    question: \"[will / I / go]\"\n"
        "    answer: I will go\n",
        encoding="utf-8",
    )
    import_questions(tmp_db, str(f))
    assert get_question(tmp_db, 600).answer == "I will go"


def test_import_rejects_unknown_format(tmp_db, tmp_path):
    init_db(tmp_db)
    f = tmp_path / "notes.txt"
    f.write_text("hello")
    with pytest.raises(ValueError):
        import_questions(tmp_db, str(f))


def test_add_questions_validates(tmp_db):
    init_db(tmp_db)
    bad = Question(id=1, category="grammar", type="select", question="Q", answers=("a",), choices=("a",))
    with pytest.raises(ValueError):
        add_questions(tmp_db, [bad])
    wrong_choice = Question(id=2, category="未来", type="select", question="Q", answers=("z",), choices=("a", "b"))
    with pytest.raises(ValueError):
        add_questions(tmp_db, [wrong_choice])
    assert all_questions(tmp_db) == []


def test_check_answer_normalizes():
    q = Question(id=1, category="未来", type="sort", question="Q", answers=("It will rain tomorrow",))
    assert check_answer(q, "it  will rain tomorrow.")
    assert check_answer(q, " It will rain tomorrow ")
    assert not check_answer(q, "It rains tomorrow")


def test_check_answer_accepts_alternatives():
    q = Question(id=2, category="その他", type="input", question="Q", answers=("Could", "Can"))
    assert check_answer(q, "can")
    assert not check_answer(q, "may")
