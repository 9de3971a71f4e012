"""Home and my-page figures: level, badges and per-category accuracy."""
from datetime import date

from eigo_hack.leveling import exp_for_level, level_progress
from eigo_hack.mastery import count_due
from eigo_hack.models import CATEGORIES
from eigo_hack.store import load_incorrect, load_mastery, load_stats


def get_accuracy_color(rate: float) -> str:
    if rate >= 80:
        return "green"
    elif rate >= 60:
        return "yellow"
    elif rate >= 40:
        return "dark_orange"
    return "red"


def get_category_rows(stats) -> list[dict]:
    rows = []
    for cat in CATEGORIES:
        stat = stats.category_stats.get(cat)
        if not stat or not stat.total:
            continue
        rate = round(stat.rate * 100, 1)
        rows.append({
            "category": cat,
            "correct": stat.correct,
            "total": stat.total,
            "rate": rate,
            "color": get_accuracy_color(rate),
        })
    return rows


def get_overview(db_path: str, today: date | None = None) -> dict:
    stats = load_stats(db_path)
    correct = sum(s.correct for s in stats.category_stats.values())
    total = sum(s.total for s in stats.category_stats.values())
    return {
        "level": stats.level,
        "exp": stats.exp,
        "exp_for_next": exp_for_level(stats.level),
        "progress": level_progress(stats),
        "weakness_count": len(load_incorrect(db_path)),
        "review_count": count_due(load_mastery(db_path), today or date.today()),
        "accuracy": round(correct / total * 100, 1) if total else 0.0,
        "answered": total,
        "categories": get_category_rows(stats),
    }
