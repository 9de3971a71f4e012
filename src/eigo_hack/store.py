"""Key-value store slots for a learner's persisted state.

Five named slots hold whole JSON values. A missing slot reads as ``None`` and
the typed loaders turn that into the first-use default.
"""
import json
import sqlite3
from datetime import datetime
from typing import Any

from loguru import logger

from eigo_hack.db import get_connection, transaction
from eigo_hack.models import IncorrectQuestion, MasteryRecord, MissionState, Stats, UserInfo

USER_INFO = "user_info"
STATS = "stats"
MASTERY = "mastery"
MISSIONS = "missions"
INCORRECT = "incorrect"
SLOTS = (USER_INFO, STATS, MASTERY, MISSIONS, INCORRECT)


def _check_slot(slot: str) -> None:
    if slot not in SLOTS:
        raise ValueError(f"Unknown store slot: {slot!r}")


def read_slot(conn: sqlite3.Connection, slot: str) -> Any:
    _check_slot(slot)
    row = conn.execute("SELECT value FROM store_slots WHERE slot = ?", (slot,)).fetchone()
    if row is None:
        return None
    try:
        return json.loads(row["value"])
    except json.JSONDecodeError:
        logger.warning("Discarding unreadable value in store slot {}", slot)
        return None


def write_slot(conn: sqlite3.Connection, slot: str, value: Any) -> None:
    _check_slot(slot)
    payload = json.dumps(value, ensure_ascii=False)
    conn.execute(
        "INSERT INTO store_slots (slot, value, updated_at) VALUES (?, ?, ?) "
        "ON CONFLICT(slot) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
        (slot, payload, datetime.now().isoformat()),
    )


def get_slot(db_path: str, slot: str) -> Any:
    conn = get_connection(db_path)
    value = read_slot(conn, slot)
    conn.close()
    return value


def set_slot(db_path: str, slot: str, value: Any) -> None:
    set_slots(db_path, {slot: value})


def set_slots(db_path: str, values: dict) -> None:
    """Replace several slots in one transaction."""
    with transaction(db_path) as conn:
        for slot, value in values.items():
            write_slot(conn, slot, value)


def clear_slots(db_path: str, *slots: str) -> None:
    for slot in slots:
        _check_slot(slot)
    with transaction(db_path) as conn:
        conn.executemany("DELETE FROM store_slots WHERE slot = ?", [(s,) for s in slots])


# Decoders: raw slot value -> domain object, with defaults for absence.

def decode_stats(raw: Any) -> Stats:
    return Stats.from_dict(raw) if raw else Stats()


def decode_mastery(raw: Any) -> dict:
    return {int(qid): MasteryRecord.from_dict(rec) for qid, rec in (raw or {}).items()}


def encode_mastery(mastery: dict) -> dict:
    return {str(qid): rec.to_dict() for qid, rec in mastery.items()}


def decode_missions(raw: Any) -> MissionState | None:
    return MissionState.from_dict(raw) if raw else None


def decode_incorrect(raw: Any) -> list[IncorrectQuestion]:
    return [IncorrectQuestion.from_dict(item) for item in raw or []]


def encode_incorrect(items: list) -> list:
    return [item.to_dict() for item in items]


def load_stats(db_path: str) -> Stats:
    return decode_stats(get_slot(db_path, STATS))


def save_stats(db_path: str, stats: Stats) -> None:
    set_slot(db_path, STATS, stats.to_dict())


def load_mastery(db_path: str) -> dict:
    return decode_mastery(get_slot(db_path, MASTERY))


def save_mastery(db_path: str, mastery: dict) -> None:
    set_slot(db_path, MASTERY, encode_mastery(mastery))


def load_mission_state(db_path: str) -> MissionState | None:
    return decode_missions(get_slot(db_path, MISSIONS))


def save_mission_state(db_path: str, state: MissionState) -> None:
    set_slot(db_path, MISSIONS, state.to_dict())


def load_incorrect(db_path: str) -> list[IncorrectQuestion]:
    return decode_incorrect(get_slot(db_path, INCORRECT))


def save_incorrect(db_path: str, items: list) -> None:
    set_slot(db_path, INCORRECT, encode_incorrect(items))


def load_user_info(db_path: str) -> UserInfo | None:
    raw = get_slot(db_path, USER_INFO)
    return UserInfo.from_dict(raw) if raw else None


def save_user_info(db_path: str, user: UserInfo) -> None:
    set_slot(db_path, USER_INFO, user.to_dict())
