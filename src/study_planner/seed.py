"""Seed a fresh database with default settings and starter flashcards."""
import json
from pathlib import Path

from study_planner.db import get_connection
from study_planner.flashcards import add_flashcard
from study_planner.fsrs import DEFAULT_PARAMETERS
from study_planner.study import DEFAULT_POMODORO_SETTINGS, get_setting, save_pomodoro_settings, set_setting

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether first-run setup has already happened."""
    return get_setting(db_path, "seeded") == "1"


def seed_settings(db_path: str) -> None:
    """Store default pomodoro and review settings, keeping any already set."""
    if get_setting(db_path, "pomodoro_settings") is None:
        save_pomodoro_settings(db_path, DEFAULT_POMODORO_SETTINGS)
    if get_setting(db_path, "request_retention") is None:
        set_setting(db_path, "request_retention", str(DEFAULT_PARAMETERS.request_retention))
    if get_setting(db_path, "maximum_interval") is None:
        set_setting(db_path, "maximum_interval", str(DEFAULT_PARAMETERS.maximum_interval))


def seed_flashcards(db_path: str) -> None:
    """Insert starter flashcards from flashcards.json."""
    data = json.loads((CONTENT_DIR / "flashcards.json").read_text())
    for card in data["flashcards"]:
        add_flashcard(db_path, card["question"], card["answer"])


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if is_seeded(db_path):
        return
    seed_settings(db_path)
    conn = get_connection(db_path)
    has_cards = conn.execute("SELECT COUNT(*) FROM flashcards").fetchone()[0] > 0
    conn.close()
    if not has_cards:
        seed_flashcards(db_path)
    set_setting(db_path, "seeded", "1")
