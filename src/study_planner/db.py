"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".study_planner" / "planner.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT NOT NULL DEFAULT '#2563EB',
    description TEXT,
    material_url TEXT,
    study_duration INTEGER NOT NULL DEFAULT 0,
    knowledge_level TEXT,
    weight REAL NOT NULL DEFAULT 1.0,
    revision_progress INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    subject_id TEXT NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    topic_order INTEGER NOT NULL,
    is_completed INTEGER NOT NULL DEFAULT 0,
    completion_date TEXT
);

CREATE TABLE IF NOT EXISTS study_log (
    id TEXT PRIMARY KEY,
    subject_id TEXT NOT NULL,
    topic_id TEXT NOT NULL,
    date TEXT NOT NULL,
    duration INTEGER NOT NULL,
    start_page INTEGER,
    end_page INTEGER,
    questions_total INTEGER,
    questions_correct INTEGER,
    source TEXT DEFAULT 'manual',
    sequence_item_index INTEGER
);

CREATE TABLE IF NOT EXISTS study_sequences (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    items TEXT NOT NULL DEFAULT '[]',  -- JSON
    is_active INTEGER NOT NULL DEFAULT 0,
    saved_at TEXT
);

CREATE TABLE IF NOT EXISTS schedule_plans (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    weekly_minutes INTEGER NOT NULL,
    session_minutes INTEGER,
    mode TEXT NOT NULL,
    allocations TEXT NOT NULL DEFAULT '{}'  -- JSON
);

CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL DEFAULT 'local',
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    created_at TEXT NOT NULL,
    last_review TEXT NOT NULL,
    next_review TEXT NOT NULL,
    difficulty REAL NOT NULL,
    stability REAL NOT NULL,
    retrievability REAL NOT NULL DEFAULT 0.9,
    review_count INTEGER NOT NULL DEFAULT 0,
    last_rating INTEGER NOT NULL DEFAULT 0,
    consecutive_failures INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS flashcard_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    flashcard_id INTEGER NOT NULL REFERENCES flashcards(id) ON DELETE CASCADE,
    rating INTEGER NOT NULL,
    reviewed_at TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
