"""Data classes for the study planner domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class KnowledgeLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PomodoroStatus(str, Enum):
    IDLE = "idle"
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"
    PAUSED = "paused"


RUNNING_STATUSES = (PomodoroStatus.FOCUS, PomodoroStatus.SHORT_BREAK, PomodoroStatus.LONG_BREAK)


@dataclass
class Topic:
    id: str
    subject_id: str
    name: str
    order: int = 0
    is_completed: bool = False
    completion_date: Optional[str] = None


@dataclass
class Subject:
    id: str
    name: str
    color: str = "#2563EB"
    description: str = ""
    material_url: Optional[str] = None
    study_duration: int = 0  # minutes per session, used as the sequence goal
    knowledge_level: Optional[KnowledgeLevel] = None
    weight: float = 1.0
    revision_progress: int = 0
    topics: list[Topic] = field(default_factory=list)

    @property
    def level(self) -> KnowledgeLevel:
        """Knowledge level, treating a missing value as intermediate."""
        return self.knowledge_level or KnowledgeLevel.INTERMEDIATE


@dataclass(frozen=True)
class StudyLogEntry:
    id: str
    subject_id: str
    topic_id: str
    date: str
    duration: int  # minutes
    start_page: Optional[int] = None
    end_page: Optional[int] = None
    questions_total: Optional[int] = None
    questions_correct: Optional[int] = None
    source: str = "manual"
    sequence_item_index: Optional[int] = None


@dataclass(frozen=True)
class StudySequenceItem:
    subject_id: str
    total_time_studied: int = 0  # minutes


@dataclass(frozen=True)
class StudySequence:
    id: str
    name: str
    items: tuple[StudySequenceItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class PomodoroTask:
    id: str
    name: str
    duration: int  # seconds


@dataclass(frozen=True)
class PomodoroSettings:
    tasks: tuple[PomodoroTask, ...] = ()
    short_break_duration: int = 5 * 60
    long_break_duration: int = 15 * 60
    cycles_until_long_break: int = 4

    @property
    def total_focus_duration(self) -> int:
        return sum(task.duration for task in self.tasks)


@dataclass(frozen=True)
class PomodoroState:
    status: PomodoroStatus = PomodoroStatus.IDLE
    time_remaining: int = 0
    current_task_index: Optional[int] = 0
    current_cycle: int = 0
    pomodoros_completed_today: int = 0
    associated_item_id: Optional[str] = None
    associated_item_type: Optional[str] = None  # "topic" or "revision"
    previous_status: Optional[PomodoroStatus] = None
    original_duration: Optional[int] = None
    is_custom_duration: bool = False
    key: int = 0


@dataclass(frozen=True)
class Flashcard:
    id: Optional[int]
    user_id: str
    question: str
    answer: str
    created_at: datetime
    last_review: datetime
    next_review: datetime
    difficulty: float
    stability: float
    retrievability: float = 0.9
    review_count: int = 0
    last_rating: int = 0
    consecutive_failures: int = 0


@dataclass
class SchedulePlan:
    id: str
    name: str
    created_at: str
    weekly_minutes: int
    session_minutes: Optional[int]
    mode: str
    allocations: dict[str, float] = field(default_factory=dict)
