"""Study sequence progress tracking.

A sequence is an ordered list of study items, each accumulating the minutes
logged against it. The cursor (``index``) points at the active item and moves
forward when that item's subject goal is met. ``index == len(sequence)``
means the sequence is complete; callers treat it as a terminal state.

Log edits and deletes adjust accumulated time but never rewind the cursor.
"""
from dataclasses import dataclass, replace
from typing import Optional

from loguru import logger

from study_planner.models import StudyLogEntry, StudySequence, StudySequenceItem


@dataclass(frozen=True)
class SequenceState:
    sequence: Optional[StudySequence] = None
    index: int = 0

    @property
    def is_complete(self) -> bool:
        return self.sequence is not None and self.index >= len(self.sequence)

    @property
    def current_item(self) -> Optional[StudySequenceItem]:
        if self.sequence is None or self.is_complete:
            return None
        return self.sequence.items[self.index]

    @property
    def current_subject_id(self) -> Optional[str]:
        item = self.current_item
        return item.subject_id if item else None

    def attributable_index(self, subject_id: str) -> Optional[int]:
        """Cursor position if the active item belongs to ``subject_id``."""
        if self.current_subject_id == subject_id:
            return self.index
        return None


def zero_progress(sequence: StudySequence) -> StudySequence:
    return replace(
        sequence,
        items=tuple(replace(item, total_time_studied=0) for item in sequence.items),
    )


def _with_item_time(sequence: StudySequence, index: int, minutes: int) -> StudySequence:
    items = list(sequence.items)
    items[index] = replace(items[index], total_time_studied=minutes)
    return replace(sequence, items=tuple(items))


class StudySequenceTracker:
    """Owns the active sequence snapshot and applies log-driven updates.

    ``goals`` maps subject id to its per-session study duration in minutes.
    Every operation stores and returns the new ``SequenceState``.
    """

    def __init__(self, state: Optional[SequenceState] = None, goals: Optional[dict[str, int]] = None):
        self.state = state or SequenceState()
        self.goals = dict(goals or {})
        self.warnings: list[str] = []

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)

    def _set(self, state: SequenceState) -> SequenceState:
        self.state = state
        return state

    def _matching_item(self, entry: StudyLogEntry) -> Optional[StudySequenceItem]:
        """Item the entry is attributed to, or None when there is nothing to adjust."""
        sequence = self.state.sequence
        index = entry.sequence_item_index
        if sequence is None or index is None:
            return None
        if not 0 <= index < len(sequence):
            self._warn(f"Log {entry.id} points at sequence item {index}, which does not exist")
            return None
        item = sequence.items[index]
        if item.subject_id != entry.subject_id:
            self._warn(
                f"Log {entry.id} subject {entry.subject_id} does not match "
                f"sequence item {index} subject {item.subject_id}"
            )
            return None
        return item

    def advance_on_log(self, entry: StudyLogEntry) -> SequenceState:
        item = self._matching_item(entry)
        if item is None:
            return self.state
        index = entry.sequence_item_index
        total = item.total_time_studied + entry.duration
        sequence = _with_item_time(self.state.sequence, index, total)
        cursor = self.state.index
        if index == cursor:
            goal = self.goals.get(item.subject_id, 0)
            if goal > 0 and total >= goal:
                cursor += 1
                logger.debug(f"Sequence item {index} reached its {goal} minute goal")
        return self._set(SequenceState(sequence=sequence, index=cursor))

    def _adjust(self, entry: StudyLogEntry, minutes: int) -> SequenceState:
        """Add ``minutes`` (floored at zero) to the entry's item; the cursor stays put."""
        item = self._matching_item(entry)
        if item is None or minutes == 0:
            return self.state
        total = max(0, item.total_time_studied + minutes)
        sequence = _with_item_time(self.state.sequence, entry.sequence_item_index, total)
        return self._set(replace(self.state, sequence=sequence))

    def reverse_on_log_edit(self, old: StudyLogEntry, new: StudyLogEntry) -> SequenceState:
        moved = (old.sequence_item_index, old.subject_id) != (new.sequence_item_index, new.subject_id)
        if moved:
            self._adjust(old, -old.duration)
            return self._adjust(new, new.duration)
        return self._adjust(new, new.duration - old.duration)

    def reverse_on_log_delete(self, entry: StudyLogEntry) -> SequenceState:
        return self._adjust(entry, -entry.duration)

    def replace_sequence(self, new_sequence: StudySequence) -> SequenceState:
        current = self.state.sequence
        if current is None or current.id != new_sequence.id:
            return self._set(SequenceState(sequence=zero_progress(new_sequence), index=0))

        cursor = self.state.index
        keep = (
            cursor < len(current)
            and cursor < len(new_sequence)
            and current.items[cursor].subject_id == new_sequence.items[cursor].subject_id
        )
        return self._set(SequenceState(sequence=new_sequence, index=cursor if keep else 0))

    def reset_progress(self) -> SequenceState:
        if self.state.sequence is None:
            return self.state
        return self._set(SequenceState(sequence=zero_progress(self.state.sequence), index=0))

    def advance(self) -> SequenceState:
        """Skip the active item without logging time."""
        if self.state.sequence is None or self.state.is_complete:
            return self.state
        return self._set(replace(self.state, index=self.state.index + 1))

    def clear(self) -> SequenceState:
        return self._set(SequenceState())
