"""Import subjects, topics and a study sequence from a JSON or YAML plan file.

Expected shape::

    subjects:
      - name: Math
        color: "#10B981"        # optional
        study_duration: 60      # optional, minutes per session
        knowledge_level: beginner
        weight: 1.5
        topics: [Algebra, Geometry]
    sequence:                   # optional
      name: Week 1
      items: [Math, History, Math]

Subjects that already exist (matched by name, case-insensitive) are reused
and only receive the topics they are missing.
"""
import json
from pathlib import Path

from loguru import logger

from study_planner.errors import ImportFormatError
from study_planner.models import KnowledgeLevel
from study_planner.study import new_sequence, replace_active_sequence
from study_planner.subjects import add_subject, add_topic, find_subject_by_name


def read_plan_file(file_path: str) -> dict:
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
    else:
        raise ImportFormatError(f"Unsupported plan file type: {suffix or path.name}")
    if not isinstance(data, dict):
        raise ImportFormatError("Plan file must contain a mapping at the top level")
    return data


def _validate(db_path: str, data: dict) -> None:
    """Check the whole plan, including sequence names, before anything is written."""
    subjects = data.get("subjects", [])
    if not isinstance(subjects, list):
        raise ImportFormatError("'subjects' must be a list")
    names = set()
    for entry in subjects:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or not entry["name"]:
            raise ImportFormatError("Every subject needs a name")
        level = entry.get("knowledge_level")
        if level and level not in {lvl.value for lvl in KnowledgeLevel}:
            raise ImportFormatError(f"Unknown knowledge level '{level}' for {entry['name']}")
        topics = entry.get("topics", [])
        if not isinstance(topics, list) or not all(isinstance(t, str) and t for t in topics):
            raise ImportFormatError(f"Topics for {entry['name']} must be a list of names")
        names.add(entry["name"].lower())

    sequence = data.get("sequence")
    if sequence is None:
        return
    if not isinstance(sequence, dict) or not isinstance(sequence.get("items", []), list):
        raise ImportFormatError("'sequence' must have a list of items")
    for name in sequence.get("items", []):
        if not isinstance(name, str):
            raise ImportFormatError(f"Sequence item {name!r} must be a subject name")
        if name.lower() not in names and find_subject_by_name(db_path, name) is None:
            raise ImportFormatError(f"Sequence item '{name}' is not a known subject")


def import_plan(db_path: str, data: dict) -> dict:
    """Create subjects, topics and (optionally) a fresh active sequence."""
    _validate(db_path, data)
    subject_ids: dict[str, str] = {}
    created_subjects = 0
    created_topics = 0

    for entry in data.get("subjects", []):
        subject = find_subject_by_name(db_path, entry["name"])
        if subject is None:
            subject = add_subject(
                db_path,
                entry["name"],
                study_duration=entry.get("study_duration", 60),
                color=entry.get("color"),
                description=entry.get("description", ""),
                knowledge_level=entry.get("knowledge_level"),
                weight=entry.get("weight", 1.0),
            )
            created_subjects += 1
        existing = {t.name.lower() for t in subject.topics}
        for topic_name in entry.get("topics", []):
            if topic_name.lower() in existing:
                continue
            add_topic(db_path, subject.id, topic_name)
            existing.add(topic_name.lower())
            created_topics += 1
        subject_ids[entry["name"].lower()] = subject.id

    sequence_items = 0
    sequence = data.get("sequence")
    if sequence:
        ids = []
        for name in sequence.get("items", []):
            sid = subject_ids.get(name.lower())
            ids.append(sid if sid is not None else find_subject_by_name(db_path, name).id)
        replace_active_sequence(db_path, new_sequence(sequence.get("name", "Imported plan"), ids))
        sequence_items = len(ids)

    logger.info(
        f"Imported {created_subjects} subjects, {created_topics} topics, {sequence_items} sequence items"
    )
    return {"subjects": created_subjects, "topics": created_topics, "sequence_items": sequence_items}


def import_file(db_path: str, file_path: str) -> dict:
    result = import_plan(db_path, read_plan_file(file_path))
    result["filename"] = Path(file_path).name
    return result
