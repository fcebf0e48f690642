"""
Input document loading and normalization.

Turns a `{epics: [...]}` document, or a bare list of epics, into Epic /
UserStory / Task models. Naming variants seen in the wild (`title`, `name`,
`Epic_title`; `userStories`, `user_stories`, `stories`; `acceptanceCriteria`,
`acceptance_criteria`) are normalized here so the engine only ever sees one
shape.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from featuresynth.lib.validate import validate, read_document
from featuresynth.models import Epic, Task, UserStory, slugify

logger = logging.getLogger(__name__)

TITLE_KEYS = ("title", "name", "Epic_title")
STORY_KEYS = ("userStories", "user_stories", "stories")
CRITERIA_KEYS = ("acceptanceCriteria", "acceptance_criteria")


def _first(raw: dict, keys: Iterable[str], default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _unique_id(candidate: str, seen: set[str]) -> str:
    """Disambiguate an id within its parent by appending -2, -3, ..."""
    unique = candidate
    n = 2
    while unique in seen:
        unique = f"{candidate}-{n}"
        n += 1
    seen.add(unique)
    return unique


def _derive_id(raw: dict, title: str, prefix: str, index: int) -> str:
    raw_id = raw.get("id")
    if raw_id is not None and str(raw_id).strip():
        return str(raw_id).strip()
    return slugify(title) or f"{prefix}-{index + 1}"


def _criteria(raw: dict) -> tuple[str, ...]:
    value = _first(raw, CRITERIA_KEYS)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return tuple(str(item) for item in value)


def normalize_task(raw: dict, index: int, seen: set[str]) -> Task:
    title = _first(raw, TITLE_KEYS, "") or ""
    return Task(
        id=_unique_id(_derive_id(raw, title, "task", index), seen),
        title=title,
        description=raw.get("description") or "",
        acceptance_criteria=_criteria(raw),
    )


def normalize_story(raw: dict, index: int, seen: set[str]) -> UserStory:
    title = _first(raw, TITLE_KEYS, "") or ""
    raw_tasks = raw.get("tasks") or []
    task_ids: set[str] = set()
    story = UserStory(
        id=_unique_id(_derive_id(raw, title, "story", index), seen),
        title=title,
        description=raw.get("description") or "",
        tasks=[normalize_task(t, i, task_ids) for i, t in enumerate(raw_tasks)],
    )
    if not story.tasks:
        logger.debug(f"User story '{story.id}' has no tasks")
    return story


def normalize_epic(raw: dict, index: int, seen: set[str]) -> Epic:
    title = _first(raw, TITLE_KEYS, "") or ""
    raw_stories = _first(raw, STORY_KEYS, []) or []
    story_ids: set[str] = set()
    return Epic(
        id=_unique_id(_derive_id(raw, title, "epic", index), seen),
        title=title,
        description=raw.get("description") or "",
        user_stories=[normalize_story(s, i, story_ids) for i, s in enumerate(raw_stories)],
    )


def parse_document(data: Any) -> list[Epic]:
    """
    Validate and normalize a parsed document.

    Args:
        data: `{"epics": [...]}` or a bare list of epics

    Returns:
        Normalized epics in document order

    Raises:
        DocumentError: If the document doesn't match the schema
    """
    validate(data, "document")
    raw_epics = data["epics"] if isinstance(data, dict) else data
    seen: set[str] = set()
    return [normalize_epic(raw, i, seen) for i, raw in enumerate(raw_epics)]


def load_document(filepath: Path) -> list[Epic]:
    """Load and normalize a JSON or YAML epic document."""
    epics = parse_document(read_document(filepath))
    logger.info(f"Loaded {len(epics)} epics from {filepath}")
    return epics


def find_epic(epics: list[Epic], slug: str) -> Optional[Epic]:
    """Return the epic routed at /epic/<slug>, or None."""
    wanted = slugify(slug)
    for epic in epics:
        if epic.slug == wanted:
            return epic
    return None
