"""
featuresynth epics - List the epics in a document.
"""

from pathlib import Path

from featuresynth.lib.validate import DocumentError
from featuresynth.loader import load_document


def cmd_epics(args) -> int:
    try:
        epics = load_document(Path(args.file))
    except DocumentError as e:
        print(f"ERROR: {e}")
        return 1

    if not epics:
        print("No epics found.")
        return 0

    width = max(len(epic.slug) for epic in epics)
    for epic in epics:
        stories = len(epic.user_stories)
        tasks = sum(len(story.tasks) for story in epic.user_stories)
        print(f"  {epic.slug:<{width}}  {epic.title}  ({stories} stories, {tasks} tasks)")
    return 0
