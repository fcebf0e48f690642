"""
featuresynth show - Compose and render the features of one epic.
"""

import json
from pathlib import Path

from featuresynth.engine.composer import Composer, render_visible
from featuresynth.lib.config import EngineConfig
from featuresynth.lib.suggest import suggest_epic
from featuresynth.lib.validate import DocumentError
from featuresynth.loader import find_epic, load_document
from featuresynth.store import open_store


def _summary(rendered: dict) -> str:
    """One-line gist of a rendered feature body."""
    body = rendered.get("body") or {}
    if rendered.get("kind") in ("empty", "error"):
        return rendered.get("text", "")
    if "session" in body:
        return f"logged in as {body['session'].get('email')}"
    if "submit" in body:
        submit = body["submit"]
        fields = ", ".join(f["name"] for f in body.get("fields", []))
        state = "enabled" if submit["enabled"] else f"disabled ({submit['note']})"
        return f"fields: {fields}; {submit['label']} {state}"
    if "rows" in body:
        actions = ", ".join(body.get("row_actions") or []) or "read-only"
        return f"{len(body['rows'])} {body['collection']}; actions: {actions}"
    if "steps" in body:
        return " > ".join(
            f"[{s['label']}]" if s["state"] == "current" else s["label"] for s in body["steps"]
        )
    if "metrics" in body:
        return ", ".join(f"{m['name']}={m['value']}" for m in body["metrics"])
    if "items" in body:
        return f"{len(body['items'])} todos, {body['remaining']} remaining"
    if "pending" in body:
        return f"{len(body['pending'])} pending applications"
    if "score" in body:
        return f"score: {body['score'] if body['score'] is not None else 'not fetched'}"
    if "files" in body:
        return f"accepts {', '.join(body['accepted'])}"
    return body.get("description") or ""


def cmd_show(args, config: EngineConfig) -> int:
    """Compose every user story of the epic at SLUG and print the result."""
    try:
        epics = load_document(Path(args.file))
    except DocumentError as e:
        print(f"ERROR: {e}")
        return 1

    epic = find_epic(epics, args.slug)
    if epic is None:
        print(f"ERROR: Epic '{args.slug}' not found")
        suggestion = suggest_epic(args.slug, epics)
        if suggestion:
            print(f"  Did you mean: {suggestion}?")
        return 1

    store = open_store(config)
    composer = Composer(store, config=config)
    output = {"epic": epic.slug, "title": epic.title, "stories": []}
    try:
        for story in epic.user_stories:
            features = composer.compose(story)
            output["stories"].append({
                "id": story.id,
                "title": story.title,
                "features": render_visible(features),
            })
            for feature in features:
                feature.unmount()
    finally:
        store.close()

    if args.json:
        print(json.dumps(output, indent=2))
        return 0

    print(f"Epic: {epic.title}")
    print("=" * 60)
    if not output["stories"]:
        print("No user stories in this epic.")
    for story in output["stories"]:
        print()
        print(f"{story['title'] or story['id']}")
        print("-" * 40)
        for rendered in story["features"]:
            label = rendered.get("title") or rendered.get("kind")
            print(f"  [{rendered['kind']}] {label}")
            summary = _summary(rendered)
            if summary:
                print(f"      {summary}")
    return 0
