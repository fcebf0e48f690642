"""
featuresynth classify - Show which feature a task description becomes.
"""

from featuresynth.engine.classifier import explain
from featuresynth.engine.resolver import COMPANION_KINDS
from featuresynth.models import Task


def _family(kind) -> str:
    if kind.is_form:
        return "form"
    if kind in COMPANION_KINDS:
        return "companion (modifies a sibling)"
    return "primary"


def cmd_classify(args) -> int:
    text = " ".join(args.text).strip()
    if not text:
        print("ERROR: Nothing to classify")
        return 1

    result = explain(Task(id="cli", title=text))
    print(f"Kind:    {result.kind.value}")
    print(f"Family:  {_family(result.kind)}")
    if result.rule:
        print(f"Rule:    {result.rule}")
        print(f"Pattern: {result.pattern}")
    else:
        print("Rule:    (none matched, read-only default)")
    return 0
