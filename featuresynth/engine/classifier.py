"""
Task classification from free text.

Classifies a Task into a FeatureKind by evaluating an ordered table of
pattern rules. The title is tried first against the whole table; only when
the title matches nothing is the lower-cased title + description tried. The
first rule that matches wins. A task matching nothing is DEFAULT, which is
not an error.

Rule order matters: narrower rules with richer implementations sit above
the broader rules they overlap with (a "registration form" must never fall
into the generic "form" bucket, "handle form submission" must never become
a form). Companion rules lead the table for titles, but in a description
they only count when no primary rule matches, so "Registration Form" whose
description mentions handling the submission stays a registration form.

Example usage:
    from featuresynth.engine.classifier import classify, explain

    classify(Task(id="t1", title="Registration Form"))
    # FeatureKind.REGISTRATION_FORM

    explain(Task(id="t2", title="Fetch Credit Score via Credit Bureau API"))
    # Classification(kind=EXTERNAL_SERVICE, rule='credit-check', pattern='\\bcredit\\b')
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from featuresynth.models import FeatureKind, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the rule table: any pattern matching tags the task."""
    name: str
    kind: FeatureKind
    patterns: tuple[re.Pattern, ...]
    companion: bool = False

    def match(self, text: str) -> Optional[re.Pattern]:
        """Return the first pattern that matches text, or None."""
        for pattern in self.patterns:
            if pattern.search(text):
                return pattern
        return None


@dataclass(frozen=True)
class Classification:
    """Which rule classified a task, for diagnostics."""
    kind: FeatureKind
    rule: Optional[str] = None
    pattern: Optional[str] = None


def rule(name: str, kind: FeatureKind, *patterns: str, companion: bool = False) -> ClassificationRule:
    return ClassificationRule(
        name=name,
        kind=kind,
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        companion=companion,
    )


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    # Companions first: their titles usually mention the thing they serve
    rule("form-handler", FeatureKind.FORM_HANDLER,
         r"\bhandl\w*\b.*\bsubmi(ssion|ssions|t|ts|tted)\b",
         r"\bprocess\w*\b.*\bdata\b",
         r"\bsubmission\s+handler\b",
         r"\b(save|saves|saving|add|adds|adding|store|persist)\s+(a\s+|the\s+|new\s+)?boards?\b",
         r"\bmock\s+auth\w*",
         companion=True),
    rule("remove", FeatureKind.REMOVE,
         r"\bremov\w*",
         r"\bdelet\w*",
         companion=True),
    rule("filter", FeatureKind.FILTER,
         r"\bfilter\w*",
         r"\bsearch\w*",
         companion=True),
    rule("logout", FeatureKind.LOGOUT,
         r"\blog\s?-?out\b",
         r"\bsign\s?-?out\b",
         companion=True),

    # Specific forms before the generic one
    rule("registration-form", FeatureKind.REGISTRATION_FORM,
         r"\bregistration\b",
         r"\bregister\b",
         r"\bsign\s?-?up\b"),
    rule("login-form", FeatureKind.LOGIN_FORM,
         r"\blog\s?-?in\b",
         r"\bsign\s?-?in\b"),
    rule("board-form", FeatureKind.BOARD_FORM,
         r"\bboard\s+creation\b",
         r"\bcreat\w*\s+(a\s+|new\s+)?boards?\b",
         r"\bnew\s+boards?\b"),
    rule("application-form", FeatureKind.APPLICATION_FORM,
         r"\bapplication\s+form\b",
         r"\bapply\s+for\b"),
    rule("form", FeatureKind.FORM,
         r"\bforms?\b"),

    rule("todo", FeatureKind.TODO,
         r"\bto-?dos?\b"),
    rule("file-upload", FeatureKind.FILE_UPLOAD,
         r"\buploads?\b|\buploading\b",
         r"\bdocuments?\b",
         r"\bfiles?\b",
         r"\bocr\b",
         r"\bscan\w*"),
    rule("credit-check", FeatureKind.EXTERNAL_SERVICE,
         r"\bcredit\b",
         r"\bscores?\b",
         r"\bapis?\b"),
    rule("approval", FeatureKind.APPROVAL,
         r"\bapprov\w*",
         r"\breject\w*"),
    rule("status-tracker", FeatureKind.STATUS_TRACKER,
         r"\bstatus\w*",
         r"\btrack\w*",
         r"\bprogress\w*",
         r"\bpending\s+actions?\b"),
    rule("notification", FeatureKind.NOTIFICATION,
         r"\bnotif\w*",
         r"\be-?mails?\b",
         r"\bsms\b",
         r"\bbanners?\b",
         r"\btoasts?\b"),
    rule("dashboard", FeatureKind.DASHBOARD,
         r"\bdashboards?\b",
         r"\breport\w*",
         r"\bcharts?\b",
         r"\banalytics\b",
         r"\bkpis?\b"),
    rule("list", FeatureKind.LIST,
         r"\blist\w*",
         r"\btables?\b",
         r"\bdisplay\w*\b.*\busers?\b",
         r"\bdisplay\w*\b.*\bboards?\b"),
)


def task_text(task: Task) -> str:
    """Concatenated, lower-cased title + description. Never raises."""
    title = getattr(task, "title", None) or ""
    description = getattr(task, "description", None) or ""
    return f"{title} {description}".strip().lower()


def _first_match(rules: Sequence[ClassificationRule], text: str) -> Optional[Classification]:
    for candidate in rules:
        pattern = candidate.match(text)
        if pattern is not None:
            return Classification(kind=candidate.kind, rule=candidate.name, pattern=pattern.pattern)
    return None


def explain(task: Task, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> Classification:
    """Classify task and report the rule and pattern that decided it.

    Args:
        task: Task to classify; missing title or description count as empty
        rules: Ordered rule table

    Returns:
        Classification naming the winning rule, or DEFAULT with no rule
    """
    title = (getattr(task, "title", None) or "").lower()
    found = _first_match(rules, title)
    if found is None:
        text = task_text(task)
        primaries = [r for r in rules if not r.companion]
        companions = [r for r in rules if r.companion]
        found = _first_match(primaries, text) or _first_match(companions, text)
    return found or Classification(kind=FeatureKind.DEFAULT)


def classify(task: Task, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> FeatureKind:
    """Return the FeatureKind for task. Pure and deterministic."""
    return explain(task, rules).kind


def classify_text(text: str, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> FeatureKind:
    """Classify a bare descriptor string, as if it were a task title."""
    return classify(Task(id="", title=text or ""), rules)
