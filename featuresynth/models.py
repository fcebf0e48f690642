"""
Data models for featuresynth.

Epic -> UserStory -> Task hierarchy as handed over by the shell, the
FeatureKind tags assigned by the classifier, and the entities held by the
mock backend store.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum

from featuresynth.lib.constants import SLUG_SEPARATOR_PATTERN


def slugify(text: str | None) -> str:
    """Derive a URL slug: lowercase, non-alphanumeric runs -> '-', trimmed."""
    if not text:
        return ""
    return SLUG_SEPARATOR_PATTERN.sub("-", text.lower()).strip("-")


@dataclass(frozen=True)
class Task:
    """Leaf work item, described only by free text."""
    id: str
    title: str
    description: str = ""
    acceptance_criteria: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        """Lower-cased title + description, the only classifier input."""
        return f"{self.title or ''} {self.description or ''}".strip().lower()


@dataclass
class UserStory:
    """A named unit of work containing Tasks."""
    id: str
    title: str
    description: str = ""
    tasks: list[Task] = field(default_factory=list)


@dataclass
class Epic:
    """Top-level grouping of UserStories."""
    id: str
    title: str
    description: str = ""
    user_stories: list[UserStory] = field(default_factory=list)

    @property
    def slug(self) -> str:
        return slugify(self.id)


class FeatureKind(Enum):
    """Category a Task is classified into."""

    # Form family
    FORM = "form"
    REGISTRATION_FORM = "registration_form"
    LOGIN_FORM = "login_form"
    BOARD_FORM = "board_form"
    APPLICATION_FORM = "application_form"

    # Companions - only ever change how a sibling behaves
    FORM_HANDLER = "form_handler"
    REMOVE = "remove"
    FILTER = "filter"
    LOGOUT = "logout"

    LIST = "list"
    TODO = "todo"
    STATUS_TRACKER = "status_tracker"
    FILE_UPLOAD = "file_upload"
    EXTERNAL_SERVICE = "external_service"
    APPROVAL = "approval"
    NOTIFICATION = "notification"
    DASHBOARD = "dashboard"
    DEFAULT = "default"

    @property
    def is_form(self) -> bool:
        return self in FORM_KINDS


FORM_KINDS = frozenset({
    FeatureKind.FORM,
    FeatureKind.REGISTRATION_FORM,
    FeatureKind.LOGIN_FORM,
    FeatureKind.BOARD_FORM,
    FeatureKind.APPLICATION_FORM,
})


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


@dataclass
class User:
    id: str
    name: str
    email: str
    password: str  # mock auth only, stored in clear on purpose
    created: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("password")
        return data


@dataclass
class Board:
    id: str
    name: str
    description: str = ""
    created: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Application:
    """A mock loan application."""
    id: str
    name: str
    email: str
    loan_type: str
    amount: int
    status: str = "Submitted"
    created: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Notification:
    id: str
    channel: str  # email, sms, banner
    recipient: str
    message: str
    sent_at: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)
