"""
Form family features.

Every form validates its fields inline (errors keyed by field name) and only
submits when the story contains a companion task that handles the submitted
data. Without one the submit button stays visible but disabled, with a note
explaining why.
"""

import logging
from typing import Any, Optional

from featuresynth.errors import CapabilityUnavailable, ValidationError
from featuresynth.features import validators
from featuresynth.features.base import Feature, Message
from featuresynth.lib.constants import LOAN_TYPES, SCRATCH_SESSION, SCRATCH_SUBMISSIONS
from featuresynth.models import Application, Board, FeatureKind, User
from featuresynth.store import OperationResult

logger = logging.getLogger(__name__)


class FormFeature(Feature):
    """Field state, inline validation and a guarded asynchronous submit."""

    fields: tuple[str, ...] = ()
    secret_fields: tuple[str, ...] = ()
    submit_label = "Submit"
    gated = True  # submit needs the "submit" capability

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        self.values: dict[str, Any] = self.initial_values()
        self.errors: dict[str, str] = {}
        self.cleaned: dict[str, Any] = {}

    def initial_values(self) -> dict[str, Any]:
        return {name: "" for name in self.fields}

    def set_field(self, name: str, value: Any) -> None:
        if name not in self.fields:
            raise KeyError(f"Unknown field '{name}' on {self.kind.value}")
        self.values[name] = value
        self.errors.pop(name, None)

    def fill(self, **values) -> "FormFeature":
        for name, value in values.items():
            self.set_field(name, value)
        return self

    def clean_field(self, name: str, value: Any) -> Any:
        """Validate one field and return its cleaned value. Override per form."""
        return value.strip() if isinstance(value, str) else value

    def validate(self) -> dict[str, str]:
        """Validate every field, store the inline errors and return them."""
        errors: dict[str, str] = {}
        cleaned: dict[str, Any] = {}
        for name in self.fields:
            try:
                cleaned[name] = self.clean_field(name, self.values.get(name, ""))
            except ValidationError as e:
                errors[e.field] = e.message
        self.errors = errors
        self.cleaned = {} if errors else cleaned
        return errors

    @property
    def can_submit(self) -> bool:
        return not self.gated or self.has("submit")

    async def submit(self) -> Optional[OperationResult]:
        """
        Validate and save the form.

        Returns:
            The OperationResult, or None when validation failed, another
            submit is pending, or the form was unmounted meanwhile

        Raises:
            CapabilityUnavailable: No sibling task handles the submission
        """
        if not self.can_submit:
            raise CapabilityUnavailable("submit", self.task.id)
        if self.busy:
            logger.debug(f"[{self.task.id}] submit ignored: already submitting")
            return None
        if self.validate():
            self._notify()
            return None

        data = dict(self.cleaned)
        return await self._perform(
            "submit",
            lambda: self.save(data),
            on_success=self._submitted,
            retry=self.submit,
        )

    async def save(self, data: dict) -> OperationResult:
        raise NotImplementedError

    def on_saved(self, value: Any) -> None:
        """Hook run with the saved value before the form is cleared."""

    def success_text(self, value: Any) -> str:
        return "Submitted."

    def _submitted(self, value: Any) -> None:
        self.on_saved(value)
        self.values = self.initial_values()
        self.errors = {}
        self.message = Message("success", self.success_text(value))

    def render_body(self) -> dict:
        submit = self.capability("submit") if self.gated else None
        return {
            "fields": [
                {
                    "name": name,
                    "value": "" if name in self.secret_fields else self.values.get(name, ""),
                    "error": self.errors.get(name),
                }
                for name in self.fields
            ],
            "submit": {
                "label": self.submit_label,
                "enabled": self.can_submit and not self.busy,
                "visible": submit.visible if submit else True,
                "note": submit.note if submit else None,
            },
        }


class RegistrationForm(FormFeature):
    kind = FeatureKind.REGISTRATION_FORM
    fields = ("name", "email", "password", "confirm_password")
    secret_fields = ("password", "confirm_password")
    submit_label = "Register"

    def clean_field(self, name, value):
        if name == "name":
            return validators.require(name, value)
        if name == "email":
            address = validators.email(name, value)
            if self.store.users.find(email=address):
                raise ValidationError(name, "An account with this email already exists")
            return address
        if name == "password":
            return validators.min_length(name, value, self.config.min_password_length, "Password")
        if name == "confirm_password":
            # Optional; only checked when the user typed it
            if value and value != self.values.get("password"):
                raise ValidationError(name, "Passwords do not match")
            return value
        return super().clean_field(name, value)

    async def save(self, data):
        user = User(
            id=self.store.new_id("user"),
            name=data["name"],
            email=data["email"],
            password=data["password"],
        )
        return await self.store.users.add(user)

    def success_text(self, value):
        return f"Registered {value.name}."


class LoginForm(FormFeature):
    kind = FeatureKind.LOGIN_FORM
    fields = ("email", "password")
    secret_fields = ("password",)
    submit_label = "Log in"

    def clean_field(self, name, value):
        if name == "email":
            return validators.email(name, value)
        if name == "password":
            return validators.require(name, value, "Password")
        return super().clean_field(name, value)

    async def save(self, data):
        return await self.store.services.authenticate(data["email"], data["password"])

    def on_saved(self, value):
        self.store.scratch.set(SCRATCH_SESSION, value.to_dict())
        logger.info(f"[{self.task.id}] session started for {value.email}")

    def success_text(self, value):
        return f"Welcome back, {value.name}."

    @property
    def session(self) -> Optional[dict]:
        return self.store.scratch.get(SCRATCH_SESSION)

    def logout(self) -> bool:
        """End the mock session. Returns False when nobody was logged in."""
        self.require("logout")
        if self.session is None:
            return False
        self.store.scratch.delete(SCRATCH_SESSION)
        self.message = Message("info", "Signed out.")
        logger.info(f"[{self.task.id}] session ended")
        self._notify()
        return True

    def render_body(self):
        session = self.session
        if session is not None:
            return {"session": session, "actions": self.actions("logout")}
        return super().render_body()


class BoardForm(FormFeature):
    kind = FeatureKind.BOARD_FORM
    fields = ("name", "description")
    submit_label = "Create board"

    def clean_field(self, name, value):
        if name == "name":
            board_name = validators.min_length(name, value, 3, "Board name")
            if any(b.name.lower() == board_name.lower() for b in self.store.boards.list()):
                raise ValidationError(name, "A board with this name already exists")
            return board_name
        return super().clean_field(name, value or "")

    async def save(self, data):
        board = Board(
            id=self.store.new_id("board"),
            name=data["name"],
            description=data.get("description", ""),
        )
        return await self.store.boards.add(board)

    def success_text(self, value):
        return f"Board '{value.name}' created."


class ApplicationForm(FormFeature):
    kind = FeatureKind.APPLICATION_FORM
    fields = ("name", "email", "loan_type", "amount")
    submit_label = "Apply"

    def initial_values(self):
        values = super().initial_values()
        values["loan_type"] = LOAN_TYPES[0]
        return values

    def clean_field(self, name, value):
        if name == "name":
            return validators.require(name, value)
        if name == "email":
            return validators.email(name, value)
        if name == "loan_type":
            return validators.one_of(name, value, LOAN_TYPES)
        if name == "amount":
            return validators.int_in_range(
                name, value, self.config.min_loan_amount, self.config.max_loan_amount
            )
        return super().clean_field(name, value)

    async def save(self, data):
        application = Application(
            id=self.store.new_id("app"),
            name=data["name"],
            email=data["email"],
            loan_type=data["loan_type"],
            amount=data["amount"],
            status=self.config.status_steps[0],
        )
        return await self.store.applications.add(application)

    def success_text(self, value):
        return f"Application for {value.amount:,} submitted."

    def render_body(self):
        body = super().render_body()
        body["choices"] = {"loan_type": list(LOAN_TYPES)}
        return body


class GenericForm(FormFeature):
    """Plain contact-style form; submissions land in the scratch space."""

    kind = FeatureKind.FORM
    fields = ("name", "email", "message")

    def clean_field(self, name, value):
        if name == "email":
            return validators.email(name, value)
        return validators.require(name, value)

    async def save(self, data):
        operation = "submit"
        failure = await self.store.simulate(operation)
        if failure:
            return OperationResult.failure(operation, failure)
        self.store.scratch.append(SCRATCH_SUBMISSIONS, {"task_id": self.task.id, **data})
        return OperationResult.success(operation, data)

    def success_text(self, value):
        return "Thanks, your message was sent."
