"""Tests for featuresynth.features.forms module."""

import asyncio

import pytest

from featuresynth.errors import CapabilityUnavailable
from featuresynth.features.forms import (
    ApplicationForm,
    BoardForm,
    GenericForm,
    LoginForm,
    RegistrationForm,
)
from featuresynth.lib.constants import SCRATCH_SESSION, SCRATCH_SUBMISSIONS
from featuresynth.lib.services_config import ServiceProfile

HANDLER = "Handle Form Submission"


class TestSubmitCapability:
    """Forms without a handler sibling."""

    def test_disabled_with_note(self, store, build):
        form = build(store, "Registration Form")
        submit = form.render()["body"]["submit"]

        assert submit["visible"]
        assert not submit["enabled"]
        assert "no task in this story handles" in submit["note"]

    def test_submit_raises(self, store, build):
        form = build(store, "Registration Form")
        form.fill(name="Carol", email="carol@example.com", password="secret1")
        with pytest.raises(CapabilityUnavailable):
            asyncio.run(form.submit())
        assert len(store.users) == 3


class TestRegistrationForm:

    @pytest.fixture
    def form(self, store, build):
        form = build(store, "Registration Form", HANDLER)
        assert isinstance(form, RegistrationForm)
        return form

    def test_inline_errors(self, form, store):
        form.fill(name="", email="not-an-email", password="123")
        result = asyncio.run(form.submit())

        assert result is None
        assert set(form.errors) == {"name", "email", "password"}
        assert len(store.users) == 3
        rendered = {f["name"]: f["error"] for f in form.render()["body"]["fields"]}
        assert rendered["password"] == "Password must be at least 6 characters"

    def test_duplicate_email(self, form):
        form.fill(name="Demo", email="USER@example.com", password="secret1")
        assert "email" in form.validate()

    def test_confirm_password_mismatch(self, form):
        form.fill(name="Carol", email="carol@example.com", password="secret1", confirm_password="other")
        assert form.validate() == {"confirm_password": "Passwords do not match"}

    def test_editing_clears_field_error(self, form):
        form.fill(name="")
        form.validate()
        form.set_field("name", "Carol")
        assert "name" not in form.errors

    def test_unknown_field(self, form):
        with pytest.raises(KeyError):
            form.set_field("age", 3)

    def test_success_resets_form(self, form, store):
        form.fill(name="Carol", email="carol@example.com", password="secret1")
        result = asyncio.run(form.submit())

        assert result.ok
        assert form.message.text == "Registered Carol."
        assert form.values["name"] == ""
        assert store.users.find(email="carol@example.com")[0].name == "Carol"

    def test_password_never_rendered(self, form):
        form.fill(password="secret1")
        fields = {f["name"]: f["value"] for f in form.render()["body"]["fields"]}
        assert fields["password"] == ""

    def test_no_double_submit(self, form, store):
        form.fill(name="Carol", email="carol@example.com", password="secret1")

        async def double():
            return await asyncio.gather(form.submit(), form.submit())

        first, second = asyncio.run(double())

        assert first.ok
        assert second is None
        assert len(store.users) == 4

    def test_busy_while_pending(self, form):
        form.fill(name="Carol", email="carol@example.com", password="secret1")
        seen = []

        async def scenario():
            pending = asyncio.ensure_future(form.submit())
            await asyncio.sleep(0)
            seen.append(form.busy)
            seen.append(form.render()["body"]["submit"]["enabled"])
            await pending

        asyncio.run(scenario())
        assert seen == [True, False]
        assert not form.busy

    def test_unmount_discards_late_result(self, form, store):
        form.mount()
        form.fill(name="Carol", email="carol@example.com", password="secret1")

        async def scenario():
            pending = asyncio.ensure_future(form.submit())
            await asyncio.sleep(0)
            form.unmount()
            return await pending

        result = asyncio.run(scenario())

        assert result is None
        assert form.message is None
        assert form.values["name"] == "Carol"
        # The store is never told to cancel
        assert len(store.users) == 4

    def test_service_failure_offers_retry(self, failing_store, build):
        form = build(failing_store, "Registration Form", HANDLER)
        form.fill(name="Carol", email="carol@example.com", password="secret1")

        result = asyncio.run(form.submit())

        assert result.is_service_failure
        assert form.message.level == "error"
        assert form.message.retry == "retry"
        assert form.values["name"] == "Carol"

    def test_retry_after_recovery(self, failing_store, build):
        form = build(failing_store, "Registration Form", HANDLER)
        form.fill(name="Carol", email="carol@example.com", password="secret1")
        asyncio.run(form.submit())

        failing_store.config.services.profiles["add"] = ServiceProfile(0.0, 0.0, 0.0)
        result = asyncio.run(form.retry())

        assert result.ok
        assert form.message.level == "success"

    def test_dismiss_message(self, failing_store, build):
        form = build(failing_store, "Registration Form", HANDLER)
        form.fill(name="Carol", email="carol@example.com", password="secret1")
        asyncio.run(form.submit())

        form.dismiss_message()

        assert form.message is None
        assert asyncio.run(form.retry()) is None


class TestLoginForm:

    TASKS = ("Login Form", "Mock authentication handler", "Logout button")

    def test_wrong_password(self, store, build):
        form = build(store, *self.TASKS)
        assert isinstance(form, LoginForm)
        form.fill(email="user@example.com", password="wrong")

        result = asyncio.run(form.submit())

        assert not result.ok
        assert form.message.text == "Invalid email or password"
        assert form.message.retry is None
        assert store.scratch.get(SCRATCH_SESSION) is None

    def test_login_and_logout(self, store, build):
        form = build(store, *self.TASKS)
        form.fill(email="user@example.com", password="password123")

        asyncio.run(form.submit())

        assert form.session["email"] == "user@example.com"
        assert "password" not in form.session
        body = form.render()["body"]
        assert body["actions"] == ["logout"]

        assert form.logout()
        assert form.session is None
        assert "fields" in form.render()["body"]

    def test_logout_needs_companion(self, store, build):
        form = build(store, "Login Form", "Mock authentication handler")
        with pytest.raises(CapabilityUnavailable):
            form.logout()


class TestBoardForm:

    TASKS = ("Create New Board", "Save board to storage")

    def test_name_rules(self, store, build):
        form = build(store, *self.TASKS)
        assert isinstance(form, BoardForm)

        form.fill(name="ab")
        assert "at least 3" in form.validate()["name"]

        form.fill(name="product roadmap")
        assert "already exists" in form.validate()["name"]

    def test_creates_board(self, store, build):
        form = build(store, *self.TASKS)
        form.fill(name="Launch Plan", description="Q3")
        result = asyncio.run(form.submit())

        assert result.ok
        assert store.boards.list()[-1].name == "Launch Plan"


class TestApplicationForm:

    TASKS = ("Loan Application Form", HANDLER)

    def test_validation(self, store, build):
        form = build(store, *self.TASKS)
        assert isinstance(form, ApplicationForm)
        form.fill(name="Dan", email="dan@example.com", loan_type="Car", amount="500")

        errors = form.validate()

        assert set(errors) == {"loan_type", "amount"}

    def test_amount_must_be_number(self, store, build):
        form = build(store, *self.TASKS)
        form.fill(name="Dan", email="dan@example.com", amount="lots")
        assert form.validate() == {"amount": "Enter a whole number"}

    def test_submits_at_first_step(self, store, build):
        form = build(store, *self.TASKS)
        form.fill(name="Dan", email="dan@example.com", loan_type="Home", amount="150,000")

        result = asyncio.run(form.submit())

        assert result.ok
        application = store.applications.list()[-1]
        assert application.amount == 150_000
        assert application.status == "Submitted"
        assert form.values["loan_type"] == "Personal"


class TestGenericForm:

    def test_submission_in_scratch(self, store, build):
        form = build(store, "Contact form", HANDLER)
        assert isinstance(form, GenericForm)
        form.fill(name="Eve", email="eve@example.com", message="Hello")

        result = asyncio.run(form.submit())

        assert result.ok
        submissions = store.scratch.get(SCRATCH_SUBMISSIONS)
        assert submissions == [
            {"task_id": "task-1", "name": "Eve", "email": "eve@example.com", "message": "Hello"}
        ]
