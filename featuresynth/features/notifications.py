"""Notification feature: compose and send through an unreliable channel."""

import logging

from featuresynth.errors import ValidationError
from featuresynth.features import validators
from featuresynth.features.forms import FormFeature
from featuresynth.models import FeatureKind, Notification

logger = logging.getLogger(__name__)

CHANNELS = ("email", "sms", "banner")
RECENT_LIMIT = 5


class NotificationFeature(FormFeature):
    kind = FeatureKind.NOTIFICATION
    fields = ("channel", "recipient", "message")
    submit_label = "Send"
    gated = False

    def initial_values(self):
        values = super().initial_values()
        values["channel"] = CHANNELS[0]
        return values

    def watched_collections(self):
        return ("notifications",)

    def clean_field(self, name, value):
        if name == "channel":
            return validators.one_of(name, value, CHANNELS)
        if name == "recipient":
            channel = self.values.get("channel")
            if channel == "email":
                return validators.email(name, value)
            if channel == "sms":
                return validators.phone(name, value)
            # Banners go to everyone currently using the app
            return (value or "").strip() or "all"
        if name == "message":
            text = validators.require(name, value, "Message")
            if len(text) > 500:
                raise ValidationError(name, "Message must be at most 500 characters")
            return text
        return super().clean_field(name, value)

    async def send(self):
        return await self.submit()

    async def save(self, data):
        notification = Notification(
            id=self.store.new_id("notification"),
            channel=data["channel"],
            recipient=data["recipient"],
            message=data["message"],
        )
        return await self.store.services.send_notification(notification)

    def success_text(self, value):
        return f"Sent {value.channel} notification to {value.recipient}."

    def recent(self) -> list[dict]:
        return [n.to_dict() for n in reversed(self.store.notifications.list()[-RECENT_LIMIT:])]

    def render_body(self):
        body = super().render_body()
        body["choices"] = {"channel": list(CHANNELS)}
        body["recent"] = self.recent()
        return body
