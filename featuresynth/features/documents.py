"""File upload feature with mock OCR verification."""

import logging
from pathlib import PurePath
from typing import Optional

from featuresynth.errors import ValidationError
from featuresynth.features.base import Feature, Message
from featuresynth.models import FeatureKind
from featuresynth.store import OperationResult

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png")


class FileUploadFeature(Feature):
    kind = FeatureKind.FILE_UPLOAD

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        # name -> {"name", "status", "fields"}; status: pending, verified, failed
        self.files: dict[str, dict] = {}

    def add_file(self, name: str) -> dict:
        """Attach a file by name. Raises ValidationError for unsupported types."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("file", "Choose a file to upload")
        if PurePath(name).suffix.lower() not in ACCEPTED_EXTENSIONS:
            raise ValidationError(
                "file", f"Unsupported file type. Accepted: {', '.join(ACCEPTED_EXTENSIONS)}"
            )
        entry = {"name": name, "status": "pending", "fields": None}
        self.files[name] = entry
        self._notify()
        return dict(entry)

    def remove_file(self, name: str) -> bool:
        removed = self.files.pop(name, None) is not None
        if removed:
            self._notify()
        return removed

    async def verify(self, name: str) -> Optional[OperationResult]:
        """Run OCR over an attached file."""
        if name not in self.files:
            raise ValidationError("file", f"'{name}' has not been uploaded")
        return await self._perform(
            "ocr",
            lambda: self.store.services.ocr_extract(name),
            on_success=lambda fields: self._verified(name, fields),
            on_failure=lambda _: self._set_status(name, "failed"),
            retry=lambda: self.verify(name),
        )

    def _set_status(self, name: str, status: str, fields: Optional[dict] = None) -> None:
        entry = self.files.get(name)
        if entry is None:
            # Removed while OCR was running
            return
        entry["status"] = status
        entry["fields"] = fields

    def _verified(self, name: str, fields: dict) -> None:
        self._set_status(name, "verified", fields)
        self.message = Message("success", f"Verified '{name}'.")

    def render_body(self):
        return {
            "accepted": list(ACCEPTED_EXTENSIONS),
            "files": [dict(entry) for entry in self.files.values()],
        }
