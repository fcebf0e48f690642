"""Shared constants for featuresynth."""

import re

# Slug derivation: runs of anything that isn't [a-z0-9] collapse to one hyphen
SLUG_SEPARATOR_PATTERN = re.compile(r'[^a-z0-9]+')

# Mock backend collections, in the order they are seeded and reported
COLLECTIONS = ("users", "boards", "applications", "notifications")

# Scratch space keys
SCRATCH_TODOS = "todos"
SCRATCH_SESSION = "mockUser"
SCRATCH_SUBMISSIONS = "submissions"

DEFAULT_STATUS_STEPS = ("Submitted", "In Review", "Approved", "Disbursed")
REJECTED_STATUS = "Rejected"

LOAN_TYPES = ("Personal", "Home")
