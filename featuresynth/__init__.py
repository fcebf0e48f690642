"""featuresynth - turn epics, user stories and tasks into working mock features."""

__version__ = "0.1.0"
