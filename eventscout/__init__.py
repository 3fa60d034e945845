"""eventScout -- search orchestration engine for event discovery."""

__version__ = "0.1.0"
