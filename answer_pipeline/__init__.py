"""AI answer pipeline for learner questions."""

__version__ = "0.1.0"
