"""Interleaved learning toolkit: study plans, mixed quizzes, flashcard sampling and progress tracking."""

__version__ = "0.1.0"
