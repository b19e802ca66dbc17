"""tickly: a personal task tracker with repeating tasks and daily progress."""

__version__ = "0.1.0"
