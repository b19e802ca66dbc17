"""
Task subsystem.

Components:
- task_models.py: data structures (Task, DailyProgressEntry, enums, Color)
- date_math.py: pure date arithmetic for repetition rules
- recurrence.py: completion / reset / load catch-up of due dates
- list_state.py: order, position colors and aggregate progress
"""
