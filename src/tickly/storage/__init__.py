"""
Persistence.

Components:
- debounced.py: coalescing, single-writer save scheduling
- task_store.py / progress_store.py: JSON files on disk
- records.py: flat JSON record codec
- bundle.py: export/import of all data as one file
"""
