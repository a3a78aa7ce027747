"""
Board subsystem.

Components:
- models.py: data structures (Task, Board, TaskStatus) + dependency checks
- board_model.py: in-memory snapshot with derived views
- stuck_detector.py: pure stuck/not-stuck verdict over a snapshot
- bulk_reset.py: in_progress -> pending batch reset
- board_store.py: SQLite-backed storage
"""
