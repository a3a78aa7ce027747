"""Supervisor session: executor ownership, polling, reset."""
