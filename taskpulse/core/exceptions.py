# taskpulse/core/exceptions.py


class TaskStoreError(Exception):
    """A task store could not read or write its backing data."""
