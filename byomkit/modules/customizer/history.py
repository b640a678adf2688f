"""
History Manager
===============

Linear undo stack over committed Configuration snapshots. Committing after
an undo discards the undone entries (no redo).
"""

from .models import Configuration


class HistoryManager:

    def __init__(self, initial=None):
        initial = initial if initial is not None else Configuration()
        self.history = [initial.copy()]
        self.index = 0

    @property
    def current(self):
        return self.history[self.index].copy()

    def can_undo(self):
        return self.index > 0

    def commit(self, snapshot):
        """Append a snapshot after the current index and move to it"""
        del self.history[self.index + 1:]
        self.history.append(snapshot.copy())
        self.index = len(self.history) - 1
        return self.index

    def undo(self):
        """Step back one snapshot. Returns the snapshot now current."""
        if self.index > 0:
            self.index -= 1
        return self.current

    def __len__(self):
        return len(self.history)
