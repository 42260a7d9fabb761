"""Mapping from assembly label names to code addresses."""


class LabelMap:
    """Label names and their addresses, kept in the order they were added."""

    def __init__(self):
        self._entries = []

    def append(self, label, addr):
        """Record that ``label`` stands for address ``addr``."""
        self._entries.append((label, addr))

    def find(self, name):
        """Return the address of the first label called ``name``, or -1."""
        return next((addr for label, addr in self._entries if label == name), -1)

    def __len__(self):
        return len(self._entries)

    def lines(self):
        """Return one ``name : address`` line per entry."""
        return [f"{label} : {addr}" for label, addr in self._entries]