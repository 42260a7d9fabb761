"""Label bookkeeping for SPL code generation."""


class LabelError(Exception):
    """Raised for redeclared labels or loop control outside a loop."""


class LabelTable:
    """Declared labels, generated label names and the stack of enclosing loops."""

    def __init__(self):
        self._declared = set()
        self._next_id = 1
        self._loops = []

    def create(self):
        """Return a fresh generated label name."""
        name = f"_L{self._next_id}"
        self._next_id += 1
        return name

    def add(self, name, line):
        """Declare a user label; raise LabelError if it already exists."""
        if name in self._declared:
            raise LabelError(f"{line}: Label '{name}' redeclared.")
        self._declared.add(name)
        return name

    def get(self, name):
        """Return the label name if declared, else None."""
        return name if name in self._declared else None

    def __contains__(self, name):
        return name in self._declared

    def push_loop(self, start, end):
        """Enter a loop whose start and end labels are given."""
        self._loops.append((start, end))

    def pop_loop(self):
        """Leave the innermost loop."""
        if not self._loops:
            raise LabelError("no enclosing loop")
        self._loops.pop()

    def _innermost(self):
        if not self._loops:
            raise LabelError("break or continue outside a loop")
        return self._loops[-1]

    def loop_end(self):
        """Return the end label of the innermost loop."""
        return self._innermost()[1]

    def loop_start(self):
        """Return the start label of the innermost loop."""
        return self._innermost()[0]