"""Register, label and output bookkeeping for ExpL code generation."""

# The register allocator refuses to hand out registers past this index.
MAX_REGISTER = 16

# Generated labels are numbered from here on; lower numbers belong to the
# heap routines.
FIRST_LABEL = 3


class RegisterOverflow(Exception):
    """Raised when an expression needs more registers than the machine has."""


class Emitter:
    """Collects assembly lines and hands out labels and registers.

    ``counter`` is the highest register in use, -1 when none is.
    """

    def __init__(self):
        self.counter = -1
        self.label = FIRST_LABEL
        self._lines = []

    def get_label(self):
        """Return the number of a fresh label."""
        self.label += 1
        return self.label

    def get_reg(self):
        """Allocate the next register and return its number."""
        if self.counter >= MAX_REGISTER:
            raise RegisterOverflow("Running out of registers")
        self.counter += 1
        return self.counter

    def free_reg(self):
        """Release the most recently allocated register, if any."""
        if self.counter >= 0:
            self.counter -= 1

    def free_all(self):
        """Release every register."""
        self.counter = -1

    def emit(self, line):
        """Append one assembly line."""
        self._lines.append(line)

    @property
    def lines(self):
        """The lines emitted so far."""
        return list(self._lines)

    def text(self):
        """Return the emitted assembly, one line per instruction."""
        return "".join(f"{line}\n" for line in self._lines)


def local_offset(tables, name):
    """Return the position of local ``name`` among the locals, or None."""
    return next(
        (index for index, symbol in enumerate(tables.locals) if symbol.name == name),
        None,
    )


def param_offset(tables, name):
    """Return the position of parameter ``name`` among the parameters, or None."""
    return next(
        (index for index, param in enumerate(tables.params) if param.name == name),
        None,
    )