"""Type, global, local and parameter symbol tables of the ExpL compiler."""

from dataclasses import dataclass, field as dc_field

# Addresses from here on hold global variables, then locals.
DATA_START = 4096


class CompileError(Exception):
    """Raised for semantic errors in an ExpL program."""


@dataclass(eq=False)
class TypeEntry:
    """A type: its name, its size in words and its fields."""

    name: str
    size: int = 0
    fields: list = dc_field(default_factory=list)


@dataclass(eq=False)
class Field:
    """A field of a user-defined type."""

    name: str
    type: TypeEntry | None
    field_index: int = 0


@dataclass(eq=False)
class Param:
    """A formal parameter of a function."""

    name: str
    type: TypeEntry | None
    amp: int = 0


@dataclass(eq=False)
class GlobalSymbol:
    """A global variable, array or function.

    Functions have a size of -1 and a binding numbering the functions.
    """

    name: str
    type: TypeEntry | None
    size: int
    binding: int
    params: list = dc_field(default_factory=list)
    flabel: int = 0


@dataclass(eq=False)
class LocalSymbol:
    """A local variable of the function being compiled."""

    name: str
    type: TypeEntry | None
    binding: int


def flookup(name, fields):
    """Return the first field called ``name`` in ``fields`` or None."""
    return next((f for f in fields or () if f.name == name), None)


class SymbolTables:
    """All symbol tables, kept in declaration order.

    ``total_count`` is the next free data address and ``fbind`` the number
    of the next function to be declared.
    """

    def __init__(self):
        self.globals = []
        self.locals = []
        self.params = []
        self.types = []
        self.pending_fields = []
        self.total_count = DATA_START
        self.fbind = 0

    def glookup(self, name):
        """Return the global symbol called ``name`` or None."""
        return next((g for g in self.globals if g.name == name), None)

    def ginstall(self, name, type, size, params):
        """Declare a global; a size of -1 declares a function."""
        if self.glookup(name) is not None:
            raise CompileError(f'Variable re-initialized "{name}"')
        if size == -1:
            binding = self.fbind
            self.fbind += 1
        else:
            binding = self.total_count
            self.total_count += size
        symbol = GlobalSymbol(name, type, size, binding, list(params or ()))
        self.globals.append(symbol)
        return symbol

    def llookup(self, name):
        """Return the local symbol called ``name`` or None."""
        return next((s for s in self.locals if s.name == name), None)

    def linstall(self, name, type):
        """Declare a local variable taking the next data address."""
        symbol = LocalSymbol(name, type, self.total_count)
        self.total_count += 1
        self.locals.append(symbol)
        return symbol

    def plookup(self, name):
        """Return the parameter called ``name`` or None."""
        return next((p for p in self.params if p.name == name), None)

    def pinstall(self, name, type):
        """Append a formal parameter."""
        param = Param(name, type)
        self.params.append(param)
        return param

    def tlookup(self, name):
        """Return the type called ``name`` or None."""
        return next((t for t in self.types if t.name == name), None)

    def tinstall(self, name, fields):
        """Declare a type with ``fields``, or with the pending fields if None.

        Fields typed as the placeholder type ``dummy`` refer to the type
        being declared. The pending field list is emptied afterwards.
        """
        entry = TypeEntry(name)
        self.types.append(entry)
        members = list(self.pending_fields if fields is None else fields)
        dummy = self.tlookup("dummy")
        for index, member in enumerate(members):
            if member.type is dummy:
                member.type = self.tlookup(name)
            member.field_index = index
        entry.fields = members
        entry.size = len(members)
        self.pending_fields = []
        return entry

    def finstall(self, type, name):
        """Add a field to the list pending for the next type declaration."""
        member = Field(name, type)
        self.pending_fields.append(member)
        return member

    def symbol_table_lines(self):
        """Return one ``name----type-----binding`` line per global symbol."""
        return [
            f"{g.name}----{g.type.name if g.type else None}-----{g.binding}"
            for g in self.globals
        ]