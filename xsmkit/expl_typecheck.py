"""Semantic checks applied while building ExpL syntax trees."""

from xsmkit.expl_symbols import CompileError, flookup

_MUST_MATCH = {
    "r": "return type do not match with the function return type",
    "i": "Expected boolean , Found value in if",
    "e": "Expected boolean , Found value in if else",
    "w": "Expected boolean , Found value in while",
    "a": "conflict in assignment types",
    "d": "conflict in operand types in DEQ",
    "n": "conflict in operand types in NEQ",
}

_NO_STRING = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "MUL",
    "/": "DIV",
    "%": "MOD",
    "<": "LT",
    ">": "GT",
    "#": "LE",
    "$": "GE",
}


def prologue(total_count):
    """Return the header and start-up code of a compiled program."""
    header = "0\n2056\n0\n0\n0\n0\n0\n0\n"
    return (
        header
        + f"MOV SP,{total_count - 1}\n"
        + f"MOV BP,{total_count}\n"
        + "PUSH R0\n"
        + "CALL MAIN\n"
        + "INT 10\n"
    )


def last_node(head):
    """Follow ``ptr2`` links from ``head`` and return the last node."""
    while head.ptr2 is not None:
        head = head.ptr2
    return head


class TypeChecker:
    """Checks declarations and expressions against the symbol tables."""

    def __init__(self, tables):
        self.tables = tables

    def _type(self, name):
        return self.tables.tlookup(name)

    def _is_basic(self, t):
        return t is self._type("integer") or t is self._type("string")

    def verify(self, node, check_global, check_local, check_param, type):
        """Reject redeclared names and arrays of non-integer types."""
        if check_local and self.tables.llookup(node.name) is not None:
            raise CompileError("Re initialization of variable")
        if check_param and self.tables.plookup(node.name) is not None:
            raise CompileError("Re initialization of variable in paramlist")
        if check_global and self.tables.glookup(node.name) is not None:
            raise CompileError("Re initialization of identifier")
        if type is not None and type is not self._type("integer"):
            raise CompileError("arrays of udt and strings are not allowed")
        return True

    def install_array(self, node, size_node, type):
        """Declare a global array of integers or strings."""
        if type is self._type("integer"):
            array_type = self._type("array_integer")
        elif type is self._type("string"):
            array_type = self._type("array_string")
        else:
            raise CompileError("arrays of udt is not allowed")
        return self.tables.ginstall(node.name, array_type, size_node.value, None)

    def compare(self, t1, t2, op):
        """Check operand types for operator code ``op``.

        The code ``" "`` only reports whether the types are equal; every
        other code raises CompileError on a conflict and returns True.
        """
        if op == " ":
            return t1 is t2
        if op in _MUST_MATCH:
            if t1 is not t2:
                raise CompileError(_MUST_MATCH[op])
        elif op in _NO_STRING:
            string = self._type("string")
            if t1 is string or t2 is string:
                raise CompileError(f"conflict in operand types in {_NO_STRING[op]}")
        elif op in ("&", "|"):
            boolean = self._type("boolean")
            if not (t1 is boolean and t2 is boolean):
                name = "AND" if op == "&" else "OR"
                raise CompileError(f"conflict in operand types in {name}")
        elif op == "!":
            if t1 is not self._type("boolean"):
                raise CompileError("conflict in operand types in NOT")
        elif op == "=":
            if self._is_basic(t1):
                raise CompileError("conflict in operand types in DEQNILL")
        elif op in ("^", "x"):
            if op == "^" and self._is_basic(t1):
                raise CompileError("conflict in operand types in NEQNILL")
            # The != null check also applies the exposcall check.
            self._check_exposcall(t1, t2)
        return True

    def _check_exposcall(self, t1, t2):
        string = self._type("string")
        if t2 is not None:
            if t2 is not string:
                raise CompileError("invalid fun_code type in exposcall")
        elif t1 is string:
            raise CompileError("invalid return type to exposcall")

    @staticmethod
    def _non_udt_error(free, alloc, field_access):
        if free:
            return CompileError("cannot free a non udt")
        if alloc:
            return CompileError("cannot ALLOC a non udt")
        if field_access:
            return CompileError(". operation over integer/string type is not allowed")
        return CompileError("cannot assign null to non-udt")

    @staticmethod
    def _attach_field(node, field):
        fields = node.type.fields if node.type is not None else ()
        member = flookup(field.name, fields)
        if member is None:
            raise CompileError("Un-declared field variable")
        field.type = member.type
        node.ptr2 = field

    def _resolve_variable(self, node, field, symbol_type, udt, free, alloc, field_access):
        if udt and self._is_basic(symbol_type):
            raise self._non_udt_error(free, alloc, field_access)
        node.type = symbol_type
        if field_access:
            self._attach_field(node, field)

    def assign(self, node, field, udt, free, alloc, field_access, read):
        """Resolve an identifier to a local, parameter or global and type it.

        ``udt`` requires a user-defined type; ``free``, ``alloc`` and
        ``field_access`` select the error reported otherwise, and
        ``field_access`` attaches ``field`` as the accessed member.
        """
        local = self.tables.llookup(node.name)
        if local is not None:
            self._resolve_variable(node, field, local.type, udt, free, alloc, field_access)
            return True

        param = self.tables.plookup(node.name)
        if param is not None:
            if not read:
                self._resolve_variable(
                    node, field, param.type, udt, free, alloc, field_access
                )
            elif self._is_basic(param.type):
                node.type = param.type
            return True

        symbol = self.tables.glookup(node.name)
        if symbol is None:
            raise CompileError(f"Un-declared variable {node.name}")
        is_array = symbol.type is not None and (
            symbol.type is self._type("array_integer")
            or symbol.type is self._type("array_string")
        )
        if not read and is_array:
            if field_access:
                raise CompileError(f". operation over arrays not allowed {node.name}")
            raise CompileError(
                f"conflict in ID NodeType : Expected Variable . Found Array {node.name}"
            )
        if udt and self._is_basic(symbol.type):
            raise self._non_udt_error(free, alloc, field_access)
        if not free:
            node.gentry = symbol
        node.type = symbol.type
        if field_access:
            self._attach_field(node, field)
        return True

    def assign_array(self, node, index, func):
        """Resolve an array element or, with ``func``, a function call.

        Returns False for a function and True for an array element.
        """
        symbol = self.tables.glookup(node.name)
        if symbol is None:
            raise CompileError(f"Un-declared identifier {node.name}")
        if func:
            if symbol.size != -1:
                raise CompileError(
                    f"conflict in ID NodeType : Expected Function {node.name}"
                )
            node.gentry = symbol
            node.type = symbol.type
            return False
        if self._is_basic(symbol.type):
            raise CompileError(
                f"conflict in ID NodeType : Expected Variable , Found Array {node.name}"
            )
        if index.type is not self._type("integer"):
            raise CompileError(f"Expected value {node.name}")
        node.gentry = symbol
        if symbol.type is self._type("array_integer"):
            node.type = self._type("integer")
        elif symbol.type is self._type("array_string"):
            node.type = self._type("string")
        return True