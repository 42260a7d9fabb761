"""Assembly generation for ExpL syntax trees."""

from xsmkit.expl_ast import NodeKind
from xsmkit.expl_emitter import Emitter, local_offset, param_offset
from xsmkit.expl_symbols import CompileError

_BINARY = {
    NodeKind.LE: "LE",
    NodeKind.GE: "GE",
    NodeKind.LT: "LT",
    NodeKind.GT: "GT",
    NodeKind.DEQ: "EQ",
    NodeKind.NEQ: "NE",
    NodeKind.PLUS: "ADD",
    NodeKind.MINUS: "SUB",
    NodeKind.MUL: "MUL",
    NodeKind.DIV: "DIV",
    NodeKind.MOD: "MOD",
}

# Number of argument slots, including the function code, of a system call.
_SYSCALL_ARGS = 4

# Scratch memory word holding the address passed to a read of an array element.
_READ_SCRATCH = 2044


def _fields_of(type_entry):
    return type_entry.fields if type_entry is not None else []


class ExplCodeGenerator:
    """Walks ExpL syntax trees and collects the generated assembly.

    ``take_address`` makes the next identifier yield its address instead of
    its value; ``field_address`` does the same for a field access or an
    identifier used as the target of a read.
    """

    def __init__(self, tables):
        self.tables = tables
        self.emitter = Emitter()
        self.take_address = False
        self.field_address = False
        self.loop_start = 0
        self.loop_end = 0
        self._write_call = False
        self._read_call = False
        self._dispatch = {
            NodeKind.AND: self._and,
            NodeKind.OR: self._or,
            NodeKind.NOT: self._not,
            NodeKind.ID: self._id,
            NodeKind.FIELD: self._field,
            NodeKind.ARRAY: self._array,
            NodeKind.NUM: self._num,
            NodeKind.STRVAL: self._strval,
            NodeKind.ASGN: self._assign,
            NodeKind.ARRAY_ASGN: self._array_assign,
            NodeKind.READ: self._read,
            NodeKind.ARRAY_READ: self._array_read,
            NodeKind.WRITE: self._write,
            NodeKind.IF: self._if,
            NodeKind.IF_ELSE: self._if_else,
            NodeKind.WHILE: self._while,
            NodeKind.FUNC: self._call,
            NodeKind.RET: self._return,
            NodeKind.BRK: self._break,
            NodeKind.CONTINUE: self._continue,
            NodeKind.BRKP: self._breakpoint,
            NodeKind.ALLOC: self._alloc,
            NodeKind.FREE: self._free,
            NodeKind.NILL: self._nill,
            NodeKind.INIT: self._init,
            NodeKind.EXPOSCALL: self._exposcall,
        }

    def output(self):
        """Return the assembly generated so far."""
        return self.emitter.text()

    def generate(self, root):
        """Emit code for ``root``; return the register holding its value, or 0."""
        if root is None:
            return 0
        kind = root.nodetype
        if kind == NodeKind.EXPR:
            self._arguments(root)
            return 0
        if kind == NodeKind.DEFAULT:
            self.generate(root.ptr1)
            self.generate(root.ptr2)
            return 0
        if kind in _BINARY:
            return self._binary(root, _BINARY[kind])
        handler = self._dispatch.get(kind)
        if handler is None:
            raise CompileError(f"NODETYPE is {int(kind)}\nError : Unknown node Type")
        return handler(root)

    # helpers

    def _emit(self, line):
        self.emitter.emit(line)

    def _get(self):
        return self.emitter.get_reg()

    def _release(self):
        self.emitter.free_reg()

    @staticmethod
    def _binding(node):
        if node.gentry is None:
            raise CompileError(f"Un-declared variable {node.name}")
        return node.gentry.binding

    def _save_registers(self):
        status = self.emitter.counter
        for reg in range(status + 1):
            self._emit(f"PUSH R{reg}")
        return status

    def _restore_registers(self, status):
        for reg in range(status, -1, -1):
            self._emit(f"POP R{reg}")
        self.emitter.counter = status
        return status + 1

    def _local_address(self, scratch, offset):
        address = self._get()
        self._emit(f"MOV R{address},BP")
        self._emit(f"MOV R{scratch},{offset + 1}")
        self._emit(f"ADD R{address},R{scratch}")
        return address

    def _param_address(self, offset):
        address = self._get()
        self._emit(f"MOV R{address},BP")
        scratch = self._get()
        self._emit(f"MOV R{scratch},2")
        self._emit(f"SUB R{address},R{scratch}")
        self._emit(f"MOV R{scratch},{offset + 1}")
        self._emit(f"SUB R{address},R{scratch}")
        self._release()
        return address

    def _fetch_result(self, popped):
        r1 = self._get()
        r2 = self._get()
        self._emit(f"MOV R{r1},{popped + 5}")
        self._emit(f"MOV R{r2},SP")
        self._emit(f"ADD R{r2},R{r1}")
        self._emit(f"MOV R{r1},[R{r2}]")
        self._release()
        return r1

    def _call_tail(self, pending, status):
        self._emit("ADD SP,2")
        self.emitter.free_all()
        self._emit("CALL 0")
        self._emit("SUB SP,5")
        for _ in range(pending):
            self._emit("POP R0")
        self._restore_registers(status)

    def _read_header(self):
        self._emit('MOV R0,"Read"')
        self._emit("PUSH R0")
        self._emit("MOV R0,-1")
        self._emit("PUSH R0")

    # node handlers

    def _arguments(self, root):
        count = len(root.ptr3 or ())
        if count < 1:
            raise CompileError("argument list for a function without parameters")
        node = root
        for _ in range(count - 1):
            reg = self.generate(node.ptr1)
            self._emit(f"PUSH R{reg}")
            self._release()
            node = node.ptr2
        reg = self.generate(node)
        self._emit(f"PUSH R{reg}")
        self._release()

    def _binary(self, node, op):
        r1 = self.generate(node.ptr1)
        r2 = self.generate(node.ptr2)
        self._emit(f"{op} R{r1},R{r2}")
        self._release()
        return r1

    def _short_circuit(self, node, jump, combine):
        r1 = self.generate(node.ptr1)
        r2 = self._get()
        self._emit(f"MOV R{r2},1")
        label = self.emitter.get_label()
        self._emit(f"{jump} R{r1},L{label}")
        r3 = self.generate(node.ptr2)
        self._emit(f"MOV R{r2},R{r3}")
        self._release()
        self._emit(f"L{label}:")
        self._emit(f"{combine} R{r1},R{r2}")
        self._release()
        return r1

    def _and(self, node):
        return self._short_circuit(node, "JZ", "MUL")

    def _or(self, node):
        return self._short_circuit(node, "JNZ", "ADD")

    def _not(self, node):
        r1 = self.generate(node.ptr2)
        l1 = self.emitter.get_label()
        self._emit(f"JNZ R{r1},L{l1}")
        self._emit(f"MOV R{r1},1")
        l2 = self.emitter.get_label()
        self._emit(f"JMP L{l2}")
        self._emit(f"L{l1}:")
        self._emit(f"MOV R{r1},0")
        self._emit(f"L{l2}:")
        return r1

    def _id(self, node):
        r1 = self._get()
        offset = local_offset(self.tables, node.name)
        if offset is not None:
            r2 = self._local_address(r1, offset)
            if self.take_address:
                self._emit(f"MOV R{r1},R{r2}")
                self.take_address = False
            else:
                self._emit(f"MOV R{r1},[R{r2}]")
                if self.field_address:
                    self._emit(f"MOV R{r1},R{r2}")
                    self.field_address = False
            self._release()
            return r1
        offset = param_offset(self.tables, node.name)
        if offset is not None:
            r2 = self._param_address(offset)
            self._emit(f"MOV R{r1},[R{r2}]")
            self.take_address = False
            self.field_address = False
            self._release()
            return r1
        binding = self._binding(node)
        if self.take_address:
            self._emit(f"MOV R{r1},{binding}")
            self.take_address = False
        else:
            self._emit(f"MOV R{r1},[{binding}]")
            if self.field_address:
                self._emit(f"MOV R{r1},{binding}")
                self.field_address = False
        return r1

    def _walk_fields(self, node, fields, r1, r2):
        current = node
        while current.ptr2 is not None:
            target = current.ptr2.name
            for index, member in enumerate(fields, start=1):
                if member.name == target:
                    r2 = self._get()
                    self._emit(f"MOV R{r2},{index}")
                    self._emit(f"ADD R{r2},R{r1}")
                    self._emit(f"MOV R{r1},[R{r2}]")
                    self._release()
                    break
            current = current.ptr2
        return r2

    def _field(self, node):
        r1 = self._get()
        offset = local_offset(self.tables, node.name)
        if offset is not None:
            r2 = self._local_address(r1, offset)
            self._emit(f"MOV R{r1},[R{r2}]")
            self._release()
            fields = _fields_of(self.tables.llookup(node.name).type)
        else:
            offset = param_offset(self.tables, node.name)
            if offset is not None:
                r2 = self._param_address(offset)
                self._emit(f"MOV R{r1},[R{r2}]")
                self._release()
                fields = _fields_of(self.tables.plookup(node.name).type)
            else:
                r2 = None
                self._emit(f"MOV R{r1},[{self._binding(node)}]")
                fields = _fields_of(node.gentry.type)
        r2 = self._walk_fields(node, fields, r1, r2)
        if self.field_address:
            if r2 is None:
                raise CompileError(f"Un-declared field variable in {node.name}")
            self._emit(f"MOV R{r1},R{r2}")
            self.field_address = False
        return r1

    def _array(self, node):
        saved = self.field_address
        self.field_address = False
        offset = self.generate(node.ptr2)
        self.field_address = saved
        r1 = self._get()
        self._emit(f"MOV R{r1},{self._binding(node.ptr1)}")
        self._emit(f"ADD R{r1},R{offset}")
        self._emit(f"MOV R{offset},[R{r1}]")
        if self.field_address:
            self._emit(f"MOV R{offset},R{r1}")
            self.field_address = False
        self._release()
        return offset

    def _num(self, node):
        r1 = self._get()
        self._emit(f"MOV R{r1},{node.value}")
        return r1

    def _strval(self, node):
        r1 = self._get()
        self._emit(f'MOV R{r1},"{node.name}"')
        return r1

    def _assign(self, node):
        number = self.generate(node.ptr2)
        target = node.ptr1
        if target.nodetype == NodeKind.FIELD:
            self.field_address = True
            r1 = self.generate(target)
            self._emit(f"MOV [R{r1}],R{number}")
            self._release()
        else:
            offset = local_offset(self.tables, target.name)
            if offset is not None:
                r1 = self._get()
                r2 = self._local_address(r1, offset)
                self._emit(f"MOV [R{r2}],R{number}")
                self._release()
                self._release()
            else:
                offset = param_offset(self.tables, target.name)
                if offset is not None:
                    r1 = self._param_address(offset)
                    self._emit(f"MOV [R{r1}],R{number}")
                    self._release()
                else:
                    self._emit(f"MOV [{self._binding(target)}],R{number}")
        self._release()
        return 0

    def _array_assign(self, node):
        index = self.generate(node.ptr2)
        r1 = self._get()
        self._emit(f"MOV R{r1},{self._binding(node.ptr1)}")
        self._emit(f"ADD R{index},R{r1}")
        self._release()
        value = self.generate(node.ptr3)
        self._emit(f"MOV [R{index}],R{value}")
        self._release()
        self._release()
        return 0

    def _read(self, node):
        target = node.ptr2
        pending = 0
        if target.nodetype == NodeKind.FIELD:
            self.field_address = True
            self._save_registers()
            self._read_header()
            r2 = self.generate(target)
            self._emit(f"PUSH R{r2}")
            self._release()
            pending = 1
        else:
            offset = local_offset(self.tables, target.name)
            if offset is not None:
                r2 = self._get()
                r3 = self._local_address(r2, offset)
                self._save_registers()
                self._read_header()
                self._emit(f"PUSH R{r3}")
                self._release()
                self._release()
                pending = 2
            else:
                offset = param_offset(self.tables, target.name)
                if offset is not None:
                    r2 = self._param_address(offset)
                    self._save_registers()
                    self._read_header()
                    self._emit(f"PUSH R{r2}")
                    self._release()
                    pending = 1
                else:
                    binding = self._binding(target)
                    self._save_registers()
                    self._read_header()
                    self._emit(f"MOV R0,{binding}")
                    self._emit("PUSH R0")
        status = self.emitter.counter
        self._call_tail(pending, status)
        return 0

    def _array_read(self, node):
        offset = self.generate(node.ptr3)
        array = node.ptr2
        r1 = self._get()
        self._emit(f"MOV R{r1},{self._binding(array)}")
        r2 = self._get()
        self._emit(f"MOV R{r2},{array.gentry.size}")
        self._emit(f"GT R{r2},R{offset}")
        label = self.emitter.get_label()
        self._emit(f"JNZ R{r2},L{label}")
        self._emit("INT 10")
        self._emit(f"L{label}:")
        self._release()
        self._emit(f"ADD R{offset},R{r1}")
        self._release()
        self._emit(f"MOV [{_READ_SCRATCH}],R{offset}")
        self._save_registers()
        self._read_header()
        self._emit(f"MOV R0,[{_READ_SCRATCH}]")
        self._emit("PUSH R0")
        self._release()
        status = self.emitter.counter
        self._call_tail(1, status)
        return 0

    def _write(self, node):
        status = self._save_registers()
        self._emit('MOV R0,"Write"')
        self._emit("PUSH R0")
        self._emit("MOV R0,-2")
        self._emit("PUSH R0")
        number = self.generate(node.ptr2)
        self._emit(f"PUSH R{number}")
        self._release()
        self._call_tail(0, status)
        return 0

    def _if(self, node):
        label = self.emitter.get_label()
        number = self.generate(node.ptr1)
        self._emit(f"JZ R{number},L{label}")
        self.generate(node.ptr2)
        self._emit(f"L{label}:")
        self._release()
        return 0

    def _if_else(self, node):
        number = self.generate(node.ptr1)
        l1 = self.emitter.get_label()
        l2 = self.emitter.get_label()
        self._emit(f"JZ R{number},L{l1}")
        self._release()
        self.generate(node.ptr2)
        self._emit(f"JMP L{l2}")
        self._emit(f"L{l1}:")
        self._release()
        self.generate(node.ptr3)
        self._emit(f"L{l2}:")
        return 0

    def _while(self, node):
        l1 = self.emitter.get_label()
        l2 = self.emitter.get_label()
        self.loop_start = l1
        self.loop_end = l2
        self._emit(f"L{l1}:")
        number = self.generate(node.ptr1)
        self._emit(f"JZ R{number},L{l2}")
        self._release()
        self.generate(node.ptr2)
        self._emit(f"JMP L{l1}")
        self._emit(f"L{l2}:")
        self._release()
        return 0

    def _call(self, node):
        status = self._save_registers()
        self.emitter.free_all()
        if node.ptr2 is not None:
            self.generate(node.ptr2)
        elif node.ptr3 is not None:
            reg = self.generate(node.ptr3)
            self._emit(f"PUSH R{reg}")
            self._release()
        self._emit("PUSH R0")
        symbol = self.tables.glookup(node.name)
        if symbol is None:
            raise CompileError(f"Un-declared identifier {node.name}")
        self._emit(f"CALL F{symbol.binding}")
        self._emit(f"POP R{status + 1}")
        if status == -1:
            self._get()
        r2 = self._get()
        for _ in symbol.params:
            self._emit(f"POP R{r2}")
        if status == -1:
            self._release()
        self._release()
        self._restore_registers(status)
        return self._get()

    def _return(self, node):
        result = self.generate(node.ptr2)
        r1 = self._get()
        self._emit(f"MOV R{r1},BP")
        r2 = self._get()
        self._emit(f"MOV R{r2},2")
        self._emit(f"SUB R{r1},R{r2}")
        self._release()
        self._emit(f"MOV [R{r1}],R{result}")
        self._release()
        self._release()
        for _ in self.tables.locals:
            self._emit("POP R0")
        self._emit("MOV BP,[SP]")
        self._emit("POP R0")
        self._emit("RET")
        return 0

    def _break(self, node):
        self._emit(f"JMP L{self.loop_end}")
        return 0

    def _continue(self, node):
        self._emit(f"JMP L{self.loop_start}")
        return 0

    def _breakpoint(self, node):
        self._emit("BRKP")
        return 0

    def _alloc(self, node):
        status = self._save_registers()
        self.emitter.free_all()
        self._emit('MOV R0,"Alloc"')
        self._emit("PUSH R0")
        self._emit("MOV R0,8")
        self._emit("PUSH R0")
        self._emit("ADD SP,2")
        self._emit("PUSH R0")
        self._emit("CALL 0")
        self._emit("SUB SP,5")
        popped = self._restore_registers(status)
        return self._fetch_result(popped)

    def _free(self, node):
        self._get()
        r1 = self.generate(node.ptr2)
        status = self._save_registers()
        self.emitter.free_all()
        self._emit('MOV R0,"Free"')
        self._emit("PUSH R0")
        self._emit(f"PUSH R{r1}")
        self._emit("ADD SP,2")
        self._emit("PUSH R0")
        self._emit("CALL 0")
        self._emit("SUB SP,5")
        self._restore_registers(status)
        return 0

    def _nill(self, node):
        r1 = self._get()
        self._emit(f"MOV R{r1},-1")
        return r1

    def _init(self, node):
        status = self._save_registers()
        self.emitter.free_all()
        self._emit('MOV R0,"Heapset"')
        self._emit("PUSH R0")
        self._emit("ADD SP,3")
        self._emit("PUSH R0")
        self._emit("CALL 0")
        self._emit("SUB SP,5")
        self._restore_registers(status)
        return 0

    def _exposcall(self, node):
        status = self._save_registers()
        self.emitter.free_all()
        current = node.ptr3
        if current.name == "Write":
            self._write_call = True
        if current.name == "Read":
            self._read_call = True
        if current.nodetype == NodeKind.STRVAL:
            self._emit(f'MOV R0,"{current.name}"')
            self._emit("PUSH R0")
        elif current.nodetype == NodeKind.ID:
            number = self.generate(current)
            self._emit(f"MOV R0,R{number}")
            self._emit("PUSH R0")
        arg_count = 1
        current = current.ptr1
        while current is not None:
            kind = current.nodetype
            if kind == NodeKind.STRVAL:
                self._emit(f'MOV R0,"{current.name}"')
            elif kind == NodeKind.NUM:
                self._emit(f"MOV R0,{current.value}")
            elif kind in (NodeKind.ID, NodeKind.ARRAY, NodeKind.FIELD):
                if arg_count == 2 and self._read_call:
                    self.field_address = True
                    self._read_call = False
                number = self.generate(current)
                self._emit(f"MOV R0,R{number}")
            self._write_call = False
            self._emit("PUSH R0")
            arg_count += 1
            current = current.ptr1
        while arg_count < _SYSCALL_ARGS:
            self._emit("PUSH R0")
            arg_count += 1
        self._emit("PUSH R0")
        self._emit("CALL 0")
        self._emit("SUB SP,5")
        popped = self._restore_registers(status)
        return self._fetch_result(popped)