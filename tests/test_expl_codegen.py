import pytest

from xsmkit.expl_ast import ASTNode, NodeKind
from xsmkit.expl_codegen import ExplCodeGenerator
from xsmkit.expl_emitter import RegisterOverflow
from xsmkit.expl_symbols import CompileError, Param, SymbolTables


def make_tables():
    tables = SymbolTables()
    for name in ("integer", "string", "boolean"):
        tables.tinstall(name, [])
    return tables


def node(kind, **kwargs):
    return ASTNode(type=None, nodetype=kind, **kwargs)


def num(value):
    return node(NodeKind.NUM, value=value)


def lines_of(gen):
    return gen.output().splitlines()


def labels_defined(lines):
    return [line[:-1] for line in lines if line.endswith(":")]


def test_none_generates_nothing():
    gen = ExplCodeGenerator(make_tables())
    assert gen.generate(None) == 0
    assert gen.output() == ""


def test_plus_of_numbers():
    gen = ExplCodeGenerator(make_tables())
    result = gen.generate(node(NodeKind.PLUS, ptr1=num(2), ptr2=num(3)))
    assert result == 0
    assert lines_of(gen) == ["MOV R0,2", "MOV R1,3", "ADD R0,R1"]
    assert gen.emitter.counter == 0


@pytest.mark.parametrize(
    "kind,instr",
    [
        (NodeKind.LT, "LT"),
        (NodeKind.GT, "GT"),
        (NodeKind.LE, "LE"),
        (NodeKind.GE, "GE"),
        (NodeKind.DEQ, "EQ"),
        (NodeKind.NEQ, "NE"),
        (NodeKind.MINUS, "SUB"),
        (NodeKind.MUL, "MUL"),
        (NodeKind.DIV, "DIV"),
        (NodeKind.MOD, "MOD"),
    ],
)
def test_binary_operators(kind, instr):
    gen = ExplCodeGenerator(make_tables())
    assert gen.generate(node(kind, ptr1=num(1), ptr2=num(2))) == 0
    assert lines_of(gen)[-1] == f"{instr} R0,R1"


def test_global_assignment():
    tables = make_tables()
    symbol = tables.ginstall("x", tables.tlookup("integer"), 1, None)
    target = node(NodeKind.ID, name="x", gentry=symbol)
    gen = ExplCodeGenerator(tables)
    gen.generate(node(NodeKind.ASGN, ptr1=target, ptr2=num(5)))
    assert lines_of(gen)[-1] == "MOV [4096],R0"
    assert gen.emitter.counter == -1


def test_local_identifier_read():
    tables = make_tables()
    integer = tables.tlookup("integer")
    tables.linstall("a", integer)
    tables.linstall("b", integer)
    gen = ExplCodeGenerator(tables)
    result = gen.generate(node(NodeKind.ID, name="b"))
    assert result == 0
    assert lines_of(gen) == ["MOV R1,BP", "MOV R0,2", "ADD R1,R0", "MOV R0,[R1]"]


def test_parameter_identifier_read_uses_base_pointer_below():
    tables = make_tables()
    tables.pinstall("p", tables.tlookup("integer"))
    gen = ExplCodeGenerator(tables)
    result = gen.generate(node(NodeKind.ID, name="p"))
    lines = lines_of(gen)
    assert result == 0
    assert sum(line.startswith("SUB ") for line in lines) == 2
    assert lines[-1] == "MOV R0,[R1]"
    assert gen.emitter.counter == 0


def test_global_identifier_address_when_requested():
    tables = make_tables()
    symbol = tables.ginstall("x", tables.tlookup("integer"), 1, None)
    gen = ExplCodeGenerator(tables)
    gen.take_address = True
    gen.generate(node(NodeKind.ID, name="x", gentry=symbol))
    assert lines_of(gen) == [f"MOV R0,{symbol.binding}"]
    assert gen.take_address is False


def test_identifier_without_symbol_raises():
    gen = ExplCodeGenerator(make_tables())
    with pytest.raises(CompileError):
        gen.generate(node(NodeKind.ID, name="ghost"))


def test_unknown_node_type_raises():
    gen = ExplCodeGenerator(make_tables())
    with pytest.raises(CompileError):
        gen.generate(node(NodeKind.T))


def test_register_overflow():
    expr = num(0)
    for value in range(1, 20):
        expr = node(NodeKind.PLUS, ptr1=num(value), ptr2=expr)
    gen = ExplCodeGenerator(make_tables())
    with pytest.raises(RegisterOverflow):
        gen.generate(expr)


def test_while_with_break_jumps_to_end_label():
    cond = node(NodeKind.LT, ptr1=num(1), ptr2=num(2))
    loop = node(NodeKind.WHILE, ptr1=cond, ptr2=node(NodeKind.BRK))
    gen = ExplCodeGenerator(make_tables())
    gen.generate(loop)
    lines = lines_of(gen)
    start, end = labels_defined(lines)
    assert lines[0] == f"{start}:"
    assert lines[-1] == f"{end}:"
    assert f"JMP {end}" in lines
    assert f"JMP {start}" in lines
    assert f"JZ R0,{end}" in lines


def test_if_else_targets_defined_labels():
    cond = node(NodeKind.DEQ, ptr1=num(1), ptr2=num(1))
    stmt = node(NodeKind.IF_ELSE, ptr1=cond, ptr2=node(NodeKind.BRKP), ptr3=node(NodeKind.BRKP))
    gen = ExplCodeGenerator(make_tables())
    gen.generate(stmt)
    lines = lines_of(gen)
    else_label, end_label = labels_defined(lines)
    assert f"JZ R0,{else_label}" in lines
    assert f"JMP {end_label}" in lines
    assert lines.count("BRKP") == 2


def test_not_and_short_circuit_labels_are_defined():
    gen = ExplCodeGenerator(make_tables())
    gen.generate(node(NodeKind.NOT, ptr2=num(1)))
    gen.generate(node(NodeKind.AND, ptr1=num(1), ptr2=num(0)))
    lines = lines_of(gen)
    defined = set(labels_defined(lines))
    jumps = [line.split(",")[-1] if "," in line else line.split()[-1]
             for line in lines if line.startswith(("JZ", "JNZ", "JMP"))]
    assert jumps
    assert set(jumps) <= defined


def test_write_restores_registers():
    gen = ExplCodeGenerator(make_tables())
    gen.generate(node(NodeKind.WRITE, ptr2=num(4)))
    lines = lines_of(gen)
    assert 'MOV R0,"Write"' in lines
    assert "CALL 0" in lines
    assert lines[-1] == "SUB SP,5"
    assert gen.emitter.counter == -1


def test_read_global_pushes_its_address():
    tables = make_tables()
    symbol = tables.ginstall("x", tables.tlookup("integer"), 1, None)
    gen = ExplCodeGenerator(tables)
    gen.generate(node(NodeKind.READ, ptr2=node(NodeKind.ID, name="x", gentry=symbol)))
    lines = lines_of(gen)
    assert 'MOV R0,"Read"' in lines
    assert f"MOV R0,{symbol.binding}" in lines
    assert lines.index("CALL 0") > lines.index(f"MOV R0,{symbol.binding}")
    assert gen.emitter.counter == -1


def test_function_call_pops_each_parameter():
    tables = make_tables()
    integer = tables.tlookup("integer")
    symbol = tables.ginstall("f", integer, -1, [Param("a", integer)])
    gen = ExplCodeGenerator(tables)
    result = gen.generate(node(NodeKind.FUNC, name="f", ptr3=num(4)))
    lines = lines_of(gen)
    call = lines.index(f"CALL F{symbol.binding}")
    pops = [line for line in lines[call + 1:] if line.startswith("POP")]
    assert len(pops) == 1 + len(symbol.params)
    assert result == gen.emitter.counter


def test_function_call_of_unknown_name_raises():
    gen = ExplCodeGenerator(make_tables())
    with pytest.raises(CompileError):
        gen.generate(node(NodeKind.FUNC, name="missing"))


def test_argument_list_without_parameters_raises():
    gen = ExplCodeGenerator(make_tables())
    with pytest.raises(CompileError):
        gen.generate(node(NodeKind.EXPR, ptr1=num(1), ptr3=[]))


def test_return_pops_locals():
    tables = make_tables()
    integer = tables.tlookup("integer")
    tables.linstall("a", integer)
    tables.linstall("b", integer)
    gen = ExplCodeGenerator(tables)
    gen.generate(node(NodeKind.RET, ptr2=num(1)))
    lines = lines_of(gen)
    assert lines[-3:] == ["MOV BP,[SP]", "POP R0", "RET"]
    assert lines.count("POP R0") == len(tables.locals) + 1


def test_exposcall_always_fills_argument_slots():
    def pushes(args):
        gen = ExplCodeGenerator(make_tables())
        call = node(NodeKind.STRVAL, name="Write", ptr1=args)
        result = gen.generate(node(NodeKind.EXPOSCALL, ptr3=call))
        lines = lines_of(gen)
        assert result == gen.emitter.counter
        return lines[: lines.index("CALL 0")].count("PUSH R0")

    assert pushes(num(3)) == pushes(node(NodeKind.NUM, value=1, ptr1=num(2)))


def test_alloc_returns_register_in_use():
    gen = ExplCodeGenerator(make_tables())
    result = gen.generate(node(NodeKind.ALLOC))
    lines = lines_of(gen)
    assert 'MOV R0,"Alloc"' in lines
    assert result == gen.emitter.counter
    assert lines[-1] == f"MOV R{result},[R{result + 1}]"


def test_field_assignment_on_global():
    tables = make_tables()
    integer = tables.tlookup("integer")
    tables.finstall(integer, "val")
    tables.finstall(integer, "next")
    record = tables.tinstall("record", None)
    symbol = tables.ginstall("p", record, 1, None)
    access = node(NodeKind.FIELD, name="p", gentry=symbol, ptr2=node(NodeKind.FIELD, name="next"))
    gen = ExplCodeGenerator(tables)
    gen.generate(node(NodeKind.ASGN, ptr1=access, ptr2=num(9)))
    lines = lines_of(gen)
    assert any(f"[{symbol.binding}]" in line for line in lines)
    assert lines[-1].startswith("MOV [R")
    assert gen.field_address is False
    assert gen.emitter.counter == -1


def test_field_address_without_matching_field_raises():
    tables = make_tables()
    tables.finstall(tables.tlookup("integer"), "val")
    record = tables.tinstall("record", None)
    symbol = tables.ginstall("p", record, 1, None)
    access = node(NodeKind.FIELD, name="p", gentry=symbol, ptr2=node(NodeKind.FIELD, name="missing"))
    gen = ExplCodeGenerator(tables)
    gen.field_address = True
    with pytest.raises(CompileError):
        gen.generate(access)