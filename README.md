# xsmkit

Building blocks for compilers that target the XSM teaching machine.

xsmkit is pure Python, needs Python 3.10 or later and has no runtime
dependencies.

It deals with two source languages:

- **ExpL**, a small typed application language with global, local and
  parameter variables, arrays and user-defined record types. xsmkit supplies
  its syntax tree, symbol tables, semantic checks and a code generator that
  turns a finished tree into XSM assembly text.
- **SPL**, the system programming language used for operating-system routines
  on XSM. xsmkit supplies register naming, label bookkeeping and output file
  naming.

## ExpL

| Module | What it holds |
| --- | --- |
| `xsmkit.expl_ast` | `NodeKind`, `ASTNode`, `tree_create` |
| `xsmkit.expl_symbols` | `SymbolTables`, `TypeEntry`, `Field`, `Param`, `GlobalSymbol`, `LocalSymbol`, `flookup`, `CompileError` |
| `xsmkit.expl_typecheck` | `TypeChecker`, `prologue`, `last_node` |
| `xsmkit.expl_emitter` | `Emitter`, `RegisterOverflow`, `local_offset`, `param_offset` |
| `xsmkit.expl_labelmap` | `LabelMap` |
| `xsmkit.expl_codegen` | `ExplCodeGenerator` |

### Syntax tree

`tree_create(type, nodetype, name, value, arglist, ptr1, ptr2, ptr3)` builds an
`ASTNode`; `nodetype` must be a `NodeKind` value, otherwise `ValueError` is
raised.

```python
from xsmkit.expl_ast import NodeKind, tree_create

five = tree_create(None, NodeKind.NUM, None, 5, None, None, None, None)
```

### Symbol tables

`SymbolTables` keeps the type, global, local and parameter tables in
declaration order. Globals are bound to data addresses from 4096 upwards;
installing a global with size `-1` declares a function, which receives the
next function number instead. Locals take the next free data address.
Redeclaring a global raises `CompileError`.

Record types are declared by adding fields with `finstall` and then calling
`tinstall(name, None)`, which takes the pending fields; fields typed as the
placeholder type `dummy` are made to refer to the type being declared.
`symbol_table_lines()` lists the globals as `name----type-----binding`.

### Type checking

`TypeChecker(tables)` checks declarations and expressions and raises
`CompileError` on a conflict:

- `verify` rejects names already declared as locals, parameters or globals,
  and arrays of anything but integers;
- `install_array` declares a global integer or string array;
- `compare(t1, t2, op)` checks operand types for an operator code such as
  `"+"`, `"<"`, `"&"`, `"a"` (assignment) or `"i"` (if condition); the code
  `" "` only reports whether the two types are the same;
- `assign` resolves an identifier to a local, parameter or global and gives
  the node its type, optionally attaching a field access;
- `assign_array` resolves an array element, or a function call when `func`
  is set.

`prologue(total_count)` returns the header and start-up code of a compiled
program, and `last_node(head)` follows `ptr2` links to the end of a list.

### Code generation

```python
from xsmkit.expl_symbols import SymbolTables
from xsmkit.expl_codegen import ExplCodeGenerator

tables = SymbolTables()
# ... a parser installs types and symbols and checks the tree ...

generator = ExplCodeGenerator(tables)
generator.generate(tree)
assembly = generator.output()
```

`generate` returns the register holding the value of an expression node, or 0
for a statement. Reads, writes, heap calls and `exposcall` are emitted as
system calls through `CALL 0`. An unknown node kind raises `CompileError`;
running out of registers raises `RegisterOverflow`.

`Emitter` is the bookkeeping underneath: it hands out labels (numbered from 4)
and registers, collects lines with `emit` and returns them with `text()`.

### Label addresses

The generated code uses symbolic labels such as `L4` and `F0`. `LabelMap`
records the address each label stands for:

```python
from xsmkit.expl_labelmap import LabelMap

labels = LabelMap()
labels.append("L4", 2056)
labels.find("L4")       # 2056
labels.find("L9")       # -1, not recorded
labels.lines()          # ["L4 : 2056"]
```

## SPL

| Module | What it holds |
| --- | --- |
| `xsmkit.spl_registers` | `is_allowed_register`, `register_name` and the register numbers |
| `xsmkit.spl_paths` | `expand_path`, `remove_extension`, `output_filename` |
| `xsmkit.spl_labels` | `LabelTable`, `LabelError` |

```python
from xsmkit.spl_registers import register_name, is_allowed_register, BP
from xsmkit.spl_paths import output_filename
from xsmkit.spl_labels import LabelTable

register_name(BP)                  # "BP"
register_name(21)                  # "P1"
is_allowed_register(16)            # False: R16 and up are the compiler's
output_filename("os_startup.spl")  # "os_startup.xsm"

labels = LabelTable()
labels.create()                    # "_L1", a fresh generated name
labels.add("loop", 12)             # declares a user label
labels.add("loop", 30)             # LabelError: 30: Label 'loop' redeclared.
```

`expand_path("$HOME/os/startup.spl")` replaces the leading `$HOME` component
with the value of that environment variable, leaving it unchanged if the
variable is not set. `LabelTable` also keeps a stack of enclosing loops
(`push_loop`, `pop_loop`, `loop_start`, `loop_end`); asking for a loop label
outside a loop raises `LabelError`.

## What xsmkit does not do

- There is no parser for either language and no command-line compiler; trees
  and symbol tables are built by your own front end.
- For SPL there is no syntax tree, no constant or alias table and no code
  generator — only registers, labels and file names.
- The assembly routines for the ExpL heap (initialising the free list,
  allocating and releasing blocks) are not included.
- `LabelMap` only stores addresses; rewriting assembly text with them is left
  to the caller.