"""ExpL syntax trees, symbol tables, type checks and code generation, and SPL register, label and path helpers for XSM."""

__version__ = "0.1.0"

__all__ = [
    "spl_registers",
    "spl_paths",
    "spl_labels",
    "expl_ast",
    "expl_symbols",
    "expl_typecheck",
    "expl_emitter",
    "expl_labelmap",
    "expl_codegen",
]