"""Register numbering of the SPL machine and the names used in assembly."""

R0 = 0
R15 = 15
R19 = 19

P0 = 20
P3 = 23

BP = 24
IP = 25
SP = 26
PTBR = 27
PTLR = 28
EIP = 29
EPN = 30
EC = 31
EMA = 32

NUM_GEN_REG = 20
NUM_PORTS = 4
NUM_SPECIAL_REG = 9

# Registers from this index on are reserved for the compiler's temporaries.
C_REG_BASE = 16

_SPECIAL_NAMES = {
    BP: "BP",
    SP: "SP",
    IP: "IP",
    PTBR: "PTBR",
    PTLR: "PTLR",
    EIP: "EIP",
    EPN: "EPN",
    EC: "EC",
    EMA: "EMA",
}


def is_allowed_register(value):
    """Return True if the register may be used directly by SPL programs."""
    return R0 <= value < R0 + C_REG_BASE


def register_name(value):
    """Return the assembly name of register number ``value``."""
    if R0 <= value <= R15:
        return f"R{value - R0}"
    if P0 <= value <= P3:
        return f"P{value - P0}"
    try:
        return _SPECIAL_NAMES[value]
    except KeyError:
        raise ValueError(f"register {value} has no assembly name") from None