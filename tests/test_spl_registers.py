import pytest

from xsmkit.spl_registers import (
    BP,
    C_REG_BASE,
    EMA,
    P0,
    P3,
    R0,
    R15,
    SP,
    is_allowed_register,
    register_name,
)


@pytest.mark.parametrize("value", range(R0, R0 + C_REG_BASE))
def test_user_registers_allowed(value):
    assert is_allowed_register(value) is True


@pytest.mark.parametrize("value", [-1, C_REG_BASE, 19, P0, BP, EMA])
def test_other_registers_not_allowed(value):
    assert is_allowed_register(value) is False


def test_general_register_names():
    assert register_name(R0) == "R0"
    assert register_name(R15) == "R15"


def test_port_names():
    assert register_name(P0) == "P0"
    assert register_name(P3) == "P3"


def test_special_names():
    assert register_name(BP) == "BP"
    assert register_name(SP) == "SP"
    assert register_name(EMA) == "EMA"


def test_allowed_registers_have_r_prefix_names():
    names = [register_name(v) for v in range(C_REG_BASE) if is_allowed_register(v)]
    assert all(name.startswith("R") for name in names)
    assert len(set(names)) == C_REG_BASE


@pytest.mark.parametrize("value", [16, 19, 33, -5])
def test_unnamed_register_raises(value):
    with pytest.raises(ValueError):
        register_name(value)