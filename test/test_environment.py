"""
Tests for runtime environments and values
"""

from environment import (
    make_runtime_env, env_extend, env_extend_many, env_lookup_value, build_global_env,
)
from syntax import make_function_def, make_type_def, make_int
from values import int_val, unit_val, pair_val, label_val, show_value


class TestEnvironment:
  """Scopes are chained and never mutated"""

  def test_lookup_missing(self):
    assert env_lookup_value(make_runtime_env(), "x") is None

  def test_extend_does_not_touch_parent(self):
    base = make_runtime_env()
    extended = env_extend(base, "x", int_val(1))
    assert env_lookup_value(extended, "x") == int_val(1)
    assert env_lookup_value(base, "x") is None

  def test_inner_binding_shadows_outer(self):
    env = env_extend(env_extend(make_runtime_env(), "x", int_val(1)), "x", int_val(2))
    assert env_lookup_value(env, "x") == int_val(2)

  def test_extend_many_first_binding_wins(self):
    env = env_extend_many(make_runtime_env(), [("x", int_val(1)), ("x", int_val(2)), ("y", unit_val())])
    assert env_lookup_value(env, "x") == int_val(1)
    assert env_lookup_value(env, "y") == unit_val()

  def test_global_env_holds_unevaluated_declarations(self):
    first = make_function_def("f", [], make_int(1))
    second = make_function_def("f", [], make_int(2))
    decls = [make_type_def("T", "~un", ("TYPE_ATOM", "Int")), first, second]
    env = build_global_env(decls)
    bound = env_lookup_value(env, "f")
    assert bound['type'] == "Decl"
    assert bound['value'] is first
    assert env_lookup_value(env, "T") is None


class TestShowValue:
  """Rendering of values for the driver"""

  def test_show(self):
    assert show_value(unit_val()) == "()"
    assert show_value(label_val("A")) == "'A"
    assert show_value(int_val(-4)) == "-4"
    assert show_value(pair_val(int_val(1), pair_val(int_val(2), unit_val()))) == "<1, <2, ()>>"
