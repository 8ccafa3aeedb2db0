"""
Parsing tests for LDGV
Surface syntax to dictionary AST
"""

import pytest

from error_handling import LDGVParseError
from parsing import LDGVGrammar, pretty_print_decl
from syntax import (
    MANY, ONE,
    make_var, make_int, make_label, make_unit,
    make_plus, make_minus, make_times, make_div, make_negate,
    make_app, make_fst, make_send, make_succ,
)


class TestExpressions:
  """Expression parsing"""

  def test_literals(self, parser):
    assert parser.parse_expression("42") == make_int(42)
    assert parser.parse_expression("'Ok") == make_label("Ok")
    assert parser.parse_expression("()") == make_unit()
    assert parser.parse_expression("x'") == make_var("x'")

  def test_arithmetic_precedence(self, parser):
    result = parser.parse_expression("1 + 2 * 3")
    assert result == make_plus(make_int(1), make_times(make_int(2), make_int(3)))

  def test_subtraction_is_left_associative(self, parser):
    result = parser.parse_expression("10 - 4 - 3")
    assert result == make_minus(make_minus(make_int(10), make_int(4)), make_int(3))

  def test_unary_minus(self, parser):
    result = parser.parse_expression("-7 / 2")
    assert result == make_div(make_negate(make_int(7)), make_int(2))

  def test_application_is_left_associative(self, parser):
    result = parser.parse_expression("f x y")
    assert result == make_app(make_app(make_var("f"), make_var("x")), make_var("y"))

  def test_application_binds_tighter_than_plus(self, parser):
    result = parser.parse_expression("f 1 + 2")
    assert result == make_plus(make_app(make_var("f"), make_int(1)), make_int(2))

  def test_prefix_operators(self, parser):
    assert parser.parse_expression("fst p") == make_fst(make_var("p"))
    assert parser.parse_expression("succ 4") == make_succ(make_int(4))
    assert parser.parse_expression("send c 5") == make_app(make_send(make_var("c")), make_int(5))

  def test_keywords_are_not_identifiers(self, parser):
    with pytest.raises(LDGVParseError):
      parser.parse_expression("let")
    assert parser.parse_expression("input") == make_var("input")

  def test_let(self, parser):
    result = parser.parse_expression("let x = 1 in x + 1")
    assert result['type'] == "LET"
    assert result['value']['name'] == "x"
    assert result['value']['bound'] == make_int(1)
    assert result['value']['body'] == make_plus(make_var("x"), make_int(1))

  def test_let_pair(self, parser):
    result = parser.parse_expression("let <a, b> = p in b")
    assert result['type'] == "LET_PAIR"
    assert (result['value']['first'], result['value']['second']) == ("a", "b")

  def test_dependent_pair(self, parser):
    result = parser.parse_expression("<x = 5, x + 1>")
    assert result['type'] == "PAIR"
    assert result['value']['name'] == "x"
    assert result['value']['second'] == make_plus(make_var("x"), make_int(1))

  def test_plain_pair_binds_nothing_visible(self, parser):
    result = parser.parse_expression("<x, 2>")
    assert result['value']['name'] == "_"
    assert result['value']['first'] == make_var("x")

  def test_lambda(self, parser):
    result = parser.parse_expression("fn (x : Int) x * 2")
    assert result['type'] == "LAMBDA"
    assert result['value']['param'] == "x"
    assert result['value']['param_type'] == ("TYPE_ATOM", "Int")
    assert result['value']['multiplicity'] == MANY

  def test_linear_lambda(self, parser):
    result = parser.parse_expression("lin fn (c : !Int. end) send c 1")
    assert result['value']['multiplicity'] == ONE

  def test_case(self, parser):
    result = parser.parse_expression("case l {'A : 1, 'B : 2}")
    assert result['type'] == "CASE"
    assert result['value']['scrutinee'] == make_var("l")
    assert result['value']['branches'] == {"A": make_int(1), "B": make_int(2)}

  def test_duplicate_case_labels_keep_first(self, parser):
    result = parser.parse_expression("case l {'A : 1, 'B : 2, 'A : 3}")
    assert result['value']['branches'] == {"A": make_int(1), "B": make_int(2)}

  def test_natrec(self, parser):
    result = parser.parse_expression(
        "natrec n { zero => 1, succ m (acc : Int) => m * acc }"
    )
    payload = result['value']
    assert result['type'] == "NATREC"
    assert payload['index'] == make_var("n")
    assert payload['zero'] == make_int(1)
    assert payload['counter'] == "m"
    assert payload['acc'] == "acc"
    assert payload['acc_type'] == ("TYPE_ATOM", "Int")
    assert payload['step'] == make_times(make_var("m"), make_var("acc"))

  def test_fork_and_new(self, parser):
    result = parser.parse_expression("fork (new (!Int. end))")
    assert result['type'] == "FORK"
    assert result['value']['type'] == "NEW"

  def test_comments_are_ignored(self, parser):
    result = parser.parse_expression("1 -- one\n + 2")
    assert result == make_plus(make_int(1), make_int(2))


class TestTypes:
  """Type annotations are parsed into opaque tuples"""

  @pytest.fixture
  def grammar(self):
    return LDGVGrammar()

  def test_session_type(self, grammar):
    result = grammar.parse_type("!Int. ?Int. end")
    assert result == ("TYPE_SEND", (("TYPE_ATOM", "Int"),
                                    ("TYPE_RECV", (("TYPE_ATOM", "Int"), ("TYPE_ATOM", "End")))))

  def test_function_types(self, grammar):
    assert grammar.parse_type("Int -> Int") == \
        ("TYPE_FUNC", (None, ("TYPE_ATOM", "Int"), ("TYPE_ATOM", "Int")))
    assert grammar.parse_type("(x : Int) -> Int")[1][0] == "x"

  def test_label_set_and_names(self, grammar):
    assert grammar.parse_type("{'A, 'B}") == ("TYPE_LABELS", ("A", "B"))
    assert grammar.parse_type("~Server") == ("TYPE_DUAL", ("TYPE_NAME", "Server"))

  def test_sigma_and_case(self, grammar):
    assert grammar.parse_type("[x : Int, Int]")[0] == "TYPE_SIGMA"
    result = grammar.parse_type("case l {'A : Int, 'B : end}")
    assert result[0] == "TYPE_CASE"
    assert set(result[1][1]) == {"A", "B"}


class TestDeclarations:
  """Top-level declarations"""

  def test_program(self, parser):
    source = """
    -- a tiny program
    type Proto : ~ssn = !Int. end
    val add : Int -> Int -> Int
    val add (x : Int) (lin y : Int) : Int = x + y
    val main = add 1 2
    """
    decls = parser.parse_string(source)
    assert [d['type'] for d in decls] == ["TYPE_DEF", "SIGNATURE", "FUNCTION_DEF", "FUNCTION_DEF"]

    add = decls[2]['value']
    assert add['name'] == "add"
    assert [(mult, name) for mult, name, _ in add['params']] == [(MANY, "x"), (ONE, "y")]
    assert add['result_type'] == ("TYPE_ATOM", "Int")

    main = decls[3]['value']
    assert main['params'] == []
    assert main['result_type'] is None

  def test_type_def(self, parser):
    decl = parser.parse_string("type Proto : ~ssn = !Int. end")[0]
    assert decl['value']['name'] == "Proto"
    assert decl['value']['kind'] == "~ssn"

  def test_empty_program(self, parser):
    assert parser.parse_string("") == []

  def test_pretty_print(self, parser):
    decl = parser.parse_string("val f (x : Int) : Int = x + 1")[0]
    assert pretty_print_decl(decl) == "val f (x : Int) : Int = (x + 1)"


class TestParseErrors:
  """Parse failures surface as LDGVParseError"""

  def test_missing_in(self, parser):
    with pytest.raises(LDGVParseError) as exc_info:
      parser.parse_string("val main = let x = 1 x")
    assert exc_info.value.span is not None
    assert exc_info.value.report is not None

  def test_error_reports_line(self, parser):
    with pytest.raises(LDGVParseError) as exc_info:
      parser.parse_string("val main = 1\nval oops = = 2")
    assert exc_info.value.span.start_line == 2
    assert "Parse error" in str(exc_info.value)

  def test_missing_file(self, parser, tmp_path):
    with pytest.raises(LDGVParseError):
      parser.parse_file(str(tmp_path / "missing.ldgv"))

  def test_parse_file(self, parser, tmp_path):
    script = tmp_path / "prog.ldgv"
    script.write_text("val main = 1\n")
    assert len(parser.parse_file(str(script))) == 1
