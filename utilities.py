"""
Utilities module for the LDGV interpreter
Value checks and arithmetic shared by the evaluator
"""

from typing import Callable, Dict, Optional, Union
import operator

from error_handling import TypeMismatchError, DivisionByZeroError
from syntax import show_exp
from values import int_val


# ==================== TYPE CHECKING UTILITIES ====================

def type_mismatch_error(
  context: str,
  expected: str,
  actual: Dict,
  expression: Optional[Union[str, Dict]] = None
) -> TypeMismatchError:
  """
  Generate type mismatch error

  Args:
    context: Operation that rejected the value
    expected: Expected value type
    actual: Actual value dict
    expression: Offending expression, as text or as an AST node

  Returns:
    TypeMismatchError with formatted message
  """
  actual_type = actual.get('type', 'Unknown')
  if isinstance(expression, dict):
    expression = show_exp(expression)
  return TypeMismatchError(
    f"{context} requires {expected}, got {actual_type}",
    expression
  )


def expect_type(
  value: Dict,
  expected: str,
  context: str,
  expression: Optional[Union[str, Dict]] = None
) -> Dict:
  """
  Check the variant of a runtime value.
  An AST node given as expression is only rendered if the check fails.

  Returns:
    The value unchanged

  Raises:
    TypeMismatchError if the value has another type
  """
  if value.get('type') != expected:
    raise type_mismatch_error(context, expected, value, expression)
  return value


# ==================== ARITHMETIC ====================

def truncating_div(dividend: int, divisor: int) -> int:
  """Integer division rounding toward zero"""
  if divisor == 0:
    raise DivisionByZeroError()
  quotient = abs(dividend) // abs(divisor)
  return quotient if (dividend >= 0) == (divisor >= 0) else -quotient


def binary_arithmetic_op(
  op: Callable[[int, int], int],
  op_name: str
) -> Callable[[Dict, Dict], Dict]:
  """
  Factory for binary arithmetic operations on Int values

  Args:
    op: Python operator function (e.g., operator.add)
    op_name: Name for error messages

  Returns:
    Function that performs the arithmetic operation

  Examples:
    add = binary_arithmetic_op(operator.add, "add")
    add({"type": "Int", "value": 1}, {"type": "Int", "value": 2})
  """
  def arithmetic(x: Dict, y: Dict) -> Dict:
    expect_type(x, "Int", op_name)
    expect_type(y, "Int", op_name)
    return int_val(op(x['value'], y['value']))

  return arithmetic


ARITHMETIC_OPERATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    "PLUS": binary_arithmetic_op(operator.add, "add"),
    "MINUS": binary_arithmetic_op(operator.sub, "subtract"),
    "TIMES": binary_arithmetic_op(operator.mul, "multiply"),
    "DIV": binary_arithmetic_op(truncating_div, "divide"),
}
