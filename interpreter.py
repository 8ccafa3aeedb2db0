"""
LDGV Interpreter - Pure Functional Style
Big-step evaluation of the dictionary AST; no classes, immutable data.
Side effects (channels, forked processes, tracing) live in concurrency and config.
"""

from typing import Callable, Dict, List, Optional

from config import trace, tracing_enabled
from concurrency import new_channel_pair, channel_send, channel_recv, fork_process
from environment import env_extend, env_extend_many, env_lookup_value, build_global_env
from error_handling import (
    UnboundVariableError,
    NoMatchingCaseError,
    NoMainDeclarationError,
    NegativeRecursionError,
)
from parsing import create_parser
from syntax import show_exp, decl_name, is_function_def
from utilities import ARITHMETIC_OPERATORS, expect_type
from values import (
    unit_val, label_val, int_val, pair_val, closure_val, show_value,
)


# ============================================================================
# CORE EVALUATOR
# ============================================================================

def eval_ast(ast_node: Dict, env: Dict) -> Dict:
  """
  Evaluate an expression node in env and return its value.
  Traces entry and exit when tracing is enabled.
  """
  tracing = tracing_enabled()
  if tracing:
    trace(f"Invoking interpretation on {show_exp(ast_node)}")
  handler = EVALUATORS.get(ast_node['type'])
  if handler is None:
    raise ValueError(f"Unknown expression node: {ast_node['type']}")
  result = handler(ast_node, env)
  if tracing:
    trace(f"Leaving interpretation of {show_exp(ast_node)} with value {show_value(result)}")
  return result


def eval_unit(ast_node: Dict, env: Dict) -> Dict:
  return unit_val()


def eval_label(ast_node: Dict, env: Dict) -> Dict:
  return label_val(ast_node['value'])


def eval_int(ast_node: Dict, env: Dict) -> Dict:
  return int_val(ast_node['value'])


def eval_var(ast_node: Dict, env: Dict) -> Dict:
  """Local bindings are returned as is; globals are resolved afresh every time"""
  name = ast_node['value']
  value = env_lookup_value(env, name)
  if value is None:
    raise UnboundVariableError(name)
  if value['type'] == "Decl":
    return resolve_global(value['value'], env)
  return value


# ==================== ARITHMETIC ====================

def apply_binary_op(op: str, left: Dict, right: Dict, env: Dict) -> Dict:
  """Evaluate both operands left to right and combine them as integers"""
  left_value = eval_ast(left, env)
  right_value = eval_ast(right, env)
  return ARITHMETIC_OPERATORS[op](left_value, right_value)


def eval_binary(ast_node: Dict, env: Dict) -> Dict:
  payload = ast_node['value']
  return apply_binary_op(ast_node['type'], payload['left'], payload['right'], env)


def eval_negate(ast_node: Dict, env: Dict) -> Dict:
  # -e is 0 - e
  return apply_binary_op("MINUS", {'type': "INT", 'value': 0}, ast_node['value'], env)


def eval_succ(ast_node: Dict, env: Dict) -> Dict:
  return apply_binary_op("PLUS", {'type': "INT", 'value': 1}, ast_node['value'], env)


# ==================== BINDING FORMS ====================

def eval_let(ast_node: Dict, env: Dict) -> Dict:
  payload = ast_node['value']
  bound = eval_ast(payload['bound'], env)
  return eval_ast(payload['body'], env_extend(env, payload['name'], bound))


def eval_let_pair(ast_node: Dict, env: Dict) -> Dict:
  payload = ast_node['value']
  bound = eval_ast(payload['bound'], env)
  expect_type(bound, "Pair", "let pair", payload['bound'])
  first, second = bound['value']
  body_env = env_extend_many(env, [(payload['first'], first), (payload['second'], second)])
  return eval_ast(payload['body'], body_env)


def eval_pair(ast_node: Dict, env: Dict) -> Dict:
  """The second component sees the first under the pair's binder name"""
  payload = ast_node['value']
  first = eval_ast(payload['first'], env)
  second = eval_ast(payload['second'], env_extend(env, payload['name'], first))
  return pair_val(first, second)


def eval_projection(ast_node: Dict, env: Dict) -> Dict:
  pair = eval_ast(ast_node['value'], env)
  context = "fst" if ast_node['type'] == "FST" else "snd"
  expect_type(pair, "Pair", context, ast_node)
  first, second = pair['value']
  return first if ast_node['type'] == "FST" else second


# ==================== FUNCTIONS ====================

def eval_lambda(ast_node: Dict, env: Dict) -> Dict:
  payload = ast_node['value']

  def apply_lambda(argument: Dict) -> Dict:
    return eval_ast(payload['body'], env_extend(env, payload['param'], argument))

  return closure_val(apply_lambda, env)


def apply_function(function: Dict, argument: Dict, expression: Optional[Dict] = None) -> Dict:
  expect_type(function, "Function", "application", expression)
  return function['value'](argument)


def eval_app(ast_node: Dict, env: Dict) -> Dict:
  """The argument is evaluated before the function"""
  payload = ast_node['value']
  argument = eval_ast(payload['argument'], env)
  function = eval_ast(payload['function'], env)
  return apply_function(function, argument, ast_node)


# ==================== CONTROL ====================

def eval_case(ast_node: Dict, env: Dict) -> Dict:
  payload = ast_node['value']
  scrutinee = eval_ast(payload['scrutinee'], env)
  expect_type(scrutinee, "Label", "case", payload['scrutinee'])
  label = scrutinee['value']
  branch = payload['branches'].get(label)
  if branch is None:
    raise NoMatchingCaseError(f"No case branch for label '{label}", show_exp(ast_node))
  return eval_ast(branch, env)


def eval_natrec(ast_node: Dict, env: Dict) -> Dict:
  """
  Bounded recursion, computed bottom-up.

  For index n > 0 the zero case runs with the counter bound to 0, then the
  step runs for k = 1..n with the counter bound to k and the accumulator
  bound to the result for k - 1.
  """
  payload = ast_node['value']
  index = eval_ast(payload['index'], env)
  expect_type(index, "Int", "natrec", payload['index'])
  n = index['value']

  if n < 0:
    raise NegativeRecursionError(
        f"natrec index must be non-negative, got {n}", show_exp(ast_node)
    )
  if n == 0:
    return eval_ast(payload['zero'], env)

  counter, acc_name = payload['counter'], payload['acc']
  acc = eval_ast(payload['zero'], env_extend(env, counter, int_val(0)))
  for k in range(1, n + 1):
    step_env = env_extend_many(env, [(counter, int_val(k)), (acc_name, acc)])
    acc = eval_ast(payload['step'], step_env)
  return acc


# ==================== CONCURRENCY ====================

def eval_fork(ast_node: Dict, env: Dict) -> Dict:
  fork_process(ast_node['value'], env, eval_ast)
  return unit_val()


def eval_new(ast_node: Dict, env: Dict) -> Dict:
  left, right = new_channel_pair()
  return pair_val(left, right)


def eval_send(ast_node: Dict, env: Dict) -> Dict:
  """Evaluates to a function that sends its argument and returns the endpoint"""
  endpoint = eval_ast(ast_node['value'], env)
  expect_type(endpoint, "Channel", "send", ast_node['value'])

  def send_payload(payload: Dict) -> Dict:
    return channel_send(endpoint, payload)

  return closure_val(send_payload, env)


def eval_recv(ast_node: Dict, env: Dict) -> Dict:
  endpoint = eval_ast(ast_node['value'], env)
  expect_type(endpoint, "Channel", "recv", ast_node['value'])
  return channel_recv(endpoint)


EVALUATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    "UNIT": eval_unit,
    "LABEL": eval_label,
    "INT": eval_int,
    "NAT": eval_int,
    "VAR": eval_var,
    "PLUS": eval_binary,
    "MINUS": eval_binary,
    "TIMES": eval_binary,
    "DIV": eval_binary,
    "NEGATE": eval_negate,
    "SUCC": eval_succ,
    "LET": eval_let,
    "LET_PAIR": eval_let_pair,
    "PAIR": eval_pair,
    "FST": eval_projection,
    "SND": eval_projection,
    "LAMBDA": eval_lambda,
    "APP": eval_app,
    "CASE": eval_case,
    "NATREC": eval_natrec,
    "FORK": eval_fork,
    "NEW": eval_new,
    "SEND": eval_send,
    "RECV": eval_recv,
}


# ============================================================================
# GLOBAL DECLARATIONS
# ============================================================================

def resolve_global(decl: Dict, env: Dict) -> Dict:
  """
  Produce the value of a top-level function declaration.

  Without parameters the body is evaluated directly. Otherwise the result is
  a chain of closures, one per parameter, and the body runs once the last
  argument arrives. Nothing is cached between references.
  """
  payload = decl['value']
  param_names = [name for _, name, _ in payload['params']]
  return _curry(param_names, payload['body'], env)


def _curry(param_names: List[str], body: Dict, env: Dict) -> Dict:
  if not param_names:
    return eval_ast(body, env)

  first, rest = param_names[0], param_names[1:]

  def bind_parameter(argument: Dict) -> Dict:
    return _curry(rest, body, env_extend(env, first, argument))

  return closure_val(bind_parameter, env)


# ============================================================================
# PROGRAM EXECUTION
# ============================================================================

def find_main(decls: List[Dict]) -> Optional[Dict]:
  for decl in decls:
    if is_function_def(decl) and decl_name(decl) == "main":
      return decl
  return None


def interpret_program(decls: List[Dict]) -> Dict:
  """Evaluate the 'main' declaration against the table of all declarations"""
  main_decl = find_main(decls)
  if main_decl is None:
    raise NoMainDeclarationError()
  global_env = build_global_env(decls)
  return resolve_global(main_decl, global_env)


def interpret(source: str, filename: str = "<input>") -> Dict:
  """Parse LDGV source text and evaluate its 'main' declaration"""
  decls = create_parser().parse_string(source, filename)
  return interpret_program(decls)
