"""
LDGV Abstract Syntax - Pure Functional Style
Expressions and declarations are immutable dictionaries:
  {'type': NODE_TYPE, 'value': payload}
"""

from typing import Any, Dict, List, Optional, Tuple


MANY = "many"
ONE = "one"


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_exp(node_type: str, value: Any = None) -> Dict:
  """Create an immutable expression node"""
  return {
      'type': node_type,
      'value': value
  }


def make_unit() -> Dict:
  return make_exp("UNIT")


def make_var(name: str) -> Dict:
  return make_exp("VAR", name)


def make_label(name: str) -> Dict:
  return make_exp("LABEL", name)


def make_int(value: int) -> Dict:
  return make_exp("INT", value)


def make_nat(value: int) -> Dict:
  return make_exp("NAT", value)


def make_binary(node_type: str, left: Dict, right: Dict) -> Dict:
  return make_exp(node_type, {'left': left, 'right': right})


def make_plus(left: Dict, right: Dict) -> Dict:
  return make_binary("PLUS", left, right)


def make_minus(left: Dict, right: Dict) -> Dict:
  return make_binary("MINUS", left, right)


def make_times(left: Dict, right: Dict) -> Dict:
  return make_binary("TIMES", left, right)


def make_div(left: Dict, right: Dict) -> Dict:
  return make_binary("DIV", left, right)


def make_negate(operand: Dict) -> Dict:
  return make_exp("NEGATE", operand)


def make_succ(operand: Dict) -> Dict:
  return make_exp("SUCC", operand)


def make_let(name: str, bound: Dict, body: Dict) -> Dict:
  return make_exp("LET", {'name': name, 'bound': bound, 'body': body})


def make_let_pair(first: str, second: str, bound: Dict, body: Dict) -> Dict:
  return make_exp("LET_PAIR", {
      'first': first,
      'second': second,
      'bound': bound,
      'body': body
  })


def make_pair(name: str, first: Dict, second: Dict, multiplicity: str = MANY) -> Dict:
  """Dependent pair: `name` is bound to the first component inside `second`"""
  return make_exp("PAIR", {
      'name': name,
      'first': first,
      'second': second,
      'multiplicity': multiplicity
  })


def make_fst(operand: Dict) -> Dict:
  return make_exp("FST", operand)


def make_snd(operand: Dict) -> Dict:
  return make_exp("SND", operand)


def make_lambda(param: str, body: Dict, param_type: Any = None, multiplicity: str = MANY) -> Dict:
  return make_exp("LAMBDA", {
      'param': param,
      'param_type': param_type,
      'multiplicity': multiplicity,
      'body': body
  })


def make_app(function: Dict, argument: Dict) -> Dict:
  return make_exp("APP", {'function': function, 'argument': argument})


def make_fork(body: Dict) -> Dict:
  return make_exp("FORK", body)


def make_new(session_type: Any = None) -> Dict:
  return make_exp("NEW", session_type)


def make_send(channel: Dict) -> Dict:
  return make_exp("SEND", channel)


def make_recv(channel: Dict) -> Dict:
  return make_exp("RECV", channel)


def make_case(scrutinee: Dict, branches: Dict[str, Dict]) -> Dict:
  return make_exp("CASE", {'scrutinee': scrutinee, 'branches': dict(branches)})


def make_natrec(index: Dict, zero: Dict, counter: str, acc: str, step: Dict,
                acc_type: Any = None, type_var: Optional[str] = None) -> Dict:
  """
  Bounded recursion over a natural number index.

  `zero` is the result for index 0. For index n > 0, `step` is evaluated with
  `counter` bound to n and `acc` bound to the result for n - 1.
  """
  return make_exp("NATREC", {
      'index': index,
      'zero': zero,
      'counter': counter,
      'type_var': type_var,
      'acc': acc,
      'acc_type': acc_type,
      'step': step
  })


# ============================================================================
# DECLARATIONS
# ============================================================================

def make_function_def(name: str, params: List[Tuple[str, str, Any]], body: Dict,
                      result_type: Any = None) -> Dict:
  """Top-level function; params are (multiplicity, name, type) triples"""
  return make_exp("FUNCTION_DEF", {
      'name': name,
      'params': list(params),
      'body': body,
      'result_type': result_type
  })


def make_type_def(name: str, kind: str, body: Any) -> Dict:
  return make_exp("TYPE_DEF", {'name': name, 'kind': kind, 'body': body})


def make_signature(name: str, sig_type: Any) -> Dict:
  return make_exp("SIGNATURE", {'name': name, 'type': sig_type})


def decl_name(decl: Dict) -> str:
  return decl['value']['name']


def is_function_def(decl: Dict) -> bool:
  return decl['type'] == "FUNCTION_DEF"


# ============================================================================
# PRETTY PRINTING
# ============================================================================

BINARY_SYMBOLS = {
    "PLUS": "+",
    "MINUS": "-",
    "TIMES": "*",
    "DIV": "/",
}

PREFIX_KEYWORDS = {
    "FST": "fst",
    "SND": "snd",
    "SEND": "send",
    "RECV": "recv",
    "SUCC": "succ",
}


def show_type(t: Any) -> str:
  """Render an opaque type annotation"""
  if t is None:
    return "_"
  if isinstance(t, tuple) and len(t) == 2:
    tag, payload = t
    if tag in ("TYPE_ATOM", "TYPE_NAME"):
      return str(payload)
    if tag == "TYPE_LABELS":
      return "{" + ", ".join(f"'{l}" for l in payload) + "}"
    if tag == "TYPE_SEND":
      return f"!{show_type(payload[0])}. {show_type(payload[1])}"
    if tag == "TYPE_RECV":
      return f"?{show_type(payload[0])}. {show_type(payload[1])}"
    if tag == "TYPE_DUAL":
      return f"~{show_type(payload)}"
    if tag == "TYPE_FUNC":
      name, dom, cod = payload
      if name is None:
        return f"({show_type(dom)} -> {show_type(cod)})"
      return f"(({name} : {show_type(dom)}) -> {show_type(cod)})"
    if tag == "TYPE_SIGMA":
      name, first, second = payload
      return f"[{name} : {show_type(first)}, {show_type(second)}]"
    if tag == "TYPE_CASE":
      name, branches = payload
      arms = ", ".join(f"'{l} : {show_type(b)}" for l, b in branches.items())
      return f"case {name} {{{arms}}}"
  return str(t)


def show_exp(node: Dict) -> str:
  """Render an expression in surface syntax"""
  node_type = node['type']
  value = node['value']

  if node_type == "UNIT":
    return "()"
  elif node_type == "VAR":
    return value
  elif node_type == "LABEL":
    return f"'{value}"
  elif node_type in ("INT", "NAT"):
    return str(value)
  elif node_type in BINARY_SYMBOLS:
    return f"({show_exp(value['left'])} {BINARY_SYMBOLS[node_type]} {show_exp(value['right'])})"
  elif node_type == "NEGATE":
    return f"(-{show_exp(value)})"
  elif node_type in PREFIX_KEYWORDS:
    return f"({PREFIX_KEYWORDS[node_type]} {show_exp(value)})"
  elif node_type == "LET":
    return f"let {value['name']} = {show_exp(value['bound'])} in {show_exp(value['body'])}"
  elif node_type == "LET_PAIR":
    return (f"let <{value['first']}, {value['second']}> = "
            f"{show_exp(value['bound'])} in {show_exp(value['body'])}")
  elif node_type == "PAIR":
    return f"<{value['name']} = {show_exp(value['first'])}, {show_exp(value['second'])}>"
  elif node_type == "LAMBDA":
    prefix = "lin fn" if value['multiplicity'] == ONE else "fn"
    return f"({prefix} ({value['param']} : {show_type(value['param_type'])}) {show_exp(value['body'])})"
  elif node_type == "APP":
    return f"({show_exp(value['function'])} {show_exp(value['argument'])})"
  elif node_type == "FORK":
    return f"(fork {show_exp(value)})"
  elif node_type == "NEW":
    return f"(new {show_type(value)})"
  elif node_type == "CASE":
    arms = ", ".join(f"'{label} : {show_exp(body)}" for label, body in value['branches'].items())
    return f"case {show_exp(value['scrutinee'])} {{{arms}}}"
  elif node_type == "NATREC":
    return (f"natrec {show_exp(value['index'])} {{zero => {show_exp(value['zero'])}, "
            f"succ {value['counter']} ({value['acc']} : {show_type(value['acc_type'])}) => "
            f"{show_exp(value['step'])}}}")
  else:
    return f"<{node_type}>"
