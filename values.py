"""
LDGV runtime values
Pure functional style using immutable dictionaries:
  {'type': TYPE_NAME, 'value': payload}
"""

from typing import Any, Callable, Dict
import queue


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def make_value(value: Any, type_name: str = "Unknown") -> Dict:
  """Create an immutable runtime value"""
  return {
      'value': value,
      'type': type_name
  }


def unit_val() -> Dict:
  return make_value(None, "Unit")


def label_val(name: str) -> Dict:
  return make_value(name, "Label")


def int_val(value: int) -> Dict:
  return make_value(value, "Int")


def pair_val(first: Dict, second: Dict) -> Dict:
  return make_value((first, second), "Pair")


def closure_val(func: Callable[[Dict], Dict], closure_env: Dict) -> Dict:
  """Function value: `func` maps an evaluated argument to a result value"""
  return {
      'type': 'Function',
      'value': func,
      'closure_env': closure_env
  }


def channel_val(read_queue: queue.Queue, write_queue: queue.Queue) -> Dict:
  """One endpoint of a channel pair; queues are shared, never copied"""
  return make_value({'read': read_queue, 'write': write_queue}, "Channel")


def global_val(decl: Dict) -> Dict:
  """A top-level declaration that is re-evaluated at every reference"""
  return make_value(decl, "Decl")


# ============================================================================
# DISPLAY
# ============================================================================

def _show_leaf(value: Dict) -> str:
  value_type = value['type']
  if value_type == "Unit":
    return "()"
  elif value_type == "Label":
    return f"'{value['value']}"
  elif value_type == "Int":
    return str(value['value'])
  elif value_type == "Function":
    return "<function>"
  elif value_type == "Channel":
    return "<channel>"
  elif value_type == "Decl":
    return f"<decl {value['value']['value']['name']}>"
  else:
    return f"<{value_type}>"


def show_value(value: Dict) -> str:
  """
  Convert value to its printed representation.
  Pairs are unfolded with an explicit stack, so nesting depth is unbounded.
  """
  parts = []
  pending = [value]
  while pending:
    item = pending.pop()
    if isinstance(item, str):
      parts.append(item)
    elif item['type'] == "Pair":
      first, second = item['value']
      pending.extend([">", second, ", ", first, "<"])
    else:
      parts.append(_show_leaf(item))
  return "".join(parts)
