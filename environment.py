"""
LDGV runtime environments
Parent-chained scopes; extension never mutates the parent
"""

from typing import Dict, List, Optional, Tuple

from syntax import decl_name, is_function_def
from values import global_val


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_runtime_env(parent: Optional[Dict] = None, bindings: Optional[Dict] = None) -> Dict:
  """Create an immutable runtime environment"""
  return {
      'parent': parent,
      'bindings': bindings or {}
  }


# ============================================================================
# ENVIRONMENT OPERATIONS
# ============================================================================

def env_extend(env: Dict, name: str, value: Dict) -> Dict:
  """Return a new scope with name bound to value on top of env"""
  return make_runtime_env(env, {name: value})


def env_extend_many(env: Dict, bindings: List[Tuple[str, Dict]]) -> Dict:
  """
  Return a new scope holding all bindings.
  The first binding for a name wins, as if each pair were prepended in order.
  """
  scope = {}
  for name, value in reversed(bindings):
    scope[name] = value
  return make_runtime_env(env, scope)


def env_lookup_value(env: Dict, name: str) -> Optional[Dict]:
  """Look up a value in the environment chain, innermost scope first"""
  scope = env
  while scope is not None:
    if name in scope['bindings']:
      return scope['bindings'][name]
    scope = scope['parent']
  return None


def build_global_env(decls: List[Dict]) -> Dict:
  """Top-level environment: every function declaration, unevaluated"""
  return env_extend_many(
      make_runtime_env(),
      [(decl_name(d), global_val(d)) for d in decls if is_function_def(d)]
  )
