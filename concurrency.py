"""
LDGV processes and session channels
Forked evaluations run as pykka actors; channels are pairs of unbounded queues
"""

from typing import Callable, Dict, Optional, Tuple
import logging
import queue
import threading
import uuid

import pykka

from config import trace, tracing_enabled
from values import channel_val, pair_val, show_value


logger = logging.getLogger("ldgv.concurrency")


# ============================================================================
# CHANNELS
# ============================================================================

def new_channel_pair() -> Tuple[Dict, Dict]:
  """
  Allocate two fresh queues and cross-wire them into two endpoints:
  whatever one endpoint writes, the other reads.
  """
  left_to_right = queue.Queue()
  right_to_left = queue.Queue()
  return (
      channel_val(right_to_left, left_to_right),
      channel_val(left_to_right, right_to_left)
  )


def channel_send(endpoint: Dict, payload: Dict) -> Dict:
  """Enqueue payload on the endpoint's write queue; never blocks"""
  if tracing_enabled():
    trace(f"Sending value {show_value(payload)} on channel")
  endpoint['value']['write'].put(payload)
  return endpoint


def channel_recv(endpoint: Dict) -> Dict:
  """Block until a value arrives on the endpoint's read queue"""
  payload = endpoint['value']['read'].get()
  if tracing_enabled():
    trace(f"Read {show_value(payload)} from channel")
  return pair_val(payload, endpoint)


# ============================================================================
# PROCESS SYSTEM (Using Pykka)
# ============================================================================

class ProcessRegistry:
  """Registry for live forked processes"""

  def __init__(self):
    self.processes: Dict[str, pykka.ActorRef] = {}
    self._lock = threading.Lock()

  def register(self, process_id: str, actor_ref: pykka.ActorRef):
    """Register a process"""
    with self._lock:
      self.processes[process_id] = actor_ref

  def unregister(self, process_id: str):
    with self._lock:
      self.processes.pop(process_id, None)

  def get_process(self, process_id: str) -> Optional[pykka.ActorRef]:
    """Get process by ID"""
    with self._lock:
      return self.processes.get(process_id)

  def active_count(self) -> int:
    with self._lock:
      return len(self.processes)

  def terminate_all(self):
    """Ask every process to stop; processes blocked on a receive stay blocked"""
    with self._lock:
      refs = list(self.processes.values())
      self.processes.clear()
    for actor_ref in refs:
      actor_ref.stop(block=False)


# Global process registry
_process_registry = ProcessRegistry()


def get_process_registry() -> ProcessRegistry:
  return _process_registry


class ForkedProcess(pykka.ThreadingActor):
  """Actor that evaluates one forked expression, then stops"""

  # A blocked process must not keep the program alive once main is done
  use_daemon_thread = True

  def __init__(self, process_id: str, expression: Dict, env: Dict,
               evaluate: Callable[[Dict, Dict], Dict]):
    super().__init__()
    self.process_id = process_id
    self.expression = expression
    self.env = env
    self.evaluate = evaluate

  def on_receive(self, message):
    """Run the forked evaluation; its result or fault goes to the log only"""
    if message != 'run':
      return None
    try:
      result = self.evaluate(self.expression, self.env)
      if tracing_enabled():
        trace(f"Ran a forked operation with result {show_value(result)}")
    except Exception as e:
      logger.warning(f"Forked process {self.process_id} failed: {e}")
    finally:
      _process_registry.unregister(self.process_id)
      self.stop()
    return None


def fork_process(expression: Dict, env: Dict, evaluate: Callable[[Dict, Dict], Dict]) -> str:
  """Start an independent evaluation of expression in env and return at once"""
  process_id = str(uuid.uuid4())
  actor_ref = ForkedProcess.start(process_id, expression, env, evaluate)
  _process_registry.register(process_id, actor_ref)
  actor_ref.tell('run')
  return process_id
