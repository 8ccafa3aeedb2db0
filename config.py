"""
LDGV diagnostics configuration
Process-wide trace toggle on top of the logging module
"""

import logging
import sys


logger = logging.getLogger("ldgv")

_settings = {
    'trace': False
}


def set_tracing(enabled: bool) -> None:
  """Enable or disable evaluation tracing for every process"""
  _settings['trace'] = enabled
  if enabled:
    logger.setLevel(logging.DEBUG)


def tracing_enabled() -> bool:
  return _settings['trace']


def trace(message: str) -> None:
  """Emit a trace line when tracing is on; no effect on results"""
  if _settings['trace']:
    logger.debug(message)


def configure_logging(debug: bool = False) -> None:
  """Attach a stderr handler for the command line driver"""
  handler = logging.StreamHandler(sys.stderr)
  handler.setFormatter(logging.Formatter("[%(threadName)s] %(levelname)s %(message)s"))
  logger.addHandler(handler)
  logger.setLevel(logging.DEBUG if debug or tracing_enabled() else logging.WARNING)
  logger.propagate = False
