"""
Test configuration for the LDGV interpreter tests
"""

import logging
import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import set_tracing
from concurrency import get_process_registry
from parsing import create_parser


@pytest.fixture
def parser():
  """Provide a fresh parser instance for each test"""
  return create_parser()


@pytest.fixture(autouse=True)
def clean_runtime():
  """Stop leftover processes and restore the ldgv logger after each test"""
  logger = logging.getLogger("ldgv")
  handlers = list(logger.handlers)
  level = logger.level
  propagate = logger.propagate
  yield
  get_process_registry().terminate_all()
  set_tracing(False)
  logger.handlers = handlers
  logger.setLevel(level)
  logger.propagate = propagate
