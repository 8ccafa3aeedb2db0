"""
LDGV Programming Language - Main Entry Point
Interpreter for label-dependent session types: evaluates the 'main' declaration
"""

import sys
import argparse
import logging
import traceback

from config import set_tracing, configure_logging
from concurrency import get_process_registry
from error_handling import LDGVParseError, LDGVRuntimeError
from interpreter import interpret_program
from parsing import create_parser, create_debug_parser, pretty_print_decl
from values import show_value


logger = logging.getLogger("ldgv.main")

VERSION = "ldgv 0.1.0"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='LDGV - interpreter for label-dependent session types',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.ldgv            # Run a script, printing the value of main
  %(prog)s < script.ldgv          # Read the program from stdin
  %(prog)s --parse script.ldgv    # Parse and show the declarations
  %(prog)s --trace script.ldgv    # Log every evaluation step to stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='LDGV script file to execute (default: read stdin)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse the program and show its declarations'
  )

  parser.add_argument(
      '--trace',
      action='store_true',
      help='Trace evaluation and channel traffic'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output, including tracebacks'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def report_error(label: str, error: Exception, debug: bool = False) -> None:
  """Print a failure report; with debug, also the traceback of the exception being handled"""
  print(f"{label}: {error}", file=sys.stderr)
  if debug:
    traceback.print_exc()


def parse_source(source: str, filename: str, debug: bool = False) -> list:
  parser = create_debug_parser() if debug else create_parser()
  return parser.parse_string(source, filename)


def show_declarations(source: str, filename: str, debug: bool = False) -> int:
  """Parse a program and list its declarations"""
  try:
    decls = parse_source(source, filename, debug)
  except LDGVParseError as e:
    report_error(f"Parse error in '{filename}'", e, debug)
    return 1

  print(f"Parsed {len(decls)} declarations:")
  print("=" * 50)
  for decl in decls:
    print(pretty_print_decl(decl))
  return 0


def run_source(source: str, filename: str = "<stdin>", debug: bool = False) -> int:
  """Parse and run a program, printing the value of main; returns the exit code"""
  try:
    decls = parse_source(source, filename, debug)
    if debug:
      logger.debug(f"Parsed {len(decls)} declarations from {filename}")
    result = interpret_program(decls)
  except LDGVParseError as e:
    report_error(f"Parse error in '{filename}'", e, debug)
    return 1
  except LDGVRuntimeError as e:
    report_error(f"Runtime error in '{filename}'", e, debug)
    return 1
  except RecursionError:
    report_error(f"Runtime error in '{filename}'", RuntimeError("evaluation nested too deeply"), debug)
    return 1
  finally:
    get_process_registry().terminate_all()

  print(show_value(result))
  return 0


def read_script(script_path: str) -> str:
  with open(script_path, 'r', encoding='utf-8') as f:
    return f.read()


def run_script_file(script_path: str, debug: bool = False) -> int:
  """Run an LDGV script file with full interpretation"""
  try:
    source = read_script(script_path)
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    return 1
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
    return 1
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print("  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
    return 1
  return run_source(source, script_path, debug)


def main(argv=None) -> None:
  """Main entry point for LDGV"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  set_tracing(args.trace)
  configure_logging(debug=args.debug)

  if args.script:
    if args.parse:
      try:
        source = read_script(args.script)
      except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
      sys.exit(show_declarations(source, args.script, args.debug))
    sys.exit(run_script_file(args.script, debug=args.debug))

  source = sys.stdin.read()
  if args.parse:
    sys.exit(show_declarations(source, "<stdin>", args.debug))
  sys.exit(run_source(source, "<stdin>", debug=args.debug))


if __name__ == "__main__":
  main()
