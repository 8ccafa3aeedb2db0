"""
Error handling for LDGV: parse diagnostics and runtime faults
Report builders are plain functions; exceptions live at the boundaries
"""

from typing import List, Optional, Dict
from pyparsing import ParseException
import re


# Next token at an error position: a word, a label, a number or one symbol
_TOKEN_PATTERN = re.compile(r"'?[A-Za-z_][A-Za-z0-9_']*|\d+|=>|->|\S")


# ============================================================================
# PARSE REPORTS
# ============================================================================

def make_parse_error(
        message: str,
        location: int,
        line: int,
        column: int,
        expected: Optional[List[str]] = None,
        got: Optional[str] = None,
        context: Optional[str] = None,
        suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return dict(
            message=message,
            location=location,
            line=line,
            column=column,
            expected=list(expected or []),
            got=got,
            context=context,
            suggestions=list(suggestions or [])
    )


def format_parse_error(error: Dict) -> str:
    """Render a parse report, one section per populated field"""
    sections = [
            f"Parse error at line {error['line']}, column {error['column']}:",
            f"  {error['message']}",
    ]
    if error['expected']:
        sections.append("  Expected: " + ", ".join(error['expected']))
    if error['got']:
        sections.append(f"  Got: {error['got']}")
    if error['context']:
        sections.append("  Context:")
        sections.append(error['context'])
    if error['suggestions']:
        sections.append("  Suggestions:")
        sections.extend(f"    - {s}" for s in error['suggestions'])
    return "\n".join(sections) + "\n"


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Numbered source lines around line_num, with a caret under col_num"""
    lines = source_text.split('\n')
    first = max(1, line_num - context_lines)
    last = min(len(lines), line_num + context_lines)

    rendered = []
    for number in range(first, last + 1):
        rendered.append(f"{number:4d}: {lines[number - 1]}")
        if number == line_num:
            rendered.append(" " * (5 + col_num) + "^ Error here")
    return '\n'.join(rendered)


def extract_expected(exc: ParseException) -> List[str]:
    """What pyparsing was looking for, without its location suffix"""
    match = re.match(r"Expected\s+(.+?)(?:,\s+found\b.*)?$", exc.msg or "")
    if match:
        return [match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """The token found at the error location"""
    lines = source_text.split('\n')
    if not 0 < line_num <= len(lines):
        return "end of input"
    rest = lines[line_num - 1][col_num - 1:]
    token = _TOKEN_PATTERN.search(rest)
    if token is None:
        return "end of line"
    return f"'{token.group(0)}'"


SUGGESTION_RULES = [
        (lambda got, expected: ";" in got,
          "LDGV doesn't use semicolons - sequence with 'let x = e1 in e2'"),
        (lambda got, expected: "#" in got or got.startswith("'/"),
          "Comments start with '--'"),
        (lambda got, expected: "'in'" in str(expected) or "in" in expected,
          "Every 'let' binding needs a matching 'in'"),
        (lambda got, expected: "=>" in str(expected),
          "natrec branches are written 'zero => e' and 'succ n (acc : T) => e'"),
        (lambda got, expected: got in ("'fun'", "'lambda'", "'\\'"),
          "Lambdas are written 'fn (x : T) body'"),
        (lambda got, expected: "'val'" in str(expected) or "'type'" in str(expected),
          "Top-level declarations start with 'val' or 'type'"),
]


def generate_suggestions(got: str, expected: List[str]) -> List[str]:
    """Hints for common mistakes, in rule order"""
    return [hint for applies, hint in SUGGESTION_RULES if applies(got, expected)]


def enhance_parse_exception_dict(exc: ParseException, source_text: str) -> Dict:
    """Convert pyparsing exception to enhanced LDGV error dict"""
    line_num, col_num = exc.lineno, exc.column
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)

    return make_parse_error(
            message=str(exc),
            location=exc.loc,
            line=line_num,
            column=col_num,
            expected=expected,
            got=got,
            context=get_context_lines(source_text, line_num, col_num),
            suggestions=generate_suggestions(got, expected)
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class LDGVParseError(Exception):
    """Parse failure with source location and a formatted report"""

    def __init__(self, message: str, span=None, context: str = "", report: Optional[Dict] = None):
        self.message = message
        self.span = span
        self.context = context
        self.report = report
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.report:
            return format_parse_error(self.report)
        if self.span:
            result = f"Parse error at {self.span}: {self.message}"
            if self.context:
                result += f"\n  Context: {self.context}"
            return result
        return f"Parse error: {self.message}"


class LDGVRuntimeError(Exception):
    """A fatal evaluation fault; aborts the process that raised it"""

    kind = "RuntimeError"

    def __init__(self, message: str, expression: Optional[str] = None):
        self.message = message
        self.expression = expression
        super().__init__(message)

    def __str__(self) -> str:
        if self.expression:
            return f"{self.kind}: {self.message}\n  in: {self.expression}"
        return f"{self.kind}: {self.message}"


class UnboundVariableError(LDGVRuntimeError):
    kind = "UnboundVariable"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unbound identifier: {name}")


class TypeMismatchError(LDGVRuntimeError):
    kind = "TypeMismatch"


class NoMatchingCaseError(LDGVRuntimeError):
    kind = "NoMatchingCase"


class DivisionByZeroError(LDGVRuntimeError):
    kind = "DivisionByZero"

    def __init__(self, expression: Optional[str] = None):
        super().__init__("Division by zero", expression)


class NoMainDeclarationError(LDGVRuntimeError):
    kind = "NoMainDeclaration"

    def __init__(self):
        super().__init__("No 'main' value declaration found, exiting")


class NegativeRecursionError(LDGVRuntimeError):
    """natrec over a negative index never reaches its zero case"""
    kind = "NegativeRecursionIndex"
