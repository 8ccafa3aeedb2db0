"""
LDGV Programming Language Parser
pyparsing grammar producing the dictionary AST of syntax.py
"""

from typing import List, Dict, Any
from dataclasses import dataclass

from pyparsing import (
        Forward, Group, Keyword, Literal, MatchFirst, OneOrMore, OpAssoc,
        Optional as PyParsingOptional, ParseException, ParserElement, Regex,
        StringEnd, Suppress, ZeroOrMore, infix_notation, one_of
)

from error_handling import LDGVParseError, enhance_parse_exception_dict
from syntax import (
        MANY, ONE,
        make_unit, make_var, make_label, make_int,
        make_plus, make_minus, make_times, make_div, make_negate, make_succ,
        make_let, make_let_pair, make_pair, make_fst, make_snd,
        make_lambda, make_app, make_fork, make_new, make_send, make_recv,
        make_case, make_natrec,
        make_function_def, make_type_def, make_signature,
        show_exp, show_type,
)

# Enable packrat parsing for performance
ParserElement.enable_packrat()


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a parse failure"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


KEYWORDS = [
        'type', 'val', 'let', 'in', 'fn', 'lin', 'fork', 'new', 'send', 'recv',
        'fst', 'snd', 'succ', 'case', 'natrec', 'zero', 'end',
]

BUILTIN_TYPES = {'Int', 'Nat', 'Unit', 'Top', 'Bot', 'End'}

PREFIX_BUILDERS = {
        'fst': make_fst,
        'snd': make_snd,
        'send': make_send,
        'recv': make_recv,
        'succ': make_succ,
}

BINARY_BUILDERS = {
        '+': make_plus,
        '-': make_minus,
        '*': make_times,
        '/': make_div,
}


def _kw(word: str):
    return Suppress(Keyword(word))


def _fold_application(tokens):
    result = tokens[0]
    for argument in tokens[1:]:
        result = make_app(result, argument)
    return result


def _fold_binary(tokens):
    items = tokens[0]
    result = items[0]
    for i in range(1, len(items), 2):
        result = BINARY_BUILDERS[items[i]](result, items[i + 1])
    return result


def _branch_table(groups):
    """Label to body; the first branch for a repeated label wins"""
    table = {}
    for label, body in groups:
        table.setdefault(label, body)
    return table


def _make_type_name(tokens):
    name = tokens[0]
    return ("TYPE_ATOM", name) if name in BUILTIN_TYPES else ("TYPE_NAME", name)


def _make_arrow_type(tokens):
    if len(tokens) == 1:
        return tokens[0]
    return ("TYPE_FUNC", (None, tokens[0], tokens[1]))


def _make_param(tokens):
    if tokens[0] == 'lin':
        return (ONE, tokens[1], tokens[2])
    return (MANY, tokens[0], tokens[1])


def _make_lambda(tokens):
    if tokens[0] == 'lin':
        return make_lambda(tokens[1], tokens[3], tokens[2], ONE)
    return make_lambda(tokens[0], tokens[2], tokens[1], MANY)


def _make_function_def(tokens):
    name = tokens[0]
    params = list(tokens[1])
    result_type = tokens[2] if len(tokens) == 4 else None
    return make_function_def(name, params, tokens[-1], result_type)


class LDGVGrammar:
    """pyparsing grammar for LDGV declarations, expressions and types"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the complete LDGV grammar"""

        # Forward declarations for recursive structures
        expression = Forward()
        prefix_expr = Forward()
        type_expr = Forward()
        type_atom = Forward()

        # Punctuation
        LPAR, RPAR = Suppress("("), Suppress(")")
        LBRACE, RBRACE = Suppress("{"), Suppress("}")
        LBRACK, RBRACK = Suppress("["), Suppress("]")
        LANGLE, RANGLE = Suppress("<"), Suppress(">")
        COMMA, COLON, DOT = Suppress(","), Suppress(":"), Suppress(".")
        FAT_ARROW, ARROW = Suppress(Literal("=>")), Suppress(Literal("->"))
        EQUALS = Suppress(Literal("="))

        excluded_keywords = MatchFirst([Keyword(k) for k in KEYWORDS])

        def identifier():
            return (~excluded_keywords + Regex(r"[a-z][a-zA-Z0-9_']*")).set_name("identifier")

        def label_name():
            return Regex(r"'[A-Za-z][A-Za-z0-9_]*").set_parse_action(lambda t: t[0][1:]).set_name("label")

        type_identifier = Regex(r"[A-Z][a-zA-Z0-9_']*").set_name("type identifier")
        kind = Regex(r"~[a-z]+").set_name("kind")

        # ------------------------------------------------------------------
        # Types (kept opaque: nested tuples)
        # ------------------------------------------------------------------
        type_name = type_identifier.copy().set_parse_action(_make_type_name)
        type_end = Keyword("end").set_parse_action(lambda t: ("TYPE_ATOM", "End"))

        label_set = (
                LBRACE + label_name() + ZeroOrMore(COMMA + label_name()) + RBRACE
        ).set_parse_action(lambda t: ("TYPE_LABELS", tuple(t)))

        dual_type = (
                Suppress("~") + type_atom
        ).set_parse_action(lambda t: ("TYPE_DUAL", t[0]))

        sigma_type = (
                LBRACK + identifier() + COLON + type_expr + COMMA + type_expr + RBRACK
        ).set_parse_action(lambda t: ("TYPE_SIGMA", (t[0], t[1], t[2])))

        type_branch = Group(label_name() + COLON + type_expr)
        type_case = (
                _kw("case") + identifier() + LBRACE + type_branch + ZeroOrMore(COMMA + type_branch) + RBRACE
        ).set_parse_action(lambda t: ("TYPE_CASE", (t[0], _branch_table(t[1:]))))

        paren_type = LPAR + type_expr + RPAR

        type_atom <<= type_end | type_name | label_set | dual_type | sigma_type | type_case | paren_type

        session_type = (
                one_of("! ?") + type_atom + DOT + type_expr
        ).set_parse_action(lambda t: ("TYPE_SEND" if t[0] == "!" else "TYPE_RECV", (t[1], t[2])))

        pi_type = (
                LPAR + identifier() + COLON + type_expr + RPAR + ARROW + type_expr
        ).set_parse_action(lambda t: ("TYPE_FUNC", (t[0], t[1], t[2])))

        arrow_type = (
                type_atom + PyParsingOptional(ARROW + type_expr)
        ).set_parse_action(_make_arrow_type)

        type_expr <<= session_type | pi_type | arrow_type

        # ------------------------------------------------------------------
        # Expressions
        # ------------------------------------------------------------------
        unit_lit = (LPAR + RPAR).set_parse_action(lambda t: make_unit())
        int_lit = Regex(r"\d+").set_parse_action(lambda t: make_int(int(t[0])))
        label_lit = label_name().add_parse_action(lambda t: make_label(t[0]))
        variable = identifier().set_parse_action(lambda t: make_var(t[0]))

        dependent_pair = (
                LANGLE + identifier() + EQUALS + expression + COMMA + expression + RANGLE
        ).set_parse_action(lambda t: make_pair(t[0], t[1], t[2]))

        plain_pair = (
                LANGLE + expression + COMMA + expression + RANGLE
        ).set_parse_action(lambda t: make_pair("_", t[0], t[1]))

        parenthesized = LPAR + expression + RPAR

        atom = unit_lit | int_lit | label_lit | variable | dependent_pair | plain_pair | parenthesized

        prefix_op = (
                MatchFirst([Keyword(k) for k in PREFIX_BUILDERS]) + prefix_expr
        ).set_parse_action(lambda t: PREFIX_BUILDERS[t[0]](t[1]))

        new_channel = (
                _kw("new") + type_atom
        ).set_parse_action(lambda t: make_new(t[0]))

        prefix_expr <<= prefix_op | new_channel | atom

        application = OneOrMore(prefix_expr).set_parse_action(_fold_application)

        arithmetic = infix_notation(application, [
                (Literal("-"), 1, OpAssoc.RIGHT, lambda t: make_negate(t[0][1])),
                (one_of("* /"), 2, OpAssoc.LEFT, _fold_binary),
                (one_of("+ -"), 2, OpAssoc.LEFT, _fold_binary),
        ])

        let_expr = (
                _kw("let") + identifier() + EQUALS + expression + _kw("in") + expression
        ).set_parse_action(lambda t: make_let(t[0], t[1], t[2]))

        let_pair_expr = (
                _kw("let") + LANGLE + identifier() + COMMA + identifier() + RANGLE +
                EQUALS + expression + _kw("in") + expression
        ).set_parse_action(lambda t: make_let_pair(t[0], t[1], t[2], t[3]))

        lambda_expr = (
                PyParsingOptional(Keyword("lin")) + _kw("fn") +
                LPAR + identifier() + COLON + type_expr + RPAR + expression
        ).set_parse_action(_make_lambda)

        fork_expr = (
                _kw("fork") + expression
        ).set_parse_action(lambda t: make_fork(t[0]))

        case_branch = Group(label_name() + COLON + expression)
        case_expr = (
                _kw("case") + expression + LBRACE + case_branch + ZeroOrMore(COMMA + case_branch) + RBRACE
        ).set_parse_action(lambda t: make_case(t[0], _branch_table(t[1:])))

        natrec_expr = (
                _kw("natrec") + expression + LBRACE +
                _kw("zero") + FAT_ARROW + expression + COMMA +
                _kw("succ") + identifier() + LPAR + identifier() + COLON + type_expr + RPAR +
                FAT_ARROW + expression + RBRACE
        ).set_parse_action(lambda t: make_natrec(t[0], t[1], t[2], t[3], t[5], t[4]))

        expression <<= (
                let_pair_expr | let_expr | lambda_expr | fork_expr |
                case_expr | natrec_expr | arithmetic
        )

        # ------------------------------------------------------------------
        # Declarations
        # ------------------------------------------------------------------
        param = (
                LPAR + PyParsingOptional(Keyword("lin")) + identifier() + COLON + type_expr + RPAR
        ).set_parse_action(_make_param)

        function_def = (
                _kw("val") + identifier() + Group(ZeroOrMore(param)) +
                PyParsingOptional(COLON + type_expr) + EQUALS + expression
        ).set_parse_action(_make_function_def)

        signature = (
                _kw("val") + identifier() + COLON + type_expr
        ).set_parse_action(lambda t: make_signature(t[0], t[1]))

        type_def = (
                _kw("type") + type_identifier + COLON + kind + EQUALS + type_expr
        ).set_parse_action(lambda t: make_type_def(t[0], t[1], t[2]))

        declaration = type_def | function_def | signature
        program = ZeroOrMore(declaration) + StringEnd()

        # Store the main parsers
        self.program = program
        self.declaration = declaration
        self.expression = expression
        self.type_expr = type_expr
        self.function_def = function_def

        if self.debug:
            self.declaration.set_debug()

    def _preprocess_text(self, text: str) -> str:
        """Blank out '--' comments, keeping line and column positions"""
        lines = []
        for line in text.split('\n'):
            if '--' in line:
                line = line[:line.index('--')]
            lines.append(line.rstrip())
        return '\n'.join(lines)

    def _raise_parse_error(self, exc: ParseException, text: str, filename: str):
        line_num = getattr(exc, 'lineno', 1)
        col_num = getattr(exc, 'col', 1)
        span = SourceSpan(filename, line_num, col_num, line_num, col_num + 1, "")
        lines = text.split('\n')
        context_line = lines[line_num - 1] if 0 < line_num <= len(lines) else ""
        report = enhance_parse_exception_dict(exc, text)
        raise LDGVParseError(str(exc), span, context_line, report) from exc

    def parse_program(self, text: str, filename: str = "<input>") -> List[Dict]:
        """Parse a complete LDGV program into a list of declarations"""
        preprocessed_text = self._preprocess_text(text)
        try:
            result = self.program.parse_string(preprocessed_text, parse_all=True)
        except ParseException as e:
            self._raise_parse_error(e, preprocessed_text, filename)
        return list(result)

    def parse_expression(self, text: str, filename: str = "<input>") -> Dict:
        """Parse a single LDGV expression"""
        preprocessed_text = self._preprocess_text(text)
        try:
            result = self.expression.parse_string(preprocessed_text, parse_all=True)
        except ParseException as e:
            self._raise_parse_error(e, preprocessed_text, filename)
        return result[0]

    def parse_type(self, text: str, filename: str = "<input>") -> Any:
        """Parse a single type expression"""
        try:
            result = self.type_expr.parse_string(text, parse_all=True)
        except ParseException as e:
            self._raise_parse_error(e, text, filename)
        return result[0]


class LDGVParser:
    """Main LDGV parser: file handling around the grammar"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = LDGVGrammar(debug)

    def parse_file(self, filepath: str) -> List[Dict]:
        """Parse an LDGV source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise LDGVParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise LDGVParseError(f"Cannot decode file {filepath}: {e}")
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Dict]:
        """Parse LDGV source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Dict:
        """Parse a single LDGV expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> LDGVParser:
    """Create an LDGV parser"""
    return LDGVParser(debug=debug)


def create_debug_parser() -> LDGVParser:
    """Create an LDGV parser with debug enabled"""
    return LDGVParser(debug=True)


def pretty_print_decl(decl: Dict) -> str:
    """Render a declaration for the --parse listing"""
    value = decl['value']
    if decl['type'] == "FUNCTION_DEF":
        params = "".join(
                f" ({'lin ' if mult == ONE else ''}{name} : {show_type(t)})"
                for mult, name, t in value['params']
        )
        result = f" : {show_type(value['result_type'])}" if value['result_type'] is not None else ""
        return f"val {value['name']}{params}{result} = {show_exp(value['body'])}"
    elif decl['type'] == "TYPE_DEF":
        return f"type {value['name']} : {value['kind']} = {show_type(value['body'])}"
    elif decl['type'] == "SIGNATURE":
        return f"val {value['name']} : {show_type(value['type'])}"
    return str(decl)
