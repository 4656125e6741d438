from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, MutableMapping, Optional, Sequence, TextIO, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_input
from prompt_toolkit.output import create_output
from prompt_toolkit.styles import style_from_pygments_cls, Style
from pygments.styles.monokai import MonokaiStyle

import rpn.ast as ast
from rpn.builder import Builder, MalformedExpression
from rpn.evaluator import Context, EvaluationError, Evaluator
from rpn.lexer import Lexer, Position, Token, TokenType
from rpn.prompt import PromptLexer, Prompt

logger = logging.getLogger(__name__)


class InvalidBinding(Exception):
    """Command line binding is not of the form NAME=VALUE."""

    def __init__(self, text: str):
        super().__init__(f"Expected NAME=VALUE, got: {repr(text)}")
        self.text: str = text


class Interpreter:
    PROMPT = "rpn> "
    ASSIGN = "="

    def __init__(self, lexer: Optional[Lexer] = None, builder: Optional[Builder] = None,
                 evaluator: Optional[Evaluator] = None):
        self._lexer: Lexer = lexer or Lexer()
        self._builder: Builder = builder or Builder(self._lexer)
        self._evaluator: Evaluator = evaluator or Evaluator()

    def translate_value(self, tokens: Sequence[Token]) -> ast.Expression:
        """Convert bound value tokens to expression, integer literals become constants."""
        significant = [token for token in tokens if token.type not in Builder.IGNORED]
        if len(significant) == 2 and significant[0].type == TokenType.NAME:
            literal = significant[0]
            try:
                return ast.Constant(int(literal.text), pos=literal.pos)
            except ValueError:
                pass
        return self._builder.build(tokens)

    def parse_binding(self, text: str) -> Tuple[str, ast.Expression]:
        """Parse NAME=VALUE command line binding."""
        name, sep, value = text.partition(self.ASSIGN)
        if not sep or not name or not value.strip() or name.split() != [name]:
            raise InvalidBinding(text)
        return name, self.translate_value(self._lexer.tokens(value, f"<binding:{name}>"))

    def evaluate(self, text: str, context: Context, filename: str = "<expr>") -> int:
        """Build and evaluate postfix expression."""
        expression = self._builder.parse(text, filename)
        return self._evaluator.interpret(expression, context)

    def execute(self, command: str, context: MutableMapping[str, ast.Expression],
                filename: str = "<command>") -> Optional[int]:
        """Execute a REPL command: either ``NAME = VALUE`` or an expression."""
        tokens = self._lexer.tokens(command, filename)
        significant = [token for token in tokens if token.type not in Builder.IGNORED]
        if len(significant) > 3 and self._is_assignment(significant):
            name = significant[0].text
            context[name] = self.translate_value(significant[2:])
            logger.debug("Bound %s to %s", name, context[name])
            return None
        expression = self._builder.build(tokens)
        return self._evaluator.interpret(expression, context)

    def _is_assignment(self, tokens: List[Token]) -> bool:
        return (
            tokens[0].type == TokenType.NAME and
            tokens[1].type == TokenType.NAME and
            tokens[1].text == self.ASSIGN
        )

    @staticmethod
    def get_line(text: str, pos: Position) -> str:
        """Get line containing the position."""
        try:
            start = text.rindex("\n", 0, pos.abs) + 1
        except ValueError:
            start = 0
        try:
            end = text.index("\n", pos.abs)
        except ValueError:
            end = len(text)
        return text[start:end]

    @staticmethod
    def print_malformed_expression(error: MalformedExpression, output: TextIO = sys.stderr,
                                   source: Optional[str] = None):
        """Print malformed expression error."""
        token = error.token
        pos = token.pos
        print(f"In '{pos.file}', line {pos.line}", file=output)
        if source is not None:
            print("  " + Interpreter.get_line(source, pos), file=output)
            print("  " + " " * pos.in_line + "^" * max(len(token.text), 1), file=output)
        print(f"Malformed Expression: {str(error)}", file=output)

    @staticmethod
    def print_error(error: Exception, output: TextIO = sys.stderr):
        print(f"{type(error).__name__}: {str(error)}", file=output)

    def make_prompt(self, input: TextIO, output: TextIO, style: Optional[Style] = None) -> Prompt:
        """Make prompter function reading commands with history and highlighting."""
        session = PromptSession(
            lexer=PromptLexer(self._lexer),
            style=style or style_from_pygments_cls(MonokaiStyle),
            enable_history_search=True,
            input=create_input(input),
            output=create_output(output),
        )
        return session.prompt

    def repl(self, context: Optional[Context] = None, output: Optional[TextIO] = None,
             err_output: Optional[TextIO] = None, input: Optional[TextIO] = None, prompt: Optional[Prompt] = None):
        context = dict(context or {})
        output = output or sys.stdout
        err_output = err_output or sys.stderr
        prompt = prompt or self.make_prompt(input=input or sys.stdin, output=output)

        command_count = 0
        while True:
            try:
                command = prompt(self.PROMPT)
            except (EOFError, KeyboardInterrupt):
                break

            if command.strip():
                try:
                    result = self.execute(command, context, f"<command:{command_count}>")
                    if result is not None:
                        print(result, file=output)
                except MalformedExpression as error:
                    self.print_malformed_expression(error, output=err_output, source=command)
                except EvaluationError as error:
                    self.print_error(error, output=err_output)
                command_count += 1

    def exec_expression(self, text: str, bindings: Sequence[str] = (), output: Optional[TextIO] = None,
                        err_output: Optional[TextIO] = None):
        """Evaluate a single expression and print the result."""
        output = output or sys.stdout
        err_output = err_output or sys.stderr
        source = text
        try:
            context: Dict[str, ast.Expression] = {}
            for binding in bindings:
                source = binding.partition(self.ASSIGN)[2]
                name, value = self.parse_binding(binding)
                context[name] = value
            source = text
            print(self.evaluate(text, context), file=output)
        except MalformedExpression as error:
            self.print_malformed_expression(error, output=err_output, source=source)
            sys.exit(-1)
        except (EvaluationError, InvalidBinding) as error:
            self.print_error(error, output=err_output)
            sys.exit(-1)


def make_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rpn", description="Postfix expression interpreter")
    parser.add_argument(
        "-s", "--strict",
        action="store_true",
        help="fail on unbound variables instead of treating them as zero",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="log built expressions and variable lookups",
    )
    parser.add_argument(
        "expression",
        nargs="?",
        help="postfix expression, e.g. 'w x z - +'; starts REPL when omitted",
    )
    parser.add_argument(
        "bindings",
        nargs="*",
        metavar="NAME=VALUE",
        help="variable bound to an integer or to a postfix expression",
    )
    return parser


def main(args: Optional[Sequence[str]] = None):
    options = make_arg_parser().parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    interpreter = Interpreter(evaluator=Evaluator(strict=options.strict))
    if options.expression is None:
        interpreter.repl()
    else:
        interpreter.exec_expression(options.expression, options.bindings)


if __name__ == '__main__':
    main()
