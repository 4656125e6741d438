import logging
from typing import Iterable, List, Optional

import rpn.ast as ast
from rpn.lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)


class MalformedExpression(Exception):
    """Postfix token stream doesn't reduce to a single expression."""

    def __init__(self, message: str, token: Token) -> None:
        super().__init__(message)
        self.token: Token = token


class Builder:
    """Builds expression tree from postfix tokens using an operand stack.

    Every operator pops its two operands and pushes the combined node back,
    every name pushes a variable reference. The first pop of an operator is
    its right-hand operand.
    """

    IGNORED = (TokenType.SPACE, TokenType.NEW_LINE)

    def __init__(self, lexer: Optional[Lexer] = None):
        self._lexer: Lexer = lexer or Lexer()

    def build(self, tokens: Iterable[Token]) -> ast.Expression:
        stack: List[ast.Expression] = []
        end = None
        for token in tokens:
            if token.type in self.IGNORED:
                continue
            elif token.type == TokenType.END:
                end = token
                break
            elif token.type == TokenType.PLUS:
                right, left = self._pop_operands(stack, token)
                stack.append(ast.add(left, right, pos=token.pos))
            elif token.type == TokenType.MINUS:
                right, left = self._pop_operands(stack, token)
                stack.append(ast.subtract(left, right, pos=token.pos))
            elif token.type == TokenType.NAME:
                stack.append(ast.VariableRef(token.text, pos=token.pos))
            else:
                raise MalformedExpression(f"Unexpected text {repr(token.text)}", token)

        if end is None:
            raise ValueError("The last token must be the token stream 'END'")
        if not stack:
            raise MalformedExpression("Empty expression", end)
        if len(stack) > 1:
            raise MalformedExpression(f"Missing operator for {len(stack)} operands", end)

        root = stack.pop()
        logger.debug("Built expression: %s", root)
        return root

    def parse(self, text: str, file: str = "<expr>") -> ast.Expression:
        """Tokenize and build expression."""
        return self.build(self._lexer.iter_tokens(text, file))

    @staticmethod
    def _pop_operands(stack: List[ast.Expression], operator: Token):
        if len(stack) < 2:
            raise MalformedExpression(f"Operator {repr(operator.text)} requires two operands", operator)
        right = stack.pop()
        left = stack.pop()
        return right, left


def build(text: str) -> ast.Expression:
    """Build expression tree from postfix text."""
    return Builder().parse(text)
