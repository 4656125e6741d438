from collections import defaultdict
from typing import Callable, Dict, Optional

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer as BasePromptLexer

from rpn.lexer import Lexer, TokenType

TokenStyles = Dict[TokenType, str]

OPERATOR = "class:pygments.operator"
WHITESPACE = "class:pygments.whitespace"


class PromptLexer(BasePromptLexer):
    """Highlights postfix expressions typed into the REPL."""

    DEFAULT_STYLE: TokenStyles = {
        TokenType.SPACE: WHITESPACE,
        TokenType.NEW_LINE: WHITESPACE,
        TokenType.END: WHITESPACE,
        TokenType.UNKNOWN: "class:pygments.error",
        TokenType.PLUS: OPERATOR,
        TokenType.MINUS: OPERATOR,
        TokenType.NAME: "class:pygments.name",
    }

    def __init__(self, lexer: Lexer, style: Optional[TokenStyles] = None):
        self.lexer: Lexer = lexer
        self.token_styles: TokenStyles = style or self.DEFAULT_STYLE

    def styled_lines(self, text: str) -> Dict[int, StyleAndTextTuples]:
        """Group styled token fragments by line number."""
        lines = defaultdict(list)
        for token in self.lexer.iter_tokens(text, "<prompt>"):
            lines[token.pos.line].append((self.token_styles[token.type], token.text))
        return lines

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = self.styled_lines(document.text)
        return lambda line_number: lines.get(line_number, [])


Prompt = Callable[[str], str]
