import enum
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple


class TokenType(enum.Enum):
    """Token types."""
    # White spaces
    SPACE = "SPACE"
    NEW_LINE = "NEW_LINE"

    # Operators
    PLUS = "PLUS"
    MINUS = "MINUS"

    # Operands
    NAME = "NAME"

    # Technical
    UNKNOWN = "UNKNOWN"
    END = "END"


@dataclass
class Position:
    """Position in source code."""
    file: str  # File path
    abs: int  # Absolute position in characters
    line: int  # Line number
    in_line: int  # Position in line

    def __repr__(self):
        return f"{self.file}:{self.line}:{self.in_line}"


class Token:
    """Represents a token in a text."""

    def __init__(self, token_type: TokenType, text: str, pos: Position):
        self.type: TokenType = token_type
        self.text: str = text
        self.pos: Position = pos

    def __repr__(self):
        return f"<{self.type.name} {repr(self.text)} {self.pos}>"


class Lexer:
    """Lexical analyzer.

    Operators are recognized only as whole words, so ``a+b`` is a single
    name while ``a b +`` is two names followed by an addition.
    """
    default_patterns = {
        TokenType.SPACE: r"[ \t\r\f\v]+",
        TokenType.NEW_LINE: r"\n",
        TokenType.PLUS: r"\+(?!\S)",
        TokenType.MINUS: r"-(?!\S)",
        TokenType.NAME: r"\S+",
    }

    def __init__(self, patterns=None):
        self.patterns: Dict[TokenType, str] = patterns or Lexer.default_patterns
        regex_entries = []
        for token_type, pattern in self.patterns.items():
            regex_entries.append(f"(?P<{token_type.name}>{pattern})")
        final_regex = "|".join(regex_entries)
        self.regex: re.Pattern = re.compile(final_regex)

    def _spans(self, text: str) -> Iterator[Tuple[TokenType, int, int]]:
        """Cover the whole text with (type, start, end) spans, gaps between matches are UNKNOWN."""
        covered = 0
        for match in self.regex.finditer(text):
            if match.start() > covered:
                yield TokenType.UNKNOWN, covered, match.start()
            yield TokenType[match.lastgroup], match.start(), match.end()
            covered = match.end()
        if covered < len(text):
            yield TokenType.UNKNOWN, covered, len(text)
        yield TokenType.END, len(text), len(text)

    def iter_tokens(self, text: str, file: str = "<expr>") -> Iterator[Token]:
        """Split text in tokens."""
        line, line_start = 0, 0
        for token_type, start, end in self._spans(text):
            yield Token(token_type, text[start:end], Position(file, start, line, start - line_start))
            if token_type == TokenType.NEW_LINE:
                line, line_start = line + 1, end

    def tokens(self, text: str, file: str = "<expr>") -> List[Token]:
        return list(self.iter_tokens(text, file))
