import enum
from dataclasses import dataclass, field
from typing import Optional, Union

from rpn.lexer import Position


class OpKind(enum.Enum):
    """Binary operator kinds."""
    ADD = "+"
    SUBTRACT = "-"


@dataclass(frozen=True)
class Constant:
    """Integer literal."""
    value: int
    pos: Optional[Position] = field(default=None, compare=False, repr=False)

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class VariableRef:
    """Reference to a name bound in the evaluation context."""
    name: str
    pos: Optional[Position] = field(default=None, compare=False, repr=False)

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class BinaryOp:
    kind: OpKind
    left: "Expression"
    right: "Expression"
    pos: Optional[Position] = field(default=None, compare=False, repr=False)

    def __str__(self):
        words = []
        pending = [self]
        while pending:
            item = pending.pop()
            if isinstance(item, BinaryOp):
                pending.extend((item.kind, item.right, item.left))
            elif isinstance(item, OpKind):
                words.append(item.value)
            else:
                words.append(str(item))
        return " ".join(words)


Expression = Union[Constant, VariableRef, BinaryOp]


def add(left: Expression, right: Expression, pos: Optional[Position] = None) -> BinaryOp:
    return BinaryOp(OpKind.ADD, left, right, pos)


def subtract(left: Expression, right: Expression, pos: Optional[Position] = None) -> BinaryOp:
    return BinaryOp(OpKind.SUBTRACT, left, right, pos)
