import logging
from typing import FrozenSet, List, Mapping, Optional, Tuple, Union

import rpn.ast as ast

logger = logging.getLogger(__name__)

Context = Mapping[str, ast.Expression]


class EvaluationError(Exception):
    """Parent class for evaluation errors."""

    def __init__(self, message: str, name: str):
        super().__init__(message)
        self.name: str = name


class UnboundVariable(EvaluationError):
    """Name is not bound in the context (strict mode only)."""

    def __init__(self, name: str):
        super().__init__(f"Variable is not bound: {name}", name)


class CyclicBinding(EvaluationError):
    """Bound expression refers back to the variable being resolved."""

    def __init__(self, name: str):
        super().__init__(f"Variable is bound to itself: {name}", name)


class Evaluator:
    """Evaluates expression trees against variable bindings.

    By default a name missing from the context evaluates to zero. With
    ``strict=True`` it raises ``UnboundVariable`` instead.
    """

    def __init__(self, strict: bool = False):
        self.strict: bool = strict

    def interpret(self, node: ast.Expression, context: Context) -> int:
        # Post-order walk: operands are pushed on values, operator kinds wait in pending until both are there
        values: List[int] = []
        pending: List[Tuple[Union[ast.Expression, ast.OpKind], FrozenSet[str]]] = [(node, frozenset())]
        while pending:
            item, resolving = pending.pop()
            if isinstance(item, ast.OpKind):
                right = values.pop()
                left = values.pop()
                values.append(self._apply(item, left, right))
            elif isinstance(item, ast.Constant):
                values.append(item.value)
            elif isinstance(item, ast.VariableRef):
                bound = self._deref(item.name, context, resolving)
                if bound is None:
                    values.append(0)
                else:
                    pending.append((bound, resolving | {item.name}))
            elif isinstance(item, ast.BinaryOp):
                pending.append((item.kind, resolving))
                pending.append((item.right, resolving))
                pending.append((item.left, resolving))
            else:
                raise TypeError(f"Unsupported expression node: {type(item)}")
        return values.pop()

    @staticmethod
    def _apply(kind: ast.OpKind, left: int, right: int) -> int:
        if kind == ast.OpKind.ADD:
            return left + right
        elif kind == ast.OpKind.SUBTRACT:
            return left - right
        raise ValueError(f"Unsupported operator: {kind}")

    def _deref(self, name: str, context: Context, resolving: FrozenSet[str]) -> Optional[ast.Expression]:
        """Get expression bound to the name, None stands for zero."""
        bound = context.get(name)
        if bound is None:
            if self.strict:
                raise UnboundVariable(name)
            logger.debug("Unbound variable %s evaluates to 0", name)
            return None
        if name in resolving:
            raise CyclicBinding(name)
        return bound


def interpret(node: ast.Expression, context: Context) -> int:
    """Evaluate expression with the zero default for unbound names."""
    return Evaluator().interpret(node, context)
