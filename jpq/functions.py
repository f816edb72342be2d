"""
jpq/functions.py — the function registry and the built-in functions.

A function is described by a :class:`FunctionDescriptor`: its name, the
declared type of every parameter, its declared result type and the Python
callable that runs it.  Declared types are the three JSONPath function
types:

============  ========================================================
``Value``     a single JSON value, or :data:`~jpq.values.NOTHING`
``Nodes``     a :class:`~jpq.values.NodeList`
``Logical``   a Python ``bool``
============  ========================================================

The filter evaluator converts every argument to the declared parameter
type before calling the executor, so executors never see a raw AST node.
Executors are called as ``executor(ctx, *args)`` where ``ctx`` is a
:class:`FunctionContext`.

Registering a user function::

    registry = FunctionRegistry.default()

    @registry.function("upper", [FunctionType.VALUE], FunctionType.VALUE)
    def _upper(ctx, value):
        return value.upper() if isinstance(value, str) else NOTHING
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import (
    Any, Callable, Dict, Iterator, Optional, Sequence, Tuple, TYPE_CHECKING,
)

from jpq.config import DEFAULT_CONFIG, EngineConfig
from jpq.values import NOTHING, JSONKind, NodeList, json_kind

if TYPE_CHECKING:
    from jpq.iregexp import RegexEngine

logger = logging.getLogger(__name__)


class FunctionType(enum.Enum):
    """Declared parameter / result types of JSONPath functions."""
    VALUE = "ValueType"
    NODES = "NodesType"
    LOGICAL = "LogicalType"


@dataclass(frozen=True)
class FunctionContext:
    """What an executor may consult besides its arguments."""
    current: Any
    root: Any
    regex: "RegexEngine"
    config: EngineConfig = DEFAULT_CONFIG


Executor = Callable[..., Any]


@dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    parameter_types: Tuple[FunctionType, ...]
    result_type: FunctionType
    executor: Executor

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    def signature(self) -> str:
        params = ", ".join(t.value for t in self.parameter_types)
        return f"{self.name}({params}) -> {self.result_type.value}"


# ===================================================================
#  Registry
# ===================================================================

class FunctionRegistry:
    """Name → :class:`FunctionDescriptor` mapping consulted by parser and evaluator.

    A registry is only read during parsing and evaluation; register every
    function before sharing the registry between threads.
    """

    def __init__(self) -> None:
        self._functions: Dict[str, FunctionDescriptor] = {}

    @classmethod
    def default(cls) -> "FunctionRegistry":
        """A fresh registry holding the five built-in functions."""
        registry = cls()
        for descriptor in _BUILTINS:
            registry._functions[descriptor.name] = descriptor
        return registry

    def register(self, name: str, parameter_types: Sequence[FunctionType],
                 result_type: FunctionType, executor: Executor) -> FunctionDescriptor:
        """Add (or replace) a function.  Returns the stored descriptor."""
        if name in self._functions:
            logger.warning("Function '%s' is already registered; replacing it", name)
        descriptor = FunctionDescriptor(
            name, tuple(parameter_types), result_type, executor)
        self._functions[name] = descriptor
        return descriptor

    def function(self, name: str, parameter_types: Sequence[FunctionType],
                 result_type: FunctionType) -> Callable[[Executor], Executor]:
        """Decorator form of :meth:`register`."""
        def decorator(fn: Executor) -> Executor:
            self.register(name, parameter_types, result_type, fn)
            return fn
        return decorator

    def get(self, name: str) -> Optional[FunctionDescriptor]:
        return self._functions.get(name)

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._functions))

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[FunctionDescriptor]:
        return iter(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)

    def __repr__(self) -> str:
        return f"FunctionRegistry({', '.join(self.names())})"


# ===================================================================
#  Built-ins
# ===================================================================

def _scalar_length(text: str) -> int:
    """Number of Unicode scalar values in ``text``.

    A string decoded from JSON may still hold a UTF-16 surrogate pair as
    two code points; such a pair is one scalar value.
    """
    count = 0
    i = 0
    n = len(text)
    while i < n:
        if ("\ud800" <= text[i] <= "\udbff" and i + 1 < n
                and "\udc00" <= text[i + 1] <= "\udfff"):
            i += 2
        else:
            i += 1
        count += 1
    return count


def _length(ctx: FunctionContext, value: Any) -> Any:
    kind = json_kind(value)
    if kind is JSONKind.STRING:
        return _scalar_length(value)
    if kind in (JSONKind.ARRAY, JSONKind.OBJECT):
        return len(value)
    return NOTHING


def _count(ctx: FunctionContext, nodes: NodeList) -> int:
    return len(nodes)


def _match(ctx: FunctionContext, subject: Any, pattern: Any) -> bool:
    if not isinstance(subject, str) or not isinstance(pattern, str):
        return False
    return ctx.regex.fullmatch(pattern, subject)


def _search(ctx: FunctionContext, subject: Any, pattern: Any) -> bool:
    if not isinstance(subject, str) or not isinstance(pattern, str):
        return False
    return ctx.regex.search(pattern, subject)


def _value(ctx: FunctionContext, nodes: NodeList) -> Any:
    return nodes.single_value()


_V, _N, _L = FunctionType.VALUE, FunctionType.NODES, FunctionType.LOGICAL

_BUILTINS: Tuple[FunctionDescriptor, ...] = (
    FunctionDescriptor("length", (_V,), _V, _length),
    FunctionDescriptor("count", (_N,), _V, _count),
    FunctionDescriptor("match", (_V, _V), _L, _match),
    FunctionDescriptor("search", (_V, _V), _L, _search),
    FunctionDescriptor("value", (_N,), _V, _value),
)

_DEFAULT_REGISTRY = FunctionRegistry.default()


def default_registry() -> FunctionRegistry:
    """The shared registry of built-ins used when none is supplied.

    Do not register functions on it; build your own with
    :meth:`FunctionRegistry.default` instead.
    """
    return _DEFAULT_REGISTRY


__all__ = [
    "FunctionType", "FunctionContext", "FunctionDescriptor",
    "FunctionRegistry", "default_registry",
]
