"""
jpq/engine.py — the ``JSONPath`` facade.

Compiles a query once and evaluates it against any number of documents::

    from jpq import JSONPath

    cheap = JSONPath("$.store.book[?@.price < 10].title")
    cheap.values(doc)            # ['Sayings of the Century', 'Moby Dick']
    cheap.paths(doc)             # ["$['store']['book'][0]['title']", ...]
    cheap.first(doc)             # 'Sayings of the Century'
    print(cheap.explain())

One-shot helpers (``query``, ``query_values``) parse on every call; keep a
:class:`JSONPath` around when the same query runs repeatedly.
"""

from __future__ import annotations

import logging
import time
from typing import Any, List, Optional

from jpq.ast_nodes import Query
from jpq.config import DEFAULT_CONFIG, EngineConfig
from jpq.evaluator import evaluate
from jpq.functions import FunctionRegistry, default_registry
from jpq.iregexp import RegexEngine, engine_for
from jpq.parser import parse
from jpq.values import NodeList

logger = logging.getLogger(__name__)


class JSONPath:
    """A compiled JSONPath query.

    Parameters
    ----------
    text : str
        The query, e.g. ``"$..author"``.
    registry : FunctionRegistry, optional
        Functions available to filters (default: the built-ins).
    config : EngineConfig, optional
        Resource limits (default: :data:`jpq.config.DEFAULT_CONFIG`).
    regex_engine : RegexEngine, optional
        Backend for ``match()`` / ``search()``.

    Raises
    ------
    JSONPathSyntaxError
        If ``text`` is not a valid query.

    Instances hold no per-evaluation state and may be shared between
    threads.
    """

    def __init__(self, text: str, registry: Optional[FunctionRegistry] = None,
                 config: Optional[EngineConfig] = None,
                 regex_engine: Optional[RegexEngine] = None):
        self.text = text
        self.config = config or DEFAULT_CONFIG
        self.config.log_warnings()
        # an empty registry is falsy; only None means "use the built-ins"
        self.registry = registry if registry is not None else default_registry()
        if regex_engine is None:
            regex_engine = engine_for(self.config)
        self.regex_engine = regex_engine
        self.query: Query = parse(text, self.registry, self.config)

    def __repr__(self) -> str:
        return f"JSONPath({self.text!r})"

    def __call__(self, root: Any) -> NodeList:
        return self.find(root)

    def find(self, root: Any) -> NodeList:
        """Evaluate against ``root`` and return the matching nodes."""
        t0 = time.monotonic()
        result = evaluate(self.query, root, self.registry, self.config,
                          self.regex_engine)
        logger.debug("JSONPath query '%s' returned %d nodes in %.4fs",
                     self.text, len(result), time.monotonic() - t0)
        return result

    def values(self, root: Any) -> List[Any]:
        return self.find(root).values()

    def paths(self, root: Any) -> List[str]:
        return self.find(root).paths()

    def first(self, root: Any, default: Any = None) -> Any:
        """Value of the first match, or ``default`` when nothing matches."""
        result = self.find(root)
        return result[0].value if result else default

    def exists(self, root: Any) -> bool:
        return len(self.find(root)) > 0

    def count(self, root: Any) -> int:
        return len(self.find(root))

    def is_singular(self) -> bool:
        return self.query.is_singular()

    def canonical(self) -> str:
        """The query in canonical bracket notation."""
        return self.query.to_source()

    def explain(self) -> str:
        """Return the parsed query as a human-readable tree."""
        return self.query.pretty()


def compile(text: str, registry: Optional[FunctionRegistry] = None,
            config: Optional[EngineConfig] = None,
            regex_engine: Optional[RegexEngine] = None) -> JSONPath:
    """Parse ``text`` into a reusable :class:`JSONPath`."""
    return JSONPath(text, registry, config, regex_engine)


def query(text: str, root: Any, registry: Optional[FunctionRegistry] = None,
          config: Optional[EngineConfig] = None,
          regex_engine: Optional[RegexEngine] = None) -> NodeList:
    """Parse and evaluate in one step."""
    return JSONPath(text, registry, config, regex_engine).find(root)


def query_values(text: str, root: Any, registry: Optional[FunctionRegistry] = None,
                 config: Optional[EngineConfig] = None,
                 regex_engine: Optional[RegexEngine] = None) -> List[Any]:
    return JSONPath(text, registry, config, regex_engine).values(root)


__all__ = ["JSONPath", "compile", "query", "query_values"]
