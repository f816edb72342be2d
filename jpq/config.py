"""jpq/config.py – tuning knobs shared by the parser, evaluator and regex engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from jpq.errors import JSONPathConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Resource limits for parsing and evaluation.

    ``None`` disables a length limit or the timeout.  ``max_nesting_depth`` bounds how
    deeply filter expressions may nest (parentheses, ``!`` chains and
    filters inside embedded queries) so the recursive-descent parser and
    the filter evaluator stay well inside the interpreter's stack.
    ``regex_timeout`` is the wall-clock budget, in seconds, for a single
    ``match()`` or ``search()`` call.
    """
    max_query_length: Optional[int] = 65_536
    max_nesting_depth: int = 64
    max_regex_length: Optional[int] = 1_024
    max_regex_subject_length: Optional[int] = 1_000_000
    regex_timeout: Optional[float] = 1.0
    regex_cache_size: int = 256

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_query_length is not None and self.max_query_length <= 0:
            warnings.append("max_query_length must be positive or None")
        if self.max_nesting_depth <= 0:
            warnings.append("max_nesting_depth must be positive")
        elif self.max_nesting_depth > 100:
            warnings.append(
                "max_nesting_depth above 100 risks exhausting the "
                "interpreter stack")
        if self.max_regex_length is not None and self.max_regex_length <= 0:
            warnings.append("max_regex_length must be positive or None")
        if (self.max_regex_subject_length is not None
                and self.max_regex_subject_length <= 0):
            warnings.append("max_regex_subject_length must be positive or None")
        if self.regex_timeout is not None and self.regex_timeout <= 0:
            warnings.append("regex_timeout must be positive or None")
        if self.regex_cache_size < 0:
            warnings.append("regex_cache_size must be non-negative")
        return warnings

    def validate_or_raise(self) -> "EngineConfig":
        """Raise :class:`JSONPathConfigError` listing every problem, else return self."""
        problems = self.validate()
        if problems:
            raise JSONPathConfigError("; ".join(problems))
        return self

    def log_warnings(self) -> None:
        for w in self.validate():
            logger.warning("EngineConfig: %s", w)


DEFAULT_CONFIG = EngineConfig()
