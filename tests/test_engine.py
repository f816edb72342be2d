# tests/test_engine.py
"""
The JSONPath facade, the one-shot helpers and EngineConfig validation.
"""

import logging

import pytest

import jpq
from jpq import (
    EngineConfig, JSONPath, JSONPathConfigError, JSONPathSyntaxError, NodeList,
)


class TestJSONPath:

    def test_values_and_paths(self, bookstore):
        q = JSONPath("$.store.book[?@.price < 10].title")
        assert q.values(bookstore) == ["Sayings of the Century", "Moby Dick"]
        assert q.paths(bookstore) == [
            "$['store']['book'][0]['title']", "$['store']['book'][2]['title']"]

    def test_call_returns_nodelist(self, bookstore):
        result = JSONPath("$..author")(bookstore)
        assert isinstance(result, NodeList)
        assert len(result) == 4

    def test_first(self, bookstore):
        q = JSONPath("$..author")
        assert q.first(bookstore) == "Nigel Rees"
        assert JSONPath("$.nope").first(bookstore) is None
        assert JSONPath("$.nope").first(bookstore, default="-") == "-"

    def test_exists_and_count(self, bookstore):
        assert JSONPath("$..isbn").exists(bookstore)
        assert JSONPath("$..isbn").count(bookstore) == 2
        assert not JSONPath("$..nope").exists(bookstore)

    def test_is_singular(self):
        assert JSONPath("$.a[0]['b']").is_singular()
        assert not JSONPath("$.a[*]").is_singular()
        assert not JSONPath("$..a").is_singular()

    def test_canonical_and_explain(self):
        q = JSONPath("$.a[0]")
        assert q.canonical() == "$['a'][0]"
        assert q.explain().splitlines()[0] == "query"
        assert repr(q) == "JSONPath('$.a[0]')"

    def test_syntax_error_at_construction(self):
        with pytest.raises(JSONPathSyntaxError):
            JSONPath("$[")

    def test_reusable(self):
        q = JSONPath("$.x")
        assert q.values({"x": 1}) == [1]
        assert q.values({"x": 2}) == [2]

    def test_custom_registry(self):
        registry = jpq.FunctionRegistry.default()
        registry.register("even", [jpq.FunctionType.VALUE], jpq.FunctionType.LOGICAL,
                          lambda ctx, v: isinstance(v, int) and v % 2 == 0)
        assert JSONPath("$[?even(@)]", registry).values([1, 2, 3, 4]) == [2, 4]

    def test_debug_log_on_find(self, bookstore, caplog):
        with caplog.at_level(logging.DEBUG, logger="jpq.engine"):
            JSONPath("$..author").find(bookstore)
        assert "returned 4 nodes" in caplog.text


class _LowercaseEngine:
    """Compares patterns and subjects case-insensitively."""

    def __init__(self):
        self.calls = []

    def fullmatch(self, pattern, subject):
        self.calls.append(subject)
        return subject.lower() == pattern.lower()

    def search(self, pattern, subject):
        self.calls.append(subject)
        return pattern.lower() in subject.lower()


class TestHelpers:

    def test_compile(self):
        assert isinstance(jpq.compile("$.a"), JSONPath)

    def test_query(self, bookstore):
        assert jpq.query("$.store.bicycle.color", bookstore).paths() == [
            "$['store']['bicycle']['color']"]

    def test_query_values(self, products):
        assert jpq.query_values("$.products[?@.inStock == true].name", products) == [
            "Laptop", "Mouse", "Desk"]

    def test_helpers_use_given_regex_engine(self, products):
        engine = _LowercaseEngine()
        q = "$.products[?match(@.name, 'desk')].price"
        assert jpq.query(q, products, regex_engine=engine).values() == [350]
        assert jpq.query_values(q, products, regex_engine=engine) == [350]
        assert jpq.query_values(q, products) == []
        assert len(engine.calls) == 8

    def test_version(self):
        assert jpq.__version__ == "0.1.0"


class TestEngineConfig:

    def test_default_is_valid(self):
        assert EngineConfig().validate() == []
        config = EngineConfig()
        assert config.validate_or_raise() is config

    def test_problems_are_listed(self):
        config = EngineConfig(max_query_length=0, regex_cache_size=-1)
        warnings = config.validate()
        assert len(warnings) == 2
        with pytest.raises(JSONPathConfigError, match="max_query_length"):
            config.validate_or_raise()

    def test_regex_timeout_must_be_positive(self):
        assert EngineConfig(regex_timeout=None).validate() == []
        assert EngineConfig(regex_timeout=0).validate() == [
            "regex_timeout must be positive or None"]

    def test_deep_nesting_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="jpq.config"):
            JSONPath("$", config=EngineConfig(max_nesting_depth=200))
        assert "max_nesting_depth" in caplog.text

    def test_frozen(self):
        with pytest.raises(AttributeError):
            EngineConfig().max_nesting_depth = 3

    def test_query_length_limit(self):
        config = EngineConfig(max_query_length=4)
        with pytest.raises(JSONPathSyntaxError):
            JSONPath("$.abc", config=config)
        assert JSONPath("$.ab", config=config).values({"ab": 1}) == [1]
