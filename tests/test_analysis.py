# tests/test_analysis.py
"""
Static query analysis: feature detection, structural counts and the
complexity classification.
"""

import pytest

from jpq import (
    Complexity, FunctionRegistry, FunctionType, JSONPathSyntaxError,
    analyze, classify_complexity, detect_features, parse,
)


class TestFeatures:

    def test_plain_path_has_no_features(self):
        features = detect_features("$.store.book[0].title")
        assert not features.has_filters
        assert not features.has_functions
        assert not features.has_slices
        assert not features.has_descendant
        assert not features.has_wildcards
        assert features.function_names == frozenset()

    @pytest.mark.parametrize("query,attribute", [
        ("$[?@.a]", "has_filters"),
        ("$[?length(@) > 1]", "has_functions"),
        ("$[1:3]", "has_slices"),
        ("$..a", "has_descendant"),
        ("$.*", "has_wildcards"),
        ("$[*]", "has_wildcards"),
    ])
    def test_single_feature(self, query, attribute):
        assert getattr(detect_features(query), attribute)

    def test_function_names(self):
        features = detect_features("$[?match(@.a, 'x') || count(@.*) > 1]")
        assert features.function_names == {"match", "count"}

    def test_features_inside_embedded_queries(self):
        features = detect_features("$[?@.a[1:2] == $..b[*]]")
        assert features.has_slices
        assert features.has_descendant
        assert features.has_wildcards


class TestStats:

    def test_counts(self):
        stats = analyze("$.a..b[*, 0:1][?@.c && length(@.d) > 2]")
        assert stats.segments == 6
        assert stats.descendant_segments == 1
        assert stats.wildcards == 1
        assert stats.slices == 1
        assert stats.filters == 1
        assert stats.function_calls == 1
        assert stats.max_nesting == 1

    def test_parentheses_do_not_nest(self):
        assert analyze("$[?((@.a))]").max_nesting == 1

    def test_nested_filters(self):
        stats = analyze("$[?@.a[?@.b[?@.c]]]")
        assert stats.filters == 3
        assert stats.max_nesting == 3

    def test_accepts_parsed_query(self):
        stats = analyze(parse("$..*"))
        assert stats.segments == 1
        assert stats.descendant_segments == 1

    def test_uses_registry_for_parsing(self):
        registry = FunctionRegistry.default()
        registry.register("big", [FunctionType.VALUE], FunctionType.VALUE,
                          lambda ctx, v: v)
        with pytest.raises(JSONPathSyntaxError):
            analyze("$[?big(@)]", registry)
        assert analyze("$[?big(@) == 1]", registry).function_names == {"big"}


class TestComplexity:

    @pytest.mark.parametrize("query,expected", [
        ("$", Complexity.SIMPLE),
        ("$.a.b[0]", Complexity.SIMPLE),
        ("$.a.b.c.d", Complexity.SIMPLE),
        ("$.a.b.c.d.e", Complexity.MODERATE),
        ("$..a", Complexity.MODERATE),
        ("$[?@.a]", Complexity.MODERATE),
        ("$[?length(@) > 1]", Complexity.MODERATE),
        ("$.a.b.c.d.e.f.g.h.i", Complexity.COMPLEX),
        ("$[?@.a][?@.b]", Complexity.COMPLEX),
        ("$[?@.a[?@.b]]", Complexity.COMPLEX),
        ("$[?length(@) > 1 && count(@.*) > 2]", Complexity.COMPLEX),
    ])
    def test_classification(self, query, expected):
        assert classify_complexity(query) is expected

    def test_stats_and_classifier_agree(self):
        q = "$..book[?@.price > 10]"
        assert analyze(q).complexity() is classify_complexity(q)

    def test_values(self):
        assert [c.value for c in Complexity] == ["simple", "moderate", "complex"]


class TestLongChains:

    def test_long_and_chain(self):
        stats = analyze("$[?" + " && ".join(["@.a"] * 1500) + "]")
        assert stats.segments == 1500
        assert stats.filters == 1
        assert stats.max_nesting == 1
        assert stats.complexity() is Complexity.COMPLEX
