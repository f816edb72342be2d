# tests/test_parser.py
"""
Parser tests: AST shape for every selector and filter form, precedence,
syntax errors with offsets, and the nesting / length limits.
"""

import pytest

from jpq import ast_nodes as A
from jpq.config import EngineConfig
from jpq.errors import JSONPathSyntaxError
from jpq.functions import FunctionRegistry, FunctionType
from jpq.parser import parse


def _only_selector(query):
    (segment,) = parse(query).segments
    (selector,) = segment.selectors
    return selector


def _filter(query):
    return _only_selector(query).expression


def _rel(*names):
    return A.QueryExpr(
        tuple(A.Segment(A.SegmentKind.CHILD, (A.NameSelector(n),)) for n in names),
        relative=True)


class TestParseSegments:

    def test_root_only(self):
        assert parse("$") == A.Query(())

    def test_dot_and_bracket_children(self):
        query = parse("$.store['book'][0]")
        assert query.segments == (
            A.Segment(A.SegmentKind.CHILD, (A.NameSelector("store"),)),
            A.Segment(A.SegmentKind.CHILD, (A.NameSelector("book"),)),
            A.Segment(A.SegmentKind.CHILD, (A.IndexSelector(0),)),
        )

    def test_descendant_forms(self):
        assert parse("$..*").segments[0] == A.Segment(
            A.SegmentKind.DESCENDANT, (A.WildcardSelector(),))
        assert parse("$..author").segments[0] == A.Segment(
            A.SegmentKind.DESCENDANT, (A.NameSelector("author"),))
        assert parse("$..[0,'a']").segments[0] == A.Segment(
            A.SegmentKind.DESCENDANT, (A.IndexSelector(0), A.NameSelector("a")))

    def test_multiple_selectors(self):
        (segment,) = parse("$['a', 1, *, 0:2]").segments
        assert segment.selectors == (
            A.NameSelector("a"), A.IndexSelector(1),
            A.WildcardSelector(), A.SliceSelector(0, 2, 1),
        )

    def test_escaped_names_are_decoded(self):
        assert _only_selector(r"$['a\'b\né']") == A.NameSelector("a'b\né")
        assert _only_selector(r'$["\uD83D\uDE00"]') == A.NameSelector("\U0001F600")

    def test_negative_index(self):
        assert _only_selector("$[-1]") == A.IndexSelector(-1)


class TestParseSlices:

    @pytest.mark.parametrize("query,expected", [
        ("$[1:3]", A.SliceSelector(1, 3, 1)),
        ("$[:]", A.SliceSelector(None, None, 1)),
        ("$[::-1]", A.SliceSelector(None, None, -1)),
        ("$[5:]", A.SliceSelector(5, None, 1)),
        ("$[:-2:2]", A.SliceSelector(None, -2, 2)),
        ("$[1:2:]", A.SliceSelector(1, 2, 1)),
        ("$[::0]", A.SliceSelector(None, None, 0)),
    ])
    def test_slice_forms(self, query, expected):
        assert _only_selector(query) == expected

    def test_float_index_rejected(self):
        with pytest.raises(JSONPathSyntaxError, match="Expected integer"):
            parse("$[1.0]")

    def test_float_slice_bound_rejected(self):
        with pytest.raises(JSONPathSyntaxError, match="Expected integer"):
            parse("$[1:2.5]")

    def test_negative_zero_rejected(self):
        with pytest.raises(JSONPathSyntaxError, match="Negative zero"):
            parse("$[-0]")


class TestParseFilters:

    def test_existence(self):
        assert _filter("$[?@.isbn]") == A.ExistenceTest(_rel("isbn"))

    def test_absolute_existence(self):
        expr = _filter("$[?$.flag]")
        assert isinstance(expr, A.ExistenceTest)
        assert not expr.query.relative

    def test_comparison(self):
        assert _filter("$[?@.price < 10]") == A.Comparison(
            _rel("price"), A.CompareOp.LT, A.Literal(10))

    @pytest.mark.parametrize("text,value", [
        ("1", 1),
        ("-3", -3),
        ("1.5", 1.5),
        ("1e2", 100.0),
        ("true", True),
        ("false", False),
        ("null", None),
        ("'x'", "x"),
        ('"y"', "y"),
    ])
    def test_literals(self, text, value):
        expr = _filter(f"$[?@.a == {text}]")
        assert expr.right == A.Literal(value)
        assert type(expr.right.value) is type(value)

    def test_and_binds_tighter_than_or(self):
        expr = _filter("$[?@.a || @.b && @.c]")
        assert expr == A.LogicalOr(
            A.ExistenceTest(_rel("a")),
            A.LogicalAnd(A.ExistenceTest(_rel("b")), A.ExistenceTest(_rel("c"))))

    def test_parentheses_override_precedence(self):
        expr = _filter("$[?(@.a || @.b) && @.c]")
        assert isinstance(expr, A.LogicalAnd)
        assert isinstance(expr.left, A.LogicalOr)

    def test_not(self):
        assert _filter("$[?!@.a]") == A.LogicalNot(A.ExistenceTest(_rel("a")))
        assert _filter("$[?!!@.a]") == A.LogicalNot(A.LogicalNot(A.ExistenceTest(_rel("a"))))

    def test_left_associative_and(self):
        expr = _filter("$[?@.a && @.b && @.c]")
        assert isinstance(expr.left, A.LogicalAnd)

    def test_long_chains_are_balanced(self):
        a, b, c, d = (A.ExistenceTest(_rel(n)) for n in "abcd")
        assert _filter("$[?@.a && @.b && @.c && @.d]") == A.LogicalAnd(
            A.LogicalAnd(a, b), A.LogicalAnd(c, d))
        assert _filter("$[?@.a || @.b || @.c || @.d]") == A.LogicalOr(
            A.LogicalOr(a, b), A.LogicalOr(c, d))


    def test_nested_filter(self):
        expr = _filter("$[?@.items[?@.qty > 1]]")
        (segment, inner) = expr.query.segments
        assert isinstance(inner.selectors[0], A.FilterSelector)

    def test_literal_alone_rejected(self):
        with pytest.raises(JSONPathSyntaxError, match="comparison operator"):
            parse("$[?1]")


class TestParseFunctions:

    def test_function_in_comparison(self):
        expr = _filter("$[?length(@.name) > 3]")
        assert expr.left == A.FunctionExpr("length", (_rel("name"),))

    def test_logical_function_standalone(self):
        expr = _filter("$[?match(@.a, 'x.*')]")
        assert expr == A.FunctionExpr("match", (_rel("a"), A.Literal("x.*")))

    def test_value_function_standalone_rejected(self):
        with pytest.raises(JSONPathSyntaxError, match="length"):
            parse("$[?length(@.a)]")

    def test_unknown_function_deferred(self):
        expr = _filter("$[?nosuch(@)]")
        assert expr == A.FunctionExpr("nosuch", (A.QueryExpr((), True),))

    def test_zero_argument_function(self):
        assert _filter("$[?nosuch() == 1]").left == A.FunctionExpr("nosuch", ())

    def test_registry_decides_result_type(self):
        registry = FunctionRegistry.default()
        registry.register("big", [FunctionType.VALUE], FunctionType.VALUE,
                          lambda ctx, v: v)
        with pytest.raises(JSONPathSyntaxError):
            parse("$[?big(@)]", registry)
        parse("$[?big(@)]")  # unknown to the default registry

    def test_function_argument_must_be_query_or_literal(self):
        with pytest.raises(JSONPathSyntaxError, match="function argument"):
            parse("$[?count(length(@)) == 1]")


class TestParseErrors:

    @pytest.mark.parametrize("query", [
        "",
        "a",
        "$.",
        "$..",
        "$[",
        "$[]",
        "$['a'",
        "$['a',]",
        "$.a]",
        "$[?]",
        "$[?@.a ==]",
        "$[?(@.a]",
        "$[?@.a === 1]",
        "@.a",
    ])
    def test_malformed(self, query):
        with pytest.raises(JSONPathSyntaxError):
            parse(query)

    def test_blank_after_dot(self):
        with pytest.raises(JSONPathSyntaxError, match="Blank space"):
            parse("$. a")

    def test_error_names_expected_and_actual(self):
        with pytest.raises(JSONPathSyntaxError) as exc:
            parse("$.a]")
        assert exc.value.position == 3
        assert "end of query" in exc.value.message
        assert "']'" in exc.value.message

    def test_blank_space_between_tokens_allowed(self):
        parse("$[ 'a' , 1 ]")
        parse("$[?@.a==1 && @.b]")


class TestParseLimits:

    def test_deep_negation(self):
        with pytest.raises(JSONPathSyntaxError, match="nested deeper"):
            parse("$[?" + "!" * 70 + "@.a]")

    def test_configured_depth(self):
        config = EngineConfig(max_nesting_depth=3)
        parse("$[?(@.a)]", config=config)
        with pytest.raises(JSONPathSyntaxError, match="nested deeper than 3"):
            parse("$[?((@.a))]", config=config)

    def test_query_length(self):
        with pytest.raises(JSONPathSyntaxError, match="limit"):
            parse("$.abcdef", config=EngineConfig(max_query_length=5))


class TestRoundTrip:

    @pytest.mark.parametrize("query", [
        "$",
        "$.store.book[*].author",
        "$..author",
        "$..book[2:]",
        "$..book[-1:]",
        "$['a b', \"c'd\"][0, -1]",
        "$[::-1]",
        "$.store.book[?@.isbn]",
        "$.store.book[?@.price < 10 && @.category == 'fiction']",
        "$[?!(@.a == null || @.b != true)]",
        "$[?length(@.name) >= 3.5]",
        "$[?match(@.a, '[a-z]+') && count(@.*) > 1]",
        "$[?@.x[?@.y == $.z]]",
        "$['\\n\\t\\u0001']",
    ])
    def test_canonical_form_reparses_to_same_ast(self, query):
        first = parse(query)
        assert parse(first.to_source()) == first

    def test_canonical_uses_brackets(self):
        assert parse("$.a..b[*]").to_source() == "$['a']..['b'][*]"


class TestPretty:

    def test_tree_lines(self):
        text = parse("$.a[?@.b > 1]").pretty()
        lines = text.splitlines()
        assert lines[0] == "query"
        assert lines[1] == "  segment child"
        assert lines[2] == "    name 'a'"
        assert "compare >" in text
        assert "literal 1" in text
