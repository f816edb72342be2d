# tests/test_evaluator.py
"""
Query evaluation: selectors, slices, descendant order, normalized paths,
determinism and the guarantee that input documents are left untouched.
"""

import copy

import pytest

from jpq import evaluate, parse, query
from jpq.evaluator import descendants_or_self, normalize_slice
from jpq.values import JSONPathNode


def _values(q, doc):
    return evaluate(parse(q), doc).values()


def _paths(q, doc):
    return evaluate(parse(q), doc).paths()


class TestChildSelectors:

    def test_root(self, bookstore):
        result = evaluate(parse("$"), bookstore)
        assert len(result) == 1
        assert result[0].value is bookstore
        assert result[0].path == "$"

    def test_member_chain(self, bookstore):
        assert _values("$.store.bicycle.color", bookstore) == ["red"]
        assert _paths("$.store.bicycle.color", bookstore) == [
            "$['store']['bicycle']['color']"]

    def test_missing_member_is_empty(self, bookstore):
        assert _values("$.store.nothing.here", bookstore) == []

    def test_name_on_array_is_empty(self):
        assert _values("$.a", [1, 2]) == []

    @pytest.mark.parametrize("q,expected", [
        ("$[0]", [10]),
        ("$[-1]", [30]),
        ("$[-3]", [10]),
        ("$[3]", []),
        ("$[-4]", []),
    ])
    def test_index(self, q, expected):
        assert _values(q, [10, 20, 30]) == expected

    def test_index_path_is_normalized(self):
        assert _paths("$[-1]", [10, 20, 30]) == ["$[2]"]

    def test_index_on_object_is_empty(self):
        assert _values("$[0]", {"0": "zero"}) == []

    def test_wildcard_array_and_object(self):
        assert _values("$[*]", [1, [2], {"a": 3}]) == [1, [2], {"a": 3}]
        assert _values("$.*", {"b": 1, "a": 2}) == [1, 2]

    def test_wildcard_on_scalar_is_empty(self):
        assert _values("$.a.*", {"a": 5}) == []

    def test_selectors_applied_in_order_with_duplicates(self):
        assert _values("$[0, 0, 'x', -1]", [7, 8]) == [7, 7, 8]
        assert _values("$['b', 'a', 'b']", {"a": 1, "b": 2}) == [2, 1, 2]


class TestSlices:

    @pytest.mark.parametrize("q,expected", [
        ("$[2:7]", [2, 3, 4, 5, 6]),
        ("$[::-1]", [9, 8, 7, 6, 5, 4, 3, 2, 1, 0]),
        ("$[::2]", [0, 2, 4, 6, 8]),
        ("$[-3:]", [7, 8, 9]),
        ("$[:-7]", [0, 1, 2]),
        ("$[5:1:-2]", [5, 3]),
        ("$[1:5:-1]", []),
        ("$[::0]", []),
        ("$[10:]", []),
        ("$[-20:2]", [0, 1]),
        ("$[8:20]", [8, 9]),
        ("$[-1::-3]", [9, 6, 3, 0]),
    ])
    def test_slice(self, numbers, q, expected):
        assert _values(q, numbers) == expected

    def test_slice_paths(self, numbers):
        assert _paths("$[::-4]", numbers) == ["$[9]", "$[5]", "$[1]"]

    def test_slice_on_object_is_empty(self):
        assert _values("$[0:2]", {"a": 1}) == []

    def test_normalize_slice_empty_array(self):
        assert list(normalize_slice(None, None, -1, 0)) == []

    @pytest.mark.parametrize("start,end,step", [
        (None, None, 1), (1, None, 2), (None, -2, 1), (-5, -1, 1),
        (None, None, -1), (7, 2, -2), (-1, None, -3), (3, 3, 1),
    ])
    def test_normalize_slice_matches_python(self, start, end, step):
        data = list(range(9))
        picked = [data[i] for i in normalize_slice(start, end, step, len(data))]
        assert picked == data[start:end:step]


class TestDescendants:

    def test_preorder(self):
        doc = {"a": {"b": 1}, "c": [2, 3]}
        assert _paths("$..*", doc) == [
            "$['a']", "$['c']", "$['a']['b']", "$['c'][0]", "$['c'][1]",
        ]

    def test_descendant_index(self):
        assert _values("$..[0]", [[1, 2], [3]]) == [[1, 2], 1, 3]

    def test_authors(self, bookstore):
        assert _values("$..author", bookstore) == [
            "Nigel Rees", "Evelyn Waugh", "Herman Melville", "J. R. R. Tolkien",
        ]

    def test_all_prices(self, bookstore):
        assert _values("$.store..price", bookstore) == [8.95, 12.99, 8.99, 22.99, 399]

    def test_descendant_includes_self(self):
        assert _values("$..a", {"a": {"a": 1}}) == [{"a": 1}, 1]

    def test_descendants_or_self(self):
        nodes = list(descendants_or_self(JSONPathNode([1, [2]], "$")))
        assert [n.path for n in nodes] == ["$", "$[0]", "$[1]", "$[1][0]"]

    def test_deep_document_does_not_recurse(self):
        doc = leaf = []
        for _ in range(3000):
            child = []
            leaf.append(child)
            leaf = child
        leaf.append("bottom")
        assert _values("$..[?@ == 'bottom']", doc) == ["bottom"]


class TestFilterSelection:

    def test_cheap_books(self, bookstore):
        assert _values("$.store.book[?@.price < 10].title", bookstore) == [
            "Sayings of the Century", "Moby Dick"]

    def test_books_with_isbn(self, bookstore):
        assert _paths("$..book[?@.isbn]", bookstore) == [
            "$['store']['book'][2]", "$['store']['book'][3]"]

    def test_filter_on_object_members(self, bookstore):
        assert _paths("$.store[?@.color]", bookstore) == ["$['store']['bicycle']"]

    def test_filter_current_scalar(self):
        assert _values("$[?@ > 2]", [1, 2, 3, 4]) == [3, 4]

    def test_filter_absolute_query(self):
        doc = {"target": 2, "items": [{"v": 1}, {"v": 2}, {"v": 2.0}]}
        assert _paths("$.items[?@.v == $.target]", doc) == [
            "$['items'][1]", "$['items'][2]"]

    def test_products(self, products):
        q = "$.products[?@.price < 100 && @.category == 'electronics']"
        assert _values(q, products) == [products["products"][1]]
        assert _paths(q, products) == ["$['products'][1]"]

    def test_products_in_stock(self, products):
        q = "$.products[?@.inStock == true && @.price < 1000].name"
        assert _values(q, products) == ["Mouse", "Desk"]

    def test_filter_on_scalar_is_empty(self):
        assert _values("$.a[?@ == 1]", {"a": 1}) == []


class TestNormalizedPaths:

    DOC = {
        "plain": [1, {"x": None}],
        "it's": {"back\\slash": True, "tab\there": "t", "ctl\u0001": 0},
        "ünï": {"": []},
    }

    def test_escaping(self):
        paths = _paths("$..*", self.DOC)
        assert "$['it\\'s']" in paths
        assert "$['it\\'s']['back\\\\slash']" in paths
        assert "$['it\\'s']['tab\\there']" in paths
        assert "$['it\\'s']['ctl\\u0001']" in paths
        assert "$['ünï']['']" in paths

    def test_every_path_selects_its_node(self):
        for node in evaluate(parse("$..*"), self.DOC):
            compiled = parse(node.path)
            assert compiled.is_singular()
            (again,) = evaluate(compiled, self.DOC)
            assert again.value is node.value
            assert again.path == node.path


class TestGuarantees:

    def test_deterministic(self, bookstore):
        q = parse("$..book[?@.price > 9]..*")
        assert evaluate(q, bookstore) == evaluate(q, bookstore)

    def test_document_not_mutated(self, bookstore):
        before = copy.deepcopy(bookstore)
        evaluate(parse("$..*[?@.price > 0 || length(@) > 1]"), bookstore)
        assert bookstore == before

    def test_values_are_not_copied(self, bookstore):
        (node,) = evaluate(parse("$.store.book[0]"), bookstore)
        assert node.value is bookstore["store"]["book"][0]

    def test_query_reusable_across_documents(self):
        q = parse("$.a")
        assert evaluate(q, {"a": 1}).values() == [1]
        assert evaluate(q, {"a": 2}).values() == [2]

    def test_tuple_arrays(self):
        assert query("$[1]", (4, 5)).values() == [5]
