# tests/conftest.py
"""
Shared fixtures: the classic bookstore document and a small product
catalogue used by the filter tests.
"""

import pytest


@pytest.fixture
def bookstore():
    return {
        "store": {
            "book": [
                {
                    "category": "reference",
                    "author": "Nigel Rees",
                    "title": "Sayings of the Century",
                    "price": 8.95,
                },
                {
                    "category": "fiction",
                    "author": "Evelyn Waugh",
                    "title": "Sword of Honour",
                    "price": 12.99,
                },
                {
                    "category": "fiction",
                    "author": "Herman Melville",
                    "title": "Moby Dick",
                    "isbn": "0-553-21311-3",
                    "price": 8.99,
                },
                {
                    "category": "fiction",
                    "author": "J. R. R. Tolkien",
                    "title": "The Lord of the Rings",
                    "isbn": "0-395-19395-8",
                    "price": 22.99,
                },
            ],
            "bicycle": {"color": "red", "price": 399},
        },
    }


@pytest.fixture
def products():
    return {
        "products": [
            {"name": "Laptop", "price": 1200, "category": "electronics", "inStock": True},
            {"name": "Mouse", "price": 25, "category": "electronics", "inStock": True},
            {"name": "Desk", "price": 350, "category": "furniture", "inStock": True},
            {"name": "Chair", "price": 200, "category": "furniture", "inStock": False},
        ],
    }


@pytest.fixture
def numbers():
    return list(range(10))
