"""Unit tests for LenientCslParser."""

from __future__ import annotations

import copy

import pytest

from biblib.infrastructure.adapters.lenient_csl_parser import LenientCslParser


@pytest.fixture
def parser():
    return LenientCslParser()


def test_zotero_item_is_normalized(parser):
    data = {
        "itemType": "journalArticle",
        "title": "T",
        "publicationTitle": "Journal",
        "date": "2020-01",
        "creators": [
            {"creatorType": "author", "firstName": "Ann", "lastName": "Bell"},
            {"creatorType": "bookAuthor", "name": "Org"},
            {"creatorType": "editor"},
        ],
        "tags": [{"tag": "x"}, "y"],
        "ISBN": ["111", "222"],
        "numPages": "120",
        "pages": "1-2",
    }
    original = copy.deepcopy(data)
    record = parser.parse(data, type_hint="zotero")

    assert record["type"] == "article-journal"
    assert record["container-title"] == "Journal"
    assert record["issued"] == {"date-parts": [[2020, 1]]}
    assert "date" not in record
    assert record["author"] == [{"given": "Ann", "family": "Bell"}]
    assert record["container-author"] == [{"literal": "Org"}]
    assert "editor" not in record
    assert record["keyword"] == "x, y"
    assert record["tags"] == ["x", "y"]
    assert record["ISBN"] == "111"
    assert record["number-of-pages"] == 120
    assert record["page"] == "1-2"
    assert data == original


def test_existing_csl_fields_win(parser):
    record = parser.parse({"type": "book", "title": "T", "publicationTitle": "Alias", "container-title": "Real"})
    assert record["container-title"] == "Real"
    assert record["type"] == "book"


@pytest.mark.parametrize("item_type", ["document", "somethingNew", None])
def test_unknown_types_fall_back_to_article(parser, item_type):
    assert parser.parse({"title": "T", "itemType": item_type})["type"] == "article"


def test_mediawiki_author_arrays(parser):
    record = parser.parse({"title": "T", "author": [["John", "Smith"], ["Plato"], []]})
    assert record["author"] == [{"given": "John", "family": "Smith"}, {"family": "Plato"}]


def test_unparseable_dates_are_kept_raw(parser):
    record = parser.parse({"title": "T", "accessDate": "yesterday"})
    assert record["accessed"] == {"raw": "yesterday"}
    assert "accessDate" not in record


@pytest.mark.parametrize("data", [{}, {"abstract": "no title or type"}, "text"])
def test_rejects_unusable_data(parser, data):
    with pytest.raises(ValueError):
        parser.parse(data)
