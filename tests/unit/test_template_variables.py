"""Unit tests for the template variable builder."""

from __future__ import annotations

import pytest

from biblib.domain.models.contributor import Contributor
from biblib.domain.services.template_engine import TemplateEngine
from biblib.domain.services.template_variables import (
    TemplateVariableBuilder,
    attachment_label,
    build_attachment_variables,
    build_contributor_lists,
    build_link_variables,
    format_authors_display,
)

SMITH = Contributor(family="Smith", given="John")
JONES = Contributor(family="Jones", given="Jane")
DOE = Contributor(family="Doe", given="Alex")


@pytest.fixture
def builder(clock):
    return TemplateVariableBuilder(clock)


def test_institutional_author(builder):
    """A literal name is used as-is for display and in the author list."""
    who = Contributor(literal="World Health Organization")
    variables = builder.build({"id": "who2020", "title": "Report"}, [who])

    assert variables["authorsDisplay"] == "World Health Organization"
    assert variables["authors"] == ["World Health Organization"]
    assert variables["authors_family"] == ["World Health Organization"]
    assert variables["citekey"] == "who2020"


def test_clock_and_record_fields(builder):
    variables = builder.build({"id": "k", "DOI": "10.1/x", "container-title": "Nature"}, [])
    assert variables["currentDate"] == "2024-03-15"
    assert variables["currentTime"] == "10:30:00"
    assert variables["DOI"] == "10.1/x"
    assert variables["container-title"] == "Nature"
    assert variables["authorsDisplay"] == ""


def test_missing_id_gives_empty_citekey(builder):
    assert builder.build({"title": "T"}, [])["citekey"] == ""


@pytest.mark.parametrize(
    "contributors, expected",
    [
        ([SMITH], "J. Smith"),
        ([SMITH, JONES], "J. Smith and J. Jones"),
        ([SMITH, JONES, DOE], "J. Smith et al."),
        ([Contributor(family="  Plato ")], "Plato"),
        ([Contributor(role="editor", family="Ed", given="E"), SMITH], "J. Smith"),
        ([Contributor(role="author")], ""),
    ],
)
def test_authors_display(contributors, expected):
    assert format_authors_display(contributors) == expected


def test_contributor_lists_per_role():
    editor = Contributor(role="editor", family="Ed")
    lists = build_contributor_lists([SMITH, editor, Contributor(literal="ACM")])

    assert lists["authors"] == ["John Smith", "ACM"]
    assert lists["authors_family"] == ["Smith", "ACM"]
    assert lists["authors_given"] == ["John"]
    assert lists["authors_raw"][0] == {"role": "author", "family": "Smith", "given": "John"}
    assert lists["editors"] == ["Ed"]
    assert "translators" not in lists


def test_attachment_variables():
    variables = build_attachment_variables(["files/paper.pdf", "  ", "book.epub"])

    assert variables["pdflink"] == ["files/paper.pdf", "book.epub"]
    assert variables["attachments"] == ["[[files/paper.pdf|PDF]]", "[[book.epub|EPUB]]"]
    assert variables["attachment"] == "[[files/paper.pdf|PDF]]"
    assert variables["raw_pdflink"] == "files/paper.pdf"
    assert variables["quoted_attachment"] == '"[[files/paper.pdf|PDF]]"'
    assert variables["quoted_attachments"][1] == '"[[book.epub|EPUB]]"'


def test_attachment_and_link_variables_always_present(builder):
    variables = builder.build({"id": "k"}, [])
    assert variables["pdflink"] == []
    assert variables["attachment"] == ""
    assert variables["quoted_attachment"] == ""
    assert variables["links"] == []
    assert variables["links_string"] == ""


def test_link_variables():
    variables = build_link_variables(["Notes/A", "", "B"])
    assert variables["links"] == ["[[Notes/A]]", "[[B]]"]
    assert variables["linkPaths"] == ["Notes/A", "B"]
    assert variables["links_string"] == "[[Notes/A]], [[B]]"


@pytest.mark.parametrize(
    "path, label",
    [("a/b.PDF", "PDF"), ("x.epub", "EPUB"), ("notes.docx", "DOCX"), ("README", "attachment")],
)
def test_attachment_label(path, label):
    assert attachment_label(path) == label


def test_variables_render_author_list(builder):
    variables = builder.build({"id": "k"}, [SMITH, JONES])
    template = "{{#authors}}{{.}}{{^@last}}; {{/@last}}{{/authors}}"
    assert TemplateEngine.render(template, variables) == "John Smith; Jane Jones"
