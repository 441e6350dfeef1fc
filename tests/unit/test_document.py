from __future__ import annotations

import re
from collections.abc import Iterator

import pytest
from markupsafe import Markup

from discoverycore.document import Document, ExportFormat
from discoverycore.exceptions import KeyNotFoundError, MissingExportMethodError
from discoverycore.typing.models import SearchResponse


class MockDocument(Document):
    def export_as_marc(self) -> str:
        return "fake_marc"


@pytest.fixture
def product() -> Document:
    return Document(
        {
            "id": "SP2514N",
            "inStock": True,
            "manu": "Samsung Electronics Co. Ltd.",
            "cat": ["electronics", "hard drive"],
            "popularity": 6,
        },
    )


@pytest.fixture
def unique_key_document() -> Iterator[type[Document]]:
    class _Document(Document):
        unique_key = "my_unique_key"

    yield _Document


def test_document_is_a_read_only_mapping(product: Document) -> None:
    assert product["manu"] == "Samsung Electronics Co. Ltd."
    assert "cat" in product
    assert len(product) == 5
    with pytest.raises(TypeError):
        product["manu"] = "Other"  # type: ignore[index]


def test_has_with_matchers(product: Document) -> None:
    assert product.has("cat")
    assert product.has("cat", re.compile(r"^elec"))
    assert not product.has("cat", "elec")
    assert product.has("cat", "electronics")
    assert not product.has("missing")


def test_fetch_fallbacks(product: Document) -> None:
    assert product.fetch("cat") == ["electronics", "hard drive"]
    assert product.fetch("xyz", None) is None
    assert product.fetch("xyz", "def") == "def"
    assert product.fetch("xyz", callback=lambda _key: "def") == "def"
    with pytest.raises(KeyNotFoundError):
        product.fetch("xyz")


def test_key_not_found_is_a_key_error(product: Document) -> None:
    with pytest.raises(KeyError, match="xyz"):
        product.fetch("xyz")


def test_get_and_first() -> None:
    document = Document(multi=["a", "b"], single="a", empty=[])

    assert document.get("multi", sep=", ") == "a, b"
    assert document.get("missing", "fallback") == "fallback"
    assert document.first("multi") == "a"
    assert document.first("single") == "a"
    assert document.first("empty") is None
    assert document.first("missing") is None


def test_non_string_keys_are_stringified() -> None:
    document = Document({1: "one"})

    assert document["1"] == "one"
    assert document.has(1)


def test_id_uses_unique_key(unique_key_document: type[Document]) -> None:
    document = unique_key_document(id="asdf", my_unique_key="1234")

    assert document.id == "1234"
    assert unique_key_document.primary_key() == "my_unique_key"
    assert Document(id="asdf").id == "asdf"


def test_to_param_is_a_string() -> None:
    assert Document(id=1234).to_param() == "1234"
    assert Document().to_param() is None


def test_to_semantic_values() -> None:
    class _Document(Document):
        field_semantics = {
            "title": ["title_field", "other_title"],
            "author": "author_field",
            "something": "something_field",
        }

    document = _Document(
        {
            "title_field": "doc1 title",
            "other_title": "doc1 title other",
            "something_field": ["val1", "val2"],
            "not_in_list_field": "weird stuff",
        },
    )

    values = document.to_semantic_values()

    assert values == {
        "title": ["doc1 title", "doc1 title other"],
        "author": [],
        "something": ["val1", "val2"],
    }
    assert values["nonexistent_token"] == []
    assert isinstance(values["title"], list)


def test_to_semantic_values_returns_independent_copies() -> None:
    class _Document(Document):
        field_semantics = {"title": "title_field"}

    document = _Document(title_field="doc1 title")

    first = document.to_semantic_values()
    first["title"].append("changed")
    _ = first["unknown"]
    second = document.to_semantic_values()

    assert second == {"title": ["doc1 title"]}
    assert "unknown" not in second


def test_to_semantic_values_with_explicit_mapping() -> None:
    document = Document(author_tsim="Austen", creator_ssm=["Brontë"])

    values = document.to_semantic_values({"author": ["author_tsim", "creator_ssm"], "date": "pub_date_si"})

    assert values["author"] == ["Austen", "Brontë"]
    assert values["date"] == []


def test_field_semantics_are_not_shared_between_classes() -> None:
    class _First(Document):
        pass

    class _Second(Document):
        pass

    _First.field_semantics["title"] = "title_tsim"

    assert "title" not in _Second.field_semantics
    assert "title" not in Document.field_semantics


def test_extension_parameters_are_not_shared_between_classes() -> None:
    class _First(Document):
        pass

    class _Second(Document):
        pass

    _First.extension_parameters["key"] = "class_one_value"
    _Second.extension_parameters["key"] = "class_two_value"

    assert _First.extension_parameters["key"] == "class_one_value"


@pytest.fixture
def highlighted() -> Document:
    return Document(
        {"id": "doc1", "title_field": "doc1 title"},
        {"highlighting": {"doc1": {"title_tsimext": ["doc <em>1</em>"]}, "doc2": {"title_tsimext": ["doc 2"]}}},
    )


def test_has_highlight_field(highlighted: Document) -> None:
    assert highlighted.has_highlight_field("title_tsimext")
    assert not highlighted.has_highlight_field("nonexisting_field")


def test_highlight_field_is_marked_safe(highlighted: Document) -> None:
    fragments = highlighted.highlight_field("title_tsimext")

    assert fragments == ["doc <em>1</em>"]
    assert isinstance(fragments[0], Markup)
    assert str(Markup.escape(fragments[0])) == "doc <em>1</em>"
    assert highlighted.highlight_field("nonexisting_field") is None


def test_highlighting_without_response_or_entry() -> None:
    assert not Document(id="doc1").has_highlight_field("title")
    assert Document({"id": "doc3"}, {"highlighting": {"doc1": {}}}).highlight_field("title") is None


def test_highlighting_reads_response_model() -> None:
    response = SearchResponse(highlighting={"doc1": {"title": ["<b>x</b>"]}})

    assert Document(id="doc1", response=response).highlight_field("title") == ["<b>x</b>"]


def test_will_export_as_with_content_type() -> None:
    document = MockDocument()

    document.will_export_as("marc", "application/marc")

    assert "marc" in document.export_formats()
    assert document.export_formats()["marc"] == ExportFormat(name="marc", content_type="application/marc")
    assert document.exports_as("marc")
    assert not document.exports_as("endnote")


def test_will_export_as_looks_up_content_type() -> None:
    document = MockDocument()

    document.will_export_as("html")

    assert document.export_formats()["html"].content_type == "text/html"


def test_export_as_dispatches_to_export_method() -> None:
    document = MockDocument()
    document.will_export_as("marc", "application/marc")

    assert document.export_as("marc") == "fake_marc"


def test_export_as_uses_registered_exporter() -> None:
    document = Document(id="1", title="Emma")
    document.will_export_as("txt", "text/plain", exporter=lambda doc: f"{doc.id}: {doc['title']}")

    assert document.export_as("txt") == "1: Emma"


def test_export_as_without_exporter_fails() -> None:
    document = Document(id="1")
    document.will_export_as("endnote", "application/x-endnote-refer")

    with pytest.raises(MissingExportMethodError, match="endnote"):
        document.export_as("endnote")


def test_more_like_this_wraps_related_records() -> None:
    response = SearchResponse.model_validate({"moreLikeThis": {"123": {"docs": [{"id": "abc"}]}}})
    document = MockDocument({"id": "123"}, response)

    result = document.more_like_this()

    assert len(result) == 1
    assert isinstance(result[0], MockDocument)
    assert result[0].id == "abc"
    assert result[0].response is response


def test_more_like_this_uses_envelope_protocol(mocker) -> None:
    response = mocker.Mock()
    response.more_like.return_value = [{"id": "abc"}]
    document = MockDocument({"id": "123"}, response)

    result = document.more_like_this()

    response.more_like.assert_called_once_with(document)
    assert result[0].id == "abc"
    assert result[0].response is response


def test_more_like_this_without_response() -> None:
    assert Document(id="1").more_like_this() == []
