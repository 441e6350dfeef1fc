from __future__ import annotations

from markupsafe import Markup

from discoverycore.document import Document
from discoverycore.extensions import Extension
from discoverycore.typing.models import SearchResponse


class _MarcExtension(Extension):
    def on_apply(self) -> None:
        self.document.will_export_as("marc", "application/marc")
        self.document.will_export_as("xml")

    def export_as_marc(self) -> str:
        return self.document["marc_ss"]

    def export_as_xml(self) -> str:
        return f"<record>{self.document['marc_ss']}</record>"


class CatalogDocument(Document):
    unique_key = "record_id"
    field_semantics = {"title": ["title_tsim", "alternative_title_tsim"], "format": "format_ssim"}


CatalogDocument.use_extension(_MarcExtension, lambda doc: doc.has("marc_ss"))


def test_documents_built_from_a_search_response() -> None:
    response = SearchResponse.model_validate(
        {
            "highlighting": {"r1": {"title_tsim": ["<em>Emma</em>"]}},
            "moreLikeThis": {"r1": {"docs": [{"record_id": "r2", "title_tsim": "Persuasion"}]}},
        },
    )
    document = CatalogDocument(
        {"record_id": "r1", "title_tsim": ["Emma"], "format_ssim": "Book", "marc_ss": "=LDR 00000"},
        response,
    )

    assert document.id == "r1"
    assert document.to_semantic_values() == {"title": ["Emma"], "format": ["Book"]}
    assert document.highlight_field("title_tsim") == [Markup("<em>Emma</em>")]
    assert document.export_as("marc") == "=LDR 00000"
    assert document.export_formats()["xml"].content_type in {"application/xml", "text/xml"}

    related = document.more_like_this()
    assert [doc.id for doc in related] == ["r2"]
    assert related[0].response is response
    assert not related[0].exports_as("marc")
    assert related[0].to_semantic_values()["title"] == ["Persuasion"]
