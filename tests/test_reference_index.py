"""Tests for the attachment alias table."""

from __future__ import annotations

from kindle_formatter.core.models import Attachment, Disposition
from kindle_formatter.images import ReferenceIndex
from kindle_formatter.images.references import collect_references
from kindle_formatter.images.resolver import resolve_inline

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def _image(
    content_id: str | None = None,
    filename: str | None = None,
    mime_type: str = "image/png",
    disposition: Disposition = Disposition.UNSPECIFIED,
) -> Attachment:
    return Attachment(
        content_id=content_id,
        filename=filename,
        mime_type=mime_type,
        payload=PNG_BYTES,
        disposition=disposition,
    )


def test_cid_reference_resolves_to_data_uri() -> None:
    html = '<p>Chart</p><img src="cid:img1">'
    index = ReferenceIndex.build([_image(content_id="<img1>")], html)

    resolved = resolve_inline(html, index)

    assert 'src="data:image/png;base64,' in resolved
    assert "cid:img1" not in resolved
    record = index.lookup("cid:img1")
    assert record is not None and record.is_inline


def test_alias_keys_are_unique_across_records() -> None:
    attachments = [
        _image(content_id="a@example", filename="logo.png"),
        _image(content_id="b@example", filename="logo.png"),
        _image(filename="chart.png"),
    ]
    index = ReferenceIndex.build(attachments, None)

    assert len(index) == 3
    first, second, _ = index.records
    assert index.lookup("logo.png") is first
    assert "logo.png" not in second.alias_keys
    seen: set[str] = set()
    for record in index:
        assert not seen & record.alias_keys
        seen |= record.alias_keys
    assert set(index.aliases) == seen


def test_duplicate_attachment_is_skipped() -> None:
    index = ReferenceIndex.build(
        [_image(content_id="img1", filename="a.png"), _image(content_id="img1", filename="a.png")],
        None,
    )

    assert len(index) == 1


def test_non_images_and_malformed_attachments_are_ignored() -> None:
    broken = Attachment(
        content_id="bad", filename="bad.png", mime_type="image/png", payload="text"  # type: ignore[arg-type]
    )
    pdf = Attachment(
        content_id=None, filename="notes.pdf", mime_type="application/pdf", payload=b"%PDF"
    )
    index = ReferenceIndex.build([pdf, broken, _image(content_id="good")], None)

    assert [record.id for record in index] == ["good"]


def test_attachment_without_names_gets_ordinal_id() -> None:
    index = ReferenceIndex.build(
        [_image(), _image(mime_type="image/jpeg")], '<img src="cid:none">'
    )

    ids = [record.id for record in index]
    assert ids == ["image_0", "image_1"]
    assert index.records[0].filename == "image_0.png"
    assert index.records[1].filename == "image_1.jpg"


def test_filename_reference_marks_record_inline() -> None:
    html = '<img src="https://cdn.example.com/assets/logo.png?v=2">'
    index = ReferenceIndex.build(
        [_image(filename="logo.png", disposition=Disposition.ATTACHMENT)], html
    )

    assert "logo.png" in collect_references(html)
    assert index.records[0].is_inline


def test_fuzzy_lookup_matches_partial_cid() -> None:
    index = ReferenceIndex.build([_image(content_id="image001.png@01D9ABCD")], None)

    assert index.fuzzy_lookup("image001.png") is index.records[0]
    assert index.fuzzy_lookup("unrelated") is None


def test_fuzzy_lookup_ignores_short_tokens() -> None:
    index = ReferenceIndex.build([_image(content_id="image001.png@01D9ABCD")], None)

    assert index.fuzzy_lookup("") is None
    assert index.fuzzy_lookup("im") is None


def test_distinct_attachments_sharing_a_filename_are_both_kept() -> None:
    other = Attachment(
        content_id=None, filename="photo.png", mime_type="image/png", payload=PNG_BYTES + b"\x01"
    )
    index = ReferenceIndex.build([_image(filename="photo.png"), other], None)

    assert [record.id for record in index] == ["photo_png", "image_1"]
    assert index.lookup("photo.png") is index.records[0]
    assert index.lookup("image_1") is index.records[1]


def test_identical_attachments_sharing_a_filename_are_deduplicated() -> None:
    index = ReferenceIndex.build([_image(filename="photo.png"), _image(filename="photo.png")], None)

    assert len(index) == 1
