"""
End-to-end tests for the signing pipeline against real files.
"""
import base64
import logging
import os

import pytest

from core.audit import AuditRecorder
from core.documents import ArtifactStore, DocumentSource
from core.errors import (
    AuditWriteError,
    DocumentLoadError,
    ImageDecodeError,
    InternalError,
    InvalidField,
    NotFound,
)
from core.hashing import sha256_hex
from core.pipeline import decode_signature_image, sign_document
from models.placement import PlacementField

from conftest import MemoryAuditStore, count_image_objects

FIELD = PlacementField(page=1, x_pct=0.25, y_pct=0.25, w_pct=0.3, h_pct=0.08)


class SpySource(DocumentSource):
    """DocumentSource that counts reads."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reads = 0

    def read(self, document_id):
        self.reads += 1
        return super().read(document_id)


def _run(workspace, store, document_id="sample.pdf", field=FIELD, image=None, source=None):
    return sign_document(
        document_id=document_id,
        field=field,
        image_bytes=image,
        source=source or DocumentSource(str(workspace / "documents")),
        recorder=AuditRecorder(store, max_attempts=2, backoff_min=0, backoff_max=0),
        artifacts=ArtifactStore(str(workspace / "signed")),
    )


def _signed_files(workspace):
    found = []
    for root, _dirs, files in os.walk(workspace / "signed"):
        found.extend(files)
    return found


class TestSignDocument:

    def test_success_records_and_publishes(self, workspace, memory_store, png_bytes):
        result = _run(workspace, memory_store, image=png_bytes)
        original = (workspace / "documents" / "sample.pdf").read_bytes()

        assert memory_store.records == [result.record]
        assert result.record.hash_before == sha256_hex(original)

        published = (workspace / "signed" / "sample.pdf" / result.artifact).read_bytes()
        assert sha256_hex(published) == result.record.hash_after
        assert result.record.hash_before != result.record.hash_after
        assert count_image_objects(published, 0) == 1
        assert result.record.record_id in result.artifact

    def test_source_file_is_never_modified(self, workspace, memory_store, png_bytes):
        path = workspace / "documents" / "sample.pdf"
        before = path.read_bytes()
        _run(workspace, memory_store, image=png_bytes)
        assert path.read_bytes() == before

    def test_each_run_gets_its_own_artifact(self, workspace, memory_store, png_bytes):
        a = _run(workspace, memory_store, image=png_bytes)
        b = _run(workspace, memory_store, image=png_bytes)
        assert a.artifact != b.artifact
        assert a.record.record_id != b.record.record_id
        # both runs sign the same pristine original
        assert a.record.hash_before == b.record.hash_before
        assert len(_signed_files(workspace)) == 2

    def test_multi_page_document(self, workspace, memory_store, png_bytes):
        field = PlacementField(page=5, x_pct=0.6, y_pct=0.85, w_pct=0.35, h_pct=0.1)
        result = _run(workspace, memory_store, document_id="five.pdf", field=field, image=png_bytes)
        published = (workspace / "signed" / "five.pdf" / result.artifact).read_bytes()
        assert count_image_objects(published, 4) == 1
        assert count_image_objects(published, 0) == 0


class TestSignDocumentFailures:
    """A failing step leaves no artifact behind."""

    def test_invalid_field_fails_before_reading(self, workspace, memory_store, png_bytes):
        """Scenario D: xPct out of range."""
        field = PlacementField(page=1, x_pct=1.1, y_pct=0.25, w_pct=0.3, h_pct=0.08)
        source = SpySource(str(workspace / "documents"))
        with pytest.raises(InvalidField):
            _run(workspace, memory_store, field=field, image=png_bytes, source=source)
        assert source.reads == 0
        assert memory_store.append_calls == 0
        assert _signed_files(workspace) == []

    def test_audit_failure_leaves_no_artifact(self, workspace, png_bytes):
        """Scenario E: the store refuses every append."""
        store = MemoryAuditStore(fail_times=100)
        with pytest.raises(AuditWriteError):
            _run(workspace, store, image=png_bytes)
        assert store.records == []
        assert _signed_files(workspace) == []

    def test_page_out_of_range(self, workspace, memory_store, png_bytes):
        """Scenario C: page 99 of a 5-page document."""
        field = PlacementField(page=99, x_pct=0.1, y_pct=0.1, w_pct=0.2, h_pct=0.1)
        with pytest.raises(DocumentLoadError):
            _run(workspace, memory_store, document_id="five.pdf", field=field, image=png_bytes)
        assert memory_store.append_calls == 0
        assert _signed_files(workspace) == []

    def test_unknown_document(self, workspace, memory_store, png_bytes):
        with pytest.raises(NotFound) as exc:
            _run(workspace, memory_store, document_id="nope.pdf", image=png_bytes)
        assert exc.value.status_code == 404

    @pytest.mark.parametrize("doc_id", ["../sample.pdf", "a/b.pdf", ".hidden", ""])
    def test_unsafe_document_id(self, workspace, memory_store, png_bytes, doc_id):
        with pytest.raises(InvalidField):
            _run(workspace, memory_store, document_id=doc_id, image=png_bytes)

    def test_bad_image(self, workspace, memory_store):
        with pytest.raises(ImageDecodeError):
            _run(workspace, memory_store, image=b"definitely not a png")
        assert memory_store.append_calls == 0

    def test_unexpected_error_is_internal(self, workspace, memory_store, png_bytes):
        class Boom(DocumentSource):
            def read(self, document_id):
                raise ZeroDivisionError("boom")

        with pytest.raises(InternalError) as exc:
            _run(workspace, memory_store, image=png_bytes, source=Boom(str(workspace)))
        assert exc.value.status_code == 500

    def test_publish_failure_logs_orphaned_record(self, workspace, memory_store, png_bytes, caplog):
        class BrokenArtifacts(ArtifactStore):
            def publish(self, document_id, data, *, record_id=None):
                raise InternalError("disk full")

        with caplog.at_level(logging.ERROR, logger="core.pipeline"):
            with pytest.raises(InternalError):
                sign_document(
                    document_id="sample.pdf",
                    field=FIELD,
                    image_bytes=png_bytes,
                    source=DocumentSource(str(workspace / "documents")),
                    recorder=AuditRecorder(memory_store, max_attempts=1, backoff_min=0, backoff_max=0),
                    artifacts=BrokenArtifacts(str(workspace / "signed")),
                )

        (record,) = memory_store.records
        assert any(
            record.record_id in r.getMessage() and "orphaned" in r.getMessage()
            for r in caplog.records
        )
        assert _signed_files(workspace) == []


class TestDecodeSignatureImage:

    def test_plain_base64(self, png_bytes):
        assert decode_signature_image(base64.b64encode(png_bytes).decode()) == png_bytes

    def test_data_url(self, png_bytes):
        payload = "data:image/png;base64," + base64.b64encode(png_bytes).decode()
        assert decode_signature_image(payload) == png_bytes

    @pytest.mark.parametrize("payload", ["", "   ", "data:image/png;base64,", "not base64!!", None])
    def test_rejects(self, payload):
        with pytest.raises(ImageDecodeError):
            decode_signature_image(payload)
