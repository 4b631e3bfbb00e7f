"""Tests for the read-only gate and guarded document edits."""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from docreview.core.exceptions import DocumentReadOnlyError, InvalidDocumentError
from docreview.core.read_only import (
    READ_ONLY_MESSAGE,
    ReadOnlyGate,
    document_file_name,
    find_workflow_by_document,
)
from docreview.core.workflow.states import WorkflowStatus
from docreview.services.documents import DocumentService


class TestDocumentFileName:

    @pytest.mark.parametrize("ref,expected", [
        ("uploads/abc_contract.pdf", "abc_contract.pdf"),
        ("C:\\data\\uploads\\abc_contract.pdf", "abc_contract.pdf"),
        ("abc_contract.pdf", "abc_contract.pdf"),
        ("uploads/abc_contract.pdf/", "abc_contract.pdf"),
        ("uploads\\abc_contract.pdf\\", "abc_contract.pdf"),
    ])
    def test_last_component(self, ref, expected):
        assert document_file_name(ref) == expected


class TestFindWorkflowByDocument:

    def test_exact_path(self, db_session, workflow_factory):
        workflow = workflow_factory(document_path="uploads/1_contract.pdf")
        assert find_workflow_by_document(db_session, "uploads/1_contract.pdf").id == workflow.id

    def test_file_name_fallback(self, db_session, workflow_factory):
        workflow = workflow_factory(document_path="uploads/1_contract.pdf")
        found = find_workflow_by_document(db_session, "C:\\client\\copies\\1_contract.pdf")
        assert found.id == workflow.id

    def test_fallback_prefers_newest(self, db_session, workflow_factory):
        workflow_factory(document_path="old/shared.pdf", created_at=datetime(2024, 1, 1))
        newer = workflow_factory(document_path="new/shared.pdf", created_at=datetime(2025, 1, 1))
        assert find_workflow_by_document(db_session, "elsewhere/shared.pdf").id == newer.id

    def test_like_wildcards_are_literal(self, db_session, workflow_factory):
        workflow_factory(document_path="uploads/1_contract.pdf")
        assert find_workflow_by_document(db_session, "%.pdf") is None

    def test_fallback_matches_whole_file_name(self, db_session, workflow_factory):
        workflow_factory(document_path="uploads/11_contract.pdf")
        assert find_workflow_by_document(db_session, "elsewhere/1_contract.pdf") is None

    def test_fallback_matches_bare_and_backslash_paths(self, db_session, workflow_factory):
        bare = workflow_factory(document_path="2_contract.pdf")
        windows = workflow_factory(document_path="C:\\uploads\\3_contract.pdf")
        assert find_workflow_by_document(db_session, "x/2_contract.pdf").id == bare.id
        assert find_workflow_by_document(db_session, "x/3_contract.pdf").id == windows.id

    def test_unresolvable(self, db_session):

        assert find_workflow_by_document(db_session, "nowhere.pdf") is None
        assert find_workflow_by_document(db_session, "") is None


class TestReadOnlyGate:

    def test_completed_workflow_is_read_only(self, db_session, workflow_factory):
        workflow_factory(document_path="uploads/done.pdf", status=WorkflowStatus.COMPLETED)
        assert ReadOnlyGate(db_session).is_read_only("uploads/done.pdf") is True

    @pytest.mark.parametrize("status", [
        WorkflowStatus.PENDING_INTERNAL_REVIEW,
        WorkflowStatus.PENDING_EXTERNAL_REVIEW,
        WorkflowStatus.REJECTED,
    ])
    def test_open_workflow_is_writable(self, db_session, workflow_factory, status):
        workflow_factory(document_path="uploads/open.pdf", status=status)
        assert ReadOnlyGate(db_session).is_read_only("uploads/open.pdf") is False

    def test_unknown_document_is_writable(self, db_session):
        assert ReadOnlyGate(db_session).is_read_only("uploads/unknown.pdf") is False

    def test_lookup_failure_does_not_block(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        assert ReadOnlyGate(db).is_read_only("uploads/any.pdf") is False

    def test_ensure_writable_raises(self, db_session, workflow_factory):
        workflow_factory(document_path="uploads/done.pdf", status=WorkflowStatus.COMPLETED)
        with pytest.raises(DocumentReadOnlyError) as exc:
            ReadOnlyGate(db_session).ensure_writable("uploads/done.pdf")
        assert exc.value.message == READ_ONLY_MESSAGE
        assert exc.value.status_code == 403


class TestDocumentService:

    @pytest.fixture()
    def stored(self, document_store):
        return document_store.store_upload("contract.pdf", b"%PDF-1.4 original")

    def test_save_writable_document(self, db_session, workflow_factory, document_store, stored):
        workflow_factory(document_path=stored)
        DocumentService(db_session, document_store).save_document(stored, b"%PDF-1.4 edited")
        assert document_store.load(stored) == b"%PDF-1.4 edited"

    @pytest.mark.parametrize("alias", [
        lambda ref: ref + "/",
        lambda ref: ref + "\\",
        lambda ref: ref.replace("/", "\\"),
        lambda ref: ref.replace("/uploads/", "/uploads/./"),
        lambda ref: ref.replace("/uploads/", "/uploads/../uploads/"),
        lambda ref: ref.rsplit("/", 1)[-1],
        lambda ref: "./" + ref.rsplit("/", 1)[-1] + "/",
    ])
    def test_completed_document_refused_under_any_spelling(
        self, db_session, workflow_factory, document_store, stored, alias
    ):
        workflow_factory(document_path=stored, status=WorkflowStatus.COMPLETED)
        service = DocumentService(db_session, document_store)

        assert service.is_read_only(alias(stored)) is True
        with pytest.raises(DocumentReadOnlyError):
            service.save_document(alias(stored), b"%PDF-1.4 TAMPERED")
        with pytest.raises(DocumentReadOnlyError):
            service.import_annotations(alias(stored), {"notes": []})
        assert document_store.load(stored) == b"%PDF-1.4 original"

    def test_writes_outside_store_are_refused(self, db_session, document_store, tmp_path):
        service = DocumentService(db_session, document_store)
        outside = tmp_path / "outside" / "evil.txt"

        for ref in (str(outside), "../outside/evil.txt", "sub/../../outside/evil.txt", "/etc/passwd"):
            with pytest.raises(InvalidDocumentError):
                service.save_document(ref, b"pwned")
        with pytest.raises(InvalidDocumentError):
            service.import_form_fields("../outside/evil.txt", {"a": "b"})
        assert not outside.exists()

    def test_save_completed_document_is_refused(self, db_session, workflow_factory, document_store, stored):
        workflow_factory(document_path=stored, status=WorkflowStatus.COMPLETED)
        with pytest.raises(DocumentReadOnlyError):
            DocumentService(db_session, document_store).save_document(stored, b"%PDF-1.4 edited")
        assert document_store.load(stored) == b"%PDF-1.4 original"

    def test_import_annotations_writes_sidecar(self, db_session, workflow_factory, document_store, stored):
        workflow_factory(document_path=stored)
        sidecar = DocumentService(db_session, document_store).import_annotations(
            stored, {"highlights": [{"page": 1, "text": "Clause 4"}]}
        )
        assert sidecar == stored + ".annotations.json"
        assert json.loads(document_store.load(sidecar)) == {"highlights": [{"page": 1, "text": "Clause 4"}]}

    def test_import_form_fields_writes_sidecar(self, db_session, document_store, stored):
        sidecar = DocumentService(db_session, document_store).import_form_fields(stored, {"name": "ACME"})
        assert json.loads(document_store.load(sidecar)) == {"name": "ACME"}

    @pytest.mark.parametrize("method,payload", [
        ("import_annotations", {"notes": []}),
        ("import_form_fields", {"name": "ACME"}),
    ])
    def test_imports_blocked_when_completed(
        self, db_session, workflow_factory, document_store, stored, method, payload
    ):
        workflow_factory(document_path=stored, status=WorkflowStatus.COMPLETED)
        service = DocumentService(db_session, document_store)
        with pytest.raises(DocumentReadOnlyError):
            getattr(service, method)(stored, payload)
        assert not document_store.exists(stored + ".annotations.json")
        assert not document_store.exists(stored + ".formfields.json")

    def test_store_upload_keeps_only_file_name(self, document_store):
        ref = document_store.store_upload("..\\..\\evil.pdf", b"data")
        assert ref.endswith("_evil.pdf")
        assert document_store.load(ref) == b"data"


class TestFilesystemDocumentStore:

    def test_relative_refs_resolve_under_root(self, document_store):
        assert document_store.canonical_ref("a.pdf") == str(document_store.root / "a.pdf")
        assert document_store.canonical_ref("./sub/../a.pdf/") == str(document_store.root / "a.pdf")
        assert document_store.canonical_ref("sub\\a.pdf") == str(document_store.root / "sub" / "a.pdf")

    def test_upload_ref_is_canonical(self, document_store):
        ref = document_store.store_upload("contract.pdf", b"data")
        assert document_store.canonical_ref(ref) == ref
        assert document_store.canonical_ref(ref + "/") == ref

    @pytest.mark.parametrize("ref", ["", "   ", "/", ".", "..", "../x.pdf", "/tmp/x.pdf"])
    def test_refs_outside_root_are_rejected(self, document_store, ref):
        with pytest.raises(InvalidDocumentError) as exc:
            document_store.canonical_ref(ref)
        assert exc.value.status_code == 400

    def test_load_outside_root_is_rejected(self, document_store, tmp_path):
        secret = tmp_path / "secret.txt"
        secret.write_bytes(b"secret")
        with pytest.raises(InvalidDocumentError):
            document_store.load(str(secret))
