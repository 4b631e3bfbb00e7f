"""Document storage and guarded document edits.

Every edit goes through the read-only gate first, so a completed
workflow's PDF and its sidecar data stay exactly as approved.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from docreview.core.exceptions import InvalidDocumentError
from docreview.core.read_only import ReadOnlyGate, document_file_name
from docreview.db.models import Workflow

logger = logging.getLogger(__name__)

ANNOTATIONS_SUFFIX = ".annotations.json"
FORM_FIELDS_SUFFIX = ".formfields.json"


class FilesystemDocumentStore:
    """Stores document bytes beneath a root directory.

    References are the absolute paths handed out by ``store_upload``.
    Relative references are taken relative to the root. Every reference is
    canonicalised by ``canonical_ref`` before use and must stay inside the
    root.
    """

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def canonical_ref(self, document_ref: str) -> str:
        """
        Normalise a reference to the absolute path it names.

        Backslashes count as separators; trailing separators and ``.``/``..``
        segments are resolved away.

        Raises:
            InvalidDocumentError: Empty reference, or a path outside the root
        """
        cleaned = (document_ref or "").strip().replace("\\", "/").rstrip("/")
        if not cleaned:
            raise InvalidDocumentError("Document reference is required.")

        path = Path(cleaned)
        if not path.is_absolute():
            path = self.root / path
        path = path.resolve()

        if path == self.root or self.root not in path.parents:
            logger.warning(f"Rejected document reference outside {self.root}: {document_ref}")
            raise InvalidDocumentError("Document reference is outside the document store.")
        return str(path)

    def path_for(self, document_ref: str) -> Path:
        return Path(self.canonical_ref(document_ref))

    def load(self, document_ref: str) -> bytes:
        path = self.path_for(document_ref)
        if not path.is_file():
            raise FileNotFoundError(document_ref)
        return path.read_bytes()

    def save(self, document_ref: str, data: bytes) -> None:
        path = self.path_for(document_ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(data)
        os.replace(tmp, path)

    def store_upload(self, file_name: str, data: bytes) -> str:
        """Persist an uploaded file under a collision-free name. Returns its reference."""
        safe_name = document_file_name(file_name) or "document.pdf"
        self.root.mkdir(parents=True, exist_ok=True)
        ref = self.canonical_ref(f"{uuid.uuid4().hex}_{safe_name}")
        self.save(ref, data)
        return ref

    def exists(self, document_ref: str) -> bool:
        return self.path_for(document_ref).is_file()


class DocumentService:
    """Document edits guarded by the read-only gate.

    Each operation canonicalises the reference once through the store, and
    the gate and the write both see that same path.
    """

    def __init__(self, db: Session, store: FilesystemDocumentStore):
        self.db = db
        self.store = store
        self.gate = ReadOnlyGate(db)

    def is_read_only(self, document_ref: str) -> bool:
        return self.gate.is_read_only(self.store.canonical_ref(document_ref))

    def resolve_owning_workflow(self, document_ref: str) -> Optional[Workflow]:
        return self.gate.resolve_owning_workflow(self.store.canonical_ref(document_ref))

    def save_document(self, document_ref: str, data: bytes) -> None:
        """
        Overwrite a document's bytes.

        Raises:
            InvalidDocumentError: If the reference leaves the document store
            DocumentReadOnlyError: If the owning workflow is completed
        """
        ref = self.store.canonical_ref(document_ref)
        self.gate.ensure_writable(ref)
        self.store.save(ref, data)
        logger.info(f"Saved document {ref} ({len(data)} bytes)")

    def import_annotations(self, document_ref: str, annotations: Dict[str, Any]) -> str:
        """Store annotation data beside the document. Returns the sidecar reference."""
        return self._write_sidecar(document_ref, ANNOTATIONS_SUFFIX, annotations)

    def import_form_fields(self, document_ref: str, fields: Dict[str, str]) -> str:
        """Store form field values beside the document. Returns the sidecar reference."""
        return self._write_sidecar(document_ref, FORM_FIELDS_SUFFIX, fields)

    def _write_sidecar(self, document_ref: str, suffix: str, payload: Dict[str, Any]) -> str:
        ref = self.store.canonical_ref(document_ref)
        self.gate.ensure_writable(ref)
        sidecar = ref + suffix
        self.store.save(sidecar, json.dumps(payload, indent=2, sort_keys=True).encode("utf-8"))
        logger.info(f"Imported {suffix.strip('.').split('.')[0]} for {ref}")
        return sidecar

