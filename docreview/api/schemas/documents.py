import base64
import binascii

from pydantic import BaseModel, Field, field_validator
from typing import Dict, Any


class SaveDocumentRequest(BaseModel):
    file_name: str = Field(..., min_length=1)
    document: str  # base64-encoded PDF bytes

    @field_validator("document")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("document must be base64-encoded")
        return v

    def decoded(self) -> bytes:
        return base64.b64decode(self.document)


class ImportAnnotationsRequest(BaseModel):
    document: str = Field(..., min_length=1)
    annotations: Dict[str, Any]


class ImportFormFieldsRequest(BaseModel):
    document: str = Field(..., min_length=1)
    fields: Dict[str, str]


class DocumentStatus(BaseModel):
    document: str
    read_only: bool
