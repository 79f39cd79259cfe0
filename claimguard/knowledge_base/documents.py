# claimguard/knowledge_base/documents.py

"""
The policy knowledge base: the documents every extraction, verification
and chat prompt is grounded on.
"""
import base64
import logging
import uuid
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from claimguard import config
from .samples import SAMPLE_DOCUMENT_ID, SAMPLE_DOCUMENT_NAME, SAMPLE_POLICY_TEXT

ACCEPTED_POLICY_TYPES = {"application/pdf"}


class DocumentRejected(ValueError):
    pass


class PolicyDocument(BaseModel):
    id: str
    name: str
    type: Literal["text", "file"]
    content: str = Field(..., description="Plain text, or base64 for file documents.")
    mime_type: str


def sample_documents() -> List[PolicyDocument]:
    return [
        PolicyDocument(
            id=SAMPLE_DOCUMENT_ID,
            name=SAMPLE_DOCUMENT_NAME,
            type="text",
            content=SAMPLE_POLICY_TEXT,
            mime_type="text/plain",
        )
    ]


class KnowledgeBase:
    """In-memory document store. `version` changes whenever the document set does."""

    def __init__(self) -> None:
        self._documents: List[PolicyDocument] = sample_documents()
        self.version = 0

    @property
    def documents(self) -> List[PolicyDocument]:
        return list(self._documents)

    def _changed(self) -> None:
        self.version += 1
        logging.info(f"Knowledge base now holds {len(self._documents)} document(s) (v{self.version}).")

    def add_text(self, name: str, content: str) -> PolicyDocument:
        document = PolicyDocument(
            id=uuid.uuid4().hex,
            name=name,
            type="text",
            content=content,
            mime_type="text/plain",
        )
        self._documents.append(document)
        self._changed()
        return document

    def add_file(self, name: str, mime_type: str, data: bytes) -> PolicyDocument:
        if mime_type not in ACCEPTED_POLICY_TYPES:
            raise DocumentRejected(f'Skipped "{name}": Only PDF documents are supported.')
        max_bytes = config.MAX_POLICY_UPLOAD_MB * 1024 * 1024
        if len(data) > max_bytes:
            raise DocumentRejected(
                f'Skipped "{name}": File is too large (>{config.MAX_POLICY_UPLOAD_MB}MB).'
            )

        document = PolicyDocument(
            id=uuid.uuid4().hex,
            name=name,
            type="file",
            content=base64.b64encode(data).decode("ascii"),
            mime_type=mime_type,
        )
        self._documents.append(document)
        self._changed()
        return document

    def remove(self, document_id: str) -> bool:
        remaining = [d for d in self._documents if d.id != document_id]
        if len(remaining) == len(self._documents):
            return False
        self._documents = remaining
        self._changed()
        return True

    def reset(self) -> None:
        self._documents = sample_documents()
        self._changed()


def knowledge_base_parts(documents: List[PolicyDocument]) -> List[Dict[str, Any]]:
    """
    Message content parts for every document: text documents inline,
    files as base64 media parts.
    """
    parts: List[Dict[str, Any]] = []
    for doc in documents:
        if doc.type == "file":
            parts.append({"type": "media", "mime_type": doc.mime_type, "data": doc.content})
        else:
            parts.append({
                "type": "text",
                "text": f"\n--- Document: {doc.name} ---\n{doc.content}\n----------------\n",
            })
    return parts
