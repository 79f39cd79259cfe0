import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from claimguard import config
from claimguard.chat.session import ChatMessage, ChatSession
from claimguard.claim_parser.local.model_context import LocalModelContext
from claimguard.claim_parser.local.tagging_model import ModelLoadError
from claimguard.claim_parser.main_parser import get_claim_extraction_async
from claimguard.claim_parser.schema import ClaimAttachment, ClaimExtraction, ClaimInput
from claimguard.knowledge_base.documents import DocumentRejected, KnowledgeBase, PolicyDocument
from claimguard.knowledge_base.samples import DEMO_SCENARIOS, SAMPLE_CLAIM_TEXT
from claimguard.pipeline.handler import ClaimProcessingResult, process_claim_async
from claimguard.verification.eligibility import (
    verify_claim_eligibility_async,
    verify_claim_eligibility_local,
)
from claimguard.verification.verification_schema import VerificationResult

# --- Logging Setup ---
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logging.getLogger("langchain").setLevel(logging.INFO)
logging.getLogger("langchain_core").setLevel(logging.INFO)
logger = logging.getLogger(__name__)

# --- Application state ---
# Single-process, in-memory. The model context holds the loaded local models
# for the lifetime of the process.
knowledge_base = KnowledgeBase()
model_context = LocalModelContext()
chat_sessions: Dict[str, ChatSession] = {}


def get_knowledge_base() -> KnowledgeBase:
    return knowledge_base


def get_model_context() -> LocalModelContext:
    return model_context


def get_chat_sessions() -> Dict[str, ChatSession]:
    return chat_sessions


# --- FastAPI App Initialization ---
app = FastAPI(
    title="ClaimGuard Claims Triage API",
    description="Extracts structured facts from insurance claims and verifies them against a policy knowledge base.",
    version="1.0.0"
)

# For production, replace "*" with your specific frontend URL
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Pydantic Request Models ---
class TextDocumentRequest(BaseModel):
    name: str
    content: str


class ClaimRequest(BaseModel):
    text: str = ""
    file: Optional[ClaimAttachment] = None
    mode: Literal["cloud", "local"] = "cloud"


class VerifyRequest(BaseModel):
    extraction: ClaimExtraction
    mode: Literal["cloud", "local"] = "cloud"


class ChatMessageRequest(BaseModel):
    text: str


def _to_claim_input(data: ClaimRequest) -> ClaimInput:
    if data.file:
        try:
            base64.b64decode(data.file.data, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="Attachment data must be base64 encoded.")
    return ClaimInput(text=data.text, file=data.file)


def _refresh_chat_sessions(kb: KnowledgeBase, sessions: Dict[str, ChatSession]) -> None:
    documents = kb.documents
    for session in sessions.values():
        session.refresh_documents(documents)


# --- API Endpoints ---

@app.get("/", tags=["Health Check"])
async def read_root():
    """
    Root endpoint for health checks. Returns a simple status message.
    """
    return {"status": "ClaimGuard API is running"}


@app.get("/documents", tags=["Knowledge Base"])
async def list_documents(kb: KnowledgeBase = Depends(get_knowledge_base)) -> List[PolicyDocument]:
    return kb.documents


@app.post("/documents/text", tags=["Knowledge Base"])
async def add_text_document(
    data: TextDocumentRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> PolicyDocument:
    if not data.content.strip():
        raise HTTPException(status_code=400, detail="Document content must not be empty.")
    document = kb.add_text(data.name, data.content)
    _refresh_chat_sessions(kb, sessions)
    return document


@app.post("/documents/file", tags=["Knowledge Base"])
async def add_file_document(
    file: UploadFile = File(...),
    kb: KnowledgeBase = Depends(get_knowledge_base),
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> PolicyDocument:
    """
    Adds a PDF policy document (max 20MB) to the knowledge base.
    """
    content = await file.read()
    try:
        document = kb.add_file(file.filename or "policy.pdf", file.content_type or "", content)
    except DocumentRejected as e:
        logger.warning(str(e))
        raise HTTPException(status_code=400, detail=str(e))
    _refresh_chat_sessions(kb, sessions)
    return document


@app.delete("/documents/{document_id}", tags=["Knowledge Base"])
async def remove_document(
    document_id: str,
    kb: KnowledgeBase = Depends(get_knowledge_base),
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> Dict[str, Any]:
    if not kb.remove(document_id):
        raise HTTPException(status_code=404, detail=f"Document '{document_id}' not found.")
    _refresh_chat_sessions(kb, sessions)
    return {"removed": document_id, "documents": len(kb.documents)}


@app.post("/documents/reset", tags=["Knowledge Base"])
async def reset_documents(
    kb: KnowledgeBase = Depends(get_knowledge_base),
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> List[PolicyDocument]:
    """Clears all custom documents and restores the sample policies."""
    kb.reset()
    _refresh_chat_sessions(kb, sessions)
    return kb.documents


@app.post("/claims/extract", tags=["Claims"])
async def extract_claim(
    data: ClaimRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
    context: LocalModelContext = Depends(get_model_context),
) -> ClaimExtraction:
    claim_input = _to_claim_input(data)
    if not claim_input.text.strip() and not claim_input.file:
        raise HTTPException(status_code=400, detail="Please provide text description or upload evidence.")
    try:
        return await get_claim_extraction_async(claim_input, kb.documents, data.mode, context)
    except Exception:
        logger.exception("An unhandled error occurred during claim extraction.")
        raise HTTPException(status_code=500, detail="Failed to extract claim details.")


@app.post("/claims/verify", tags=["Claims"])
async def verify_claim(
    data: VerifyRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> VerificationResult:
    documents = kb.documents
    if not documents:
        raise HTTPException(status_code=400, detail="Please add at least one policy document to the Knowledge Base.")
    try:
        if data.mode == "cloud":
            return await verify_claim_eligibility_async(data.extraction, documents)
        return await verify_claim_eligibility_local(data.extraction, documents)
    except Exception:
        logger.exception("An unhandled error occurred during claim verification.")
        raise HTTPException(status_code=500, detail="Failed to verify claim.")


@app.post("/claims/process", tags=["Claims"])
async def process_claim(
    data: ClaimRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
    context: LocalModelContext = Depends(get_model_context),
) -> ClaimProcessingResult:
    """
    Runs the full triage: extraction followed by eligibility verification.
    Failures are reported in the result's status and error fields.
    """
    logger.info(f"Received {data.mode} claim with {len(data.text)} chars of text.")
    return await process_claim_async(_to_claim_input(data), kb.documents, data.mode, context)


@app.post("/models/custom", tags=["Local Models"])
async def load_custom_model(
    files: List[UploadFile] = File(...),
    assets: Optional[UploadFile] = File(None),
    context: LocalModelContext = Depends(get_model_context),
) -> Dict[str, Any]:
    """
    Loads a custom tagging model: model.json, all .bin weight shards and
    (optionally) model_assets.json with the vocabulary and tag map.
    """
    model_files = [(f.filename or "", await f.read()) for f in files]
    assets_file = (assets.filename or "model_assets.json", await assets.read()) if assets else None
    try:
        await asyncio.to_thread(context.load_custom_model_from_files, model_files, assets_file)
    except ModelLoadError as e:
        logger.error(f"Custom model load failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return context.status()


@app.get("/models/status", tags=["Local Models"])
async def model_status(context: LocalModelContext = Depends(get_model_context)) -> Dict[str, Any]:
    return context.status()


@app.post("/chat/sessions", tags=["Chat"])
async def create_chat_session(
    kb: KnowledgeBase = Depends(get_knowledge_base),
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> Dict[str, Any]:
    session = ChatSession(kb.documents)
    sessions[session.session_id] = session
    return {"session_id": session.session_id, "messages": session.messages}


def _get_session(session_id: str, sessions: Dict[str, ChatSession]) -> ChatSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Chat session '{session_id}' not found.")
    return session


@app.get("/chat/sessions/{session_id}", tags=["Chat"])
async def get_chat_session(
    session_id: str,
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> Dict[str, Any]:
    session = _get_session(session_id, sessions)
    return {"session_id": session.session_id, "messages": session.messages}


@app.delete("/chat/sessions/{session_id}", tags=["Chat"])
async def delete_chat_session(
    session_id: str,
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> Dict[str, Any]:
    _get_session(session_id, sessions)
    del sessions[session_id]
    return {"removed": session_id, "sessions": len(sessions)}


@app.post("/chat/sessions/{session_id}/messages", tags=["Chat"])
async def send_chat_message(
    session_id: str,
    data: ChatMessageRequest,
    sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> ChatMessage:
    if not data.text.strip():
        raise HTTPException(status_code=400, detail="'text' must not be empty.")
    session = _get_session(session_id, sessions)
    return await session.send_message_async(data.text)


@app.get("/demo/scenarios", tags=["Demo"])
async def demo_scenarios() -> Dict[str, Any]:
    return {"sample_claim": SAMPLE_CLAIM_TEXT, "scenarios": DEMO_SCENARIOS}
