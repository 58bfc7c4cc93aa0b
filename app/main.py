"""
FastAPI Application — Honeypot Conversation API
Main entry point. Authenticates callers, accepts scam messages on POST /honeypot,
runs them through the conversation orchestrator and returns the reply contract.
Also exposes read-only conversation views for the dashboard.
"""

import logging
import re
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, Security
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import APIKeyHeader
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from app.agent import ResponseGenerator
from app.api_keys import ApiKeyRecord, InMemoryApiKeyStore, hash_api_key
from app.errors import AuthError, HoneypotError, MethodError, NotFoundError, ValidationError
from app.models import (
    MESSAGE_FIELDS,
    ConversationDetail,
    ConversationSummary,
    ExtractedIntelligence,
    HoneypotRequest,
    HoneypotResponse,
    MessageView,
)
from app.orchestrator import ConversationOrchestrator
from app.store import ConversationStore, InMemoryConversationStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Initialize App ──────────────────────────────────────────────

app = FastAPI(title="Honeypot Conversation API", version=config.APP_VERSION)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-api-key",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

store = InMemoryConversationStore()
api_keys = InMemoryApiKeyStore(config.HONEYPOT_API_KEYS)
orchestrator = ConversationOrchestrator(store, ResponseGenerator())

api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)

ACCEPTED_FIELDS_HINT = (
    "Please provide the scam message in one of these fields: " + ", ".join(MESSAGE_FIELDS)
)


# ── Dependencies (overridable in tests) ─────────────────────────

def get_store() -> ConversationStore:
    return store


def get_key_store() -> InMemoryApiKeyStore:
    return api_keys


def get_orchestrator() -> ConversationOrchestrator:
    return orchestrator


def _authenticate(request: Request, api_key: Optional[str], keys: InMemoryApiKeyStore) -> ApiKeyRecord:
    if not api_key:
        raise AuthError("Missing x-api-key header")
    record = keys.lookup_active_key(hash_api_key(api_key))
    if record is None:
        raise AuthError()
    keys.record_usage(record.id)
    request.state.api_key = record
    return record


def verify_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
    keys: InMemoryApiKeyStore = Depends(get_key_store),
) -> ApiKeyRecord:
    """Validate x-api-key against the key store and record its usage."""
    return _authenticate(request, api_key, keys)


# ── Log Redaction Utility ──────────────────────────────────────

def _redact(text: str) -> str:
    """Redact sensitive data from log output (phone numbers, emails, accounts)."""
    text = re.sub(r'\+?\d[\d\s\-]{8,}\d', '[REDACTED_PHONE]', text)
    text = re.sub(r'[\w.+-]+@[\w.-]+', '[REDACTED_HANDLE]', text)
    text = re.sub(r'\b\d{9,18}\b', '[REDACTED_DIGITS]', text)
    return text


# ── Error Handlers ──────────────────────────────────────────────

@app.exception_handler(HoneypotError)
async def _honeypot_error_handler(request: Request, exc: HoneypotError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        content = MethodError().to_dict()
    else:
        content = {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Undecodable JSON is rejected before dependencies run, so the key is checked here
    if getattr(request.state, "api_key", None) is None:
        provider = request.app.dependency_overrides.get(get_key_store, get_key_store)
        try:
            _authenticate(request, request.headers.get("x-api-key"), provider())
        except AuthError as auth_exc:
            return JSONResponse(status_code=auth_exc.status_code, content=auth_exc.to_dict())

    logger.warning(f"400 invalid body | {request.url.path} | {len(exc.errors())} error(s)")
    return JSONResponse(
        status_code=400,
        content=ValidationError("Invalid request body", ACCEPTED_FIELDS_HINT).to_dict(),
    )


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} crashed: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


# ── Health Check ────────────────────────────────────────────────

@app.get("/")
async def health():
    return {"status": "Honeypot Active", "version": config.APP_VERSION}


# ── Honeypot Endpoint ──────────────────────────────────────────

@app.options("/honeypot")
async def honeypot_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


@app.post("/honeypot", response_model=HoneypotResponse)
def honeypot(
    incoming: HoneypotRequest,
    api_key: ApiKeyRecord = Depends(verify_api_key),
    engine: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Process one scammer message through the conversation pipeline."""
    message_text = incoming.message_text()
    if message_text is None:
        logger.warning(f"400 no message | body keys: {incoming.sent_keys()}")
        raise ValidationError(details=ACCEPTED_FIELDS_HINT)

    logger.info(
        f"📥 conversation={(incoming.conversation_id or 'new')[:8]} "
        f"msg_len={len(message_text)} preview={_redact(message_text[:40])!r}"
    )

    response = engine.handle_message(
        message_text,
        conversation_id=incoming.conversation_id,
        api_key_hash=api_key.key_hash,
    )

    logger.info(
        f"📤 conversation={response.conversation_id[:8]} turn={response.turn_count} "
        f"scam_detected={response.scam_detected}"
    )
    return response


# ── Conversation Views ─────────────────────────────────────────

def _summary(conversation, intel_count: int) -> dict:
    return dict(
        conversation_id=conversation.conversation_id,
        status=conversation.status,
        scam_detected=conversation.scam_detected,
        agent_active=conversation.agent_active,
        turn_count=conversation.turn_count,
        created_at=conversation.created_at,
        intelligence_count=intel_count,
    )


@app.get("/conversations", response_model=List[ConversationSummary])
def list_conversations(
    api_key: ApiKeyRecord = Depends(verify_api_key),
    repo: ConversationStore = Depends(get_store),
):
    return [
        ConversationSummary(**_summary(c, len(repo.list_intelligence(c.conversation_id))))
        for c in repo.list_conversations()
    ]


@app.get("/conversations/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: str,
    api_key: ApiKeyRecord = Depends(verify_api_key),
    repo: ConversationStore = Depends(get_store),
):
    conversation = repo.get_conversation(conversation_id)
    if conversation is None:
        raise NotFoundError(details=conversation_id)

    records = repo.list_intelligence(conversation_id)
    return ConversationDetail(
        **_summary(conversation, len(records)),
        messages=[
            MessageView(role=m.role, content=m.content, created_at=m.created_at)
            for m in repo.list_messages(conversation_id)
        ],
        extracted_intelligence=ExtractedIntelligence.from_pairs(
            (r.intelligence_type, r.value) for r in records
        ),
    )


# ── Run ─────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=config.PORT, reload=False)
