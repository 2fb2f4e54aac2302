"""
Assistente de lançamentos financeiros por conversa, com limite de uso por plano
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
import uvicorn

from config.settings import get_settings
from config.logging_config import setup_logging
from chat.assistant import ExpenseChatAssistant
from chat.orchestrator import SubmissionRejected
from database.sqlite_db import init_database
from models.schemas import ChatRequest, QuickAddRequest, SessionContext
from services.ledger_client import LedgerApiError, LedgerClientError


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerenciar lifecycle da aplicação"""
    assistant = None

    try:
        logger.info("🔄 Iniciando Chat Ledger Assistant...")

        await init_database()
        logger.info("✅ Database inicializado")

        assistant = ExpenseChatAssistant()
        await assistant.setup()
        app.state.assistant = assistant

        yield

    except Exception as e:
        logger.error(f"❌ Erro durante startup: {e}")
        raise
    finally:
        if assistant:
            await assistant.stop()
        logger.info("👋🏻 Aplicação finalizada")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description="Lançamentos financeiros a partir de linguagem natural",
    version="1.0.0",
    lifespan=lifespan
)


def get_assistant(request: Request) -> ExpenseChatAssistant:
    assistant = getattr(request.app.state, "assistant", None)
    if assistant is None:
        raise HTTPException(status_code=500, detail="Assistant not initialized")
    return assistant


@app.get("/")
async def root():
    """Endpoint de health check"""
    return {
        "message": "Chat Ledger Assistant está funcionando!",
        "version": "1.0.0",
        "status": "healthy"
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check detalhado"""
    assistant = getattr(request.app.state, "assistant", None)
    return {
        "status": "healthy",
        "assistant_status": "active" if assistant else "inactive",
        "database": "connected"
    }


@app.post("/session")
async def update_session(session: SessionContext, request: Request):
    """Trocar usuário e plano da sessão atual"""
    assistant = get_assistant(request)
    assistant.switch_session(session)
    return {"status": "ok", "userId": session.user_id, "planTier": session.plan_tier}


@app.post("/trackers/{tracker_id}/chat")
async def submit_message(tracker_id: str, payload: ChatRequest, request: Request):
    """Submeter uma mensagem da conversa"""
    assistant = get_assistant(request)

    try:
        result = await assistant.submit(tracker_id, payload.text)
    except SubmissionRejected as e:
        raise HTTPException(status_code=409 if e.in_flight else 422, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Erro ao processar mensagem: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return result.model_dump(mode="json", by_alias=True)


@app.get("/trackers/{tracker_id}/messages")
async def list_messages(tracker_id: str, request: Request):
    """Histórico da conversa do tracker"""
    assistant = get_assistant(request)
    return {
        "messages": [m.model_dump(mode="json", by_alias=True) for m in assistant.messages(tracker_id)]
    }


@app.get("/trackers/{tracker_id}/categories")
async def list_categories(tracker_id: str, request: Request):
    """Categorias do tracker"""
    assistant = get_assistant(request)

    try:
        categories = await assistant.list_categories(tracker_id)
    except LedgerClientError as e:
        logger.error(f"❌ Erro ao carregar categorias: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {"categories": [c.model_dump(mode="json", by_alias=True) for c in categories]}


@app.post("/trackers/{tracker_id}/categories")
async def quick_add_category(tracker_id: str, payload: QuickAddRequest, request: Request):
    """Criação rápida de uma categoria ausente"""
    assistant = get_assistant(request)

    try:
        category = await assistant.quick_add_category(tracker_id, payload.name, payload.type)
    except LedgerApiError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except LedgerClientError as e:
        logger.error(f"❌ Erro ao criar categoria: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return category.model_dump(mode="json", by_alias=True)


@app.get("/usage")
async def usage(request: Request):
    """Uso do período atual"""
    assistant = get_assistant(request)
    snapshot = await assistant.usage()
    return snapshot.model_dump(mode="json", by_alias=True)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
