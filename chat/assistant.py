"""
Assistente de lançamentos por conversa: monta os serviços e mantém
uma conversa (log + orquestrador) por tracker
"""

import asyncio
from datetime import datetime
from typing import Callable, Dict, List, Optional

import httpx
from loguru import logger

from chat.message_log import MessageLog
from chat.orchestrator import ConversationOrchestrator
from config.settings import PlanQuota, Settings, get_settings
from database.record_store import RecordStore, SQLRecordStore
from models.schemas import (
    Category,
    Message,
    SessionContext,
    TransactionKind,
    TurnResult,
    UsageSnapshot,
)
from services.batch_committer import TransactionBatchCommitter
from services.category_advisor import CategoryResolutionAdvisor
from services.category_service import CategoryService
from services.events import EventBus
from services.ledger_client import LedgerApiClient
from services.parsing_gateway import ExpenseParsingGateway
from services.usage_meter import UsageMeter
from utils.helpers import utc_now


class ExpenseChatAssistant:
    """Assistente principal"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[RecordStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self.session = SessionContext(
            user_id=self.settings.default_user_id,
            plan_tier=self.settings.default_plan_tier,
            auth_token=self.settings.api_token,
        )

        self.events = EventBus()
        self.client = LedgerApiClient(self.settings, token=self.session.auth_token, transport=transport)
        self.store = store or SQLRecordStore()

        self.meter = UsageMeter(
            self.store,
            PlanQuota.from_settings(self.settings),
            current_user_id=lambda: self.session.user_id,
            record_key=self.settings.usage_record_key,
        )
        self.gateway = ExpenseParsingGateway(self.client, self.settings.category_settings_url)
        self.advisor = CategoryResolutionAdvisor(self.events)
        self.committer = TransactionBatchCommitter(self.client, self.events)
        self.categories = CategoryService(self.client, self.events, self.advisor)

        self._conversations: Dict[str, ConversationOrchestrator] = {}
        # um único medidor, logo uma única trava para verificação + registro
        self._meter_lock = asyncio.Lock()

    async def setup(self):
        """Configurar assistente"""
        logger.info(f"✅ Assistente configurado para a API {self.client.base_url}")

    def switch_session(self, session: SessionContext):
        """Trocar usuário/plano; o medidor zera na próxima verificação"""
        if session.user_id != self.session.user_id:
            logger.info(f"🔄 Troca de conta: {self.session.user_id} -> {session.user_id}")
        self.session = session
        self.client.set_token(session.auth_token)

    def conversation(self, tracker_id: str) -> ConversationOrchestrator:
        """Orquestrador do tracker (criado na primeira utilização)"""
        if tracker_id not in self._conversations:
            self._conversations[tracker_id] = ConversationOrchestrator(
                tracker_id=tracker_id,
                meter=self.meter,
                log=MessageLog(clock=self.clock),
                gateway=self.gateway,
                advisor=self.advisor,
                committer=self.committer,
                session=lambda: self.session,
                clock=self.clock,
                meter_lock=self._meter_lock,
            )
        return self._conversations[tracker_id]

    async def submit(self, tracker_id: str, text: str) -> TurnResult:
        return await self.conversation(tracker_id).submit(text)

    def messages(self, tracker_id: str) -> List[Message]:
        return list(self.conversation(tracker_id).log.messages)

    async def usage(self) -> UsageSnapshot:
        return await self.meter.snapshot(self.session.plan_tier, self.clock())

    async def list_categories(self, tracker_id: str) -> List[Category]:
        return await self.categories.list_categories(tracker_id)

    async def quick_add_category(
        self, tracker_id: str, name: str, kind: TransactionKind = TransactionKind.EXPENSE
    ) -> Category:
        return await self.categories.create_category(tracker_id, name, kind)

    async def stop(self):
        """Parar assistente"""
        await self.client.close()
        logger.info("Assistente parado")
