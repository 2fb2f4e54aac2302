"""
Máquina de estados de um turno de conversa:

Idle -> QuotaCheck -> Blocked -> Idle
                   -> Parsing -> ParseFailed -> Idle
                              -> Committing -> CommitFailed -> Idle
                                            -> Done -> Idle
"""

import asyncio
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from loguru import logger

from chat.message_log import MessageLog
from models.results import Failure
from models.schemas import (
    CommittedTransaction,
    FailureKind,
    Message,
    MessageRole,
    ParseFailure,
    SessionContext,
    TurnResult,
    TurnState,
)
from services.batch_committer import TransactionBatchCommitter
from services.category_advisor import CategoryResolutionAdvisor
from services.parsing_gateway import RETRY_MESSAGE, ExpenseParsingGateway
from services.usage_meter import UsageMeter, UsageStorageError
from utils.helpers import summarize_committed_batch, utc_now
from utils.markup import is_remediation_content

QUOTA_EXCEEDED_MESSAGE = (
    "⚠️ You've reached your monthly message limit. Please upgrade your subscription plan "
    "to continue using AI features. Visit the Usage page to see available plans."
)
COMMIT_FAILED_MESSAGE = "⚠️ I understood your message but couldn't save it. Please try again."
EMPTY_BATCH_MESSAGE = (
    "I couldn't find any transactions in that message. "
    "Try something like \"Lunch 250 credit card\"."
)


class SubmissionRejected(Exception):
    """Submissão recusada antes de iniciar o turno"""

    def __init__(self, message: str, in_flight: bool = False):
        super().__init__(message)
        self.in_flight = in_flight


class ConversationOrchestrator:
    """Conduz cada submissão do usuário pelo medidor, interpretação e gravação"""

    def __init__(
        self,
        tracker_id: Optional[str],
        meter: UsageMeter,
        log: MessageLog,
        gateway: ExpenseParsingGateway,
        advisor: CategoryResolutionAdvisor,
        committer: TransactionBatchCommitter,
        session: Callable[[], SessionContext],
        clock: Callable[[], datetime] = utc_now,
        meter_lock: Optional[asyncio.Lock] = None,
    ):
        self.tracker_id = tracker_id
        self.meter = meter
        self.log = log
        self.gateway = gateway
        self.advisor = advisor
        self.committer = committer
        self._session = session
        self._clock = clock
        # compartilhado por todos os orquestradores que usam o mesmo medidor
        self._meter_lock = meter_lock or asyncio.Lock()
        self._in_flight = False
        self._logger = logger.bind(tracker_id=tracker_id or "-")
        self.state = TurnState.IDLE

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _transition(self, state: TurnState):
        self._logger.debug(f"Turno: {self.state.value} -> {state.value}")
        self.state = state

    def _append(
        self,
        role: MessageRole,
        content: str,
        attached_batch: Optional[List[CommittedTransaction]] = None,
        missing_categories: Optional[List[str]] = None,
    ) -> Message:
        return self.log.append(Message(
            id=uuid4().hex,
            role=role,
            content=content,
            attached_batch=attached_batch,
            missing_categories=missing_categories,
            timestamp=self.log.next_timestamp(),
        ))

    async def submit(self, text: str) -> TurnResult:
        """Processar uma submissão; só uma pode estar em andamento"""
        if self._in_flight:
            raise SubmissionRejected("A message is already being processed", in_flight=True)

        text = (text or "").strip()
        if not text:
            raise SubmissionRejected("Message is empty")

        self._in_flight = True
        first_new = len(self.log)
        try:
            final_state = await self._run_turn(text)
        finally:
            self._transition(TurnState.IDLE)
            self._in_flight = False

        return TurnResult(state=final_state, messages=list(self.log.messages[first_new:]))

    async def _run_turn(self, text: str) -> TurnState:
        now = self._clock()
        session = self._session()

        self._transition(TurnState.QUOTA_CHECK)
        async with self._meter_lock:
            if not await self.meter.check_quota(session.plan_tier, now):
                self._transition(TurnState.BLOCKED)
                self._logger.info(f"🚫 Submissão bloqueada pelo limite do plano '{session.plan_tier}'")
                self._append(MessageRole.ASSISTANT, QUOTA_EXCEEDED_MESSAGE)
                return TurnState.BLOCKED

            self._append(MessageRole.USER, text)

            try:
                await self.meter.record_turn(self.tracker_id, now)
            except UsageStorageError as e:
                self._logger.error(f"❌ Turno não registrado no medidor: {e}")

        self._transition(TurnState.PARSING)
        parsed = await self.gateway.parse_utterance(text, self.tracker_id)
        if isinstance(parsed, Failure):
            self._transition(TurnState.PARSE_FAILED)
            self._append_parse_failure(parsed.error)
            return TurnState.PARSE_FAILED

        drafts = parsed.value
        if not drafts:
            self._transition(TurnState.DONE)
            self._append(MessageRole.ASSISTANT, EMPTY_BATCH_MESSAGE)
            return TurnState.DONE

        self._transition(TurnState.COMMITTING)
        committed = await self.committer.commit(drafts, self.tracker_id)
        if isinstance(committed, Failure):
            self._transition(TurnState.COMMIT_FAILED)
            if committed.error.kind == FailureKind.TRANSPORT:
                self._append(MessageRole.ASSISTANT, RETRY_MESSAGE)
            else:
                self._append(MessageRole.ASSISTANT, COMMIT_FAILED_MESSAGE)
            return TurnState.COMMIT_FAILED

        batch = committed.value
        self._transition(TurnState.DONE)
        self._logger.info(f"✅ Turno concluído com {len(batch)} lançamento(s)")
        self._append(MessageRole.ASSISTANT, summarize_committed_batch(batch), attached_batch=batch)
        return TurnState.DONE

    def _append_parse_failure(self, failure: ParseFailure):
        if failure.kind != FailureKind.MISSING_CATEGORY:
            self._append(MessageRole.ASSISTANT, failure.message)
            return

        remediation = self.advisor.derive_remediation(failure)
        # o prefixo sentinela só é mantido quando carrega um link válido
        if is_remediation_content(failure.message):
            content = failure.message
        else:
            content = remediation.display_text

        self._logger.info(f"🏷️ Sugeridas {len(remediation.quick_add_categories)} categoria(s) para criação rápida")
        self._append(
            MessageRole.ASSISTANT,
            content,
            missing_categories=remediation.quick_add_categories,
        )
