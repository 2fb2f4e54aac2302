"""
Gravação de lotes de lançamentos no ledger
"""

from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from models.results import Failure, Result, Success
from models.schemas import CommitFailure, CommittedTransaction, DraftTransaction, FailureKind
from services.events import ChangeEvent, EventBus
from services.ledger_client import LedgerApiClient, LedgerApiError, LedgerTransportError
from utils.helpers import utc_now


class TransactionBatchCommitter:
    """Envia o lote inteiro em uma única chamada (tudo ou nada)"""

    CREATE_PATH = "/expense/create"

    def __init__(self, client: LedgerApiClient, events: EventBus):
        self.client = client
        self.events = events

    async def commit(
        self, drafts: List[DraftTransaction], tracker_id: Optional[str]
    ) -> Result[List[CommittedTransaction], CommitFailure]:
        if not drafts:
            return Success([])

        if not tracker_id:
            return Failure(CommitFailure(message="Tracker ID is required"))

        request = {
            "expenses": [d.model_dump(mode="json", by_alias=True, exclude_none=True) for d in drafts],
            "trackerId": tracker_id,
        }

        try:
            payload = await self.client.post(self.CREATE_PATH, request)
        except LedgerTransportError as e:
            return Failure(CommitFailure(kind=FailureKind.TRANSPORT, message=str(e)))
        except LedgerApiError as e:
            logger.error(f"❌ Lote recusado pelo ledger ({e.status_code}): {e}")
            return Failure(CommitFailure(message=str(e), status_code=e.status_code))

        items = payload.get("expenses")
        if not isinstance(items, list) or len(items) != len(drafts):
            logger.error(f"❌ Resposta inválida ao salvar lote de {len(drafts)} lançamento(s)")
            return Failure(CommitFailure(message="Invalid response from server"))

        try:
            committed = [self._committed_from(item, tracker_id) for item in items]
        except (ValidationError, TypeError) as e:
            logger.error(f"❌ Lançamento salvo em formato inesperado: {e}")
            return Failure(CommitFailure(message="Invalid response from server"))

        logger.info(f"✅ {len(committed)} lançamento(s) salvo(s) no tracker {tracker_id}")
        await self.events.publish(ChangeEvent.EXPENSES_CHANGED, tracker_id)
        return Success(committed)

    @staticmethod
    def _committed_from(item: dict, tracker_id: str) -> CommittedTransaction:
        data = {"trackerId": tracker_id, **item}
        if "createdAt" not in data and "timestamp" not in data:
            data["createdAt"] = utc_now()
        return CommittedTransaction.model_validate(data)
