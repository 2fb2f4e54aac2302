"""
Fronteira com o serviço externo de interpretação de lançamentos
"""

from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from models.results import Failure, Result, Success
from models.schemas import DraftTransaction, FailureKind, ParseFailure
from services.ledger_client import LedgerApiClient, LedgerApiError, LedgerTransportError
from utils.markup import build_remediation_content, remediation_href

RETRY_MESSAGE = "Sorry, I encountered an error. Please try again."
UNREADABLE_MESSAGE = "Could not understand the expense. Please provide at least amount and category."
DEFAULT_FAILURE_MESSAGE = "Failed to parse expense"


class ExpenseParsingGateway:
    """Transforma texto livre em lote de rascunhos ou em falha tipada"""

    PARSE_PATH = "/expense/parse"

    def __init__(self, client: LedgerApiClient, category_settings_url: str):
        self.client = client
        self.category_settings_url = category_settings_url

    async def parse_utterance(
        self, text: str, tracker_id: Optional[str]
    ) -> Result[List[DraftTransaction], ParseFailure]:
        """Interpretar mensagem; sem novas tentativas aqui"""
        logger.info(f"🧠 Interpretando mensagem: '{text[:50]}'")

        try:
            payload = await self.client.post(self.PARSE_PATH, {"input": text, "trackerId": tracker_id})
        except LedgerTransportError:
            return Failure(ParseFailure(kind=FailureKind.TRANSPORT, message=RETRY_MESSAGE))
        except LedgerApiError as e:
            return Failure(self._failure_from_payload(e.payload, tracker_id))

        expenses = payload.get("expenses")
        if "error" in payload or not isinstance(expenses, list):
            return Failure(self._failure_from_payload(payload, tracker_id))

        try:
            drafts = [DraftTransaction.model_validate({**item, "rawInput": text}) for item in expenses]
        except (ValidationError, TypeError) as e:
            logger.error(f"❌ Lançamento inválido na resposta da interpretação: {e}")
            return Failure(ParseFailure(kind=FailureKind.VALIDATION, message=UNREADABLE_MESSAGE))

        logger.info(f"✅ {len(drafts)} lançamento(s) interpretado(s)")
        return Success(drafts)

    def _failure_from_payload(self, payload: Dict[str, Any], tracker_id: Optional[str]) -> ParseFailure:
        message = payload.get("message") or payload.get("error") or DEFAULT_FAILURE_MESSAGE

        missing = payload.get("missingCategories")
        if not isinstance(missing, list) or not missing:
            logger.info(f"Interpretação recusada: {message}")
            return ParseFailure(kind=FailureKind.VALIDATION, message=message)

        missing = [str(name) for name in missing]
        logger.info(f"🏷️ Categorias ausentes: {', '.join(missing)}")

        if tracker_id:
            href = remediation_href(self.category_settings_url, tracker_id)
            message = build_remediation_content(message, href)

        return ParseFailure(
            kind=FailureKind.MISSING_CATEGORY,
            message=message,
            missing_categories=missing,
        )
