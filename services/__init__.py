"""
Services package - Metering, ledger boundaries and change notifications
"""

from .events import EventBus, ChangeEvent
from .ledger_client import LedgerApiClient, LedgerClientError, LedgerApiError, LedgerTransportError
from .usage_meter import UsageMeter, UsageStorageError
from .parsing_gateway import ExpenseParsingGateway
from .category_advisor import CategoryResolutionAdvisor
from .category_service import CategoryService
from .batch_committer import TransactionBatchCommitter

__all__ = [
    'EventBus',
    'ChangeEvent',
    'LedgerApiClient',
    'LedgerClientError',
    'LedgerApiError',
    'LedgerTransportError',
    'UsageMeter',
    'UsageStorageError',
    'ExpenseParsingGateway',
    'CategoryResolutionAdvisor',
    'CategoryService',
    'TransactionBatchCommitter'
]
