"""
Models package - Pydantic schemas and result types
"""

from .schemas import (
    TransactionKind,
    MessageRole,
    FailureKind,
    TurnState,
    DraftTransaction,
    CommittedTransaction,
    ParseFailure,
    CommitFailure,
    Message,
    UsageRecord,
    UsageSnapshot,
    Remediation,
    Category,
    Subcategory,
    SessionContext,
    TurnResult,
    ChatRequest,
    QuickAddRequest
)
from .results import Success, Failure, Result

__all__ = [
    'TransactionKind',
    'MessageRole',
    'FailureKind',
    'TurnState',
    'DraftTransaction',
    'CommittedTransaction',
    'ParseFailure',
    'CommitFailure',
    'Message',
    'UsageRecord',
    'UsageSnapshot',
    'Remediation',
    'Category',
    'Subcategory',
    'SessionContext',
    'TurnResult',
    'ChatRequest',
    'QuickAddRequest',
    'Success',
    'Failure',
    'Result'
]
