"""
Schemas Pydantic para validação de dados
"""

import re
from datetime import datetime
from typing import Optional, Dict, List
from decimal import Decimal
from enum import Enum

from pydantic import (
    AliasChoices,
    BaseModel,
    computed_field,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from utils.markup import split_remediation_content, strip_sentinel


class TransactionKind(str, Enum):
    """Tipo de lançamento"""
    EXPENSE = "expense"
    INCOME = "income"


class MessageRole(str, Enum):
    """Autor de uma mensagem da conversa"""
    USER = "user"
    ASSISTANT = "assistant"


class FailureKind(str, Enum):
    """Taxonomia de falhas recuperadas pelo orquestrador"""
    TRANSPORT = "transport"
    VALIDATION = "validation"
    MISSING_CATEGORY = "missing_category"
    COMMIT = "commit"


class TurnState(str, Enum):
    """Estados da máquina de estados de um turno"""
    IDLE = "idle"
    QUOTA_CHECK = "quota_check"
    BLOCKED = "blocked"
    PARSING = "parsing"
    PARSE_FAILED = "parse_failed"
    COMMITTING = "committing"
    COMMIT_FAILED = "commit_failed"
    DONE = "done"


class TransactionFields(BaseModel):
    """Campos comuns a rascunhos e lançamentos salvos"""
    model_config = ConfigDict(populate_by_name=True)

    kind: TransactionKind = Field(default=TransactionKind.EXPENSE, alias="type")
    amount: Decimal = Field(..., gt=0, description="Valor do lançamento")
    currency: str = Field(default="INR")
    category_name: str = Field(..., min_length=1, alias="category")
    subcategory_name: str = Field(..., min_length=1, alias="subcategory")
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    credit_source: Optional[str] = Field(default=None, alias="creditFrom")
    description: Optional[str] = None
    raw_input: Optional[str] = Field(default=None, alias="rawInput")

    @field_validator('amount', mode='before')
    def validate_amount(cls, v):
        if isinstance(v, str):
            cleaned = re.sub(r'[^0-9.]', '', v)
            return cleaned or v
        return v

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> float:
        return float(v)


class DraftTransaction(TransactionFields):
    """Lançamento extraído pelo serviço de interpretação, ainda não salvo"""

    @model_validator(mode='after')
    def require_funding_source(self):
        if not self.payment_method and not self.credit_source:
            raise ValueError("paymentMethod ou creditFrom é obrigatório")
        return self


class CommittedTransaction(TransactionFields):
    """Lançamento aceito pelo ledger (forma ecoada pelo servidor)"""

    id: str = Field(..., alias="id", validation_alias=AliasChoices("id", "_id"))
    tracker_id: str = Field(..., alias="trackerId")
    created_at: datetime = Field(
        ..., alias="createdAt", validation_alias=AliasChoices("createdAt", "timestamp")
    )


class ParseFailure(BaseModel):
    """Falha da interpretação, nunca confundida com sucesso"""
    model_config = ConfigDict(populate_by_name=True)

    kind: FailureKind = FailureKind.VALIDATION
    message: str
    missing_categories: List[str] = Field(default_factory=list, alias="missingCategories")


class CommitFailure(BaseModel):
    """Falha ao salvar um lote de lançamentos"""
    kind: FailureKind = FailureKind.COMMIT
    message: str
    status_code: Optional[int] = None


class Message(BaseModel):
    """Mensagem da conversa (imutável depois de criada)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    role: MessageRole
    content: str
    attached_batch: Optional[List[CommittedTransaction]] = Field(default=None, alias="attachedBatch")
    missing_categories: Optional[List[str]] = Field(default=None, alias="missingCategories")
    timestamp: datetime

    @property
    def display_text(self) -> str:
        """Texto sem o prefixo interno; o link válido é exposto à parte"""
        parts = split_remediation_content(self.content)
        if parts:
            return parts[0]
        return strip_sentinel(self.content)

    @computed_field(alias="remediationLink")
    @property
    def remediation_link(self) -> Optional[Dict[str, str]]:
        """Único link confiável da mensagem, apenas se o markup for válido"""
        parts = split_remediation_content(self.content)
        if not parts:
            return None
        _, href, label = parts
        return {"href": href, "label": label}


class UsageRecord(BaseModel):
    """Contagem de turnos por usuário e período de cobrança"""
    model_config = ConfigDict(populate_by_name=True)

    owner_user_id: str = Field(..., alias="ownerUserId")
    period_key: str = Field(..., alias="periodKey", pattern=r"^\d{4}-\d{2}$")
    total_turns: int = Field(default=0, ge=0, alias="totalTurns")
    per_tracker_turns: Dict[str, int] = Field(default_factory=dict, alias="perTrackerTurns")

    @classmethod
    def fresh(cls, owner_user_id: str, period_key: str) -> "UsageRecord":
        return cls(owner_user_id=owner_user_id, period_key=period_key)

    def belongs_to(self, owner_user_id: str, period_key: str) -> bool:
        return self.owner_user_id == owner_user_id and self.period_key == period_key


class UsageSnapshot(BaseModel):
    """Resumo de uso do período atual"""
    model_config = ConfigDict(populate_by_name=True)

    plan_tier: str = Field(..., alias="planTier")
    period_key: str = Field(..., alias="periodKey")
    total_turns: int = Field(..., alias="totalTurns")
    per_tracker_turns: Dict[str, int] = Field(default_factory=dict, alias="perTrackerTurns")
    limit: int
    remaining: int


class Remediation(BaseModel):
    """Correção sugerida para categorias ausentes"""
    display_text: str
    quick_add_categories: List[str] = Field(default_factory=list)


class Subcategory(BaseModel):
    id: str
    name: str


class Category(BaseModel):
    """Categoria de um tracker"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="id", validation_alias=AliasChoices("id", "_id"))
    tracker_id: str = Field(..., alias="trackerId")
    name: str
    type: TransactionKind = TransactionKind.EXPENSE
    subcategories: List[Subcategory] = Field(default_factory=list)


class SessionContext(BaseModel):
    """Usuário e plano da sessão atual"""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., min_length=1, alias="userId")
    plan_tier: str = Field(default="free", alias="planTier")
    auth_token: Optional[str] = Field(default=None, alias="authToken")


class TurnResult(BaseModel):
    """Resultado de um turno submetido"""
    state: TurnState
    messages: List[Message] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Mensagem enviada pelo usuário"""
    text: str = Field(..., min_length=1, max_length=500)


class QuickAddRequest(BaseModel):
    """Criação rápida de categoria ausente"""
    name: str = Field(..., min_length=1)
    type: TransactionKind = TransactionKind.EXPENSE
