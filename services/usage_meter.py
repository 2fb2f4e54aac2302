"""
Medidor de uso: conta turnos de conversa por usuário e período de cobrança
e aplica o limite mensal do plano, sem consultar o servidor.
"""

from datetime import datetime
from typing import Callable, Optional

from loguru import logger
from pydantic import ValidationError

from config.settings import PlanQuota
from database.record_store import RecordStore
from models.schemas import UsageRecord, UsageSnapshot
from utils.helpers import period_key, utc_now


class UsageStorageError(Exception):
    """Falha ao persistir o registro de uso"""


class UsageMeter:
    """
    Medidor de turnos com registro único persistido por dispositivo.

    O registro é descartado (não mesclado) quando o usuário ou o período
    atual diferem dos armazenados. Leitura e gravação não são atômicas:
    record_turn relê o valor persistido imediatamente antes de gravar.
    """

    def __init__(
        self,
        store: RecordStore,
        quotas: PlanQuota,
        current_user_id: Callable[[], str],
        record_key: str = "usage_data",
    ):
        self.store = store
        self.quotas = quotas
        self.record_key = record_key
        self._current_user_id = current_user_id

    async def _load(self) -> Optional[UsageRecord]:
        """Ler o registro; erros de leitura contam como registro ausente"""
        try:
            raw = await self.store.get(self.record_key)
        except Exception as e:
            logger.warning(f"⚠️ Erro ao ler registro de uso, iniciando do zero: {e}")
            return None

        if raw is None:
            return None

        try:
            return UsageRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Registro de uso inválido, iniciando do zero: {e.error_count()} erro(s)")
            return None

    async def _persist(self, record: UsageRecord):
        try:
            await self.store.set(self.record_key, record.model_dump_json(by_alias=True))
        except Exception as e:
            logger.error(f"❌ Erro ao salvar registro de uso: {e}")
            raise UsageStorageError(str(e)) from e

    def _current_scope(self, now: Optional[datetime]):
        return self._current_user_id(), period_key(now or utc_now())

    async def _current_record(self, now: Optional[datetime]) -> Optional[UsageRecord]:
        """Registro vigente, ou None quando um reset é devido"""
        user_id, key = self._current_scope(now)
        record = await self._load()
        if record is None or not record.belongs_to(user_id, key):
            return None
        return record

    async def check_quota(self, plan_tier: str, now: Optional[datetime] = None) -> bool:
        """Retorna True se o usuário ainda pode gastar um turno neste período"""
        record = await self._current_record(now)
        if record is None:
            return True

        ceiling = self.quotas.ceiling_for(plan_tier)
        allowed = record.total_turns < ceiling
        if not allowed:
            logger.info(f"🚫 Limite do plano '{plan_tier}' atingido: {record.total_turns}/{ceiling}")
        return allowed

    async def record_turn(self, tracker_id: Optional[str] = None, now: Optional[datetime] = None) -> UsageRecord:
        """Registrar um turno, zerando o registro se usuário ou período mudaram"""
        user_id, key = self._current_scope(now)
        record = await self._load()

        if record is None or not record.belongs_to(user_id, key):
            if record is not None:
                logger.info(f"🔄 Reiniciando contagem de uso ({record.period_key} -> {key})")
            record = UsageRecord.fresh(user_id, key)

        record.total_turns += 1
        if tracker_id:
            record.per_tracker_turns[tracker_id] = record.per_tracker_turns.get(tracker_id, 0) + 1

        await self._persist(record)
        logger.debug(f"Turno registrado: {record.total_turns} no período {key}")
        return record

    async def snapshot(self, plan_tier: str, now: Optional[datetime] = None) -> UsageSnapshot:
        """Resumo do uso atual sem alterar o registro"""
        _, key = self._current_scope(now)
        record = await self._current_record(now)
        ceiling = self.quotas.ceiling_for(plan_tier)
        total = record.total_turns if record else 0

        return UsageSnapshot(
            plan_tier=plan_tier,
            period_key=key,
            total_turns=total,
            per_tracker_turns=dict(record.per_tracker_turns) if record else {},
            limit=ceiling,
            remaining=max(ceiling - total, 0),
        )
