"""
Configurações da aplicação
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict


class Settings(BaseSettings):
    """Configurações da aplicação"""

    app_name: str = Field(default="Chat Ledger Assistant")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")

    api_base_url: str = Field(default="http://localhost:5000/api", description="URL base da API do ledger")
    api_token: Optional[str] = Field(default=None, description="Token Bearer da sessão")
    request_timeout: float = Field(default=30.0, description="Timeout das requisições em segundos")
    connect_timeout: float = Field(default=10.0)

    usage_database_url: str = Field(default="sqlite:///./chat_ledger.db")
    usage_record_key: str = Field(default="usage_data")

    plan_quotas: Dict[str, int] = Field(
        default={"free": 50, "pro": 500, "businesspro": 2000},
        description="Limite mensal de turnos por plano"
    )
    default_plan_tier: str = Field(default="free")

    category_settings_url: str = Field(
        default="/tracker/{tracker_id}/settings?tab=categories",
        description="Destino do link de correção de categorias"
    )

    default_user_id: str = Field(default="local-user")

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


class PlanQuota:
    """Tabela imutável de plano -> limite mensal de turnos"""

    def __init__(self, quotas: Mapping[str, int], default_tier: str = "free"):
        normalized = {tier.lower(): int(limit) for tier, limit in quotas.items()}
        if default_tier.lower() not in normalized:
            raise ValueError(f"Plano padrão '{default_tier}' ausente da tabela de limites")

        self._quotas = MappingProxyType(normalized)
        self.default_tier = default_tier.lower()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlanQuota":
        return cls(settings.plan_quotas, settings.default_plan_tier)

    def ceiling_for(self, plan_tier: Optional[str]) -> int:
        """Limite do plano; planos desconhecidos usam o plano padrão"""
        tier = (plan_tier or self.default_tier).lower()
        return self._quotas.get(tier, self._quotas[self.default_tier])

    @property
    def tiers(self) -> Mapping[str, int]:
        return self._quotas


@lru_cache()
def get_settings() -> Settings:
    """Obter configurações (cached)"""
    return Settings()
