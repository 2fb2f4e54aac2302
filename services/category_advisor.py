"""
Orientação para falhas de interpretação causadas por categorias ausentes
"""

from typing import Optional

from loguru import logger

from models.schemas import ParseFailure, Remediation
from services.events import ChangeEvent, EventBus
from utils.helpers import dedupe_preserving_order
from utils.markup import strip_sentinel


class CategoryResolutionAdvisor:
    """Deriva atalhos de criação rápida a partir de uma falha"""

    def __init__(self, events: EventBus):
        self.events = events

    def derive_remediation(self, failure: ParseFailure) -> Remediation:
        quick_add = dedupe_preserving_order(name for name in failure.missing_categories if name)
        return Remediation(
            display_text=strip_sentinel(failure.message),
            quick_add_categories=quick_add,
        )

    async def on_category_created(self, tracker_id: Optional[str], name: str) -> None:
        """Apenas invalida caches; não reinterpreta a mensagem"""
        logger.info(f"✅ Categoria '{name}' criada, invalidando cache de categorias")
        await self.events.publish(ChangeEvent.CATEGORIES_CHANGED, tracker_id)
