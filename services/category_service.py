"""
Serviço de categorias do tracker, com cache local
"""

from typing import Dict, List, Optional
from uuid import uuid4

from loguru import logger

from models.schemas import Category, TransactionKind
from services.category_advisor import CategoryResolutionAdvisor
from services.events import ChangeEvent, EventBus
from services.ledger_client import LedgerApiClient


class CategoryService:
    """Listagem e criação rápida de categorias"""

    LIST_PATH = "/category/all"
    CREATE_PATH = "/category/create"

    def __init__(self, client: LedgerApiClient, events: EventBus, advisor: CategoryResolutionAdvisor):
        self.client = client
        self.advisor = advisor
        self._cache: Dict[str, List[Category]] = {}
        events.subscribe(ChangeEvent.CATEGORIES_CHANGED, self._invalidate)

    def _invalidate(self, event: ChangeEvent, tracker_id: Optional[str]):
        if tracker_id is None:
            self._cache.clear()
        else:
            self._cache.pop(tracker_id, None)

    def is_cached(self, tracker_id: str) -> bool:
        return tracker_id in self._cache

    async def list_categories(self, tracker_id: str, refresh: bool = False) -> List[Category]:
        """Categorias do tracker (do cache quando possível)"""
        if not refresh and tracker_id in self._cache:
            return self._cache[tracker_id]

        payload = await self.client.get(self.LIST_PATH, {"trackerId": tracker_id})
        categories = [
            Category.model_validate({"trackerId": tracker_id, **item})
            for item in payload.get("categories") or []
        ]

        self._cache[tracker_id] = categories
        logger.info(f"📂 {len(categories)} categoria(s) carregada(s) para o tracker {tracker_id}")
        return categories

    async def create_category(
        self, tracker_id: str, name: str, kind: TransactionKind = TransactionKind.EXPENSE
    ) -> Category:
        """Criação rápida de uma categoria ausente"""
        payload = await self.client.post(self.CREATE_PATH, {
            "trackerId": tracker_id,
            "name": name,
            "type": kind.value,
            "subcategories": [{"id": uuid4().hex, "name": name}],
        })

        created = payload.get("category") or payload
        category = Category.model_validate({
            "trackerId": tracker_id,
            "name": name,
            "type": kind.value,
            **created,
        })

        await self.advisor.on_category_created(tracker_id, name)
        return category
