"""
Serviço de publicação/assinatura de sinais de mudança
"""

import inspect
from collections import defaultdict
from enum import Enum
from typing import Callable, Dict, List, Optional

from loguru import logger


class ChangeEvent(str, Enum):
    """Sinais disparados para que outras telas se atualizem"""
    EXPENSES_CHANGED = "expenses-changed"
    CATEGORIES_CHANGED = "categories-changed"


# handler(evento, tracker_id); pode ser síncrono ou assíncrono
Handler = Callable[[ChangeEvent, Optional[str]], object]


class EventBus:
    """Barramento explícito de sinais, injetado em quem publica ou assina"""

    def __init__(self):
        self._subscribers: Dict[ChangeEvent, List[Handler]] = defaultdict(list)

    def subscribe(self, event: ChangeEvent, handler: Handler) -> Callable[[], None]:
        """Assinar um sinal; retorna a função que cancela a assinatura"""
        self._subscribers[event].append(handler)

        def unsubscribe():
            if handler in self._subscribers[event]:
                self._subscribers[event].remove(handler)

        return unsubscribe

    def subscriber_count(self, event: ChangeEvent) -> int:
        return len(self._subscribers[event])

    async def publish(self, event: ChangeEvent, tracker_id: Optional[str] = None) -> int:
        """Notificar assinantes; falha de um assinante não interrompe os demais"""
        notified = 0
        for handler in list(self._subscribers[event]):
            try:
                result = handler(event, tracker_id)
                if inspect.isawaitable(result):
                    await result
                notified += 1
            except Exception as e:
                logger.error(f"❌ Erro no assinante de '{event.value}': {e}")

        logger.debug(f"Sinal '{event.value}' entregue a {notified} assinante(s)")
        return notified
