"""
Histórico da conversa: sequência ordenada, somente acréscimo
"""

from datetime import datetime, timedelta
from typing import Callable, Iterator, Optional, Tuple
from uuid import uuid4

from models.schemas import Message, MessageRole
from utils.helpers import utc_now

WELCOME_MESSAGE = (
    "Hi! I'm your expense & income tracker. Just type naturally, for example:\n\n"
    "💸 Expenses:\n"
    "• \"Lunch 250 credit card\"\n"
    "• \"Groceries 1500 from UPI\"\n"
    "• \"Paid 8000 rent via net banking\"\n"
    "• \"Bought shoes 2500 and shirt 1200\"\n\n"
    "💰 Income:\n"
    "• \"Salary 50000 credited\"\n"
    "• \"Got 1200 refund from Amazon\"\n"
    "• \"Freelance payment 15000 received\"\n\n"
    "🔄 Multiple:\n"
    "• \"Salary 50k credited and spent 2000 on dinner\""
)


class MessageLog:
    """Log de mensagens em memória; append é o único modificador"""

    def __init__(self, welcome: Optional[str] = WELCOME_MESSAGE, clock: Callable[[], datetime] = utc_now):
        self._messages = []
        self._clock = clock

        if welcome:
            self.append(Message(
                id=uuid4().hex,
                role=MessageRole.ASSISTANT,
                content=welcome,
                timestamp=clock(),
            ))

    def next_timestamp(self) -> datetime:
        """Horário estritamente posterior à última mensagem"""
        now = self._clock()
        if self._messages and now <= self._messages[-1].timestamp:
            return self._messages[-1].timestamp + timedelta(microseconds=1)
        return now

    def append(self, message: Message) -> Message:
        """Acrescentar ao fim; horários fora de ordem são ajustados"""
        if self._messages and message.timestamp <= self._messages[-1].timestamp:
            message = message.model_copy(update={"timestamp": self.next_timestamp()})
        self._messages.append(message)
        return message

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
