"""
Chat package - Conversation log, turn orchestration and assistant wiring
"""

from .message_log import MessageLog, WELCOME_MESSAGE
from .orchestrator import ConversationOrchestrator, SubmissionRejected
from .assistant import ExpenseChatAssistant

__all__ = [
    'MessageLog',
    'WELCOME_MESSAGE',
    'ConversationOrchestrator',
    'SubmissionRejected',
    'ExpenseChatAssistant'
]
