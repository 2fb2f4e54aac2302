"""
Utils package - Utility functions and helpers
"""

from .helpers import format_currency, period_key, summarize_committed_batch, dedupe_preserving_order
from .markup import build_remediation_content, split_remediation_content, strip_sentinel

__all__ = [
    'format_currency',
    'period_key',
    'summarize_committed_batch',
    'dedupe_preserving_order',
    'build_remediation_content',
    'split_remediation_content',
    'strip_sentinel'
]
