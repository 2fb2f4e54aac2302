"""
Utilidades gerais da aplicação
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Sequence

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "BRL": "R$ ",
}


def period_key(now: datetime) -> str:
    """Chave do período de cobrança (YYYY-MM, em UTC)"""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_currency(value, currency: str = "INR") -> str:
    """Formatar valor como moeda"""
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol is None:
        return f"{value:,.2f} {currency}".strip()
    return f"{symbol}{value:,.2f}"


def dedupe_preserving_order(items: Iterable[str]) -> List[str]:
    """Remover duplicados mantendo a ordem original"""
    seen = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def summarize_committed_batch(transactions: Sequence) -> str:
    """Formatar resumo de lançamentos salvos"""
    if not transactions:
        return "I couldn't find any transactions in that message."

    if len(transactions) == 1:
        item = transactions[0]
        label = "Income" if item.kind.value == "income" else "Expense"
        amount = format_currency(item.amount, item.currency)
        return f"✅ {label} logged successfully! {item.category_name} · {amount}"

    total = sum((Decimal(item.amount) for item in transactions), Decimal("0"))
    currencies = {item.currency for item in transactions}
    if len(currencies) == 1:
        total_text = format_currency(total, currencies.pop())
    else:
        total_text = f"{total:,.2f}"

    return f"✅ {len(transactions)} transactions logged successfully! Total: {total_text}"
