"""
Testes básicos da aplicação
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pydantic import ValidationError

from config.settings import PlanQuota
from models.schemas import (
    CommittedTransaction,
    DraftTransaction,
    Message,
    MessageRole,
    TransactionKind,
    UsageRecord,
)
from utils.helpers import dedupe_preserving_order, format_currency, period_key, summarize_committed_batch
from utils.markup import (
    CATEGORY_ERROR_PREFIX,
    build_remediation_content,
    is_remediation_content,
    remediation_href,
    split_remediation_content,
    strip_sentinel,
)


def committed(amount, category="Food", kind="expense", currency="INR", id_="exp-1"):
    return CommittedTransaction.model_validate({
        "id": id_,
        "type": kind,
        "amount": amount,
        "currency": currency,
        "category": category,
        "subcategory": category,
        "paymentMethod": "UPI",
        "trackerId": "t-1",
        "createdAt": "2025-06-03T10:00:00Z",
    })


class TestSchemas:
    """Testes dos schemas Pydantic"""

    def test_draft_transaction_from_wire(self):
        """Testar leitura de rascunho com nomes do servidor"""
        draft = DraftTransaction.model_validate({
            "type": "income",
            "amount": 50000,
            "category": "Salary",
            "subcategory": "Monthly",
            "creditFrom": "Employer",
        })

        assert draft.kind == TransactionKind.INCOME
        assert draft.amount == Decimal("50000")
        assert draft.category_name == "Salary"
        assert draft.credit_source == "Employer"
        assert draft.currency == "INR"

    def test_amount_validation(self):
        """Testar normalização de valor em texto"""
        draft = DraftTransaction(
            amount="₹1,250.50",
            category_name="Food",
            subcategory_name="Dinner",
            payment_method="Cash",
        )

        assert draft.amount == Decimal("1250.50")

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            DraftTransaction(amount=0, category_name="Food", subcategory_name="Dinner", payment_method="Cash")

    def test_funding_source_required(self):
        """Testar que forma de pagamento ou origem do crédito é obrigatória"""
        with pytest.raises(ValidationError):
            DraftTransaction(amount=10, category_name="Food", subcategory_name="Dinner")

    def test_wire_dump_uses_server_names(self):
        draft = DraftTransaction(amount=Decimal("99.90"), category_name="Food",
                                 subcategory_name="Snacks", payment_method="UPI")
        dumped = draft.model_dump(mode="json", by_alias=True, exclude_none=True)

        assert dumped["amount"] == 99.9
        assert dumped["category"] == "Food"
        assert dumped["paymentMethod"] == "UPI"
        assert dumped["type"] == "expense"

    def test_committed_does_not_require_funding_source(self):
        transaction = CommittedTransaction.model_validate({
            "id": "exp-1",
            "type": "income",
            "amount": 50000,
            "category": "Salary",
            "subcategory": "Monthly",
            "trackerId": "t-1",
            "createdAt": "2025-06-03T10:00:00Z",
        })

        assert transaction.credit_source is None
        assert not isinstance(transaction, DraftTransaction)

    def test_committed_accepts_mongo_id_and_timestamp(self):
        transaction = CommittedTransaction.model_validate({
            "_id": "abc",
            "amount": 10,
            "category": "Food",
            "subcategory": "Tea",
            "paymentMethod": "Cash",
            "trackerId": "t-1",
            "timestamp": "2025-06-03T10:00:00Z",
        })

        assert transaction.id == "abc"
        assert transaction.created_at.year == 2025

    def test_message_is_immutable(self):
        message = Message(id="1", role=MessageRole.USER, content="Lunch 250",
                          timestamp=datetime.now(timezone.utc))

        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_usage_record_round_trip_keys(self):
        record = UsageRecord(owner_user_id="u1", period_key="2025-06", total_turns=2,
                             per_tracker_turns={"t-1": 1})
        raw = record.model_dump_json(by_alias=True)

        assert '"ownerUserId":"u1"' in raw
        assert '"periodKey":"2025-06"' in raw
        assert UsageRecord.model_validate_json(raw) == record

    def test_usage_record_rejects_bad_period(self):
        with pytest.raises(ValidationError):
            UsageRecord(owner_user_id="u1", period_key="June")


class TestPlanQuota:
    """Testes da tabela de limites"""

    def test_lookup_is_case_insensitive(self):
        quotas = PlanQuota({"free": 50, "Pro": 500})
        assert quotas.ceiling_for("PRO") == 500
        assert quotas.ceiling_for("free") == 50

    def test_unknown_tier_uses_default(self):
        quotas = PlanQuota({"free": 50, "pro": 500})
        assert quotas.ceiling_for("enterprise") == 50
        assert quotas.ceiling_for(None) == 50

    def test_default_tier_must_exist(self):
        with pytest.raises(ValueError):
            PlanQuota({"pro": 500}, default_tier="free")

    def test_table_is_read_only(self):
        quotas = PlanQuota({"free": 50})
        with pytest.raises(TypeError):
            quotas.tiers["free"] = 1000


class TestUtils:
    """Testes das funções utilitárias"""

    def test_period_key(self):
        assert period_key(datetime(2025, 6, 3, 10, 0)) == "2025-06"

    def test_period_key_uses_utc(self):
        local = datetime(2025, 6, 30, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert period_key(local) == "2025-07"

    def test_format_currency(self):
        assert format_currency(Decimal("1250.5")) == "₹1,250.50"
        assert format_currency(25.5, "USD") == "$25.50"
        assert format_currency(10, "XYZ") == "10.00 XYZ"

    def test_dedupe_preserving_order(self):
        assert dedupe_preserving_order(["Travel", "Gifts", "Travel"]) == ["Travel", "Gifts"]

    def test_single_item_summary(self):
        summary = summarize_committed_batch([committed(250, "Food")])
        assert summary == "✅ Expense logged successfully! Food · ₹250.00"

    def test_single_income_summary(self):
        summary = summarize_committed_batch([committed(50000, "Salary", kind="income")])
        assert summary.startswith("✅ Income logged successfully!")

    def test_multi_item_summary(self):
        summary = summarize_committed_batch([
            committed(2500, "Shopping", id_="a"),
            committed(1200, "Shopping", id_="b"),
        ])
        assert summary == "✅ 2 transactions logged successfully! Total: ₹3,700.00"

    def test_multi_item_mixed_currency_summary(self):
        summary = summarize_committed_batch([
            committed(10, currency="USD", id_="a"),
            committed(20, currency="INR", id_="b"),
        ])
        assert summary.endswith("Total: 30.00")


class TestRemediationMarkup:
    """Testes do único link confiável permitido em mensagens"""

    def test_build_and_split(self):
        href = remediation_href("/tracker/{tracker_id}/settings?tab=categories", "t-1")
        content = build_remediation_content("Please add these categories first: Travel", href)

        assert content.startswith(CATEGORY_ERROR_PREFIX)
        text, parsed_href, label = split_remediation_content(content)
        assert text == "Please add these categories first: Travel"
        assert parsed_href == "/tracker/t-1/settings?tab=categories"
        assert label == "Manage categories"

    def test_message_markup_is_escaped(self):
        content = build_remediation_content("<script>alert(1)</script>", "/tracker/t-1/settings")

        assert "<script>" not in content
        text, _, _ = split_remediation_content(content)
        assert text == "<script>alert(1)</script>"

    def test_tracker_id_is_url_quoted(self):
        href = remediation_href("/tracker/{tracker_id}/settings", "a/b c")
        assert href == "/tracker/a%2Fb%20c/settings"

    def test_rejects_unsafe_targets(self):
        with pytest.raises(ValueError):
            build_remediation_content("x", "javascript:alert(1)")
        with pytest.raises(ValueError):
            build_remediation_content("x", "//evil.example/steal")

    def test_plain_text_is_never_trusted(self):
        assert not is_remediation_content('Hello <a href="/x">click</a>')
        assert not is_remediation_content(
            CATEGORY_ERROR_PREFIX + 'a <a href="/x">one</a> <a href="/y">two</a>'
        )
        assert not is_remediation_content(
            CATEGORY_ERROR_PREFIX + '<b>bold</b> <a href="/x">one</a>'
        )

    def test_message_exposes_valid_link(self):
        content = build_remediation_content("Please add these categories first: Travel", "/tracker/t-1/settings")
        message = Message(id="1", role=MessageRole.ASSISTANT, content=content,
                          timestamp=datetime.now(timezone.utc))

        assert message.display_text == "Please add these categories first: Travel"
        assert message.remediation_link == {"href": "/tracker/t-1/settings", "label": "Manage categories"}
        assert message.model_dump(by_alias=True)["remediationLink"]["href"] == "/tracker/t-1/settings"

    def test_message_with_forged_link_has_none(self):
        content = CATEGORY_ERROR_PREFIX + 'Click <a href="javascript:alert(1)">here</a>'
        message = Message(id="1", role=MessageRole.ASSISTANT, content=content,
                          timestamp=datetime.now(timezone.utc))

        assert message.remediation_link is None
        assert message.display_text == 'Click <a href="javascript:alert(1)">here</a>'

    def test_user_text_never_gets_link(self):
        message = Message(id="1", role=MessageRole.USER, content='see <a href="/x">this</a>',
                          timestamp=datetime.now(timezone.utc))

        assert message.remediation_link is None

    def test_strip_sentinel(self):
        assert strip_sentinel(CATEGORY_ERROR_PREFIX + "text") == "text"
        assert strip_sentinel("text") == "text"
