"""Categorization service: request models to CategorizationEngine calls."""

from datetime import date

from apps.api.core.errors import NotFoundError, ValidationError
from apps.api.deps import Services
from apps.api.domains.categorization.schemas import DetectRequest
from packages.categorization.constants import is_root_category
from packages.storage.models import StoredTransaction


def require_category(category: str) -> None:
    if not is_root_category(category):
        raise ValidationError(f"Unknown category: {category}")


def detect(services: Services, request: DetectRequest) -> dict:
    """Categorize a free-standing narration.

    The transaction is never stored, but the decision still writes or
    refreshes the merchant's system rule.
    """
    adapter = services.registry.find(request.bank) if request.bank else None
    txn = StoredTransaction(
        date=date.today(),
        description=request.description,
        amount=request.amount,
        transaction_type="debit" if request.amount < 0 else "credit",
        source="API",
        bank_name=adapter.bank_name if adapter else (request.bank or ""),
        account_id=request.account_id or "",
    )
    merchant_key = services.categorizer.merchant_key_for(txn)
    return {"merchant_key": merchant_key, "category": services.categorizer.detect_category(txn)}


def categorize_transaction(services: Services, transaction_id: str, category: str, save_rule: bool):
    require_category(category)
    return services.categorizer.categorize_transaction(transaction_id, category, save_rule).to_dict()


def bulk_categorize(services: Services, transaction_ids: list[str], category: str) -> dict:
    require_category(category)
    missing = [tid for tid in transaction_ids if services.store.get_transaction(tid) is None]
    if missing:
        raise NotFoundError(f"Transactions not found: {', '.join(missing)}")
    return {"updated": services.categorizer.bulk_categorize(transaction_ids, category)}


def list_rules(services: Services, merchant_key: str = None) -> list[dict]:
    if merchant_key:
        rules = services.categorizer.rules_for_merchant(merchant_key)
    else:
        rules = services.categorizer.all_rules()
    return [rule.to_dict() for rule in rules]


def delete_rule(services: Services, rule_id: str) -> None:
    if not services.categorizer.delete_rule(rule_id):
        raise NotFoundError(f"Rule not found: {rule_id}")


def categorize_merchant(services: Services, merchant_key: str, category: str, import_id=None) -> dict:
    require_category(category)
    updated = services.categorizer.categorize_merchant_transactions(merchant_key, category, import_id)
    return {"updated": updated}
