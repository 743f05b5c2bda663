"""
Transaction store adapter.

A thin contract over the `transactions` table. Every method returns a
StoreResult; SQLAlchemy errors are caught, rolled back and reported as
failures. An update that matches no row succeeds with an empty list.
"""
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from payment_relay import models

logger = structlog.get_logger(component="transaction_store")


class StoreResult:
    def __init__(self, success: bool, data: Any = None, error: Optional[Dict[str, Any]] = None):
        self.success = success
        self.data = data
        self.error = error


def _error_payload(e: SQLAlchemyError) -> Dict[str, Any]:
    return {"code": e.__class__.__name__, "message": str(getattr(e, "orig", None) or e)}


class TransactionStore:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, e: SQLAlchemyError, **context) -> StoreResult:
        self.db.rollback()
        payload = _error_payload(e)
        logger.error("store_operation_failed", operation=operation, error=payload, **context)
        return StoreResult(False, error=payload)

    def insert(self, row: Dict[str, Any]) -> StoreResult:
        try:
            txn = models.Transaction(**row)
            self.db.add(txn)
            self.db.commit()
            self.db.refresh(txn)
        except SQLAlchemyError as e:
            return self._fail("insert", e, order_id=row.get("order_id"))
        return StoreResult(True, data=txn.to_dict())

    def update_by_order_id(self, order_id: str, fields: Dict[str, Any]) -> StoreResult:
        """Returns the updated rows; an unknown order id yields an empty list."""
        try:
            rows = self.db.query(models.Transaction).filter(
                models.Transaction.order_id == order_id
            ).all()
            for txn in rows:
                for key, value in fields.items():
                    setattr(txn, key, value)
            self.db.commit()
            updated = [txn.to_dict() for txn in rows]
        except SQLAlchemyError as e:
            return self._fail("update", e, order_id=order_id)

        if not updated:
            logger.warning("store_update_matched_nothing", order_id=order_id)
        return StoreResult(True, data=updated)

    def get_by_order_id(self, order_id: str) -> StoreResult:
        try:
            txn = self.db.query(models.Transaction).filter(
                models.Transaction.order_id == order_id
            ).first()
        except SQLAlchemyError as e:
            return self._fail("select", e, order_id=order_id)
        return StoreResult(True, data=txn.to_dict() if txn else None)

    def list_by_user_id(self, user_id: str) -> StoreResult:
        """Newest first."""
        try:
            rows: List[models.Transaction] = self.db.query(models.Transaction).filter(
                models.Transaction.user_id == user_id
            ).order_by(models.Transaction.created_at.desc()).all()
        except SQLAlchemyError as e:
            return self._fail("select_by_user", e, user_id=user_id)
        return StoreResult(True, data=[txn.to_dict() for txn in rows])
