from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, DateTime

from payment_relay.database import Base


STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

DEFAULT_PAYMENT_METHOD = "CUSTOM"


def utcnow():
    return datetime.now(timezone.utc)


class Transaction(Base):
    __tablename__ = "transactions"

    order_id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    metal_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default=STATUS_PENDING)
    payment_method = Column(String, nullable=False, default=DEFAULT_PAYMENT_METHOD)
    payment_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "amount": self.amount,
            "metal_type": self.metal_type,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_id": self.payment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
