from sqlalchemy import Column, Integer, String, Boolean, DateTime, CheckConstraint, func
from storefront.core.db import Base

class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)  # always upper-case
    percentage = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("percentage >= 1 AND percentage <= 100", name="check_discount_percentage_range"),
        CheckConstraint("current_uses >= 0", name="check_discount_uses_non_negative"),
    )

    def __repr__(self):
        return f"<DiscountCode(id={self.id}, code='{self.code}', percentage={self.percentage})>"
