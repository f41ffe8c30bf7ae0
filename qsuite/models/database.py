from sqlalchemy import Column, ForeignKey, Integer, String, Text, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from qsuite.models.schemas import TestCaseStatus

Base = declarative_base()


class CategoryModel(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_categories_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    test_cases = relationship("TestCaseModel", back_populates="category_ref")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', user_id='{self.user_id}')>"


class TestCaseModel(Base):
    __tablename__ = "test_cases"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    scenarios = Column(JSON, nullable=False, default=list)
    # Category label suggested by the generator; category_id is the owning category
    category = Column(String(100), nullable=False)
    tags = Column(JSON, default=list)
    status = Column(String(30), nullable=False, default=TestCaseStatus.NOT_STARTED.value)
    user_id = Column(String(64), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category_ref = relationship("CategoryModel", back_populates="test_cases")

    def __repr__(self):
        return f"<TestCase(id={self.id}, name='{self.name}', status='{self.status}')>"


class AIInteractionModel(Base):
    """Append-only audit record of AI requests and responses"""

    __tablename__ = "ai_interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    message = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    context_type = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
