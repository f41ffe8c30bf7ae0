from typing import List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog
from qsuite.core.exceptions import NotFoundError, PersistenceError
from qsuite.repositories.interfaces.test_case_repository import ITestCaseRepository
from qsuite.models.database import CategoryModel, TestCaseModel
from qsuite.models.schemas import Category, NormalizedTestCase, PersistedTestCase, TestCaseStatus

logger = structlog.get_logger()


class SQLTestCaseRepository(ITestCaseRepository):
    """SQLAlchemy implementation of the category/test case repository"""

    def __init__(self, db: Session):
        self.db = db

    async def list_categories(self, user_id: str) -> List[Category]:
        """Get the user's categories ordered by name"""
        rows = (
            self.db.query(CategoryModel)
            .filter(CategoryModel.user_id == user_id)
            .order_by(CategoryModel.name)
            .all()
        )
        return [Category.model_validate(row) for row in rows]

    async def get_category(self, user_id: str, category_id: int) -> Optional[Category]:
        row = self._find_category(user_id, category_id)
        return Category.model_validate(row) if row else None

    async def list_test_cases(self, user_id: str, category_id: Optional[int] = None) -> List[PersistedTestCase]:
        query = self.db.query(TestCaseModel).filter(TestCaseModel.user_id == user_id)
        if category_id is not None:
            query = query.filter(TestCaseModel.category_id == category_id)
        return [PersistedTestCase.model_validate(row) for row in query.order_by(TestCaseModel.id).all()]

    async def bulk_create(
        self,
        user_id: str,
        test_cases: List[NormalizedTestCase],
        category_id: Optional[int] = None,
        category_name: Optional[str] = None,
    ) -> Tuple[Category, List[PersistedTestCase]]:
        if (category_id is None) == (category_name is None):
            raise ValueError("Exactly one of category_id or category_name is required")

        try:
            if category_id is not None:
                category = self._find_category(user_id, category_id)
                if category is None:
                    raise NotFoundError(
                        f"Category {category_id} not found",
                        resource_type="category",
                        resource_id=category_id,
                    )
            else:
                category = self._get_or_create_category(user_id, category_name)

            rows = [
                TestCaseModel(
                    name=test_case.name,
                    description=test_case.description,
                    scenarios=list(test_case.scenarios),
                    category=test_case.category,
                    tags=list(test_case.tags),
                    status=TestCaseStatus.NOT_STARTED.value,
                    user_id=user_id,
                    category_id=category.id,
                )
                for test_case in test_cases
            ]
            self.db.add_all(rows)
            self.db.commit()
        except NotFoundError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Bulk test case insert failed", user_id=user_id, error=str(e))
            raise PersistenceError("Failed to create test cases", operation="bulk_create") from e

        self.db.refresh(category)
        for row in rows:
            self.db.refresh(row)
        logger.info("Test cases created", user_id=user_id, category_id=category.id, count=len(rows))
        return Category.model_validate(category), [PersistedTestCase.model_validate(row) for row in rows]

    def _find_category(self, user_id: str, category_id: int) -> Optional[CategoryModel]:
        return (
            self.db.query(CategoryModel)
            .filter(CategoryModel.id == category_id, CategoryModel.user_id == user_id)
            .first()
        )

    def _get_or_create_category(self, user_id: str, name: str) -> CategoryModel:
        # Flushed but not committed: rolled back together with the test cases on failure
        existing = (
            self.db.query(CategoryModel)
            .filter(CategoryModel.user_id == user_id, CategoryModel.name == name)
            .first()
        )
        if existing:
            return existing
        category = CategoryModel(name=name, user_id=user_id)
        self.db.add(category)
        self.db.flush()
        return category
