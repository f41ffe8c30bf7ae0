"""
View-model for the AI test generator screen.

Owns the screen state explicitly (requirements, generated items, selection,
error, status) and talks to the backend only through ``QSuiteClient``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

import structlog

from qsuite.client.api_client import ClientError, QSuiteClient
from qsuite.models.schemas import NormalizedTestCase

logger = structlog.get_logger()


class GeneratorState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    REVIEW = "review"
    SAVING = "saving"
    DONE = "done"


class GeneratorError(Exception):
    """Generation or saving failed; the view-model keeps its state for a retry"""


@dataclass
class GeneratedItem:
    test_case: NormalizedTestCase
    selected: bool = True


@dataclass
class GeneratorViewModel:
    client: QSuiteClient
    state: GeneratorState = GeneratorState.IDLE
    requirements: str = ""
    items: List[GeneratedItem] = field(default_factory=list)
    degraded: bool = False
    error: Optional[str] = None
    created_count: int = 0
    category_id: Optional[int] = None

    @property
    def selected(self) -> List[NormalizedTestCase]:
        return [item.test_case for item in self.items if item.selected]

    async def submit(self, requirements: str, context_id: Optional[Union[int, str]] = None) -> List[NormalizedTestCase]:
        """Generate test cases; every returned case starts out selected"""
        if not requirements.strip():
            self.error = "Requirements must not be empty"
            raise GeneratorError(self.error)

        previous_state = self.state
        self.state = GeneratorState.GENERATING
        self.requirements = requirements
        self.error = None
        try:
            response = await self.client.generate_tests(requirements, context_id)
        except ClientError as e:
            self.error = e.message
            self.state = previous_state
            raise GeneratorError(e.message) from e

        self.items = [GeneratedItem(test_case) for test_case in response.test_cases]
        self.degraded = response.degraded
        self.created_count = 0
        self.category_id = None
        self.state = GeneratorState.REVIEW
        logger.info("Generated test cases ready for review", count=len(self.items), degraded=self.degraded)
        return [item.test_case for item in self.items]

    def toggle(self, index: int) -> None:
        item = self.items[index]
        item.selected = not item.selected

    def select_all(self) -> None:
        for item in self.items:
            item.selected = True

    def clear_selection(self) -> None:
        for item in self.items:
            item.selected = False

    async def confirm(self, category_id: Optional[int] = None, new_category_name: Optional[str] = None) -> int:
        """Save the selected test cases; returns the number created.

        On failure the selection is kept and the view-model stays in review so the
        user can retry.
        """
        if self.state != GeneratorState.REVIEW:
            raise GeneratorError("Nothing to save; generate test cases first")
        selected = self.selected
        if not selected:
            self.error = "Select at least one test case"
            raise GeneratorError(self.error)

        self.state = GeneratorState.SAVING
        self.error = None
        try:
            response = await self.client.create_test_cases(
                selected,
                category_id=category_id,
                new_category_name=new_category_name,
            )
        except ClientError as e:
            self.error = e.message
            self.state = GeneratorState.REVIEW
            logger.warning("Saving generated test cases failed", error=e.message, selected=len(selected))
            raise GeneratorError(e.message) from e

        self.created_count = response.count
        self.category_id = response.category_id
        self.state = GeneratorState.DONE
        return response.count

    def reset(self) -> None:
        self.state = GeneratorState.IDLE
        self.requirements = ""
        self.items = []
        self.degraded = False
        self.error = None
        self.created_count = 0
        self.category_id = None
