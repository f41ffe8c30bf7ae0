from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from typing import Annotated, List, Optional, Union
from datetime import datetime, timezone
from enum import Enum


NAME_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500
SCENARIO_MAX_LENGTH = 300

DEFAULT_CATEGORY = "AI Generated"
DEFAULT_TAG = "ai-generated"


class ContextType(str, Enum):
    TEST_GENERATION = "test_generation"
    TEST_OPTIMIZATION = "test_optimization"
    GENERAL_CHAT = "general_chat"
    PRODUCT_HELP = "product_help"


class ActionType(str, Enum):
    PRODUCT_HELP = "product_help"
    FEATURE_GUIDANCE = "feature_guidance"
    ERROR = "error"


class TestCaseStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    PASSED = "Passed"
    FAILED = "Failed"
    BLOCKED = "Blocked"


# A single step; blank and overlong steps are rejected rather than stored
Scenario = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=SCENARIO_MAX_LENGTH)]


class NormalizedTestCase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, description="Test case name")
    description: str = Field(..., max_length=DESCRIPTION_MAX_LENGTH, description="What the test case validates")
    scenarios: List[Scenario] = Field(..., min_length=1, description="Ordered steps/scenarios")
    category: str = Field(default=DEFAULT_CATEGORY, description="Suggested category label")
    tags: List[str] = Field(default_factory=lambda: [DEFAULT_TAG], description="Tags for categorization")


class GenerationContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: Optional[Union[int, str]] = Field(None, alias="fileId", description="Associated file identifier")
    format: Optional[str] = Field(None, description="Preferred output format hint")


class GenerateTestsRequest(BaseModel):
    # Blank/missing requirements are rejected by the generation service after authentication
    requirements: str = Field(default="", description="Free-text requirements to generate test cases for")
    context: Optional[GenerationContext] = None


class GenerateTestsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    test_cases: List[NormalizedTestCase] = Field(default_factory=list, alias="testCases")
    count: int = 0
    degraded: bool = Field(False, description="True when the cases were salvaged from non-JSON provider output")


class GenerateTestsErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    test_cases: List[NormalizedTestCase] = Field(default_factory=list, alias="testCases")


class ChatContext(BaseModel):
    type: Optional[ContextType] = None


class ChatRequest(BaseModel):
    message: str = Field(default="", description="User message for the assistant")
    context: Optional[ChatContext] = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    message: str
    action_type: ActionType = Field(ActionType.PRODUCT_HELP, alias="actionType")


class ChatErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    action_type: ActionType = Field(ActionType.ERROR, alias="actionType")


class AuthenticatedUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


class InteractionLogEntry(BaseModel):
    user_id: str
    message: str
    response: str
    context_type: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    user_id: str = Field(..., alias="userId")
    created_at: datetime = Field(..., alias="createdAt")


class PersistedTestCase(NormalizedTestCase):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: str = Field(..., alias="userId")
    category_id: int = Field(..., alias="categoryId")
    status: TestCaseStatus = TestCaseStatus.NOT_STARTED
    created_at: datetime = Field(..., alias="createdAt")


class BulkCreateTestCasesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    test_cases: List[NormalizedTestCase] = Field(..., min_length=1, alias="testCases")
    category_id: Optional[int] = Field(None, alias="categoryId", description="Existing category to attach to")
    new_category_name: Optional[str] = Field(
        None, alias="newCategoryName", max_length=100, description="Create this category and attach to it"
    )


class BulkCreateTestCasesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    count: int
    category_id: int = Field(..., alias="categoryId")
    test_cases: List[PersistedTestCase] = Field(default_factory=list, alias="testCases")
