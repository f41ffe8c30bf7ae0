"""
QSuite AI Service

FastAPI backend for the QSuite test management dashboard: turns free-text
requirements into structured test cases with an LLM, answers product questions,
and persists the test cases a user confirms.

Architecture Overview:
- Repository pattern for data access and external providers
- Dependency Injection through a small container and FastAPI dependencies
- Interface-based design so providers and stores can be swapped in tests

Key Features:
- AI test case generation (OpenAI or Gemini) with a tolerant response normalizer
  that salvages usable test cases from malformed model output
- AI chat assistant for QSuite product help
- Bearer-token authentication of every AI and persistence call
- All-or-nothing persistence of confirmed test cases into a category
- Audit log of AI interactions
- Async client and generator view-model for building the review/confirm screen
- Structured logging with structlog

Usage:
1. Copy .env.example to .env and set OPENAI_API_KEY (or GEMINI_API_KEY) and JWT_SECRET
2. Install dependencies: pip install -e ".[test]"
3. Run the application: python start.py
4. Access API docs at: http://localhost:8000/api/v1/docs
5. Get a local access token: python scripts/issue_dev_token.py <user-id>

API Endpoints:
- POST /api/v1/ai/generate-tests - Generate test cases from requirements
- POST /api/v1/ai/chat - Ask the QSuite assistant
- GET /api/v1/categories - List the caller's categories
- GET /api/v1/test-cases - List the caller's test cases
- POST /api/v1/test-cases/bulk - Save confirmed test cases
- GET /api/v1/health - Health check
- GET /api/v1/health/readiness - Readiness check

Architecture Components:

1. Controllers (qsuite/api/routes/):
   - Handle HTTP requests and responses
   - Map application errors onto each endpoint's error envelope

2. Services (qsuite/services/):
   - Generation and chat workflows
   - Response normalizer
   - Test case persistence rules

3. Repositories (qsuite/repositories/):
   - AI providers, token verification and SQL stores behind interfaces

4. Models (qsuite/models/):
   - Pydantic schemas for request/response
   - SQLAlchemy models for database

5. Client (qsuite/client/):
   - httpx client for the API
   - Generator view-model (idle, generating, review, saving, done)

6. Core and configuration (qsuite/core/, qsuite/config/):
   - Database, dependency injection, exceptions, JWT helpers
   - Environment-based settings
"""

__version__ = "1.0.0"
__author__ = "Team Chai"
__description__ = "AI test case generation and assistant backend for QSuite"
