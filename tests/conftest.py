"""
Pytest Configuration and Fixtures
==================================
Shared fixtures for the Data Chat test suite.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services import (  # noqa: E402
    AIService,
    ChatService,
    DatasetService,
    SchemaRegistry,
)


SOFTWARE_CSV = (
    b"Software,Category,Installs\n"
    b"Zoom,Productivity,500\n"
    b"Slack,Productivity,300\n"
    b"Notion,Productivity,200\n"
    b"Chess,Games,100\n"
    b"Sudoku,Games,50\n"
    b"Grep,Tools,10\n"
)


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def mock_environment(monkeypatch):
    """Keep tests off the real AI backend."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


# =============================================================================
# DATA FIXTURES
# =============================================================================

@pytest.fixture
def software_schema():
    return ["Software", "Category", "Installs"]


@pytest.fixture
def software_rows():
    return [
        {"Software": "Zoom", "Category": "Productivity", "Installs": "500"},
        {"Software": "Slack", "Category": "Productivity", "Installs": "300"},
        {"Software": "Notion", "Category": "Productivity", "Installs": "200"},
        {"Software": "Chess", "Category": "Games", "Installs": "100"},
        {"Software": "Sudoku", "Category": "Games", "Installs": "50"},
        {"Software": "Grep", "Category": "Tools", "Installs": "10"},
    ]


@pytest.fixture
def software_csv():
    return SOFTWARE_CSV


@pytest.fixture
def dataset_session(software_rows):
    session = DatasetService().create_session(software_rows, source_name="software.csv")
    yield session
    session.close()


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def chat_service(registry):
    """Chat service using rule-based translation only."""
    return ChatService(registry=registry, ai_service=AIService(use_ai=False))


# =============================================================================
# TRANSLATOR STUBS
# =============================================================================

class StubTranslator:
    """Translator double with a fixed answer or error."""

    source = "ai"

    def __init__(self, sql=None, error=None, available=True):
        self.sql = sql
        self.error = error
        self.available = available
        self.calls = []

    def is_available(self):
        return self.available

    def translate(self, question, schema):
        self.calls.append((question, tuple(schema)))
        if self.error is not None:
            raise self.error
        return self.sql


@pytest.fixture
def stub_translator():
    return StubTranslator
