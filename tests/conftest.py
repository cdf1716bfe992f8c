"""
Pytest configuration and fixtures for tubegraph tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add the repository root to path for imports
# This allows `from tubegraph.parser import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from documents import player_document as make_player_document  # noqa: E402

from tubegraph.parser import GraphBuilder  # noqa: E402
from tubegraph.session import Session  # noqa: E402


@pytest.fixture
def player_document():
    """Player page of a playable track."""
    return make_player_document()


@pytest.fixture
def builder():
    """Graph builder over the default registry."""
    return GraphBuilder()


@pytest.fixture
def mock_transport():
    """Transport double; set fetch.side_effect / return_value per test."""
    transport = AsyncMock()
    transport.fetch = AsyncMock()
    return transport


@pytest.fixture
def session(mock_transport):
    """Session over the mock transport with a fixed playback nonce."""
    return Session(mock_transport, cpn="testcpn")
