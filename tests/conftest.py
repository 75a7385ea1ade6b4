"""Shared pytest configuration and fixtures for the Marking Time test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def isolated_state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep every test away from the real ~/.marking_time directory."""
    state_dir = tmp_path / "state"
    monkeypatch.setenv("MARKING_TIME_STATE_DIR", str(state_dir))
    monkeypatch.setattr("marking_time.core.paths.USER_STATE_DIR", state_dir)
    monkeypatch.setattr("marking_time.core.paths.SETTINGS_FILE", state_dir / "settings.json")
    monkeypatch.setattr("marking_time.core.paths.EXPORTS_DIR", state_dir / "exports")
    monkeypatch.setattr("marking_time.core.paths.MASTER_LOG_FILE", state_dir / "logs" / "marking_time.log")
    return state_dir

