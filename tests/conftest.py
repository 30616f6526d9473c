"""
Pytest configuration and shared fixtures for the buildwatch test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the buildwatch project.
"""

import shlex
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_watcher_data() -> Dict[str, Any]:
    """Sample [watcher] table for testing."""
    return {
        "output_buffer_limit_bytes": 2048000,
        "termination_grace_seconds": 2.0,
        "log_level": "debug",
        "restart_on_failure": 2,
        "restart_delay_seconds": 0.5,
    }


@pytest.fixture
def sample_profiles_data() -> List[Dict[str, Any]]:
    """Sample [[profiles]] tables for testing."""
    return [
        {
            "name": "frontend",
            "command": "npx ng build",
            "output_path": "/var/www/html/app",
            "base_href": "/app/",
            "watch": True,
            "description": "Angular front end in watch mode",
        },
        {
            "name": "frontend-once",
            "command": "npx ng build",
            "arguments": ["--configuration", "production"],
            "output_path": "/var/www/html/app",
            "watch": False,
        },
    ]


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_watcher_data, sample_profiles_data):
    """Create temporary configuration files for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    config_data = {
        "watcher": sample_watcher_data,
        "paths": {"profiles_config": "profiles.toml"},
    }
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    profiles_file = temp_dir / "profiles.toml"
    with open(profiles_file, "w") as f:
        toml.dump({"profiles": sample_profiles_data}, f)

    return {
        "config": config_file,
        "profiles": profiles_file,
        "dir": temp_dir,
    }


# ============================================================================
# Test Utilities
# ============================================================================


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def python_command(script: str) -> Dict[str, Any]:
        """BuildInvocation keyword arguments running ``script`` in this interpreter."""
        return {"command": shlex.quote(sys.executable), "arguments": ["-c", script]}

    @staticmethod
    def write_script(directory: Path, name: str, body: str) -> Path:
        """Write an executable POSIX shell script and return its path."""
        script = directory / name
        script.write_text("#!/bin/sh\n" + body)
        script.chmod(0o755)
        return script


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from buildwatch.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
