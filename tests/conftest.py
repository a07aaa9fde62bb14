#!/usr/bin/env python3

"""
Pytest configuration and shared fixtures for pacman-mirrorlist test suite.
"""

import os
import sys
import tempfile
import pytest
from unittest.mock import Mock
from pathlib import Path

# Add src to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from pacman_mirrorlist.config.manager import ConfigManager, MirrorlistConfig


SAMPLE_MIRRORLIST = """##
## Arch Linux repository mirrorlist
## Generated on 2025-03-01
##

## United States
#Server = https://mirror.one.example/archlinux/$repo/os/$arch
#Server = http://mirror.two.example/archlinux/$repo/os/$arch
#Server = https://mirror.three.example/archlinux/$repo/os/$arch
"""

INSTALLED_MIRRORLIST = """##
## Arch Linux repository mirrorlist
## Generated on 2025-02-01
##

## United States
Server = https://old.example/archlinux/$repo/os/$arch
"""


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that gets cleaned up after test"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir

    # Cleanup
    import shutil
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture
def sample_mirrorlist_text():
    return SAMPLE_MIRRORLIST


@pytest.fixture
def installed_mirrorlist_text():
    return INSTALLED_MIRRORLIST


@pytest.fixture
def sample_config(temp_dir):
    """Provide a configuration whose system paths live under the temp dir"""
    pacman_dir = os.path.join(temp_dir, "etc", "pacman.d")
    os.makedirs(pacman_dir)
    return MirrorlistConfig(
        mirrorlist_path=os.path.join(pacman_dir, "mirrorlist"),
        temp_dir=os.path.join(temp_dir, "MIRRORLIST_TEMP"),
        request_timeout=5
    )


@pytest.fixture
def config_manager(sample_config, temp_dir):
    """Provide a real ConfigManager preloaded with the sample config"""
    manager = ConfigManager(os.path.join(temp_dir, "config.yaml"))
    manager._config = sample_config
    return manager


@pytest.fixture
def mock_config_manager(sample_config, temp_dir):
    """Provide a mock ConfigManager with sample data"""
    mock_manager = Mock(spec=ConfigManager)
    mock_manager.get_config.return_value = sample_config
    mock_manager.config_path = os.path.join(temp_dir, "config.yaml")
    mock_manager.get_backup_path.return_value = sample_config.mirrorlist_path + ".bak"
    mock_manager.get_query_params.return_value = [
        ("country", "US"), ("protocol", "http"), ("protocol", "https"), ("ip_version", "4")
    ]
    return mock_manager


@pytest.fixture
def installed_mirrorlist(sample_config, installed_mirrorlist_text):
    """Write an older mirrorlist to the configured system location"""
    with open(sample_config.mirrorlist_path, 'w') as f:
        f.write(installed_mirrorlist_text)
    return sample_config.mirrorlist_path


@pytest.fixture
def downloaded_mirrorlist(temp_dir, sample_mirrorlist_text):
    """Write a freshly downloaded (still commented) mirrorlist to disk"""
    path = os.path.join(temp_dir, "downloaded")
    with open(path, 'w') as f:
        f.write(sample_mirrorlist_text)
    return path


@pytest.fixture(autouse=True)
def setup_logging():
    """Set up logging for tests"""
    import logging

    logging.basicConfig(
        level=logging.WARNING,  # Only show warnings and errors in tests
        format="%(name)s - %(levelname)s - %(message)s"
    )


@pytest.fixture
def make_response():
    """Build requests.Response objects without touching the network"""
    import requests

    def _make_response(content: bytes = b"", status_code: int = 200):
        response = requests.Response()
        response.status_code = status_code
        response._content = content
        response.url = "https://archlinux.org/mirrorlist/"
        return response

    return _make_response


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Add the integration marker to integration test classes"""
    for item in items:
        if item.cls is not None and "Integration" in item.cls.__name__:
            item.add_marker(pytest.mark.integration)
