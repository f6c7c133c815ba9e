"""
Test fixtures and utilities for point mapper tests.

Provides reusable sessions, controllers and confirmation callbacks.
"""

from unittest.mock import Mock

import numpy as np
import pytest


@pytest.fixture
def confirm():
    """Confirmation callback that agrees to everything."""
    return Mock(return_value=True)


@pytest.fixture
def decline():
    """Confirmation callback that declines everything."""
    return Mock(return_value=False)


@pytest.fixture
def session(confirm):
    """Session without an image."""
    from point_mapper.core.points import PointMappingSession

    return PointMappingSession(confirm=confirm)


@pytest.fixture
def loaded_session(session):
    """Session showing an 800x600 image on a 400x300 display surface."""
    session.load_image((800, 600), (400, 300), image_path="test.png")
    return session


@pytest.fixture
def loc_session(loaded_session):
    """Loaded session with the LOC and PT prefixes registered."""
    loaded_session.add_prefix("LOC")
    loaded_session.add_prefix("PT")
    return loaded_session


@pytest.fixture
def controller(loc_session):
    from point_mapper.core.points import InteractionController

    return InteractionController(loc_session)


@pytest.fixture
def test_image():
    """Create a test RGB image matching the display surface."""
    return np.random.randint(0, 255, (300, 400, 3), dtype=np.uint8)
