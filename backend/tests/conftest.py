"""
Pytest configuration file

Shared profiles and snapshots for the engine tests, and an API client.
"""
import pytest
from fastapi.testclient import TestClient

from pathways.data.defaults import DEFAULT_SNAPSHOT
from pathways.models.profile import Profile
from pathways.models.snapshot import BulletinChart, BulletinRow

ALL_CURRENT = BulletinChart(
    eb1=BulletinRow(all_other="Current", china="Current", india="Current"),
    eb2=BulletinRow(all_other="Current", china="Current", india="Current"),
    eb3=BulletinRow(all_other="Current", china="Current", india="Current"),
)


@pytest.fixture
def default_profile():
    """Bachelor's, under 2 years experience, Canadian outside the US."""
    return Profile()


@pytest.fixture
def current_snapshot():
    """Default processing times with every bulletin category current."""
    return DEFAULT_SNAPSHOT.model_copy(update={
        "final_action_dates": ALL_CURRENT,
        "dates_for_filing": ALL_CURRENT,
    })


@pytest.fixture
def client():
    from pathways.main import app
    with TestClient(app) as test_client:
        yield test_client
