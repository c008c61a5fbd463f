"""
Integration tests for Orthanc connectivity.

These tests require a running Orthanc instance and are deselected
by default. Run with: ``pytest -m integration``
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from orthanc_api.config.settings import get_settings
from orthanc_api.dicom.errors import ApiResponseError
from orthanc_api.dicom.fields import EntityKind
from orthanc_api.dicom.models import Search
from orthanc_api.dicom.orthanc_client import OrthancClient


@pytest.fixture
def orthanc_client() -> Iterator[OrthancClient]:
    """Create an OrthancClient pointing at the configured Orthanc instance."""
    with OrthancClient.from_settings(get_settings().orthanc) as client:
        yield client


@pytest.mark.integration
class TestOrthancIntegration:
    """Smoke tests against a live Orthanc server."""

    def test_server_is_alive(self, orthanc_client: OrthancClient) -> None:
        assert orthanc_client.is_alive(), "Orthanc server is not reachable"

    def test_system_info_has_version(self, orthanc_client: OrthancClient) -> None:
        assert orthanc_client.get_system().version

    def test_statistics_returns_counts(self, orthanc_client: OrthancClient) -> None:
        stats = orthanc_client.get_statistics()
        assert stats.count_instances >= 0

    def test_expanded_patients_match_ids(self, orthanc_client: OrthancClient) -> None:
        ids = orthanc_client.list_patients()
        expanded = orthanc_client.list_patients_expanded()
        assert sorted(ids) == sorted(patient.id for patient in expanded)

    def test_search_all_studies(self, orthanc_client: OrthancClient) -> None:
        found = orthanc_client.search(Search(level=EntityKind.STUDY, query={}))
        assert sorted(found) == sorted(orthanc_client.list_studies())

    def test_unknown_patient_is_404(self, orthanc_client: OrthancClient) -> None:
        with pytest.raises(ApiResponseError) as excinfo:
            orthanc_client.get_patient("does-not-exist")
        assert excinfo.value.status_code == 404
