"""Shared fixtures for the controller tests."""
from __future__ import annotations

import pytest

from fakes import FIXED_NOW, INTERNAL_URL, PUBLIC_URL, FakeEgressControl, FakeRoomDirectory, FakeSigner
from livekit_controller.core import dependencies
from livekit_controller.main import app
from livekit_controller.services.grants import GrantBuilder
from livekit_controller.services.recordings import RecordingOrchestrator, S3Defaults
from livekit_controller.services.rooms import RoomRecord


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def room_directory() -> FakeRoomDirectory:
    return FakeRoomDirectory([RoomRecord(name="r1", sid="RM_r1")])


@pytest.fixture
def egress() -> FakeEgressControl:
    return FakeEgressControl()


@pytest.fixture
def grant_builder(signer: FakeSigner) -> GrantBuilder:
    return GrantBuilder(signer, public_url=PUBLIC_URL)


@pytest.fixture
def s3_defaults() -> S3Defaults:
    return S3Defaults(access_key="minio", secret="minio-secret", region="us-east-1", endpoint="http://minio:9000")


@pytest.fixture
def orchestrator(room_directory, egress, grant_builder, s3_defaults) -> RecordingOrchestrator:
    return RecordingOrchestrator(
        room_directory,
        egress,
        grant_builder,
        internal_url=INTERNAL_URL,
        s3_defaults=s3_defaults,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def api_overrides(signer, room_directory, egress):
    """Point the HTTP dependencies at the fakes for one test."""

    app.dependency_overrides[dependencies.get_signer] = lambda: signer
    app.dependency_overrides[dependencies.get_room_directory] = lambda: room_directory
    app.dependency_overrides[dependencies.get_egress_control] = lambda: egress
    yield app
    app.dependency_overrides.clear()
