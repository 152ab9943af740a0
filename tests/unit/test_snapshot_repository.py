import json

import pytest

from infrastructure.constants import SNAPSHOT_KEY
from reservations.models import CachedReservationSnapshot
from reservations.snapshot_repository import ReservationSnapshotRepository, ValidationOutcome
from tests.fakes import FakeBackend
from tests.helpers import DummyLogger


def _snapshot(reservation_id="res-1", **overrides):
    fields = dict(
        id=reservation_id,
        code="JT5WK6",
        qr_url=f"http://api.test/v1/reservations/{reservation_id}/qrcode",
        unit_label="Mané Mercado — Águas Claras",
        area_name="Salão Principal",
        date_str="12/03/2026",
        time_str="19:00",
        people=3,
        kids=1,
        full_name="Ana Souza",
        cpf="12345678901",
        email_hint="ana@example.com",
    )
    fields.update(overrides)
    return CachedReservationSnapshot(**fields)


@pytest.fixture
def repository(tmp_path):
    return ReservationSnapshotRepository(str(tmp_path / "state" / "snapshot.json"), logger=DummyLogger())


def test_save_and_load_round_trip(repository):
    snapshot = _snapshot()
    repository.save(snapshot)

    assert repository.path.exists()
    assert repository.load() == snapshot

    stored = json.loads(repository.path.read_text(encoding="utf-8"))
    assert stored[SNAPSHOT_KEY]["qrUrl"] == snapshot.qr_url


def test_save_and_clear_keep_unrelated_keys(repository):
    repository.path.parent.mkdir(parents=True)
    repository.path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    repository.save(_snapshot())
    repository.clear()

    assert json.loads(repository.path.read_text(encoding="utf-8")) == {"theme": "dark"}
    assert repository.load() is None


def test_corrupt_file_reads_as_empty(repository):
    repository.path.parent.mkdir(parents=True)
    repository.path.write_text("{not json", encoding="utf-8")

    assert repository.load() is None
    assert "warning" in repository._logger.levels()


def test_entry_without_id_is_removed(repository):
    repository.path.parent.mkdir(parents=True)
    repository.path.write_text(json.dumps({SNAPSHOT_KEY: {"code": "X"}}), encoding="utf-8")

    assert repository.load() is None
    assert SNAPSHOT_KEY not in json.loads(repository.path.read_text(encoding="utf-8"))


def test_clear_without_file_does_not_create_one(repository):
    repository.clear()
    assert not repository.path.exists()


@pytest.mark.asyncio
async def test_validation_without_snapshot_is_empty(repository):
    backend = FakeBackend()
    async with backend.client() as client:
        result = await repository.validate_against_server(client)

    assert result.outcome is ValidationOutcome.EMPTY
    assert backend.requests == []


@pytest.mark.asyncio
async def test_active_reservation_is_restored(repository):
    backend = FakeBackend()
    backend.add_reservation(
        fullName="Ana Souza",
        people=3,
        kids=1,
        reservationDate="2026-03-12T22:00:00.000Z",
        unitId="aguas-claras",
        areaId="salao",
    )
    repository.save(_snapshot("res-1"))

    async with backend.client() as client:
        result = await repository.validate_against_server(client)

    assert result.outcome is ValidationOutcome.ACTIVE
    assert result.record.id == "res-1"
    assert result.record.unit_label == "Mané Mercado — Águas Claras"
    assert result.record.area_label == "Salão Principal"
    assert repository.load() is not None


@pytest.mark.asyncio
async def test_reservation_unknown_to_server_is_discarded(repository):
    backend = FakeBackend()
    repository.save(_snapshot("res-404"))

    async with backend.client() as client:
        result = await repository.validate_against_server(client)

    assert result.outcome is ValidationOutcome.DISCARDED
    assert repository.load() is None


@pytest.mark.asyncio
async def test_checked_in_reservation_is_discarded(repository):
    backend = FakeBackend()
    backend.add_reservation(status="CHECKED_IN")
    repository.save(_snapshot("res-1"))

    async with backend.client() as client:
        result = await repository.validate_against_server(client)

    assert result.outcome is ValidationOutcome.DISCARDED
    assert result.record.raw_status == "CHECKED_IN"
    assert repository.load() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("failure", ["network", "timeout", 500, 408, 429])
async def test_unreachable_server_keeps_snapshot_unverified(repository, failure):
    backend = FakeBackend()
    backend.failures["/v1/reservations/public/active"] = failure
    repository.save(_snapshot("res-1"))

    async with backend.client() as client:
        result = await repository.validate_against_server(client)

    assert result.outcome is ValidationOutcome.UNVERIFIED
    assert result.snapshot.id == "res-1"
    assert repository.load() is not None
