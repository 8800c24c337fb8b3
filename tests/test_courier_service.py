import pytest

from dispatch_hub.models.domain import CourierStatus
from dispatch_hub.persistence import MemoryRecordStore
from dispatch_hub.services.couriers import (
    CourierService,
    PlaintextPasswordVerifier,
    UsernameOnlyVerifier,
    get_credential_verifier,
)


@pytest.mark.asyncio
async def test_authenticate_by_username_ignores_password(couriers: CourierService) -> None:
    await couriers.create({"nome": "João", "userName": "joao", "senha": "segredo", "status": "disponível"})

    courier = await couriers.authenticate("joao", "wrong")

    assert courier is not None
    assert courier.status is CourierStatus.AVAILABLE
    assert courier.to_wire()["userName"] == "joao"


@pytest.mark.asyncio
async def test_authenticate_unknown_username(couriers: CourierService) -> None:
    assert await couriers.authenticate("ghost") is None


@pytest.mark.asyncio
async def test_plaintext_verifier_compares_password(store: MemoryRecordStore) -> None:
    couriers = CourierService(store, PlaintextPasswordVerifier())
    await couriers.create({"nome": "João", "userName": "joao", "senha": "segredo"})

    assert await couriers.authenticate("joao", "segredo") is not None
    assert await couriers.authenticate("joao", "wrong") is None
    assert await couriers.authenticate("joao") is None


@pytest.mark.asyncio
async def test_update_by_username_moves_courier(couriers: CourierService) -> None:
    created = await couriers.create({"nome": "João", "userName": "joao"})

    updated = await couriers.update_by_username(
        {"userName": "joao", "localizacao": {"latitude": -8.06, "longitude": -34.88}, "status": "ocupado"}
    )

    assert updated.id == created.id
    assert updated.location.latitude == -8.06
    assert updated.status is CourierStatus.BUSY


@pytest.mark.asyncio
async def test_update_by_username_missing_or_unknown(couriers: CourierService) -> None:
    assert await couriers.update_by_username({"nome": "Sem login"}) is None
    assert await couriers.update_by_username({"userName": "ghost"}) is None


def test_get_credential_verifier() -> None:
    assert isinstance(get_credential_verifier("username"), UsernameOnlyVerifier)
    assert isinstance(get_credential_verifier("plaintext"), PlaintextPasswordVerifier)
    with pytest.raises(ValueError):
        get_credential_verifier("bcrypt")
