import pytest

from dispatch_hub.persistence import MemoryRecordStore
from dispatch_hub.realtime import RealtimeHub
from dispatch_hub.services.couriers import CourierService
from dispatch_hub.services.customers import CustomerService
from dispatch_hub.services.deliveries import DeliveryService

from doubles import TODAY, FakeRelay


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def deliveries(store: MemoryRecordStore) -> DeliveryService:
    return DeliveryService(store, today=lambda: TODAY)


@pytest.fixture
def customers(store: MemoryRecordStore) -> CustomerService:
    return CustomerService(store)


@pytest.fixture
def couriers(store: MemoryRecordStore) -> CourierService:
    return CourierService(store)


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def hub(deliveries: DeliveryService, customers: CustomerService, couriers: CourierService) -> RealtimeHub:
    return RealtimeHub(deliveries, customers, couriers)


@pytest.fixture
def relay_hub(
    deliveries: DeliveryService,
    customers: CustomerService,
    couriers: CourierService,
    relay: FakeRelay,
) -> RealtimeHub:
    return RealtimeHub(deliveries, customers, couriers, relay=relay)
