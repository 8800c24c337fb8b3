"""Realtime session hub.

Owns every live connection, runs inbound commands against the domain
services and decides which connections receive the resulting events.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from ..errors import DispatchError, NotFoundError, RelayError, UpstreamError
from ..models.domain import Record
from ..schemas.realtime import ErrorEnvelope, RelayStatus, utc_timestamp
from ..services.couriers import CourierService
from ..services.customers import CustomerService
from ..services.deliveries import DeliveryService
from ..services.messaging import MessagingRelay, RelayEvent, RelayEventKind
from . import commands
from .connections import Connection, ConnectionRegistry, RelayInterest, Transport
from .policy import (
    COMMAND_POLICIES,
    ERROR_EVENT,
    RELAY_QR_EVENT,
    RELAY_STATUS_EVENT,
    CommandPolicy,
    FailureShape,
    resolve_audience,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Any], Awaitable[Any]]

NOT_IDENTIFIED_MESSAGE = "Não foi possível identificar o usuário"
RELAY_NOT_CONFIGURED_MESSAGE = "Integração com WhatsApp não configurada"
RELAY_NOT_AUTHENTICATED_MESSAGE = "O WhatsApp não está autenticado. Faça login primeiro."
SEND_FAILED_MESSAGE = "Não foi possível enviar a mensagem, verifique o formato do contato."


def _wire(records: Iterable[Record]) -> list[dict[str, Any]]:
    return [record.to_wire() for record in records]


class RealtimeHub:
    def __init__(
        self,
        deliveries: DeliveryService,
        customers: CustomerService,
        couriers: CourierService,
        relay: MessagingRelay | None = None,
    ) -> None:
        self.deliveries = deliveries
        self.customers = customers
        self.couriers = couriers
        self.relay = relay
        self.registry = ConnectionRegistry()
        self.relay_interest = RelayInterest()
        self._tasks: set[asyncio.Task] = set()
        self._handlers: dict[str, Handler] = {
            commands.FetchTodayDeliveries.name: self._fetch_today_deliveries,
            commands.FetchCustomers.name: self._fetch_customers,
            commands.FetchCouriers.name: self._fetch_couriers,
            commands.FetchDeliveryHistory.name: self._fetch_delivery_history,
            commands.CreateDelivery.name: self._create_delivery,
            commands.UpdateDelivery.name: self._update_delivery,
            commands.UpsertCustomer.name: self._upsert_customer,
            commands.LocateCourier.name: self._locate_courier,
            commands.AuthenticateCourier.name: self._authenticate_courier,
            commands.RelayLogin.name: self._relay_login,
            commands.RelayStatusCheck.name: self._relay_status_check,
            commands.RelayForceQr.name: self._relay_force_qr,
            commands.SendMessage.name: self._send_message,
            commands.Echo.name: self._echo,
            commands.Broadcast.name: self._broadcast,
        }
        if relay is not None:
            relay.add_listener(self._on_relay_event)

    @property
    def connection_count(self) -> int:
        return len(self.registry)

    # Connection lifecycle

    def connect(self, transport: Transport) -> Connection:
        connection = Connection(transport)
        self.registry.add(connection)
        logger.info(f"Client connected: {connection.connection_id} ({len(self.registry)} connected)")
        return connection

    def disconnect(self, connection: Connection) -> None:
        self.registry.remove(connection.connection_id)
        logger.info(f"Client disconnected: {connection.connection_id} ({len(self.registry)} connected)")

    # Dispatch

    def submit(self, connection: Connection, name: str, data: Any) -> asyncio.Task:
        """Run a command in its own task; commands complete in any order."""
        task = asyncio.create_task(self.dispatch(connection, name, data))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every command still in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def dispatch(self, connection: Connection, name: str, data: Any) -> None:
        policy = COMMAND_POLICIES.get(name)
        if policy is None:
            logger.warning(f"Ignoring unknown command '{name}' from {connection.connection_id}")
            return

        logger.info(f"Command '{name}' received from {connection.connection_id}")
        try:
            command = commands.parse_command(name, data)
            result = await self._handlers[name](connection, command)
        except DispatchError as exc:
            logger.error(f"{policy.error_message} ({name}): {exc.detail}")
            await self._report_failure(connection, policy, exc)
            return
        except Exception as exc:
            logger.exception(f"Unexpected failure while handling '{name}'")
            await self._report_failure(connection, policy, UpstreamError(str(exc)))
            return

        if result is None:
            return

        recipients = resolve_audience(
            policy.audience,
            connection.connection_id,
            [other.connection_id for other in self.registry.all()],
        )
        await self._deliver(recipients, policy.response_event, result)
        if policy.ack_event:
            await self.emit(connection, policy.ack_event, {"success": True, "timestamp": utc_timestamp()})

    async def emit(self, connection: Connection, event: str, data: Any) -> None:
        try:
            await connection.send(event, data)
        except Exception as exc:
            logger.warning(f"Could not send '{event}' to {connection.connection_id}: {exc}")

    async def _deliver(self, recipients: list[str], event: str, data: Any) -> None:
        connections = [c for c in (self.registry.get(cid) for cid in recipients) if c is not None]
        await asyncio.gather(*(self.emit(connection, event, data) for connection in connections))
        size = f"{len(data)} items" if isinstance(data, list) else "payload"
        logger.info(f"Sent '{event}' ({size}) to {len(connections)} connection(s)")

    async def _report_failure(self, connection: Connection, policy: CommandPolicy, exc: DispatchError) -> None:
        if policy.failure is FailureShape.SERVER_MESSAGE:
            await self.emit(connection, policy.response_event, {"mensagemServer": f"Erro: {exc.detail}"})
        elif policy.failure is FailureShape.RELAY_STATUS:
            status = RelayStatus(is_authenticated=False, error=exc.detail)
            await self.emit(connection, RELAY_STATUS_EVENT, status.to_wire())
        elif policy.failure is FailureShape.SEND_RECEIPT:
            await self.emit(connection, policy.response_event, {"success": False, "error": exc.detail})
        else:
            envelope = ErrorEnvelope(message=policy.error_message, details=exc.detail)
            await self.emit(connection, ERROR_EVENT, envelope.to_wire())

    # Records

    async def _fetch_today_deliveries(self, connection: Connection, command: commands.FetchTodayDeliveries) -> list:
        return _wire(await self.deliveries.find_today())

    async def _fetch_customers(self, connection: Connection, command: commands.FetchCustomers) -> list:
        return _wire(await self.customers.find_all())

    async def _fetch_couriers(self, connection: Connection, command: commands.FetchCouriers) -> list:
        return _wire(await self.couriers.find_all())

    async def _fetch_delivery_history(self, connection: Connection, command: commands.FetchDeliveryHistory) -> list:
        return _wire(await self.deliveries.find_all())

    async def _create_delivery(self, connection: Connection, command: commands.CreateDelivery) -> list:
        created = await self.deliveries.create(command.fields())
        logger.info(f"Delivery created: {created.id}")
        return _wire(await self.deliveries.find_today())

    async def _update_delivery(self, connection: Connection, command: commands.UpdateDelivery) -> list:
        logger.info(f"Updating delivery {command.id}")
        updated = await self.deliveries.update_by_id(command.id, command.fields())
        if updated is None:
            raise NotFoundError(f"Entrega com ID {command.id} não encontrada")
        return _wire(await self.deliveries.find_today())

    async def _upsert_customer(self, connection: Connection, command: commands.UpsertCustomer) -> list:
        customer = await self.customers.upsert_by_name(command.fields())
        logger.info(f"Customer '{command.customer_name}' saved as {customer.id}")
        return _wire(await self.customers.find_all())

    async def _locate_courier(self, connection: Connection, command: commands.LocateCourier) -> list:
        updated = await self.couriers.update_by_username(command.fields())
        if updated is None:
            raise NotFoundError(f"Usuário com userName {command.username} não encontrado.")
        logger.info(f"Courier '{command.username}' updated")
        return _wire(await self.couriers.find_all())

    async def _authenticate_courier(self, connection: Connection, command: commands.AuthenticateCourier) -> dict:
        courier = await self.couriers.authenticate(command.username, command.password)
        if courier is None:
            logger.warning(f"Authentication failed for '{command.username}'")
            return {"mensagemServer": NOT_IDENTIFIED_MESSAGE}
        logger.info(f"Courier '{command.username}' authenticated")
        return courier.to_wire()

    # Messaging relay

    def _require_relay(self) -> MessagingRelay:
        if self.relay is None:
            raise UpstreamError(RELAY_NOT_CONFIGURED_MESSAGE)
        return self.relay

    def _register_relay_interest(self, connection: Connection) -> MessagingRelay:
        relay = self._require_relay()
        self.relay_interest.register(relay.session, connection.connection_id)
        return relay

    async def _relay_login(self, connection: Connection, command: commands.RelayLogin) -> dict:
        relay = self._register_relay_interest(connection)
        if not relay.is_authenticated():
            await relay.initialize()
        return RelayStatus(is_authenticated=relay.is_authenticated()).to_wire()

    async def _relay_status_check(self, connection: Connection, command: commands.RelayStatusCheck) -> dict:
        relay = self._register_relay_interest(connection)
        authenticated = relay.is_authenticated()
        logger.info(f"Relay session '{relay.session}' authenticated: {authenticated}")
        if not authenticated:
            self._spawn(self._request_pairing_code(relay))
        return RelayStatus(is_authenticated=authenticated).to_wire()

    async def _relay_force_qr(self, connection: Connection, command: commands.RelayForceQr) -> None:
        relay = self._register_relay_interest(connection)
        try:
            await relay.force_re_pairing()
        except RelayError as exc:
            raise RelayError(f"Falha ao gerar QR code: {exc.detail}") from exc
        # The new code reaches the client through the relay's QR event.
        return None

    async def _request_pairing_code(self, relay: MessagingRelay) -> None:
        try:
            await relay.force_re_pairing()
        except DispatchError as exc:
            logger.error(f"Could not issue a new pairing code: {exc.detail}")
            status = RelayStatus(is_authenticated=False, error=f"Falha ao gerar QR code: {exc.detail}")
            await self._notify_relay_interest(relay.session, RELAY_STATUS_EVENT, status.to_wire())

    async def _send_message(self, connection: Connection, command: commands.SendMessage) -> dict:
        relay = self._require_relay()
        if not relay.is_authenticated():
            logger.error("Message requested while the relay session is not authenticated")
            return {"success": False, "error": RELAY_NOT_AUTHENTICATED_MESSAGE}
        try:
            receipt = await relay.send(command.contact, command.text)
        except DispatchError as exc:
            raise RelayError(f"Erro ao enviar mensagem: {exc.detail}") from exc
        if receipt is None:
            return {"success": False, "error": SEND_FAILED_MESSAGE}
        return {"success": True, "message": "Mensagem enviada com sucesso", "result": receipt}

    async def _on_relay_event(self, event: RelayEvent) -> None:
        if event.kind is RelayEventKind.QR:
            await self._notify_relay_interest(event.session, RELAY_QR_EVENT, {"qr": event.data.get("qr")})
            return
        if event.kind is RelayEventKind.READY:
            status = RelayStatus(is_authenticated=True)
        elif event.kind is RelayEventKind.AUTH_FAILURE:
            status = RelayStatus(is_authenticated=False, error=event.data.get("error"))
        else:
            status = RelayStatus(is_authenticated=False)
        await self._notify_relay_interest(event.session, RELAY_STATUS_EVENT, status.to_wire())

    async def _notify_relay_interest(self, session: str, event: str, data: Any) -> None:
        connection_id = self.relay_interest.connection_for(session)
        connection: Optional[Connection] = self.registry.get(connection_id) if connection_id else None
        if connection is None:
            logger.info(f"No connection registered for relay session '{session}', dropping '{event}'")
            return
        await self.emit(connection, event, data)

    # Test commands

    async def _echo(self, connection: Connection, command: commands.Echo) -> dict:
        return {
            "status": "ok",
            "message": "Mensagem recebida com sucesso",
            "timestamp": utc_timestamp(),
            "receivedData": command.payload,
        }

    async def _broadcast(self, connection: Connection, command: commands.Broadcast) -> dict:
        return {"from": connection.connection_id, "timestamp": utc_timestamp(), "data": command.payload}

    def _spawn(self, coroutine: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
