"""Per-command response policy.

The table below decides, for every wire command, which event answers it,
who receives that event on success, and how a failure is reported. It holds
no I/O so audience rules can be checked on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from . import commands

ERROR_EVENT = "error"
TODAY_DELIVERIES_EVENT = "Entregas do Dia"
CUSTOMERS_EVENT = "Buscar Clientes"
COURIERS_EVENT = "Buscar Usuarios"
CUSTOMER_UPSERT_EVENT = "Atualizar Cliente"
COURIERS_REFRESH_EVENT = "Atualizando todos entregadores"
AUTHENTICATION_EVENT = "Autenticar Usuario"
DELIVERY_HISTORY_EVENT = "Relatorio Entregas"
RELAY_STATUS_EVENT = "whatsapp-status"
RELAY_QR_EVENT = "whatsapp-qr"
SEND_RECEIPT_EVENT = "Enviar Mensagem Resposta"
ECHO_EVENT = "response"
BROADCAST_EVENT = "broadcast"
BROADCAST_ACK_EVENT = "broadcastSent"


class Audience(str, Enum):
    REQUESTER = "requester"
    ALL = "all"
    OTHERS = "others"


class FailureShape(str, Enum):
    """How a failed command is reported back to the requester."""

    ERROR_ENVELOPE = "error_envelope"  # `error` event {message, detalhes, timestamp}
    SERVER_MESSAGE = "server_message"  # response event {mensagemServer: "Erro: ..."}
    RELAY_STATUS = "relay_status"  # `whatsapp-status` {isAuthenticated: false, error}
    SEND_RECEIPT = "send_receipt"  # response event {success: false, error}


@dataclass(frozen=True)
class CommandPolicy:
    command: str
    response_event: str
    audience: Audience
    failure: FailureShape = FailureShape.ERROR_ENVELOPE
    error_message: str = "Erro ao processar comando"
    ack_event: Optional[str] = None


COMMAND_POLICIES: dict[str, CommandPolicy] = {
    policy.command: policy
    for policy in (
        CommandPolicy(
            commands.FetchTodayDeliveries.name,
            TODAY_DELIVERIES_EVENT,
            Audience.REQUESTER,
            error_message="Erro ao buscar entregas do dia",
        ),
        CommandPolicy(
            commands.FetchCustomers.name,
            CUSTOMERS_EVENT,
            Audience.REQUESTER,
            error_message="Erro ao buscar clientes",
        ),
        CommandPolicy(
            commands.FetchCouriers.name,
            COURIERS_EVENT,
            Audience.REQUESTER,
            error_message="Erro ao buscar usuários",
        ),
        CommandPolicy(
            commands.CreateDelivery.name,
            TODAY_DELIVERIES_EVENT,
            Audience.ALL,
            error_message="Erro ao adicionar entrega",
        ),
        CommandPolicy(
            commands.UpdateDelivery.name,
            TODAY_DELIVERIES_EVENT,
            Audience.ALL,
            error_message="Erro ao atualizar entrega",
        ),
        CommandPolicy(
            commands.UpsertCustomer.name,
            CUSTOMER_UPSERT_EVENT,
            Audience.REQUESTER,
            error_message="Erro ao atualizar/criar cliente",
        ),
        CommandPolicy(
            commands.LocateCourier.name,
            COURIERS_REFRESH_EVENT,
            Audience.ALL,
            error_message="Erro ao atualizar entregador",
        ),
        CommandPolicy(
            commands.AuthenticateCourier.name,
            AUTHENTICATION_EVENT,
            Audience.REQUESTER,
            failure=FailureShape.SERVER_MESSAGE,
        ),
        CommandPolicy(
            commands.FetchDeliveryHistory.name,
            DELIVERY_HISTORY_EVENT,
            Audience.REQUESTER,
            error_message="Erro ao buscar relatório de entregas",
        ),
        CommandPolicy(
            commands.RelayLogin.name,
            RELAY_STATUS_EVENT,
            Audience.REQUESTER,
            failure=FailureShape.RELAY_STATUS,
        ),
        CommandPolicy(
            commands.RelayStatusCheck.name,
            RELAY_STATUS_EVENT,
            Audience.REQUESTER,
            failure=FailureShape.RELAY_STATUS,
        ),
        CommandPolicy(
            commands.RelayForceQr.name,
            RELAY_STATUS_EVENT,
            Audience.REQUESTER,
            failure=FailureShape.RELAY_STATUS,
        ),
        CommandPolicy(
            commands.SendMessage.name,
            SEND_RECEIPT_EVENT,
            Audience.REQUESTER,
            failure=FailureShape.SEND_RECEIPT,
        ),
        CommandPolicy(commands.Echo.name, ECHO_EVENT, Audience.REQUESTER),
        CommandPolicy(
            commands.Broadcast.name,
            BROADCAST_EVENT,
            Audience.OTHERS,
            ack_event=BROADCAST_ACK_EVENT,
        ),
    )
}


def resolve_audience(audience: Audience, requester_id: str, connection_ids: list[str]) -> list[str]:
    """Connection ids that receive a success event, in registry order."""
    if audience is Audience.ALL:
        return list(connection_ids)
    if audience is Audience.OTHERS:
        return [connection_id for connection_id in connection_ids if connection_id != requester_id]
    return [requester_id] if requester_id in connection_ids else []
