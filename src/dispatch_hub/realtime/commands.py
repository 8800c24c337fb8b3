"""Inbound command payloads, one model per wire command name.

Each model declares only the fields a command cannot run without; every
other key in the payload is kept as-is and handed to the services, where
the record store enforces the collection schema.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import CommandValidationError


class Command(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    name: ClassVar[str]
    missing_message: ClassVar[str] = "Payload inválido"

    @classmethod
    def from_wire(cls, data: Any) -> Command:
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise CommandValidationError(cls.missing_message)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise CommandValidationError(cls.missing_message) from exc

    def fields(self) -> dict[str, Any]:
        """Payload as received, declared fields under their wire names.

        Keys sent as null are kept so an update can clear a field.
        """
        return self.model_dump(by_alias=True, exclude_unset=True)


class PayloadlessCommand(Command):
    """Commands that take no payload; whatever the client sends is ignored."""

    @classmethod
    def from_wire(cls, data: Any) -> Command:
        return cls()


class FetchTodayDeliveries(PayloadlessCommand):
    name = "Entregas do Dia"


class FetchCustomers(PayloadlessCommand):
    name = "Buscar Clientes"


class FetchCouriers(PayloadlessCommand):
    name = "Buscar Usuarios"


class FetchDeliveryHistory(PayloadlessCommand):
    name = "Relatorio Entregas"


class RelayLogin(PayloadlessCommand):
    name = "whatsapp-login"


class RelayStatusCheck(PayloadlessCommand):
    name = "verificar-whatsapp-status"


class RelayForceQr(PayloadlessCommand):
    name = "forcar-whatsapp-qr"


class CreateDelivery(Command):
    name = "Adicionar Entrega"
    missing_message = "Dados da entrega não fornecidos."


class UpdateDelivery(Command):
    name = "Atualizar Entrega"
    missing_message = "ID da entrega não fornecido. Impossível atualizar."

    id: str = Field(min_length=1)


class UpsertCustomer(Command):
    name = "Atualizar Cliente"
    missing_message = "Nome do cliente não fornecido. Impossível atualizar/criar."

    customer_name: str = Field(alias="nome", min_length=1)


class AuthenticateCourier(Command):
    name = "Autenticar Usuario"
    missing_message = "Nome de usuário não fornecido"

    username: str = Field(alias="userName", min_length=1)
    # Accepted for compatibility; only checked by the plaintext verifier.
    password: Optional[str] = Field(default=None, alias="senha")


class LocateCourier(Command):
    name = "Localizar Entregador"
    missing_message = "Nome de usuário não fornecido. Impossível atualizar."

    username: str = Field(alias="userName", min_length=1)


class SendMessage(Command):
    name = "Enviar Mensagem"
    missing_message = 'Payload inválido. Os campos "contato" e "mensagem" são obrigatórios.'

    contact: str = Field(alias="contato", min_length=1)
    text: str = Field(alias="mensagem", min_length=1)


class EchoCommand(Command):
    """Test commands carrying an arbitrary payload."""

    payload: Any = None

    @classmethod
    def from_wire(cls, data: Any) -> Command:
        return cls(payload=data)


class Echo(EchoCommand):
    name = "message"


class Broadcast(EchoCommand):
    name = "broadcast"


InboundCommand = Union[
    FetchTodayDeliveries,
    FetchCustomers,
    FetchCouriers,
    FetchDeliveryHistory,
    RelayLogin,
    RelayStatusCheck,
    RelayForceQr,
    CreateDelivery,
    UpdateDelivery,
    UpsertCustomer,
    AuthenticateCourier,
    LocateCourier,
    SendMessage,
    Echo,
    Broadcast,
]

COMMAND_TYPES: dict[str, type[Command]] = {
    command_type.name: command_type for command_type in InboundCommand.__args__
}


def parse_command(name: str, data: Any) -> Command:
    """Validate ``data`` against the model registered for ``name``.

    Raises:
        KeyError: ``name`` is not a known command.
        CommandValidationError: a required field is missing or empty.
    """
    return COMMAND_TYPES[name].from_wire(data)
