"""Domain models for customer, delivery and courier records.

Field names follow the Portuguese keys used on the wire and in the stored
collections; attributes are exposed under English names through aliases.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

Number = Union[StrictInt, StrictFloat]


class CourierStatus(str, Enum):
    AVAILABLE = "disponível"
    UNAVAILABLE = "indisponível"
    BUSY = "ocupado"
    OFFLINE = "offline"


class Coordinates(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Record(BaseModel):
    """Base for stored records; ``id`` is assigned by the record store only."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Customer(Record):
    name: Optional[str] = Field(default=None, alias="nome")
    phone: Optional[str] = Field(default=None, alias="telefone")
    city: Optional[str] = Field(default=None, alias="cidade")
    district: Optional[str] = Field(default=None, alias="bairro")
    street: Optional[str] = Field(default=None, alias="rua")
    number: Optional[str] = Field(default=None, alias="numero")
    coordinates: Optional[Coordinates] = Field(default=None, alias="coordenadas")


class Delivery(Record):
    day: Optional[list[StrictInt]] = Field(default=None, alias="dia")
    name: Optional[str] = Field(default=None, alias="nome")
    status: Optional[str] = None
    phone: Optional[str] = Field(default=None, alias="telefone")
    city: Optional[str] = Field(default=None, alias="cidade")
    district: Optional[str] = Field(default=None, alias="bairro")
    street: Optional[str] = Field(default=None, alias="rua")
    number: Optional[str] = Field(default=None, alias="numero")
    coordinates: Optional[Coordinates] = Field(default=None, alias="coordenadas")
    value: Optional[str] = Field(default=None, alias="valor")
    payment: Optional[str] = Field(default=None, alias="pagamento")
    payment_status: Optional[str] = Field(default=None, alias="statusPagamento")
    courier: Optional[str] = Field(default=None, alias="entregador")
    volume: Optional[str] = None
    notes: Optional[str] = Field(default=None, alias="observacoes")
    time: Optional[list[Number]] = Field(default=None, alias="horario")
    message_status: Optional[str] = Field(default=None, alias="statusMensagem")

    @field_validator("day")
    @classmethod
    def _check_day(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is not None and len(value) != 3:
            raise ValueError(f"{value} deve ser um array com exatamente 3 elementos [dia, mes, ano]")
        return value

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: Optional[list[float]]) -> Optional[list[float]]:
        if value is not None and len(value) != 2:
            raise ValueError(f"{value} deve ser um array com exatamente 2 elementos [horas, minutos]")
        return value


class Courier(Record):
    name: Optional[str] = Field(default=None, alias="nome")
    status: Optional[CourierStatus] = None
    username: Optional[str] = Field(default=None, alias="userName")
    password: Optional[str] = Field(default=None, alias="senha")
    location: Optional[Coordinates] = Field(default=None, alias="localizacao")


def date_marker(day: date) -> list[int]:
    """Return the ``[day, month, year]`` marker stored on deliveries."""
    return [day.day, day.month, day.year]


def is_date_marker(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) == 3
        and all(isinstance(item, int) and not isinstance(item, bool) for item in value)
    )
