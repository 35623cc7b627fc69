"""
Инвентарь столов и выделение свободного стола.

Источник истины в памяти: индекс (тип, номер) -> customer_id активной
брони. Булевы массивы занятости строятся из индекса и нужны только для
отображения. Настоящую гарантию от двойной брони даёт уникальный индекс
uq_active_table_slot в БД.
"""
import logging
import threading
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from restaurant_engine.config import Settings
from restaurant_engine.exceptions import (
    NoTablesAvailable,
    TableUnavailable,
    UnknownTableType,
    ValidationFailed,
)
from restaurant_engine.money import to_money
from restaurant_engine.schemas.booking import TableBooking, TableType

logger = logging.getLogger(__name__)

Slot = Tuple[str, int]


def table_types_from_settings(settings: Settings) -> List[TableType]:
    return [
        TableType(name=t.name, seats=t.seats, inventory_size=t.inventory_size, fee=t.fee)
        for t in settings.TABLE_TYPES
    ]


def booking_fee(table_type: TableType, fee_per_seat: Decimal) -> Decimal:
    """Фиксированная цена типа, если задана, иначе места * цена за место."""
    if table_type.fee is not None:
        return to_money(table_type.fee)
    return to_money(Decimal(table_type.seats) * Decimal(str(fee_per_seat)))


class TableInventory:
    def __init__(self, table_types: Iterable[TableType]):
        self._types: Dict[str, TableType] = {t.name.lower(): t for t in table_types}
        self._held: Dict[Slot, str] = {}
        self._lock = threading.Lock()

    @property
    def table_types(self) -> List[TableType]:
        return list(self._types.values())

    def get_type(self, name: str) -> TableType:
        table_type = self._types.get((name or "").strip().lower())
        if table_type is None:
            raise UnknownTableType(name)
        return table_type

    def table_type_for_party(self, party_size: int) -> TableType:
        """Самый маленький тип, за который помещается компания."""
        fitting = sorted((t for t in self._types.values() if t.seats >= party_size), key=lambda t: t.seats)
        if not fitting:
            raise NoTablesAvailable(f"party of {party_size}")
        return fitting[0]

    def _check_number(self, table_type: TableType, number: int) -> None:
        if not 1 <= number <= table_type.inventory_size:
            raise ValidationFailed(
                f"Table number must be between 1 and {table_type.inventory_size} for {table_type.name}"
            )

    def is_free(self, type_name: str, number: int) -> bool:
        table_type = self.get_type(type_name)
        self._check_number(table_type, number)
        return (table_type.name, number) not in self._held

    def holder(self, type_name: str, number: int) -> Optional[str]:
        table_type = self.get_type(type_name)
        return self._held.get((table_type.name, number))

    def occupancy(self, type_name: str) -> List[bool]:
        table_type = self.get_type(type_name)
        return [(table_type.name, n) in self._held for n in range(1, table_type.inventory_size + 1)]

    def free_tables(self, type_name: str) -> List[int]:
        return [n for n, busy in enumerate(self.occupancy(type_name), start=1) if not busy]

    def active_count(self, type_name: str) -> int:
        return sum(self.occupancy(type_name))

    def try_reserve(self, type_name: str, holder: str, number: Optional[int] = None) -> int:
        """
        Атомарно занимает стол и возвращает его номер.

        С номером: TableUnavailable, если стол занят.
        Без номера: первый свободный по возрастанию, иначе NoTablesAvailable.
        """
        table_type = self.get_type(type_name)
        with self._lock:
            if number is not None:
                self._check_number(table_type, number)
                if (table_type.name, number) in self._held:
                    raise TableUnavailable(table_type.name, number)
            else:
                number = next(
                    (n for n in range(1, table_type.inventory_size + 1) if (table_type.name, n) not in self._held),
                    None,
                )
                if number is None:
                    raise NoTablesAvailable(table_type.name)
            self._held[(table_type.name, number)] = holder
        return number

    def release(self, type_name: str, number: int, holder: Optional[str] = None) -> None:
        table_type = self.get_type(type_name)
        with self._lock:
            current = self._held.get((table_type.name, number))
            if current is not None and (holder is None or current == holder):
                del self._held[(table_type.name, number)]

    def rebuild(self, bookings: Iterable[TableBooking]) -> None:
        """Пересобирает занятость только по активным броням из БД."""
        held: Dict[Slot, str] = {}
        for booking in bookings:
            if not booking.is_active:
                continue
            table_type = self._types.get(booking.table_type.name.lower())
            if table_type is None or not 1 <= booking.table_number <= table_type.inventory_size:
                logger.warning(
                    "Booking %s points at unknown table %s #%s, skipping",
                    booking.customer_id, booking.table_type.name, booking.table_number,
                )
                continue
            slot = (table_type.name, booking.table_number)
            if slot in held:
                logger.error(
                    "Table %s #%s is held by both %s and %s",
                    slot[0], slot[1], held[slot], booking.customer_id,
                )
                continue
            held[slot] = booking.customer_id
        with self._lock:
            self._held = held
