"""
Контекст движка: каталог, счётчики, инвентарь столов и загруженные
заказы/брони. Создаётся вызывающей стороной (lifespan приложения, тесты)
и передаётся в операции явно.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine.config import Settings
from restaurant_engine.crud.booking import list_customer_ids, load_bookings
from restaurant_engine.crud.menu_item import load_menu_items, seed_default_menu
from restaurant_engine.crud.order import get_max_order_id, load_orders
from restaurant_engine.exceptions import NotFound
from restaurant_engine.schemas.booking import TableBooking
from restaurant_engine.schemas.order import Order, PriceBreakdown
from restaurant_engine.services import pricing
from restaurant_engine.services.catalog import Catalog
from restaurant_engine.services.sequences import CustomerIdSequence, SequenceGenerator
from restaurant_engine.services.tables import TableInventory, table_types_from_settings

logger = logging.getLogger(__name__)


class RestaurantContext:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.catalog = Catalog()
        self.inventory = TableInventory(table_types_from_settings(settings))
        self.order_ids = SequenceGenerator(start=1)
        self.customer_ids = CustomerIdSequence(start=1001)
        self.menu_item_ids = SequenceGenerator(start=101)
        self.orders: Dict[int, Order] = {}
        # корзины: заказы, которые ещё ни разу не сохранялись
        self.carts: Dict[int, Order] = {}
        self.bookings: Dict[str, TableBooking] = {}
        # OTP, выданные через HTTP и ещё не подтверждённые: ключ -> код
        self.pending_otps: Dict[str, str] = {}
        self.skipped: List[Exception] = []

    # --- загрузка -------------------------------------------------------

    async def reload(self, db: AsyncSession) -> None:
        """
        Перечитывает меню, заказы и брони, затем восстанавливает счётчики
        и занятость столов только по данным из БД.
        """
        skipped: List[Exception] = []

        menu = await load_menu_items(db)
        if not menu and self.settings.SEED_DEFAULT_MENU:
            menu = await seed_default_menu(db, self.menu_item_ids)
        self.catalog.load(menu)

        orders = await load_orders(db, self.catalog.get_menu_item, skipped=skipped)
        bookings = await load_bookings(db, self.inventory.get_type, skipped=skipped)

        self.orders = {order.id: order for order in orders}
        self.bookings = {booking.customer_id: booking for booking in bookings}
        self.skipped = skipped

        self.reconcile()
        # пропущенные строки тоже занимают id: новые сущности не должны с ними совпасть
        self.order_ids.reconcile(await get_max_order_id(db))
        self.customer_ids.reconcile_ids(await list_customer_ids(db))
        logger.info(
            "Reloaded %d menu items, %d orders, %d bookings (%d skipped)",
            len(self.catalog), len(self.orders), len(self.bookings), len(skipped),
        )

    def reconcile(self) -> None:
        self.menu_item_ids.reconcile(self.catalog.max_id())
        self.order_ids.reconcile(max(self.orders) if self.orders else None)
        self.customer_ids.reconcile_ids(self.bookings)
        self.inventory.rebuild(self.bookings.values())

    # --- доступ ---------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        order = self.orders.get(order_id) or self.carts.get(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        return order

    def get_booking(self, customer_id: str) -> TableBooking:
        booking = self.bookings.get(customer_id)
        if booking is None:
            raise NotFound(f"Booking {customer_id} not found")
        return booking

    def register_order(self, order: Order) -> None:
        """Заказ сохранён в БД: переносим его из корзин в общий список."""
        self.carts.pop(order.id, None)
        self.orders[order.id] = order

    def list_orders(self, customer_id: Optional[str] = None) -> List[Order]:
        orders = sorted(self.orders.values(), key=lambda o: o.id)
        if customer_id is not None:
            orders = [o for o in orders if o.customer_id == customer_id]
        return orders

    def list_bookings(self, customer_id: Optional[str] = None) -> List[TableBooking]:
        bookings = list(self.bookings.values())
        if customer_id is not None:
            bookings = [b for b in bookings if b.customer_id == customer_id]
        return bookings

    def price(self, order: Order) -> PriceBreakdown:
        return pricing.price_breakdown(order.items, order.discount_applied, self.settings.TAX_RATE)
