from collections import Counter
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from restaurant_engine import models
from restaurant_engine.crud.booking import load_bookings, save_booking
from restaurant_engine.crud.menu_item import DEFAULT_MENU
from restaurant_engine.crud.order import get_sales_summary, load_orders, save_order
from restaurant_engine.exceptions import PersistenceFailure, UnknownStatus, UnknownTableType
from restaurant_engine.models.enums import OrderStatus, PaymentMethod, PaymentStatus
from restaurant_engine.schemas.booking import TableBooking
from restaurant_engine.schemas.menu import MenuItem
from restaurant_engine.schemas.order import Order
from restaurant_engine.services import order_lifecycle as lifecycle
from restaurant_engine.services.context import RestaurantContext


async def save(db, ctx, order):
    await save_order(db, order, ctx.price(order))


def booking(ctx, customer_id, number, status=PaymentStatus.PENDING, type_name="Table4"):
    return TableBooking(
        customer_id=customer_id,
        customer_name="Meera",
        phone="555-0110",
        table_type=ctx.inventory.get_type(type_name),
        table_number=number,
        booking_fee=Decimal("200"),
        payment_status=status,
    )


async def count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def test_default_menu_is_seeded_once(ctx, db, settings):
    assert len(ctx.catalog) == len(DEFAULT_MENU)
    assert ctx.catalog.get_menu_item(101).name == "chicken biryani"
    assert ctx.catalog.list_menu_items()[-1].id == 116

    again = RestaurantContext(settings)
    await again.reload(db)
    assert await count(db, models.MenuItem) == len(DEFAULT_MENU)
    assert again.menu_item_ids.peek() == 117


async def test_round_trip_keeps_grouped_items(ctx, db, biryani, coke):
    order = Order(id=5, customer_id="CUST1001", items=[biryani, coke, biryani, coke, biryani])
    await save(db, ctx, order)

    rows = (await db.execute(select(models.OrderItem).order_by(models.OrderItem.id))).scalars().all()
    assert [(r.menu_item_id, r.quantity, r.price) for r in rows] == [
        (101, 3, Decimal("150.00")),
        (113, 2, Decimal("50.00")),
    ]

    [loaded] = await load_orders(db, ctx.catalog.get_menu_item)
    assert Counter((i.id, i.price) for i in loaded.items) == Counter((i.id, i.price) for i in order.items)
    assert loaded.customer_id == "CUST1001"
    assert loaded.status is OrderStatus.PENDING


async def test_same_item_at_two_prices_stays_apart(ctx, db, biryani):
    discounted = MenuItem(id=101, name="chicken biryani", price=Decimal("120"))
    await save(db, ctx, Order(id=1, items=[biryani, discounted, biryani]))

    [loaded] = await load_orders(db, ctx.catalog.get_menu_item)
    assert Counter(i.price for i in loaded.items) == {Decimal("150.00"): 2, Decimal("120.00"): 1}


async def test_stored_price_wins_over_catalog(ctx, db):
    old = MenuItem(id=101, name="old name", price=Decimal("99"))
    await save(db, ctx, Order(id=1, items=[old]))

    [loaded] = await load_orders(db, ctx.catalog.get_menu_item)
    assert loaded.items[0].price == Decimal("99.00")
    assert loaded.items[0].name == "chicken biryani"


async def test_missing_catalog_item_gets_placeholder(ctx, db):
    await save(db, ctx, Order(id=1, items=[MenuItem(id=555, name="special", price=Decimal("10"))]))
    [loaded] = await load_orders(db, lambda _: None)
    assert loaded.items[0].name == "Unknown Item (ID: 555)"


async def test_resave_replaces_items(ctx, db, biryani, coke):
    order = Order(id=1, items=[biryani, coke])
    await save(db, ctx, order)
    order.items = [coke]
    await save(db, ctx, order)

    assert await count(db, models.OrderItem) == 1
    [loaded] = await load_orders(db, ctx.catalog.get_menu_item)
    assert [i.id for i in loaded.items] == [113]


async def test_snapshot_amounts(ctx, db, biryani, coke):
    order = Order(id=1, items=[biryani, biryani, coke])
    await lifecycle.apply_discount(db, ctx, order, "SAVE100")
    await save(db, ctx, order)

    row = await db.get(models.Order, 1)
    assert (row.subtotal_amount, row.discount_applied, row.net_amount, row.tax_amount, row.total_amount) == (
        Decimal("350.00"), Decimal("100.00"), Decimal("250.00"), Decimal("12.50"), Decimal("262.50"),
    )
    assert row.coupon_code == "SAVE100"


async def test_failed_commit_writes_nothing(ctx, db, biryani, monkeypatch):
    async def commit():
        raise OperationalError("COMMIT", {}, Exception("disk full"))

    monkeypatch.setattr(db, "commit", commit)
    with pytest.raises(PersistenceFailure):
        await save(db, ctx, Order(id=1, items=[biryani, biryani]))
    monkeypatch.undo()

    assert await count(db, models.Order) == 0
    assert await count(db, models.OrderItem) == 0


async def test_reload_continues_order_ids(ctx, db, settings, biryani):
    await save(db, ctx, Order(id=57, items=[biryani]))
    await save(db, ctx, Order(id=12, items=[biryani]))

    reloaded = RestaurantContext(settings)
    await reloaded.reload(db)

    assert lifecycle.create_order(reloaded).id == 58


async def test_corrupt_status_is_skipped(ctx, db, biryani):
    await save(db, ctx, Order(id=1, items=[biryani]))
    db.add(models.Order(id=2, status="Shipped", payment_status="Pending"))
    await db.commit()

    skipped = []
    orders = await load_orders(db, ctx.catalog.get_menu_item, skipped=skipped)

    assert [o.id for o in orders] == [1]
    assert len(skipped) == 1
    assert isinstance(skipped[0], UnknownStatus)
    assert skipped[0].raw == "Shipped"


async def test_orders_by_customer(ctx, db, biryani):
    await save(db, ctx, Order(id=1, customer_id="CUST1001", items=[biryani]))
    await save(db, ctx, Order(id=2, customer_id="CUST1002", items=[biryani]))

    orders = await load_orders(db, ctx.catalog.get_menu_item, customer_id="CUST1002")
    assert [o.id for o in orders] == [2]


async def test_sales_summary_counts_paid_orders(ctx, db, biryani, coke):
    await save(db, ctx, Order(id=1, items=[biryani], payment_status=PaymentStatus.PAID,
                              status=OrderStatus.CONFIRMED, payment_method=PaymentMethod.CASH))
    await save(db, ctx, Order(id=2, items=[coke], payment_status=PaymentStatus.PAID,
                              status=OrderStatus.CONFIRMED, payment_method=PaymentMethod.CARD))
    await save(db, ctx, Order(id=3, items=[biryani]))

    summary = await get_sales_summary(db)
    assert summary.count_orders == 2
    assert summary.total_revenue == Decimal("210.00")
    assert summary.average_check == Decimal("105.00")


async def test_one_active_booking_per_table(ctx, db):
    first = booking(ctx, "CUST1001", 3)
    await save_booking(db, first)

    with pytest.raises(PersistenceFailure):
        await save_booking(db, booking(ctx, "CUST1002", 3))

    await save_booking(db, first.model_copy(update={"payment_status": PaymentStatus.CANCELLED}))
    await save_booking(db, booking(ctx, "CUST1002", 3))
    assert await count(db, models.TableBooking) == 2


async def test_reload_rebuilds_occupancy_and_customer_ids(ctx, db, settings):
    await save_booking(db, booking(ctx, "CUST1005", 2, PaymentStatus.PAID))
    await save_booking(db, booking(ctx, "CUST1006", 3, PaymentStatus.CANCELLED))
    await save_booking(db, booking(ctx, "CUST1003", 6))

    reloaded = RestaurantContext(settings)
    await reloaded.reload(db)
    first = reloaded.inventory.occupancy("Table4")
    reloaded.reconcile()

    assert reloaded.inventory.occupancy("Table4") == first
    assert [n for n, busy in enumerate(first, start=1) if busy] == [2, 6]
    assert reloaded.customer_ids.next_id() == "CUST1007"


async def test_unknown_table_type_is_skipped(ctx, db):
    await save_booking(db, booking(ctx, "CUST1001", 1))
    db.add(models.TableBooking(
        customer_id="CUST1002", customer_name="X", phone="1", table_type="Booth",
        table_number=1, seats=3, booking_fee=Decimal("150"), payment_status="Pending",
    ))
    await db.commit()

    skipped = []
    bookings = await load_bookings(db, ctx.inventory.get_type, skipped=skipped)

    assert [b.customer_id for b in bookings] == ["CUST1001"]
    assert isinstance(skipped[0], UnknownTableType)


async def test_skipped_rows_still_hold_their_ids(ctx, db, settings, biryani):
    await save(db, ctx, Order(id=57, items=[biryani]))
    db.add(models.Order(id=60, status="Shipped", payment_status="Paid", total_amount=Decimal("999")))
    db.add(models.TableBooking(
        customer_id="CUST1009", customer_name="X", phone="1", table_type="Booth",
        table_number=1, seats=3, booking_fee=Decimal("150"), payment_status="Paid",
    ))
    await db.commit()

    reloaded = RestaurantContext(settings)
    await reloaded.reload(db)

    assert len(reloaded.skipped) == 2
    assert lifecycle.create_order(reloaded).id == 61
    assert reloaded.customer_ids.next_id() == "CUST1010"


async def test_new_order_does_not_overwrite_stored_row(ctx, db, biryani):
    db.add(models.Order(id=60, status="Shipped", payment_status="Paid", total_amount=Decimal("999")))
    await db.commit()

    order = Order(id=60, items=[biryani])
    with pytest.raises(PersistenceFailure):
        await save_order(db, order, ctx.price(order), new=True)

    row = await db.get(models.Order, 60)
    assert (row.status, row.payment_status, row.total_amount) == ("Shipped", "Paid", Decimal("999.00"))


async def test_new_booking_does_not_overwrite_stored_row(ctx, db):
    await save_booking(db, booking(ctx, "CUST1001", 1, PaymentStatus.PAID))

    with pytest.raises(PersistenceFailure):
        await save_booking(db, booking(ctx, "CUST1001", 2), new=True)

    [stored] = await load_bookings(db, ctx.inventory.get_type)
    assert (stored.table_number, stored.payment_status) == (1, PaymentStatus.PAID)
