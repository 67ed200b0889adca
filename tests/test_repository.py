"""Run generated repositories against an in-memory SQLite database."""

from __future__ import annotations

import importlib
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine, event, inspect
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

import ormrepo
from ormrepo import PrimaryKeyNotBlankError, RecordNotFoundError, RepoError
from ormrepogen.codegen import emit
from ormrepogen.loader import parse_package_dir

MODELS_SOURCE = '''\
from typing import List, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    orders: Mapped[List["Order"]] = relationship(back_populates="customer")


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    number: Mapped[str] = mapped_column(String(20))
    total: Mapped[int] = mapped_column(default=0)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"))
    customer: Mapped[Optional["Customer"]] = relationship(back_populates="orders")
'''


@pytest.fixture
def shop(write_package, import_path):
    directory = write_package({"shop_models.py": MODELS_SOURCE}, name="shop")
    package = parse_package_dir(directory)
    for type_name in ("Customer", "Order"):
        emit(type_name, package.resolve(type_name).unit)

    import_path(directory)
    importlib.invalidate_caches()
    models = importlib.import_module("shop_models")
    customer_module = importlib.import_module("customer_base_repo")
    order_module = importlib.import_module("order_base_repo")

    engine = create_engine("sqlite://")
    with Session(engine) as session:
        customers = customer_module.customerBaseRepo(session)
        orders = order_module.orderBaseRepo(session)
        customers.auto_migrate()
        orders.auto_migrate()
        yield SimpleNamespace(
            Customer=models.Customer,
            Order=models.Order,
            engine=engine,
            session=session,
            customers=customers,
            orders=orders,
        )
    engine.dispose()


def _seed(shop):
    ada = shop.customers.create(shop.Customer(name="Ada"))
    bob = shop.customers.create(shop.Customer(name="Bob"))
    for number, total, owner in (("A1", 10, ada), ("A2", 30, ada), ("B1", 20, bob)):
        shop.orders.create(shop.Order(number=number, total=total, customer_id=owner.id))
    return ada, bob


class TestAutoMigrate:
    """Schema sync creates the tables once."""

    def test_tables_created(self, shop):
        names = inspect(shop.session.connection()).get_table_names()
        assert {"customers", "orders"} <= set(names)

    def test_second_run_is_noop(self, shop):
        shop.orders.auto_migrate()
        assert shop.orders.get_all() == []


class TestCreate:
    """Insert and the blank primary key guard."""

    def test_assigns_primary_key(self, shop):
        ada = shop.customers.create(shop.Customer(name="Ada"))
        assert ada.id is not None
        assert shop.customers.get(ada.id) is ada

    def test_primary_key_not_blank(self, shop):
        with pytest.raises(PrimaryKeyNotBlankError, match="primary key not blank"):
            shop.orders.create(shop.Order(id=99, number="X"))
        assert not shop.session.new
        assert shop.orders.get_all() == []


class TestRead:
    """Get, GetAll, GetBy, GetByFirst, GetByLast."""

    def test_get_missing(self, shop):
        with pytest.raises(RecordNotFoundError, match="record not found"):
            shop.orders.get(404)

    def test_get_all(self, shop):
        _seed(shop)
        assert [o.number for o in shop.orders.get_all()] == ["A1", "A2", "B1"]

    def test_get_by(self, shop):
        _seed(shop)
        Order = shop.Order
        found = shop.orders.get_by(ormrepo.where(Order.total >= 20), ormrepo.order_by("total", "desc"))
        assert [o.number for o in found] == ["A2", "B1"]

    def test_get_by_limit_offset(self, shop):
        _seed(shop)
        found = shop.orders.get_by(ormrepo.order_by("number"), ormrepo.offset(1), ormrepo.limit(1))
        assert [o.number for o in found] == ["A2"]

    def test_first_and_last(self, shop):
        ada, _ = _seed(shop)
        Order = shop.Order
        assert shop.orders.get_by_first().number == "A1"
        assert shop.orders.get_by_last().number == "B1"
        assert shop.orders.get_by_last(ormrepo.where(Order.customer_id == ada.id)).number == "A2"

    def test_first_without_match(self, shop):
        with pytest.raises(RecordNotFoundError):
            shop.orders.get_by_first(ormrepo.where("total > :n", n=1000))

    def test_preload(self, shop):
        _seed(shop)
        shop.session.expire_all()
        customers = shop.customers.get_by(ormrepo.preload("orders"))
        assert all("orders" in inspect(c).dict for c in customers)


class TestRelated:
    """Association loading through a relationship."""

    def test_related_orders(self, shop):
        ada, bob = _seed(shop)
        assert sorted(o.number for o in shop.customers.related(ada, "orders")) == ["A1", "A2"]
        assert [o.number for o in shop.customers.related(bob, "orders")] == ["B1"]

    def test_related_with_criteria(self, shop):
        ada, _ = _seed(shop)
        Order = shop.Order
        found = shop.customers.related(ada, "orders", ormrepo.where(Order.total > 15))
        assert [o.number for o in found] == ["A2"]

    def test_unknown_relationship(self, shop):
        ada, _ = _seed(shop)
        with pytest.raises(RepoError, match="no relationship"):
            shop.customers.related(ada, "invoices")


class TestUpdateDelete:
    """Criteria-filtered writes."""

    def test_update_fields(self, shop):
        _seed(shop)
        order = shop.orders.get_by_first()
        shop.orders.update(order, {"total": 50})
        shop.session.expire_all()
        assert shop.orders.get(order.id).total == 50

    def test_update_skipped_when_criteria_miss(self, shop):
        _seed(shop)
        Order = shop.Order
        order = shop.orders.get_by_first()
        shop.orders.update(order, {"total": 1}, ormrepo.where(Order.total > 100))
        shop.session.expire_all()
        assert shop.orders.get(order.id).total == 10

    def test_update_blank_primary_key(self, shop):
        with pytest.raises(RepoError, match="blank primary key"):
            shop.orders.update(shop.Order(number="new"), {"total": 1})

    def test_update_unknown_field(self, shop):
        _seed(shop)
        order = shop.orders.get_by_first()
        with pytest.raises(RepoError, match="Order has no column 'nmae'"):
            shop.orders.update(order, {"total": 5, "nmae": "b"})
        shop.session.expire_all()
        assert shop.orders.get(order.id).total == 10
        assert not hasattr(shop.orders.get(order.id), "nmae")

    def test_delete(self, shop):
        _seed(shop)
        order = shop.orders.get_by_first()
        shop.orders.delete(order)
        assert [o.number for o in shop.orders.get_all()] == ["A2", "B1"]

    def test_delete_skipped_when_criteria_miss(self, shop):
        _seed(shop)
        Order = shop.Order
        order = shop.orders.get_by_first()
        shop.orders.delete(order, ormrepo.where(Order.number == "nope"))
        assert len(shop.orders.get_all()) == 3


class TestIndexes:
    """DDL passthroughs."""

    def test_add_index(self, shop):
        shop.orders.add_index("idx_orders_total", "total")
        names = {ix["name"] for ix in inspect(shop.session.connection()).get_indexes("orders")}
        assert "idx_orders_total" in names

    def test_add_unique_index(self, shop):
        shop.orders.add_unique_index("uix_orders_number", "number")
        shop.orders.create(shop.Order(number="A1"))
        with pytest.raises(IntegrityError):
            shop.orders.create(shop.Order(number="A1"))

    def test_unknown_column(self, shop):
        with pytest.raises(RepoError, match="no column"):
            shop.orders.add_index("idx_bad", "missing")

    def test_mapped_table_keeps_no_index(self, shop):
        repo_class = type(shop.orders)
        for _ in range(2):
            engine = create_engine("sqlite://")
            with Session(engine) as session:
                repo_class(session).auto_migrate()
                repo_class(session).add_index("idx_orders_number", "number")
            engine.dispose()
        assert not inspect(shop.Order).local_table.indexes

        engine = create_engine("sqlite://")
        with Session(engine) as session:
            repo_class(session).auto_migrate()
            names = {ix["name"] for ix in inspect(session.connection()).get_indexes("orders")}
        engine.dispose()
        assert "idx_orders_number" not in names


class TestForeignKey:
    """The ALTER TABLE statement reaches the database connection."""

    def test_statement_executed(self, shop):
        statements = []

        def capture(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(shop.engine, "before_cursor_execute", capture)
        try:
            # SQLite has no ALTER TABLE ... ADD CONSTRAINT.
            with pytest.raises(OperationalError):
                shop.orders.add_foreign_key("customer_id", "customers(id)", "cascade", "set null")
        finally:
            event.remove(shop.engine, "before_cursor_execute", capture)
        assert statements[-1] == (
            "ALTER TABLE orders ADD CONSTRAINT orders_customer_id_customers_id_foreign "
            "FOREIGN KEY (customer_id) REFERENCES customers (id) "
            "ON DELETE CASCADE ON UPDATE SET NULL"
        )

    def test_bad_action_never_executed(self, shop):
        statements = []

        def capture(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(shop.engine, "before_cursor_execute", capture)
        try:
            with pytest.raises(RepoError, match="referential action"):
                shop.orders.add_foreign_key("customer_id", "customers(id)", "DROP", "CASCADE")
        finally:
            event.remove(shop.engine, "before_cursor_execute", capture)
        assert not any(s.startswith("ALTER TABLE") for s in statements)
