import json

import pytest
from sqlalchemy.orm import sessionmaker

from stockledger.database import make_engine
from stockledger.exceptions import PersistenceError
from stockledger.models.storage_record import StorageRecord
from stockledger.services.ledger import StockLedger
from stockledger.storage import MemoryStorage, SqlStorage


class FailingStorage(MemoryStorage):
    def save(self, key, records):
        raise PersistenceError(key, "quota exceeded")


def _populate(ledger: StockLedger) -> None:
    hammer = ledger.create({"name": "Hammer", "code": "H1", "category": "Tools", "supplier": "ACME",
                            "stock": 3, "min_stock": 5, "buy_price": 4.25, "sell_price": 9.99})
    nail = ledger.create({"name": "Nail", "code": "N1", "stock": 100, "min_stock": 20})
    ledger.move_stock(nail.id, "out", 30)
    ledger.update(hammer.id, {"name": "Claw Hammer", "code": "H1", "stock": 4, "min_stock": 5})


class TestMemoryStorage:
    def test_missing_key_loads_empty(self):
        assert MemoryStorage().load("products") == []

    @pytest.mark.parametrize("raw", ["not json", '{"a": 1}', "null"])
    def test_unparseable_value_loads_empty(self, raw):
        assert MemoryStorage({"products": raw}).load("products") == []

    def test_save_overwrites_whole_value(self):
        storage = MemoryStorage()
        storage.save("products", [{"id": "1"}, {"id": "2"}])
        storage.save("products", [{"id": "3"}])
        assert json.loads(storage.raw("products")) == [{"id": "3"}]

    def test_unserializable_records(self):
        with pytest.raises(PersistenceError):
            MemoryStorage().save("products", [object()])


class TestSqlStorage:
    def test_save_then_load(self, session_factory):
        storage = SqlStorage(session_factory)
        storage.save("history", [{"id": "a"}])
        storage.save("history", [{"id": "b"}])
        assert storage.load("history") == [{"id": "b"}]
        assert storage.load("products") == []

    def test_corrupt_row_loads_empty(self, session_factory):
        db = session_factory()
        db.add(StorageRecord(key="products", value="{broken"))
        db.commit()
        db.close()
        assert SqlStorage(session_factory).load("products") == []

    def test_database_error_on_load_raises(self, session_factory):
        storage = SqlStorage(session_factory)
        storage.save("products", [{"id": "a"}])
        StorageRecord.__table__.drop(session_factory.kw["bind"])
        with pytest.raises(PersistenceError) as exc:
            storage.load("products")
        assert exc.value.operation == "load"
        assert exc.value.key == "products"

    def test_save_failure_raises(self, session_factory):
        with pytest.raises(PersistenceError) as exc:
            SqlStorage(session_factory).save("products", [object()])
        assert exc.value.key == "products"


class TestLedgerPersistence:
    def test_round_trip_memory(self, storage, test_settings, clock):
        ledger = StockLedger(storage, settings=test_settings, clock=clock)
        _populate(ledger)

        reloaded = StockLedger(storage, settings=test_settings)
        assert reloaded.list_products() == ledger.list_products()
        assert reloaded.list_history() == ledger.list_history()

    def test_round_trip_sql(self, session_factory, test_settings, clock):
        ledger = StockLedger(SqlStorage(session_factory), settings=test_settings, clock=clock)
        _populate(ledger)

        reloaded = StockLedger(SqlStorage(session_factory), settings=test_settings)
        assert reloaded.list_products() == ledger.list_products()
        assert reloaded.list_history() == ledger.list_history()

    def test_every_mutation_is_saved(self, storage, ledger, widget):
        ledger.move_stock(widget.id, "in", 2)
        saved = json.loads(storage.raw("products"))
        assert saved[0]["stock"] == 12
        assert len(json.loads(storage.raw("history"))) == 2

    def test_unreadable_records_start_empty(self, test_settings):
        storage = MemoryStorage({"products": '[{"foo": 1}]'})
        assert StockLedger(storage, settings=test_settings).list_products() == []

    def test_persistence_failure_is_surfaced(self, test_settings, clock):
        ledger = StockLedger(FailingStorage(), settings=test_settings, clock=clock)
        with pytest.raises(PersistenceError):
            ledger.create({"name": "Widget"})
        # in-memory state already advanced
        assert [p.name for p in ledger.list_products()] == ["Widget"]

    def test_unreachable_database_does_not_wipe_data(self, session_factory, test_settings, tmp_path):
        StockLedger(SqlStorage(session_factory), settings=test_settings).create({"name": "Precious"})

        unreachable = sessionmaker(bind=make_engine(f"sqlite:///{tmp_path}/missing/dir/stock.db"))
        with pytest.raises(PersistenceError):
            StockLedger(SqlStorage(unreachable), settings=test_settings)

        reloaded = StockLedger(SqlStorage(session_factory), settings=test_settings)
        assert [p.name for p in reloaded.list_products()] == ["Precious"]
