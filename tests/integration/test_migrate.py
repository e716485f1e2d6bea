from sqlalchemy import inspect, text

from recordstore.db.schema_sync import missing_columns
from sample_models import Gadget


def _columns(db, table_name):
    return {c["name"] for c in inspect(db.connection()).get_columns(table_name)}


def _drop_gadgets(db):
    db.execute(text("DROP TABLE IF EXISTS gadgets"))
    db.commit()


def test_migrate_creates_missing_table(repo, db):
    _drop_gadgets(db)

    assert repo.migrate(Gadget) is True
    assert _columns(db, "gadgets") == {"id", "name", "color"}


def test_migrate_is_idempotent(repo, db):
    _drop_gadgets(db)

    assert repo.migrate(Gadget) is True
    before = _columns(db, "gadgets")
    assert repo.migrate(Gadget) is True
    assert _columns(db, "gadgets") == before


def test_migrate_adds_columns_declared_on_the_model(repo, db):
    _drop_gadgets(db)
    db.execute(text("CREATE TABLE gadgets (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL)"))
    db.execute(text("INSERT INTO gadgets (id, name) VALUES (1, 'widget')"))
    db.commit()

    assert [col.name for _, _, col in missing_columns(db.connection(), Gadget)] == ["color"]
    assert repo.migrate(Gadget) is True
    assert "color" in _columns(db, "gadgets")

    row = repo.first(Gadget, 1)
    assert (row.name, row.color) == ("widget", None)
    assert missing_columns(db.connection(), Gadget) == []
