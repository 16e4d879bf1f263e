import pytest

from libcatalog.adapters import ConnectionConfig, SQLiteAdapter
from libcatalog.catalog import CatalogService
from libcatalog.persistence import EntityStore


@pytest.fixture
def store(tmp_path):
    config = ConnectionConfig.from_dsn(f"sqlite:///{tmp_path / 'catalog.db'}")
    store = EntityStore(SQLiteAdapter(), config)
    store.open()
    store.ensure_schema()
    yield store
    store.close()


@pytest.fixture
def catalog(store):
    return CatalogService(store)


@pytest.fixture
def austen(catalog):
    return catalog.create(
        "author",
        {"first_name": "Jane", "family_name": "Austen", "date_of_birth": "1775-12-16"},
    ).value


@pytest.fixture
def fiction(catalog):
    return catalog.create("genre", {"name": "Fiction"}).value


@pytest.fixture
def emma(catalog, austen, fiction):
    return catalog.create(
        "book",
        {
            "title": "Emma",
            "author": austen.pk,
            "summary": "A young woman meddles in matchmaking.",
            "isbn": "9780141439587",
            "genre": [fiction.pk],
        },
    ).value
