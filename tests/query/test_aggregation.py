from libcatalog.query import CatalogCounts, CatalogQueries, DependentSummary


def _seed(store):
    austen = store.create("author", {"first_name": "Jane", "family_name": "Austen"})
    fiction = store.create("genre", {"name": "Fiction"})
    romance = store.create("genre", {"name": "Romance"})
    emma = store.create(
        "book",
        {"title": "Emma", "author": austen, "summary": "s", "isbn": "i", "genre": [fiction, romance]},
    )
    store.create("bookinstance", {"book": emma, "imprint": "Penguin", "status": "Available"})
    store.create("bookinstance", {"book": emma, "imprint": "Vintage", "status": "Loaned"})
    return austen, fiction, romance, emma


def test_counts(store):
    _seed(store)
    counts = CatalogQueries(store).counts()
    assert counts == CatalogCounts(
        books=1, book_instances=2, book_instances_available=1, authors=1, genres=2
    )
    assert counts.as_dict()["genres"] == 2


def test_counts_on_empty_catalog(store):
    assert CatalogQueries(store).counts() == CatalogCounts(0, 0, 0, 0, 0)


def test_with_relations_resolves_references(store):
    austen, fiction, romance, emma = _seed(store)
    view = CatalogQueries(store).with_relations("book", emma)
    assert view["title"] == "Emma"
    assert view["url"] == f"/catalog/book/{emma}"
    assert view["author"]["full_name"] == "Austen, Jane"
    assert [g["name"] for g in view["genre"]] == ["Fiction", "Romance"]


def test_with_relations_missing_record(store):
    assert CatalogQueries(store).with_relations("book", "nope") is None


def test_with_relations_skips_vanished_targets(store):
    austen, fiction, romance, emma = _seed(store)
    store.delete("genre", romance)
    view = CatalogQueries(store).with_relations("book", emma)
    assert [g["name"] for g in view["genre"]] == ["Fiction"]


def test_dependents_of(store):
    austen, fiction, romance, emma = _seed(store)
    queries = CatalogQueries(store)
    assert queries.dependents_of("author", austen) == [DependentSummary("book", emma, "Emma")]
    assert [d.title for d in queries.dependents_of("book", emma)] == ["Penguin", "Vintage"]
    assert queries.dependents_of("bookinstance", "anything") == []


def test_related_records_grouped_by_name(store):
    austen, fiction, romance, emma = _seed(store)
    related = CatalogQueries(store).related_records("book", emma)
    assert list(related) == ["instances"]
    assert [i.imprint for i in related["instances"]] == ["Penguin", "Vintage"]


def test_list_with_relations_resolves_single_references_once(store):
    austen, fiction, romance, emma = _seed(store)
    store.reset_query_stats()
    rows = CatalogQueries(store).list_with_relations("bookinstance")
    assert [row["imprint"] for row in rows] == ["Penguin", "Vintage"]
    assert all(row["book"]["title"] == "Emma" for row in rows)
    assert len(store.query_stats()) == 2


def test_list_with_relations_uses_kind_ordering(store):
    store.create("genre", {"name": "Poetry"})
    store.create("genre", {"name": "Drama"})
    rows = CatalogQueries(store).list_with_relations("genre")
    assert [row["name"] for row in rows] == ["Drama", "Poetry"]
