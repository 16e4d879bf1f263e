from datetime import date

import pytest

from libcatalog.catalog import Author, Book, BookInstance, Genre
from libcatalog.core import (
    Model,
    ModelConfigurationError,
    ReferenceField,
    ReferenceListField,
    RelationRegistry,
    StringField,
    relation_registry,
    resolve_model,
)
from libcatalog.errors import UnknownKindError


def test_model_metadata_collects_fields_in_order():
    assert list(Author._meta.fields.keys()) == [
        "id",
        "first_name",
        "family_name",
        "date_of_birth",
        "date_of_death",
    ]
    assert Author._meta.primary_key.name == "id"
    assert Author._meta.table_name == "author"
    assert BookInstance._meta.table_name == "book_instance"
    assert BookInstance._meta.kind == "bookinstance"


def test_model_tracks_reference_fields():
    assert [f.name for f in Book._meta.references] == ["author", "genre"]
    assert Book._meta.fields["author"].remote_model is Author
    assert Book._meta.fields["genre"].remote_model is Genre
    assert Book._meta.fields["genre"].many is True


def test_model_initializes_empty_values():
    book = Book(title="Emma")
    assert book.title == "Emma"
    assert book.pk is None
    assert book.author is None
    assert book.genre == []


@pytest.mark.parametrize("kind", ["bookinstance", "book_instance", "BookInstance", " Book-Instance ", BookInstance])
def test_resolve_model_accepts_aliases(kind):
    assert resolve_model(kind) is BookInstance


@pytest.mark.parametrize("kind", ["publisher", "", Model, int, 3])
def test_resolve_model_rejects_unknown_kinds(kind):
    with pytest.raises(UnknownKindError):
        resolve_model(kind)


def test_declaring_id_field_errors():
    with pytest.raises(ModelConfigurationError):

        class BadIdentifier(Model):
            id = StringField()


def test_ordering_must_name_a_field():
    with pytest.raises(ModelConfigurationError):

        class BadOrdering(Model):
            label = StringField()

            class Meta:
                ordering = "missing"


def test_author_derived_attributes():
    author = Author(
        id="a1",
        first_name="Jane",
        family_name="Austen",
        date_of_birth=date(1775, 12, 16),
        date_of_death="1817-07-18",
    )
    assert author.full_name == "Austen, Jane"
    assert author.lifespan == "Dec 16, 1775 - Jul 18, 1817"
    assert author.norm_dob == "1775-12-16"
    assert author.norm_dod == "1817-07-18"
    assert author.url == "/catalog/author/a1"


def test_author_derived_attributes_when_parts_missing():
    author = Author(first_name="Jane")
    assert author.full_name == ""
    assert author.lifespan == " - "
    assert author.norm_dob == ""


def test_book_instance_derived_attributes():
    instance = BookInstance(id="i1", imprint="Penguin", due_back=date(2024, 3, 5))
    assert instance.due_back_formatted == "Mar 5, 2024"
    assert instance.norm_due_back == "2024-03-05"
    assert instance.url == "/catalog/bookinstance/i1"


def test_to_dict_includes_derived_on_request():
    genre = Genre(id="g1", name="Fiction")
    assert genre.to_dict() == {"id": "g1", "name": "Fiction"}
    assert genre.to_dict(include_derived=True) == {
        "id": "g1",
        "name": "Fiction",
        "url": "/catalog/genre/g1",
    }


def test_display_title_uses_display_field():
    assert Book(title="Emma").display_title == "Emma"
    assert Author(first_name="Jane", family_name="Austen").display_title == "Austen, Jane"
    assert BookInstance(id="i1", imprint="Penguin").display_title == "Penguin"


def test_reference_list_field_normalizes_input():
    field = Book._meta.fields["genre"]
    assert field.clean(None) == []
    assert field.clean("g1") == ["g1"]
    assert field.clean([" g1 ", "", "g2", "g1", None]) == ["g1", "g2"]
    assert field.clean([Genre(id="g3", name="Poetry")]) == ["g3"]


def test_reference_list_field_storage_round_trip():
    field = Book._meta.fields["genre"]
    stored = field.to_db(["g1", "g2"])
    assert stored == '["g1", "g2"]'
    assert field.to_python(stored) == ["g1", "g2"]
    assert field.to_python(None) == []


def test_reference_field_accepts_record_instances():
    book = Book(author=Author(id="a1", first_name="Jane", family_name="Austen"))
    assert book.author == "a1"
    assert Book._meta.fields["author"].clean("  a2 ") == "a2"


def test_registry_lists_incoming_references():
    assert relation_registry.references_to(Author) == [(Book, Book._meta.fields["author"])]
    assert relation_registry.references_to(Genre) == [(Book, Book._meta.fields["genre"])]
    assert relation_registry.references_to(Book) == [(BookInstance, BookInstance._meta.fields["book"])]
    assert relation_registry.references_to(BookInstance) == []


def test_registry_resolves_string_targets_lazily():
    registry = RelationRegistry()

    class Shelf:
        pass

    class Volume:
        pass

    field = ReferenceField("Shelf")
    registry.register_field(Volume, field)
    assert registry.unresolved() == [(Volume, field)]

    registry.register_model(Shelf)
    assert registry.unresolved() == []
    assert field.remote_model is Shelf
    assert registry.references_to(Shelf) == [(Volume, field)]


def test_reference_list_defaults_to_optional():
    assert ReferenceListField("Genre").required is False
    assert ReferenceField("Author").required is True
