import pytest

from libcatalog.utils import camel_to_snake, normalize_kind


@pytest.mark.parametrize(
    "label",
    ["BookInstance", "book_instance", "bookinstance", " book-instance "],
)
def test_normalize_kind(label):
    assert normalize_kind(label) == "bookinstance"


def test_camel_to_snake():
    assert camel_to_snake("BookInstance") == "book_instance"
    assert camel_to_snake("Genre") == "genre"
