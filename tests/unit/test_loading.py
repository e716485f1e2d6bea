import pytest

from recordstore.db.loading import ALL_ASSOCIATIONS, relationship_names, resolve_load_options
from sample_models import Author, Book, Gadget


def test_relationship_names_lists_mapper_relationships():
    assert relationship_names(Author) == ["books"]
    assert sorted(relationship_names(Book)) == ["author", "reviews"]
    assert relationship_names(Gadget) == []


def test_no_policy_means_no_options():
    assert resolve_load_options(Author, None) == []
    assert resolve_load_options(Author, []) == []


def test_all_associations_covers_every_relationship():
    assert len(resolve_load_options(Book, ALL_ASSOCIATIONS)) == 2
    assert resolve_load_options(Gadget, ALL_ASSOCIATIONS) == []


def test_single_name_and_dotted_path_yield_one_option_each():
    assert len(resolve_load_options(Author, "books")) == 1
    assert len(resolve_load_options(Author, ["books", "books.reviews"])) == 2


def test_unknown_relationship_raises():
    with pytest.raises(AttributeError):
        resolve_load_options(Author, ["publisher"])
    with pytest.raises(AttributeError):
        resolve_load_options(Author, ["books.publisher"])


def test_sentinel_repr():
    assert repr(ALL_ASSOCIATIONS) == "ALL_ASSOCIATIONS"
