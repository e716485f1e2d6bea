"""
Association load policy.

Read operations take an explicit ``load`` argument naming the relationships
to eager-load instead of relying on implicit reflection. Accepted values:

* ``ALL_ASSOCIATIONS``: every relationship declared on the record type.
* an iterable of relationship names; dotted paths (``"books.reviews"``)
  chain into nested relationships.
* ``None`` or an empty iterable: no eager loading.
"""
from __future__ import annotations

from typing import Iterable, List, Union

from sqlalchemy import inspect
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.strategy_options import Load


class _AllAssociations:
    """Sentinel selecting every relationship on the mapper."""

    def __repr__(self) -> str:
        return "ALL_ASSOCIATIONS"


ALL_ASSOCIATIONS = _AllAssociations()

LoadPolicy = Union[_AllAssociations, Iterable[str], str, None]


def relationship_names(model) -> List[str]:
    return [rel.key for rel in inspect(model).relationships]


def _path_option(model, path: str) -> Load:
    option = None
    current = model
    for part in path.split("."):
        # Unknown names raise AttributeError from the class lookup
        attr = getattr(current, part)
        option = selectinload(attr) if option is None else option.selectinload(attr)
        current = attr.property.mapper.class_
    return option


def resolve_load_options(model, load: LoadPolicy) -> List[Load]:
    """Translate a load policy into ``selectinload`` options for ``model``."""
    if load is None:
        return []
    if load is ALL_ASSOCIATIONS:
        names = relationship_names(model)
    elif isinstance(load, str):
        names = [load]
    else:
        names = list(load)
    return [_path_option(model, name) for name in names]
