from typing import Iterable, Mapping

from sqlalchemy import inspect as sa_inspect


def find_unknown_model_kwargs(model, kwargs: Mapping, *, exclude: Iterable[str] = ()) -> list[str]:
    """
    Return the kwarg keys that are not mapped attributes of `model`, plus any key listed
    in `exclude` (attributes that exist but callers may not set).
    - model: the SQLAlchemy model class (not instance)
    - kwargs: incoming keyword input
    """
    mapper = sa_inspect(model)
    # mapper.attrs includes columns and relationships; attr.key is the name callers use
    allowed = {attr.key for attr in mapper.attrs} - set(exclude)
    return sorted(k for k in kwargs.keys() if k not in allowed)
