# _registry.py
from __future__ import annotations
from typing import Any, NamedTuple

from .base import BaseConfig, AntiCluster


class _Entry(NamedTuple):
    cls         : type[AntiCluster]
    config_cls  : type[BaseConfig]


_SOLVERS: dict[str, _Entry] = {}


def register_solver(*names: str, config: type[BaseConfig] = BaseConfig):
    """
    Class decorator registering a solver under one or more aliases.

    ``config`` is the config dataclass the solver is built from; ``get_solver``
    refuses any other config type.
    """
    if not names:
        raise ValueError("register_solver() needs at least one name")

    def _decorator(cls: type[AntiCluster]):
        for name in names:
            key = name.lower()
            if key in _SOLVERS and _SOLVERS[key].cls is not cls:
                raise ValueError(
                    f"Solver name '{name}' already taken by {_SOLVERS[key].cls.__name__}"
                )
            _SOLVERS[key] = _Entry(cls, config)
        return cls
    return _decorator


def available_solvers() -> list[str]:
    """Registered solver names (aliases included), sorted."""
    return sorted(_SOLVERS)


def get_solver(name: str, /, *args: Any, **kwargs: Any) -> AntiCluster:
    """
    Instantiate a registered solver.

    Parameters
    ----------
    name : str
        One of the names given to ``@register_solver`` (case-insensitive).
    config : BaseConfig
        **Required**, by keyword or as first positional argument. Must be an
        instance of the config type the solver was registered with
        (``ExchangeConfig`` for the exchange solvers, ``ILPConfig`` for the
        exact ones).
    *args, **kwargs
        Forwarded to the solver's ``__init__`` after the config.

    Returns
    -------
    AntiCluster
        An unfitted solver instance.
    """
    try:
        entry = _SOLVERS[name.lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown solver '{name}'. Available: {available_solvers()}") from exc

    if "config" in kwargs:
        config = kwargs.pop("config")
    elif args:
        config, *args = args
    else:
        raise TypeError(
            "get_solver() missing required argument 'config'. "
            f"Call it like get_solver('{name}', config={entry.config_cls.__name__}(...))."
        )

    if not isinstance(config, entry.config_cls):
        raise TypeError(
            f"Solver '{name}' needs a {entry.config_cls.__name__} "
            f"(got {type(config).__name__})."
        )

    return entry.cls(config, *args, **kwargs)
