from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Optional, Type


class AcquirerRegistryError(RuntimeError):
    pass


@dataclass(frozen=True)
class AcquirerRegistration:
    kind: str
    acquirer_class: Type[Any]


class AcquirerRegistry:
    _registry: ClassVar[Dict[str, Type[Any]]] = {}

    @classmethod
    def register(
        cls,
        *,
        kind: str,
        acquirer_class: Type[Any],
        overwrite: bool = False,
    ) -> None:
        if not overwrite and kind in cls._registry:
            existing = cls._registry[kind]
            raise AcquirerRegistryError(
                f"Acquirer already registered for kind={kind!r}: {existing}"
            )
        cls._registry[kind] = acquirer_class

    @classmethod
    def get(cls, kind: str) -> Type[Any]:
        try:
            return cls._registry[kind]
        except KeyError as exc:
            raise AcquirerRegistryError(f"No acquirer registered for kind={kind!r}") from exc

    @classmethod
    def try_get(cls, kind: str) -> Optional[Type[Any]]:
        return cls._registry.get(kind)

    @classmethod
    def registrations(cls) -> list[AcquirerRegistration]:
        return [AcquirerRegistration(kind=k, acquirer_class=v) for k, v in sorted(cls._registry.items())]

    @classmethod
    def clear(cls) -> None:
        cls._registry.clear()


def register_acquirer(
    *,
    kind: str,
    overwrite: bool = False,
) -> Callable[[Type[Any]], Type[Any]]:
    def decorator(acquirer_class: Type[Any]) -> Type[Any]:
        AcquirerRegistry.register(
            kind=kind,
            acquirer_class=acquirer_class,
            overwrite=overwrite,
        )
        return acquirer_class

    return decorator
