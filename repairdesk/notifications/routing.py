"""Brand-based supplier routing.

Some manufacturers are serviced on behalf of an external supplier who wants
SMS or email updates about those tickets. Routes are plain configuration: a
contact, the brands it covers and the transition kinds it cares about.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from repairdesk.config import SupplierRouteConfig
from repairdesk.notifications.templates import TransitionKind


def _brand_key(name: str) -> str:
    return " ".join(name.split()).casefold()


@dataclass(frozen=True)
class SupplierRoute:
    name: str
    phone: str
    email: str
    brands: frozenset[str]
    notify_on: frozenset[TransitionKind]

    @classmethod
    def from_config(cls, cfg: SupplierRouteConfig) -> SupplierRoute:
        return cls(
            name=cfg.name,
            phone=cfg.phone,
            email=cfg.email,
            brands=frozenset(_brand_key(b) for b in cfg.brands),
            notify_on=frozenset(TransitionKind(k) for k in cfg.notify_on),
        )

    def covers(self, manufacturer: str | None) -> bool:
        return bool(manufacturer) and _brand_key(manufacturer) in self.brands

    def matches(self, manufacturer: str | None, kind: TransitionKind) -> bool:
        return kind in self.notify_on and self.covers(manufacturer)


class SupplierRouting:
    def __init__(self, routes: Iterable[SupplierRoute] = ()):
        self._routes = list(routes)

    @classmethod
    def from_config(cls, configs: Iterable[SupplierRouteConfig]) -> SupplierRouting:
        return cls(SupplierRoute.from_config(c) for c in configs)

    @property
    def routes(self) -> list[SupplierRoute]:
        return list(self._routes)

    def is_routed(self, manufacturer: str | None) -> bool:
        return any(r.covers(manufacturer) for r in self._routes)

    def routes_for(self, manufacturer: str | None, kind: TransitionKind) -> list[SupplierRoute]:
        return [r for r in self._routes if r.matches(manufacturer, kind)]
