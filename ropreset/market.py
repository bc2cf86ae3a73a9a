"""Player stores and the products they list for sale.

A store repository provides ``find_store_by_id(store_id)``,
``find_store_by_owner_id(user_id)``, ``create_store(data)``,
``update_store(store_id, data)`` and ``update_rating_store(store_id, data)``.
A product repository provides ``partial_search_product_list(query)``,
``create_product_list(products)``, ``update_product_list(store_id, updates)``,
``patch_product_list(store_id, patches)`` and
``delete_product_list(store_id, ids)``.

A product query is a mapping with ``filtering`` and ``sorting`` mappings and
``skip`` and ``limit`` numbers. A sort value of 1 means ascending.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from ropreset.accounts import ROLE_ADMIN

__all__ = [
    "MAX_SEARCH_LIMIT",
    "StoreNotFoundError",
    "ProductService",
    "StoreService",
    "next_exp_date",
]

MAX_SEARCH_LIMIT = 20
ADMIN_LISTING_PERIOD = timedelta(days=7)
USER_LISTING_PERIOD = timedelta(days=2)
ASCENDING = 1


class StoreNotFoundError(Exception):
    """The user has no store."""

    def __init__(self, message: str = "store not found") -> None:
        super().__init__(message)


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _set(target: Any, name: str, value: Any) -> None:
    if isinstance(target, dict):
        target[name] = value
    else:
        setattr(target, name, value)


def next_exp_date(role: str, now: datetime | None = None) -> datetime:
    """Return when a listing made now by a user of ``role`` expires."""
    start = now if now is not None else datetime.now(timezone.utc)
    period = ADMIN_LISTING_PERIOD if role == ROLE_ADMIN else USER_LISTING_PERIOD
    return start + period


class ProductService:
    """Lists, searches and maintains products of users' stores."""

    def __init__(self, product_repo: Any, store_repo: Any) -> None:
        self.product_repo = product_repo
        self.store_repo = store_repo

    def _store(self, user_id: str) -> Any:
        store = self.store_repo.find_store_by_owner_id(user_id)
        if store is None:
            raise StoreNotFoundError()
        return store

    def partial_search_product_list(self, query: Mapping[str, Any]) -> Any:
        """Search published, unexpired products, soonest expiry and cheapest first."""
        search = dict(query)
        search["limit"] = min(search.get("limit", 0) or 0, MAX_SEARCH_LIMIT)

        filtering = dict(search.get("filtering") or {})
        filtering["exp_date"] = datetime.now(timezone.utc)
        filtering["is_published"] = True
        search["filtering"] = filtering

        sorting = dict(search.get("sorting") or {})
        sorting["exp_date"] = ASCENDING
        sorting["m"] = ASCENDING
        sorting["baht"] = ASCENDING
        search["sorting"] = sorting

        return self.product_repo.partial_search_product_list(search)

    def get_my_product_list(self, user_id: str, role: str, skip: int, limit: int) -> Any:
        """Return the products of the user's own store, soonest expiry first."""
        store = self._store(user_id)
        return self.product_repo.partial_search_product_list(
            {
                "filtering": {"store_id": str(_field(store, "id"))},
                "sorting": {"exp_date": ASCENDING},
                "skip": skip,
                "limit": limit,
            }
        )

    def create_product_list(self, user_id: str, role: str, products: list[Any]) -> list[Any]:
        """List new products in the user's store, published until the role's expiry."""
        store = self._store(user_id)
        expires = next_exp_date(role)
        for product in products:
            _set(product, "store_id", _field(store, "id"))
            _set(product, "is_published", True)
            _set(product, "exp_date", expires)
        return self.product_repo.create_product_list(products)

    def update_product_list(self, user_id: str, role: str, updates: list[Any]) -> list[Any]:
        """Replace products of the user's store."""
        store = self._store(user_id)
        return self.product_repo.update_product_list(_field(store, "id"), updates)

    def patch_product_list(self, user_id: str, role: str, patches: Iterable[Any]) -> list[Any]:
        """Change price, quantity or publication of products of the user's store."""
        allowed = [
            {
                "id": _field(patch, "id"),
                "zeny": _field(patch, "zeny"),
                "quantity": _field(patch, "quantity"),
                "is_published": _field(patch, "is_published"),
            }
            for patch in patches
        ]
        store = self._store(user_id)
        return self.product_repo.patch_product_list(_field(store, "id"), allowed)

    def renew_exp_date_product_list(self, user_id: str, role: str, ids: Iterable[str]) -> list[Any]:
        """Extend the listings of the given products by the role's period from now."""
        expires = next_exp_date(role)
        patches = [{"id": product_id, "exp_date": expires} for product_id in ids]
        store = self._store(user_id)
        return self.product_repo.patch_product_list(_field(store, "id"), patches)

    def delete_product_list(self, user_id: str, ids: list[str]) -> None:
        """Remove products from the user's store."""
        store = self._store(user_id)
        self.product_repo.delete_product_list(_field(store, "id"), ids)


class StoreService:
    """Creates and edits players' stores."""

    def __init__(self, store_repo: Any) -> None:
        self.store_repo = store_repo

    def find_store_by_id(self, store_id: str) -> Any:
        """Return the store with this id."""
        return self.store_repo.find_store_by_id(store_id)

    def find_my_store(self, user_id: str) -> Any:
        """Return the store the user owns."""
        return self.store_repo.find_store_by_owner_id(user_id)

    def create_store(self, data: Any) -> Any:
        """Open a new store."""
        return self.store_repo.create_store(data)

    def update_store(self, user_id: str, data: Any) -> Any:
        """Change the user's own store."""
        store = self.store_repo.find_store_by_owner_id(user_id)
        if store is None:
            raise StoreNotFoundError()
        return self.store_repo.update_store(str(_field(store, "id")), data)

    def update_rating_store(self, store_id: str, data: Any) -> Any:
        """Record a rating for a store."""
        return self.store_repo.update_rating_store(store_id, data)