from datetime import datetime, timedelta, timezone

import pytest

from ropreset.accounts import ROLE_ADMIN, ROLE_USER
from ropreset.market import (
    MAX_SEARCH_LIMIT,
    ProductService,
    StoreNotFoundError,
    StoreService,
    next_exp_date,
)


class FakeStoreRepo:
    def __init__(self, stores=None):
        self.stores = stores or {}
        self.updated = []
        self.ratings = []

    def find_store_by_owner_id(self, user_id):
        return next((s for s in self.stores.values() if s["owner_id"] == user_id), None)

    def find_store_by_id(self, store_id):
        return self.stores.get(store_id)

    def create_store(self, data):
        store = dict(data, id=f"s{len(self.stores) + 1}")
        self.stores[store["id"]] = store
        return store

    def update_store(self, store_id, data):
        self.updated.append(store_id)
        self.stores[store_id].update(data)
        return self.stores[store_id]

    def update_rating_store(self, store_id, data):
        self.ratings.append((store_id, data))
        return self.stores[store_id]


class FakeProductRepo:
    def __init__(self):
        self.calls = []

    def partial_search_product_list(self, query):
        self.calls.append(("search", query))
        return {"items": [], "total": 0}

    def create_product_list(self, products):
        self.calls.append(("create", products))
        return products

    def update_product_list(self, store_id, updates):
        self.calls.append(("update", store_id, updates))
        return updates

    def patch_product_list(self, store_id, patches):
        self.calls.append(("patch", store_id, patches))
        return patches

    def delete_product_list(self, store_id, ids):
        self.calls.append(("delete", store_id, ids))


@pytest.fixture
def stores():
    return FakeStoreRepo({"s1": {"id": "s1", "owner_id": "u1", "name": "shop"}})


def test_next_exp_date_by_role():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert next_exp_date(ROLE_ADMIN, now) == now + timedelta(days=7)
    assert next_exp_date(ROLE_USER, now) == now + timedelta(days=2)


def test_search_caps_limit_and_forces_filters():
    products = FakeProductRepo()
    service = ProductService(products, FakeStoreRepo())
    before = datetime.now(timezone.utc)
    service.partial_search_product_list({"limit": 50, "skip": 3, "filtering": {"name": "x"}})
    after = datetime.now(timezone.utc)
    _, query = products.calls[0]
    assert query["limit"] == MAX_SEARCH_LIMIT
    assert query["skip"] == 3
    assert query["filtering"]["name"] == "x"
    assert query["filtering"]["is_published"] is True
    assert before <= query["filtering"]["exp_date"] <= after
    assert query["sorting"] == {"exp_date": 1, "m": 1, "baht": 1}


def test_search_keeps_small_limit():
    products = FakeProductRepo()
    ProductService(products, FakeStoreRepo()).partial_search_product_list({"limit": 5})
    assert products.calls[0][1]["limit"] == 5


def test_get_my_product_list_filters_by_store(stores):
    products = FakeProductRepo()
    ProductService(products, stores).get_my_product_list("u1", ROLE_USER, 0, 10)
    _, query = products.calls[0]
    assert query["filtering"] == {"store_id": "s1"}
    assert query["sorting"] == {"exp_date": 1}
    assert (query["skip"], query["limit"]) == (0, 10)


def test_get_my_product_list_without_store():
    service = ProductService(FakeProductRepo(), FakeStoreRepo())
    with pytest.raises(StoreNotFoundError, match="store not found"):
        service.get_my_product_list("nobody", ROLE_USER, 0, 10)


def test_create_product_list_sets_store_and_expiry(stores):
    service = ProductService(FakeProductRepo(), stores)
    before = datetime.now(timezone.utc)
    created = service.create_product_list("u1", ROLE_ADMIN, [{"name": "a"}, {"name": "b"}])
    assert [p["store_id"] for p in created] == ["s1", "s1"]
    assert all(p["is_published"] for p in created)
    for product in created:
        assert product["exp_date"] - before >= timedelta(days=7)
        assert product["exp_date"] - before < timedelta(days=7, minutes=1)


def test_create_product_list_without_store():
    service = ProductService(FakeProductRepo(), FakeStoreRepo())
    with pytest.raises(StoreNotFoundError):
        service.create_product_list("nobody", ROLE_USER, [{"name": "a"}])


def test_update_product_list_passes_store_id(stores):
    products = FakeProductRepo()
    updates = [{"id": "p1", "name": "new"}]
    result = ProductService(products, stores).update_product_list("u1", ROLE_USER, updates)
    assert result == updates
    assert products.calls[0][:2] == ("update", "s1")


def test_patch_product_list_keeps_only_allowed_fields(stores):
    products = FakeProductRepo()
    patches = [{"id": "p1", "zeny": 100, "quantity": 2, "is_published": False, "name": "x"}]
    result = ProductService(products, stores).patch_product_list("u1", ROLE_USER, patches)
    assert result == [{"id": "p1", "zeny": 100, "quantity": 2, "is_published": False}]
    assert products.calls[0][1] == "s1"


def test_renew_exp_date_product_list(stores):
    products = FakeProductRepo()
    before = datetime.now(timezone.utc)
    result = ProductService(products, stores).renew_exp_date_product_list(
        "u1", ROLE_USER, ["p1", "p2"]
    )
    assert [p["id"] for p in result] == ["p1", "p2"]
    for patch in result:
        assert timedelta(days=2) <= patch["exp_date"] - before < timedelta(days=2, minutes=1)


def test_delete_product_list(stores):
    products = FakeProductRepo()
    ProductService(products, stores).delete_product_list("u1", ["p1"])
    assert products.calls == [("delete", "s1", ["p1"])]


def test_store_service_create_find_and_update():
    repo = FakeStoreRepo()
    service = StoreService(repo)
    store = service.create_store({"owner_id": "u9", "name": "old"})
    assert service.find_store_by_id(store["id"]) == store
    assert service.find_my_store("u9") == store
    updated = service.update_store("u9", {"name": "new"})
    assert updated["name"] == "new"
    assert repo.updated == [store["id"]]


def test_store_service_update_without_store():
    with pytest.raises(StoreNotFoundError):
        StoreService(FakeStoreRepo()).update_store("nobody", {"name": "x"})


def test_store_service_update_rating(stores):
    service = StoreService(stores)
    result = service.update_rating_store("s1", {"rating": 5})
    assert result["id"] == "s1"
    assert stores.ratings == [("s1", {"rating": 5})]