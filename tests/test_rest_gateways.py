import asyncio
import base64

import pytest

from dal import DataAccess, create_data_access
from dal.config import ClientConfig
from dal.errors import DataAccessError
from dal.realtime import PollingRealtimeGateway
from dal.rest import RestProductsGateway
from services.product_rows import PLACEHOLDER_IMAGE

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def product(**overrides):
    row = {"name": "Caneta", "slug": "caneta", "price": 2.5, "code": "C-001"}
    row.update(overrides)
    return row


ORDER = {"customer_name": "Maria", "customer_phone": "11987654321", "subtotal": 5.0, "total": 5.0}
ITEMS = [{"product_name": "Caneta", "product_code": "C-001", "unit_price": 2.5, "quantity": 2, "total_price": 5.0}]


class TestCompositionRoot:
    @pytest.mark.asyncio
    async def test_rest_mode_builds_rest_gateways(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            assert isinstance(dal, DataAccess)
            assert isinstance(dal.products, RestProductsGateway)
            assert isinstance(dal.realtime, PollingRealtimeGateway)


class TestRestProducts:
    """Products through the DAL against the live REST backend"""

    @pytest.mark.asyncio
    async def test_insert_and_reads(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.products.insert(product())
            assert result.error is None

            rows = await dal.products.fetch_all()
            assert [r["code"] for r in rows] == ["C-001"]
            assert rows[0]["image_url"] == PLACEHOLDER_IMAGE

            found = await dal.products.find_by_slug("caneta")
            assert found["id"] == rows[0]["id"]
            assert await dal.products.find_by_slug("missing") is None
            assert await dal.products.find_by_code("C-001") == [{"id": rows[0]["id"]}]

    @pytest.mark.asyncio
    async def test_find_by_code_with_slash(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            await dal.products.insert(product(code="AB/12"))
            product_id = (await dal.products.fetch_all())[0]["id"]

            assert await dal.products.find_by_code("AB/12") == [{"id": product_id}]

    @pytest.mark.asyncio
    async def test_rejected_insert_returns_error(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            await dal.products.insert(product())
            result = await dal.products.insert(product(code="C-002"))

            assert result.error is not None
            assert "Slug already exists" in result.error.message

    @pytest.mark.asyncio
    async def test_update_and_remove(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            await dal.products.insert(product())
            product_id = (await dal.products.fetch_all())[0]["id"]

            assert (await dal.products.update(product_id, {"price": 9.9})).error is None
            assert (await dal.products.fetch_all())[0]["price"] == 9.9

            assert (await dal.products.remove(product_id)).error is None
            assert await dal.products.fetch_all() == []

    @pytest.mark.asyncio
    async def test_upsert_keeps_existing_image(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            await dal.products.insert(product(image_url="https://cdn/real.png"))

            result = await dal.products.upsert([product(name="Caneta Nova"), product(code="C-002", slug="lapis")])
            assert result.error is None

            rows = {r["code"]: r for r in await dal.products.fetch_all()}
            assert rows["C-001"]["name"] == "Caneta Nova"
            assert rows["C-001"]["image_url"] == "https://cdn/real.png"
            assert rows["C-002"]["image_url"] == PLACEHOLDER_IMAGE

    @pytest.mark.asyncio
    async def test_upsert_without_code_fails_before_sending(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.products.upsert([product(code=None)])

            assert result.error is not None
            assert await dal.products.fetch_all() == []


class TestRestResources:
    @pytest.mark.asyncio
    async def test_categories(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            created = await dal.categories.insert({"name": "Papelaria", "slug": "papelaria"})
            assert created.data["slug"] == "papelaria"

            batch = await dal.categories.insert_batch(
                [{"name": "Papelaria", "slug": "papelaria"}, {"name": "Arte", "slug": "arte"}]
            )
            assert [c["slug"] for c in batch.data] == ["arte"]
            assert [c["name"] for c in await dal.categories.fetch_all()] == ["Arte", "Papelaria"]

    @pytest.mark.asyncio
    async def test_settings_update_inserts_when_absent(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            assert (await dal.settings.update("whatsapp_number", "5511900001111")).error is None
            assert await dal.settings.fetch_all() == [{"key": "whatsapp_number", "value": "5511900001111"}]

    @pytest.mark.asyncio
    async def test_banners_and_payment_conditions(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            await dal.banners.insert({"image_url": "/b.png", "sort_order": 1})
            await dal.payment_conditions.insert("PIX", 1)

            assert [b["image_url"] for b in await dal.banners.fetch_all()] == ["/b.png"]
            conditions = await dal.payment_conditions.fetch_all()
            assert conditions[0]["name"] == "PIX"

            assert (await dal.payment_conditions.remove(conditions[0]["id"])).error is None

    @pytest.mark.asyncio
    async def test_missing_row_update_returns_error(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.banners.update("missing", {"sort_order": 3})
            assert "not found" in result.error.message

    @pytest.mark.asyncio
    async def test_sellers(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            await dal.sellers.insert({"name": "Joao", "slug": "joao", "whatsapp": "5511922223333"})
            seller = await dal.sellers.find_by_slug("joao")
            assert seller["whatsapp"] == "5511922223333"


class TestRestOrders:
    @pytest.mark.asyncio
    async def test_create_is_idempotent(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            first = await dal.orders.create(ORDER, ITEMS, idempotency_key="key-1")
            second = await dal.orders.create(ORDER, ITEMS, idempotency_key="key-1")

            assert first.error is None
            assert first.data["id"] == second.data["id"]
            assert len(await dal.orders.fetch_all()) == 1

            items = await dal.orders.fetch_items(first.data["id"])
            assert [i["product_code"] for i in items] == ["C-001"]

    @pytest.mark.asyncio
    async def test_update_status_and_remove(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            order = (await dal.orders.create(ORDER, ITEMS)).data

            assert (await dal.orders.update_status(order["id"], "shipped")).error is None
            assert (await dal.orders.fetch_all())[0]["status"] == "shipped"

            assert (await dal.orders.remove(order["id"])).error is None
            assert await dal.orders.fetch_all() == []

    @pytest.mark.asyncio
    async def test_create_without_items_returns_error(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.orders.create(ORDER, [])
            assert result.data is None
            assert "items" in result.error.message


class TestRestStorage:
    @pytest.mark.asyncio
    async def test_upload_file(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.storage.upload_file(PNG_BYTES, "foto.png")
            assert result.error is None
            assert result.url.endswith(".png")

    @pytest.mark.asyncio
    async def test_upload_base64(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.storage.upload_base64(base64.b64encode(PNG_BYTES).decode())
            assert result.url.endswith(".png")

    @pytest.mark.asyncio
    async def test_rejected_upload_returns_error(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            result = await dal.storage.upload_file(b"MZ", "virus.exe")
            assert result.url is None
            assert "not allowed" in result.error.message


class TestRestAuth:
    @pytest.mark.asyncio
    async def test_local_admin_session(self, rest_config):
        async with await create_data_access(rest_config) as dal:
            session = await dal.auth.get_session()
            assert session.user.id == "local-admin"
            assert session.is_admin is True
            assert await dal.auth.check_admin("anyone") is True
            assert (await dal.auth.sign_in("a@b.c", "x")).error is None
            assert await dal.auth.sign_out() is None

    @pytest.mark.asyncio
    async def test_auth_state_callback_runs_once(self, rest_config):
        seen = []
        async with await create_data_access(rest_config) as dal:
            dal.auth.on_auth_state_change(lambda user, session: seen.append(user.id))
            await asyncio.sleep(0.01)

        assert seen == ["local-admin"]

    @pytest.mark.asyncio
    async def test_unsubscribe_before_dispatch(self, rest_config):
        seen = []
        async with await create_data_access(rest_config) as dal:
            unsubscribe = dal.auth.on_auth_state_change(lambda user, session: seen.append(user))
            unsubscribe()
            await asyncio.sleep(0.01)

        assert seen == []


UNREACHABLE = ClientConfig(api_mode="postgres", api_url="http://127.0.0.1:1/api", max_retries=1, retry_delay_ms=1)

MUTATIONS = [
    pytest.param(lambda dal: dal.products.insert(product()), id="products.insert"),
    pytest.param(lambda dal: dal.products.update("p1", {"price": 1}), id="products.update"),
    pytest.param(lambda dal: dal.products.remove("p1"), id="products.remove"),
    pytest.param(lambda dal: dal.products.upsert([product()]), id="products.upsert"),
    pytest.param(lambda dal: dal.categories.insert({"name": "A", "slug": "a"}), id="categories.insert"),
    pytest.param(lambda dal: dal.categories.insert_batch([{"name": "A", "slug": "a"}]), id="categories.insert_batch"),
    pytest.param(lambda dal: dal.categories.update("c1", {"name": "B"}), id="categories.update"),
    pytest.param(lambda dal: dal.categories.remove("c1"), id="categories.remove"),
    pytest.param(lambda dal: dal.settings.update("whatsapp_number", "5511900001111"), id="settings.update"),
    pytest.param(lambda dal: dal.banners.insert({"image_url": "/b.png"}), id="banners.insert"),
    pytest.param(lambda dal: dal.banners.update("b1", {"sort_order": 2}), id="banners.update"),
    pytest.param(lambda dal: dal.banners.remove("b1"), id="banners.remove"),
    pytest.param(lambda dal: dal.payment_conditions.insert("PIX", 1), id="payment_conditions.insert"),
    pytest.param(lambda dal: dal.payment_conditions.update("pc1", {"name": "Boleto"}), id="payment_conditions.update"),
    pytest.param(lambda dal: dal.payment_conditions.remove("pc1"), id="payment_conditions.remove"),
    pytest.param(lambda dal: dal.sellers.insert({"name": "Joao", "slug": "joao"}), id="sellers.insert"),
    pytest.param(lambda dal: dal.sellers.update("s1", {"name": "Jo"}), id="sellers.update"),
    pytest.param(lambda dal: dal.sellers.remove("s1"), id="sellers.remove"),
    pytest.param(lambda dal: dal.orders.create(ORDER, ITEMS, idempotency_key="key-1"), id="orders.create"),
    pytest.param(lambda dal: dal.orders.update_status("o1", "shipped"), id="orders.update_status"),
    pytest.param(lambda dal: dal.orders.remove("o1"), id="orders.remove"),
    pytest.param(lambda dal: dal.storage.upload_file(PNG_BYTES, "foto.png"), id="storage.upload_file"),
    pytest.param(
        lambda dal: dal.storage.upload_base64(base64.b64encode(PNG_BYTES).decode()), id="storage.upload_base64"
    ),
]

READS = [
    pytest.param(lambda dal: dal.products.fetch_all(), id="products.fetch_all"),
    pytest.param(lambda dal: dal.products.find_by_slug("caneta"), id="products.find_by_slug"),
    pytest.param(lambda dal: dal.products.find_by_code("C-001"), id="products.find_by_code"),
    pytest.param(lambda dal: dal.categories.fetch_all(), id="categories.fetch_all"),
    pytest.param(lambda dal: dal.settings.fetch_all(), id="settings.fetch_all"),
    pytest.param(lambda dal: dal.banners.fetch_all(), id="banners.fetch_all"),
    pytest.param(lambda dal: dal.payment_conditions.fetch_all(), id="payment_conditions.fetch_all"),
    pytest.param(lambda dal: dal.sellers.fetch_all(), id="sellers.fetch_all"),
    pytest.param(lambda dal: dal.sellers.find_by_slug("joao"), id="sellers.find_by_slug"),
    pytest.param(lambda dal: dal.orders.fetch_all(), id="orders.fetch_all"),
    pytest.param(lambda dal: dal.orders.fetch_items("o1"), id="orders.fetch_items"),
]


class TestUnreachableBackend:
    """Reads raise, mutations report the failure in their result"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", MUTATIONS)
    async def test_mutation_returns_error(self, call):
        async with await create_data_access(UNREACHABLE) as dal:
            result = await call(dal)

        assert result.error is not None
        assert result.error.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", READS)
    async def test_read_raises(self, call):
        async with await create_data_access(UNREACHABLE) as dal:
            with pytest.raises(DataAccessError):
                await call(dal)


class TestPollingRealtime:
    @pytest.mark.asyncio
    async def test_polls_until_unsubscribed(self):
        gateway = PollingRealtimeGateway(poll_interval_ms=10)
        calls = []

        unsubscribe = await gateway.subscribe_to_table("products", lambda: calls.append(1))
        await asyncio.sleep(0.08)
        await unsubscribe()
        seen = len(calls)
        await asyncio.sleep(0.05)

        assert seen >= 2
        assert len(calls) == seen

    @pytest.mark.asyncio
    async def test_async_callback_and_failures(self):
        gateway = PollingRealtimeGateway(poll_interval_ms=10)
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        await gateway.subscribe_to_table("orders", flaky)
        await asyncio.sleep(0.08)
        await gateway.close()

        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_unsubscribe_from_inside_callback(self):
        gateway = PollingRealtimeGateway(poll_interval_ms=10)
        calls = []
        handle = {}

        async def once():
            calls.append(1)
            await handle["unsubscribe"]()

        handle["unsubscribe"] = await gateway.subscribe_to_table("banners", once)
        await asyncio.sleep(0.08)

        assert calls == [1]
