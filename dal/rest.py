"""
Gateways for the direct-REST backend (the FastAPI service in ``main.py``).
"""
import asyncio
import mimetypes
from typing import Any, Awaitable, Callable, List, Optional
from urllib.parse import quote

import aiohttp

from core.logging import get_logger
from dal.errors import error_message
from dal.gateways import AuthCallback, Row
from dal.realtime import BackgroundTasks, invoke_callback
from dal.results import LOCAL_ADMIN, AuthSession, DataResult, MutationResult, UploadResult
from dal.transport import RestTransport
from services.product_rows import normalize_product_rows

logger = get_logger(__name__)

IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class _RestGateway:
    resource = ""

    def __init__(self, transport: RestTransport) -> None:
        self._rest = transport

    async def _mutate(self, call: Callable[[], Awaitable[Any]]) -> MutationResult:
        try:
            await call()
        except Exception as exc:
            logger.warning("%s mutation failed: %s", self.resource, exc)
            return MutationResult.failure(error_message(exc))
        return MutationResult()

    async def _mutate_with_data(self, call: Callable[[], Awaitable[Any]]) -> DataResult:
        try:
            data = await call()
        except Exception as exc:
            logger.warning("%s mutation failed: %s", self.resource, exc)
            return DataResult.failure(error_message(exc))
        return DataResult(data=data)

    async def update(self, obj_id: str, data: Row) -> MutationResult:
        return await self._mutate(lambda: self._rest.put(f"/{self.resource}/{_segment(obj_id)}", data))

    async def remove(self, obj_id: str) -> MutationResult:
        return await self._mutate(lambda: self._rest.delete(f"/{self.resource}/{_segment(obj_id)}"))


class RestProductsGateway(_RestGateway):
    resource = "products"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/products")

    async def find_by_slug(self, slug: str) -> Optional[Row]:
        return await self._rest.get(f"/products/slug/{_segment(slug)}")

    async def find_by_code(self, code: str) -> List[Row]:
        return await self._rest.get(f"/products/code/{_segment(code)}")

    async def insert(self, product: Row) -> MutationResult:
        return await self._mutate(lambda: self._rest.post("/products", product))

    async def upsert(self, rows: List[Row]) -> MutationResult:
        try:
            normalized = normalize_product_rows(rows)
        except ValueError as exc:
            return MutationResult.failure(str(exc))
        return await self._mutate(lambda: self._rest.post("/products/upsert", {"products": normalized}))


class RestCategoriesGateway(_RestGateway):
    resource = "categories"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/categories")

    async def insert(self, category: Row) -> DataResult:
        return await self._mutate_with_data(lambda: self._rest.post("/categories", category))

    async def insert_batch(self, categories: List[Row]) -> DataResult:
        return await self._mutate_with_data(
            lambda: self._rest.post("/categories/batch", {"categories": categories})
        )


class RestSettingsGateway(_RestGateway):
    resource = "settings"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/settings")

    async def update(self, key: str, value: Optional[str]) -> MutationResult:
        return await self._mutate(lambda: self._rest.put(f"/settings/{_segment(key)}", {"value": value}))


class RestBannersGateway(_RestGateway):
    resource = "banners"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/banners")

    async def insert(self, banner: Row) -> MutationResult:
        return await self._mutate(lambda: self._rest.post("/banners", banner))


class RestPaymentConditionsGateway(_RestGateway):
    resource = "payment-conditions"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/payment-conditions")

    async def insert(self, name: str, sort_order: int) -> MutationResult:
        return await self._mutate(
            lambda: self._rest.post("/payment-conditions", {"name": name, "sort_order": sort_order})
        )


class RestSellersGateway(_RestGateway):
    resource = "sellers"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/sellers")

    async def find_by_slug(self, slug: str) -> Optional[Row]:
        return await self._rest.get(f"/sellers/slug/{_segment(slug)}")

    async def insert(self, seller: Row) -> MutationResult:
        return await self._mutate(lambda: self._rest.post("/sellers", seller))


class RestOrdersGateway(_RestGateway):
    resource = "orders"

    async def fetch_all(self) -> List[Row]:
        return await self._rest.get("/orders")

    async def fetch_items(self, order_id: str) -> List[Row]:
        return await self._rest.get(f"/orders/{_segment(order_id)}/items")

    async def create(self, order: Row, items: List[Row], idempotency_key: Optional[str] = None) -> DataResult:
        headers = {IDEMPOTENCY_HEADER: idempotency_key} if idempotency_key else None
        return await self._mutate_with_data(
            lambda: self._rest.post("/orders", {"order": order, "items": items}, headers=headers)
        )

    async def update_status(self, order_id: str, status: str) -> MutationResult:
        return await self.update(order_id, {"status": status})


class RestStorageGateway:
    def __init__(self, transport: RestTransport) -> None:
        self._rest = transport

    async def upload_file(self, data: bytes, filename: str) -> UploadResult:
        form = aiohttp.FormData()
        form.add_field(
            "file",
            data,
            filename=filename,
            content_type=mimetypes.guess_type(filename)[0] or "application/octet-stream",
        )
        try:
            payload = await self._rest.upload("/upload/image", form)
            return UploadResult(url=payload["url"])
        except Exception as exc:
            logger.warning("Image upload failed: %s", exc)
            return UploadResult.failure(error_message(exc))

    async def upload_base64(self, payload: str, filename: Optional[str] = None) -> UploadResult:
        body = {"base64": payload}
        if filename:
            body["filename"] = filename
        try:
            response = await self._rest.request("POST", "/upload/base64", body=body)
            return UploadResult(url=response["url"])
        except Exception as exc:
            logger.warning("Base64 upload failed: %s", exc)
            return UploadResult.failure(error_message(exc))


class RestAuthGateway:
    """Single-tenant auth: every caller is the trusted local admin."""

    def __init__(self) -> None:
        self._tasks = BackgroundTasks()

    async def get_session(self) -> AuthSession:
        return AuthSession(user=LOCAL_ADMIN, session={}, is_admin=True)

    async def check_admin(self, user_id: str) -> bool:
        return True

    async def sign_in(self, email: str, password: str) -> MutationResult:
        return MutationResult()

    async def sign_up(self, email: str, password: str) -> MutationResult:
        return MutationResult()

    async def sign_out(self) -> None:
        return None

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        loop = asyncio.get_running_loop()
        handle = loop.call_soon(lambda: self._tasks.spawn(invoke_callback(callback, LOCAL_ADMIN, {})))
        return handle.cancel

    async def setup_admin(self) -> DataResult:
        return DataResult(data={"message": "Admin mode is always on in direct database mode"})
