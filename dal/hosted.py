"""
Gateways for the hosted backend (Supabase).

Each gateway wraps the async Supabase client: PostgREST table queries, the
storage bucket, GoTrue auth, edge functions and realtime channels.
"""
import inspect
import mimetypes
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from supabase import AsyncClient, acreate_client

from core.logging import get_logger
from dal.config import ClientConfig
from dal.errors import error_message
from dal.gateways import AuthCallback, Row, TableCallback, Unsubscribe
from dal.realtime import BackgroundTasks, invoke_callback
from dal.results import AuthSession, AuthUser, DataResult, MutationResult, UploadResult
from services.product_rows import (
    PLACEHOLDER_IMAGE,
    normalize_product_row,
    normalize_product_rows,
    resolve_image_url,
)
from services.storage import decode_base64_image, extension_from_filename, sniff_image_extension

logger = get_logger(__name__)


async def connect_hosted_client(config: ClientConfig) -> AsyncClient:
    if not config.supabase_url or not config.supabase_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY are required when API_MODE is not 'postgres'")
    return await acreate_client(config.supabase_url, config.supabase_key)


class _HostedGateway:
    table = ""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    def _query(self):
        return self._client.table(self.table)

    async def _rows(self, query) -> List[Row]:
        response = await query.execute()
        return response.data or []

    async def _mutate(self, call: Callable[[], Awaitable[Any]]) -> MutationResult:
        try:
            await call()
        except Exception as exc:
            logger.warning("%s mutation failed: %s", self.table, exc)
            return MutationResult.failure(error_message(exc))
        return MutationResult()

    async def _mutate_with_data(self, call: Callable[[], Awaitable[Any]]) -> DataResult:
        try:
            data = await call()
        except Exception as exc:
            logger.warning("%s mutation failed: %s", self.table, exc)
            return DataResult.failure(error_message(exc))
        return DataResult(data=data)

    async def _first(self, query) -> Optional[Row]:
        rows = await self._rows(query.limit(1))
        return rows[0] if rows else None

    async def update(self, obj_id: str, data: Row) -> MutationResult:
        return await self._mutate(lambda: self._query().update(data).eq("id", obj_id).execute())

    async def remove(self, obj_id: str) -> MutationResult:
        return await self._mutate(lambda: self._query().delete().eq("id", obj_id).execute())


class HostedProductsGateway(_HostedGateway):
    table = "products"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*").order("created_at", desc=True))

    async def find_by_slug(self, slug: str) -> Optional[Row]:
        return await self._first(self._query().select("*").eq("slug", slug).eq("active", True))

    async def find_by_code(self, code: str) -> List[Row]:
        return await self._rows(self._query().select("id").eq("code", code).limit(1))

    async def insert(self, product: Row) -> MutationResult:
        return await self._mutate(lambda: self._query().insert(normalize_product_row(product)).execute())

    async def upsert(self, rows: List[Row]) -> MutationResult:
        try:
            normalized = normalize_product_rows(rows)
        except ValueError as exc:
            return MutationResult.failure(str(exc))
        return await self._mutate(lambda: self._upsert(normalized))

    async def _upsert(self, rows: List[Row]) -> None:
        # PostgREST cannot express "keep the stored image", so look the images up first
        codes = [row["code"] for row in rows if row["image_url"] == PLACEHOLDER_IMAGE]
        if codes:
            existing = await self._rows(self._query().select("code,image_url").in_("code", codes))
            images = {row["code"]: row["image_url"] for row in existing}
            for row in rows:
                row["image_url"] = resolve_image_url(row["image_url"], images.get(row["code"]))
        await self._query().upsert(rows, on_conflict="code").execute()


class HostedCategoriesGateway(_HostedGateway):
    table = "categories"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*").order("name"))

    async def insert(self, category: Row) -> DataResult:
        async def call():
            rows = await self._rows(self._query().insert(category))
            return rows[0] if rows else None

        return await self._mutate_with_data(call)

    async def insert_batch(self, categories: List[Row]) -> DataResult:
        return await self._mutate_with_data(
            lambda: self._rows(self._query().upsert(categories, on_conflict="slug", ignore_duplicates=True))
        )


class HostedSettingsGateway(_HostedGateway):
    table = "store_settings"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*"))

    async def update(self, key: str, value: Optional[str]) -> MutationResult:
        return await self._mutate(
            lambda: self._query().upsert({"key": key, "value": value}, on_conflict="key").execute()
        )


class HostedBannersGateway(_HostedGateway):
    table = "banners"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*").order("sort_order"))

    async def insert(self, banner: Row) -> MutationResult:
        return await self._mutate(lambda: self._query().insert(banner).execute())


class HostedPaymentConditionsGateway(_HostedGateway):
    table = "payment_conditions"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*").order("sort_order"))

    async def insert(self, name: str, sort_order: int) -> MutationResult:
        return await self._mutate(
            lambda: self._query().insert({"name": name, "sort_order": sort_order}).execute()
        )


class HostedSellersGateway(_HostedGateway):
    table = "sellers"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*").order("name"))

    async def find_by_slug(self, slug: str) -> Optional[Row]:
        return await self._first(self._query().select("*").eq("slug", slug).eq("active", True))

    async def insert(self, seller: Row) -> MutationResult:
        return await self._mutate(lambda: self._query().insert(seller).execute())


class HostedOrdersGateway(_HostedGateway):
    table = "orders"

    async def fetch_all(self) -> List[Row]:
        return await self._rows(self._query().select("*").order("created_at", desc=True))

    async def fetch_items(self, order_id: str) -> List[Row]:
        return await self._rows(self._client.table("order_items").select("*").eq("order_id", order_id))

    async def create(self, order: Row, items: List[Row], idempotency_key: Optional[str] = None) -> DataResult:
        return await self._mutate_with_data(lambda: self._create(order, items, idempotency_key))

    async def _create(self, order: Row, items: List[Row], idempotency_key: Optional[str]) -> Row:
        if idempotency_key:
            existing = await self._first(self._query().select("*").eq("idempotency_key", idempotency_key))
            if existing:
                logger.info("Replayed order %s for idempotency key %s", existing["id"], idempotency_key)
                return existing

        header = dict(order)
        if idempotency_key:
            header["idempotency_key"] = idempotency_key
        created = (await self._rows(self._query().insert(header)))[0]

        try:
            await self._client.table("order_items").insert(
                [{**item, "order_id": created["id"]} for item in items]
            ).execute()
        except Exception:
            # No cross-table transaction here: drop the header so no empty order remains
            await self._query().delete().eq("id", created["id"]).execute()
            raise
        return created

    async def update_status(self, order_id: str, status: str) -> MutationResult:
        return await self.update(order_id, {"status": status})


class HostedStorageGateway:
    def __init__(self, client: AsyncClient, bucket: str = "product-images") -> None:
        self._client = client
        self.bucket = bucket

    async def _store(self, data: bytes, extension: str) -> str:
        path = f"{uuid.uuid4()}.{extension}"
        content_type = mimetypes.guess_type(path)[0] or f"image/{extension}"
        bucket = self._client.storage.from_(self.bucket)
        await bucket.upload(path, data, {"content-type": content_type})
        url = bucket.get_public_url(path)
        if inspect.isawaitable(url):
            url = await url
        return url

    async def upload_file(self, data: bytes, filename: str) -> UploadResult:
        extension = extension_from_filename(filename) or sniff_image_extension(data)
        try:
            return UploadResult(url=await self._store(data, extension))
        except Exception as exc:
            logger.warning("Image upload failed: %s", exc)
            return UploadResult.failure(error_message(exc))

    async def upload_base64(self, payload: str, filename: Optional[str] = None) -> UploadResult:
        try:
            data, extension = decode_base64_image(payload)
            return UploadResult(url=await self._store(data, extension_from_filename(filename) or extension))
        except Exception as exc:
            logger.warning("Base64 upload failed: %s", exc)
            return UploadResult.failure(error_message(exc))


def _auth_user(session: Any) -> Optional[AuthUser]:
    user = getattr(session, "user", None) if session else None
    if user is None:
        return None
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


class HostedAuthGateway:
    def __init__(self, client: AsyncClient, site_url: str = "") -> None:
        self._client = client
        self.site_url = site_url
        self._tasks = BackgroundTasks()

    async def get_session(self) -> AuthSession:
        session = await self._client.auth.get_session()
        user = _auth_user(session)
        if user is None:
            return AuthSession()
        return AuthSession(
            user=user,
            session=session.model_dump(mode="json"),
            is_admin=await self.check_admin(user.id),
        )

    async def check_admin(self, user_id: str) -> bool:
        response = await (
            self._client.table("user_roles")
            .select("role")
            .eq("user_id", user_id)
            .eq("role", "admin")
            .limit(1)
            .execute()
        )
        return bool(response.data)

    async def _call(self, call: Callable[[], Awaitable[Any]]) -> MutationResult:
        try:
            await call()
        except Exception as exc:
            logger.warning("Auth call failed: %s", exc)
            return MutationResult.failure(error_message(exc))
        return MutationResult()

    async def sign_in(self, email: str, password: str) -> MutationResult:
        return await self._call(
            lambda: self._client.auth.sign_in_with_password({"email": email, "password": password})
        )

    async def sign_up(self, email: str, password: str) -> MutationResult:
        credentials: Dict[str, Any] = {"email": email, "password": password}
        if self.site_url:
            credentials["options"] = {"email_redirect_to": self.site_url}
        return await self._call(lambda: self._client.auth.sign_up(credentials))

    async def sign_out(self) -> None:
        await self._client.auth.sign_out()

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        def handler(event: Any, session: Any) -> None:
            self._tasks.spawn(invoke_callback(callback, _auth_user(session), session))

        subscription = self._client.auth.on_auth_state_change(handler)
        return subscription.unsubscribe

    async def setup_admin(self) -> DataResult:
        try:
            data = await self._client.functions.invoke("setup-admin")
        except Exception as exc:
            logger.warning("setup-admin failed: %s", exc)
            return DataResult.failure(error_message(exc))
        return DataResult(data=data)


class HostedRealtimeGateway:
    """Push notifications through Supabase realtime channels."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client
        self._tasks = BackgroundTasks()
        self._open: Dict[int, Unsubscribe] = {}

    async def subscribe_to_table(self, table: str, callback: TableCallback) -> Unsubscribe:
        closed = False

        async def notify() -> None:
            if not closed:
                await invoke_callback(callback)

        def on_change(payload: Any) -> None:
            if not closed:
                self._tasks.spawn(notify())

        channel = self._client.channel(f"{table}-changes")
        channel.on_postgres_changes("*", callback=on_change, table=table, schema="public")
        await channel.subscribe()

        async def unsubscribe() -> None:
            nonlocal closed
            if closed:
                return
            closed = True
            self._open.pop(id(unsubscribe), None)
            await self._client.remove_channel(channel)

        self._open[id(unsubscribe)] = unsubscribe
        return unsubscribe

    async def close(self) -> None:
        for unsubscribe in list(self._open.values()):
            await unsubscribe()
        self._tasks.cancel_all()
