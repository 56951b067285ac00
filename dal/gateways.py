"""
Capability interfaces implemented once per backend.

Reads return bare values and may raise ``DataAccessError`` (or the hosted
client's own exceptions). Mutations never raise: they return a result model
whose ``error`` is ``None`` on success.
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from dal.results import AuthSession, AuthUser, DataResult, MutationResult, UploadResult

Row = Dict[str, Any]
TableCallback = Callable[[], Union[None, Awaitable[None]]]
AuthCallback = Callable[[Optional[AuthUser], Optional[dict]], Any]
Unsubscribe = Callable[[], Awaitable[None]]


class ProductsGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def find_by_slug(self, slug: str) -> Optional[Row]: ...
    async def find_by_code(self, code: str) -> List[Row]: ...
    async def insert(self, product: Row) -> MutationResult: ...
    async def update(self, product_id: str, data: Row) -> MutationResult: ...
    async def remove(self, product_id: str) -> MutationResult: ...
    async def upsert(self, rows: List[Row]) -> MutationResult: ...


class CategoriesGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def insert(self, category: Row) -> DataResult: ...
    async def insert_batch(self, categories: List[Row]) -> DataResult: ...
    async def update(self, category_id: str, data: Row) -> MutationResult: ...
    async def remove(self, category_id: str) -> MutationResult: ...


class SettingsGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def update(self, key: str, value: Optional[str]) -> MutationResult: ...


class BannersGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def insert(self, banner: Row) -> MutationResult: ...
    async def update(self, banner_id: str, data: Row) -> MutationResult: ...
    async def remove(self, banner_id: str) -> MutationResult: ...


class PaymentConditionsGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def insert(self, name: str, sort_order: int) -> MutationResult: ...
    async def update(self, condition_id: str, data: Row) -> MutationResult: ...
    async def remove(self, condition_id: str) -> MutationResult: ...


class SellersGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def find_by_slug(self, slug: str) -> Optional[Row]: ...
    async def insert(self, seller: Row) -> MutationResult: ...
    async def update(self, seller_id: str, data: Row) -> MutationResult: ...
    async def remove(self, seller_id: str) -> MutationResult: ...


class OrdersGateway(Protocol):
    async def fetch_all(self) -> List[Row]: ...
    async def fetch_items(self, order_id: str) -> List[Row]: ...
    async def create(self, order: Row, items: List[Row], idempotency_key: Optional[str] = None) -> DataResult: ...
    async def update_status(self, order_id: str, status: str) -> MutationResult: ...
    async def remove(self, order_id: str) -> MutationResult: ...


class StorageGateway(Protocol):
    async def upload_file(self, data: bytes, filename: str) -> UploadResult: ...
    async def upload_base64(self, payload: str, filename: Optional[str] = None) -> UploadResult: ...


class AuthGateway(Protocol):
    async def get_session(self) -> AuthSession: ...
    async def check_admin(self, user_id: str) -> bool: ...
    async def sign_in(self, email: str, password: str) -> MutationResult: ...
    async def sign_up(self, email: str, password: str) -> MutationResult: ...
    async def sign_out(self) -> None: ...
    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]: ...
    async def setup_admin(self) -> DataResult: ...


class RealtimeGateway(Protocol):
    async def subscribe_to_table(self, table: str, callback: TableCallback) -> Unsubscribe: ...
    async def close(self) -> None: ...
