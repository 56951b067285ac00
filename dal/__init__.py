"""
Data access layer for the catalogue.

``create_data_access`` picks the backend once, from configuration, and returns
a ``DataAccess`` whose attributes are the per-resource gateways::

    async with await create_data_access() as dal:
        products = await dal.products.fetch_all()
"""
from typing import Optional

import aiohttp
from supabase import AsyncClient

from core.config import settings
from core.logging import get_logger
from dal import hosted, rest
from dal.config import ClientConfig
from dal.gateways import (
    AuthGateway,
    BannersGateway,
    CategoriesGateway,
    OrdersGateway,
    PaymentConditionsGateway,
    ProductsGateway,
    RealtimeGateway,
    SellersGateway,
    SettingsGateway,
    StorageGateway,
)
from dal.realtime import PollingRealtimeGateway
from dal.transport import RestTransport

logger = get_logger(__name__)


class DataAccess:
    def __init__(
        self,
        *,
        mode: str,
        products: ProductsGateway,
        categories: CategoriesGateway,
        settings: SettingsGateway,
        banners: BannersGateway,
        payment_conditions: PaymentConditionsGateway,
        sellers: SellersGateway,
        orders: OrdersGateway,
        storage: StorageGateway,
        auth: AuthGateway,
        realtime: RealtimeGateway,
        transport: Optional[RestTransport] = None,
    ) -> None:
        self.mode = mode
        self.products = products
        self.categories = categories
        self.settings = settings
        self.banners = banners
        self.payment_conditions = payment_conditions
        self.sellers = sellers
        self.orders = orders
        self.storage = storage
        self.auth = auth
        self.realtime = realtime
        self._transport = transport

    async def close(self) -> None:
        await self.realtime.close()
        if self._transport is not None:
            await self._transport.close()

    async def __aenter__(self) -> "DataAccess":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def _rest_data_access(config: ClientConfig, session: Optional[aiohttp.ClientSession]) -> DataAccess:
    transport = RestTransport(
        config.api_url,
        timeout_ms=config.timeout_ms,
        max_retries=config.max_retries,
        retry_delay_ms=config.retry_delay_ms,
        admin_api_key=config.admin_api_key,
        session=session,
    )
    return DataAccess(
        mode=config.api_mode,
        products=rest.RestProductsGateway(transport),
        categories=rest.RestCategoriesGateway(transport),
        settings=rest.RestSettingsGateway(transport),
        banners=rest.RestBannersGateway(transport),
        payment_conditions=rest.RestPaymentConditionsGateway(transport),
        sellers=rest.RestSellersGateway(transport),
        orders=rest.RestOrdersGateway(transport),
        storage=rest.RestStorageGateway(transport),
        auth=rest.RestAuthGateway(),
        realtime=PollingRealtimeGateway(config.poll_interval_ms),
        transport=transport,
    )


def _hosted_data_access(config: ClientConfig, client: AsyncClient) -> DataAccess:
    return DataAccess(
        mode=config.api_mode,
        products=hosted.HostedProductsGateway(client),
        categories=hosted.HostedCategoriesGateway(client),
        settings=hosted.HostedSettingsGateway(client),
        banners=hosted.HostedBannersGateway(client),
        payment_conditions=hosted.HostedPaymentConditionsGateway(client),
        sellers=hosted.HostedSellersGateway(client),
        orders=hosted.HostedOrdersGateway(client),
        storage=hosted.HostedStorageGateway(client, config.storage_bucket),
        auth=hosted.HostedAuthGateway(client, config.site_url),
        realtime=hosted.HostedRealtimeGateway(client),
    )


async def create_data_access(
    config: Optional[ClientConfig] = None,
    *,
    hosted_client: Optional[AsyncClient] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> DataAccess:
    """Build the gateways of the configured backend.

    Only one family is constructed; the hosted client is created here unless
    ``hosted_client`` is given.
    """
    config = config or ClientConfig.from_settings(settings)
    if config.is_rest_mode:
        logger.info("Data access in direct database mode against %s", config.api_url)
        return _rest_data_access(config, session)

    client = hosted_client or await hosted.connect_hosted_client(config)
    logger.info("Data access in hosted mode")
    return _hosted_data_access(config, client)


__all__ = ["ClientConfig", "DataAccess", "create_data_access"]
