import asyncio
from typing import Any, Dict, List, Optional, Sequence

import httpx

from offplan.config import settings
from offplan.schemas.estaty import EstatyFilters
from offplan.utils.logging import get_logger


logger = get_logger("services.estaty_client")

LATEST_CREATED = "/api/v1/latestCreatedProperties"
LATEST_UPDATED = "/api/v1/latestUpdatedProperties"
GET_PROPERTIES = "/api/v1/getProperties"
GET_PROPERTY = "/api/v1/getProperty"
GET_FILTERS = "/api/v1/getFilters"
FILTER = "/api/v1/filter"

# Canonical key -> known aliases, first hit wins.
FILTER_KEY_ALIASES: Dict[str, Sequence[str]] = {
    "cities": ("cities", "cites"),
    "developers": ("developers", "developer_companies", "developerCompanies"),
    "districts": ("districts", "neighborhoods"),
    "property_types": ("property_types", "propertyTypes"),
    "amenities": ("amenities",),
    "facilities": ("facilities",),
    "payment_plans": ("payment_plans", "paymentPlans"),
    "views": ("views",),
}


class EstatyError(Exception):
    """Base class for upstream API failures."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"Estaty API {endpoint} failed: {message}")
        self.endpoint = endpoint


class EstatyConfigError(Exception):
    """Raised when the upstream base URL or API key is missing."""


class EstatyAPIError(EstatyError):
    """Non-success HTTP status from the upstream API."""

    def __init__(self, endpoint: str, status_code: int, reason: str = ""):
        message = f"{status_code} {reason}".strip()
        super().__init__(endpoint, message)
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500


class EstatyConnectionError(EstatyError):
    """Network level failure talking to the upstream API."""

    is_transient = True


class EstatyClient:
    """Thin client for the Estaty property API.

    Every call is a POST with a JSON body and the ``App-key`` header. The
    client never retries; callers decide how to handle ``EstatyError``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.estaty_base_url).rstrip("/")
        self.api_key = api_key or settings.estaty_api_key
        if not self.base_url or not self.api_key:
            raise EstatyConfigError(
                "Missing Estaty API configuration. Set ESTATY_BASE_URL and ESTATY_API_KEY."
            )
        self.timeout = timeout if timeout is not None else settings.estaty_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "EstatyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "App-key": self.api_key,
                },
            )
        return self._client

    async def request(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = await self._http().post(endpoint, json=body or {})
        except httpx.HTTPError as e:
            logger.error("estaty_request_failed", endpoint=endpoint, error=str(e))
            raise EstatyConnectionError(endpoint, str(e)) from e

        if not resp.is_success:
            logger.error("estaty_bad_status", endpoint=endpoint, status=resp.status_code)
            raise EstatyAPIError(endpoint, resp.status_code, resp.reason_phrase)

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("estaty_invalid_json", endpoint=endpoint, status=resp.status_code)
            raise EstatyAPIError(endpoint, resp.status_code, "invalid JSON body") from e

        return data if isinstance(data, dict) else {}

    @staticmethod
    def _property_list(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        properties = data.get("properties")
        if not isinstance(properties, list):
            return []
        return [item for item in properties if isinstance(item, dict)]

    async def get_latest_created(self) -> List[Dict[str, Any]]:
        """The latest created properties (upstream caps this at about 10)."""
        return self._property_list(await self.request(LATEST_CREATED))

    async def get_latest_updated(self) -> List[Dict[str, Any]]:
        """The latest updated properties (upstream caps this at about 10)."""
        return self._property_list(await self.request(LATEST_UPDATED))

    async def get_properties(self, sorting_by: Optional[str] = None) -> List[Dict[str, Any]]:
        body = {"sorting_by": sorting_by} if sorting_by else {}
        return self._property_list(await self.request(GET_PROPERTIES, body))

    async def get_property(self, property_id: int) -> Optional[Dict[str, Any]]:
        data = await self.request(GET_PROPERTY, {"id": property_id})
        detail = data.get("property")
        return detail if isinstance(detail, dict) and detail else None

    async def get_filters(self) -> EstatyFilters:
        data = await self.request(GET_FILTERS)

        normalized: Dict[str, Any] = {"raw": data}
        for key, aliases in FILTER_KEY_ALIASES.items():
            for alias in aliases:
                value = data.get(alias)
                if isinstance(value, list) and value:
                    normalized[key] = value
                    break
        return EstatyFilters(**normalized)

    async def filter_properties(
        self, criteria: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> List[Dict[str, Any]]:
        body: Dict[str, Any] = {}
        body.update(criteria or {})
        body.update(kwargs)
        body = {key: value for key, value in body.items() if value is not None}
        # The filter endpoint rejects requests without these two.
        body.setdefault("currency", settings.sync_currency)
        body.setdefault("area_unit", settings.sync_area_unit)
        return self._property_list(await self.request(FILTER, body))

    async def get_properties_by_ids(self, ids: Sequence[int]) -> List[Dict[str, Any]]:
        results = await asyncio.gather(
            *(self.get_property(property_id) for property_id in ids),
            return_exceptions=True,
        )
        return [result for result in results if isinstance(result, dict)]

    async def search_properties(self, query: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        properties = await self.filter_properties(property_name=query)
        return properties[:limit] if limit else properties

    async def get_properties_by_developer(self, developer_ids: Sequence[str]) -> List[Dict[str, Any]]:
        return await self.filter_properties(developer_company_id=list(developer_ids))

    async def get_properties_by_city(self, city_ids: Sequence[str]) -> List[Dict[str, Any]]:
        return await self.filter_properties(city_id=list(city_ids))

    async def get_properties_by_price_range(
        self, min_price: Optional[float] = None, max_price: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        return await self.filter_properties(min_price=min_price, max_price=max_price)
