import logging
from typing import Any, Dict, List, Optional

import httpx

from split_checkout.config import Settings
from split_checkout.errors import ShopifyError

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ShopifyClient:
    """Shopify Admin REST client for orders and customer lookup."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings
        self.base_url = (
            f"https://{settings.shop_domain}/admin/api/{settings.shopify_api_version}"
        )
        self._client = httpx.Client(
            headers={
                "X-Shopify-Access-Token": settings.shopify_access_token or "",
                "Content-Type": "application/json",
            },
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.error("Shopify %s %s failed: %s", method, path, exc)
            raise ShopifyError(None, str(exc))
        if response.is_error:
            detail = _error_body(response)
            logger.error(
                "Shopify %s %s returned %s: %s", method, path, response.status_code, detail
            )
            raise ShopifyError(response.status_code, detail)
        try:
            return response.json()
        except ValueError:
            raise ShopifyError(response.status_code, response.text)

    def create_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        data = self._request("POST", "/orders.json", json={"order": order})
        return data.get("order", data)

    def update_order(self, order_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        order = dict(fields, id=order_id)
        data = self._request("PUT", f"/orders/{order_id}.json", json={"order": order})
        return data.get("order", data)

    def search_customers(self, email: str) -> List[Dict[str, Any]]:
        data = self._request(
            "GET", "/customers/search.json", params={"query": f"email:{email}"}
        )
        return data.get("customers", [])

    def close(self) -> None:
        self._client.close()
