"""
WooCommerce REST API client with retry logic and rate limiting.
"""

import time
import random
import asyncio
import logging
from typing import Optional, Dict, Any, Tuple
import httpx
from urllib.parse import urljoin


logger = logging.getLogger(__name__)


class WooCommerceError(Exception):
    """Base exception for WooCommerce API errors."""
    pass


class WooClient:
    """
    Async WooCommerce REST API client.

    Supports:
    - WooCommerce API v3 (consumer_key/consumer_secret)
    - WordPress REST API (wp_username/wp_app_password)
    """

    def __init__(
        self,
        store_url: str,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        wp_username: Optional[str] = None,
        wp_app_password: Optional[str] = None,
        rate_limit_rps: float = 5.0,
        timeout: float = 30.0,
        verify_ssl: bool = True
    ):
        """
        Initialize WooCommerce client.

        Args:
            store_url: Store base URL (e.g., https://example.com)
            consumer_key: WooCommerce consumer key
            consumer_secret: WooCommerce consumer secret
            wp_username: WordPress username (fallback)
            wp_app_password: WordPress application password (fallback)
            rate_limit_rps: Rate limit (requests per second)
            timeout: Request timeout in seconds
            verify_ssl: Verify TLS certificates
        """
        self.store_url = store_url.rstrip('/')
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.wp_username = wp_username
        self.wp_app_password = wp_app_password
        self.rate_limit_rps = rate_limit_rps
        self.timeout = timeout

        # Rate limiting state
        self._last_request_time = 0.0
        self._min_interval = 1.0 / rate_limit_rps if rate_limit_rps > 0 else 0

        # Determine auth method
        if consumer_key and consumer_secret:
            self.auth_method = "woocommerce"
        elif wp_username and wp_app_password:
            self.auth_method = "wordpress"
        else:
            raise ValueError("Must provide either (consumer_key, consumer_secret) or (wp_username, wp_app_password)")

        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            verify=verify_ssl
        )

    def _get_auth(self) -> httpx.Auth:
        """Get authentication for requests."""
        if self.auth_method == "woocommerce":
            return httpx.BasicAuth(self.consumer_key, self.consumer_secret)
        else:
            # WordPress application password
            return httpx.BasicAuth(self.wp_username, self.wp_app_password)

    async def _wait_for_rate_limit(self):
        """Wait if needed to respect rate limit."""
        now = time.time()
        elapsed = now - self._last_request_time
        if elapsed < self._min_interval:
            wait_time = self._min_interval - elapsed
            await asyncio.sleep(wait_time)
        self._last_request_time = time.time()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        max_retries: int = 5,
        initial_delay: float = 2.0,
        backoff_factor: float = 2.0
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint (relative to store_url)
            params: Query parameters
            max_retries: Maximum retry attempts
            initial_delay: Initial retry delay in seconds
            backoff_factor: Backoff multiplier

        Returns:
            httpx.Response

        Raises:
            WooCommerceError: If request fails after retries
        """
        url = urljoin(self.store_url + '/', endpoint.lstrip('/'))
        auth = self._get_auth()

        last_error = None

        for attempt in range(max_retries + 1):
            await self._wait_for_rate_limit()

            try:
                response = await self.client.request(
                    method=method,
                    url=url,
                    params=params,
                    auth=auth
                )

                if response.status_code in (200, 201, 204):
                    return response

                # Non-retryable errors
                if response.status_code in (400, 401, 403, 404, 422):
                    raise WooCommerceError(
                        f"HTTP {response.status_code}: {response.text[:200]}"
                    )

                # Retryable errors (429, 500, 502, 503, 504)
                if response.status_code in (429, 500, 502, 503, 504):
                    last_error = f"HTTP {response.status_code}"
                    if attempt < max_retries:
                        delay = min(
                            initial_delay * (backoff_factor ** attempt),
                            60.0  # Max 60s delay
                        )
                        delay += random.uniform(0, 0.4)  # Jitter
                        logger.warning(f"{method} {endpoint} -> {last_error}, retrying in {delay:.1f}s")
                        await asyncio.sleep(delay)
                        continue
                    else:
                        raise WooCommerceError(
                            f"HTTP {response.status_code} after {max_retries} retries: {response.text[:200]}"
                        )

                response.raise_for_status()
                return response

            except httpx.TimeoutException as e:
                last_error = f"Timeout: {str(e)}"
                if attempt < max_retries:
                    delay = min(
                        initial_delay * (backoff_factor ** attempt),
                        60.0
                    )
                    logger.warning(f"{method} {endpoint} timed out, retrying in {delay:.1f}s")
                    await asyncio.sleep(delay)
                    continue
                else:
                    raise WooCommerceError(f"Timeout after {max_retries} retries: {e}")

            except httpx.RequestError as e:
                last_error = f"Request error: {str(e)}"
                if attempt < max_retries:
                    delay = min(
                        initial_delay * (backoff_factor ** attempt),
                        60.0
                    )
                    logger.warning(f"{method} {endpoint} failed ({e}), retrying in {delay:.1f}s")
                    await asyncio.sleep(delay)
                    continue
                else:
                    raise WooCommerceError(f"Request error after {max_retries} retries: {e}")

            except httpx.HTTPStatusError as e:
                raise WooCommerceError(f"HTTP {e.response.status_code}: {e.response.text[:200]}")

        raise WooCommerceError(f"Request failed after {max_retries} retries: {last_error}")

    async def get_products(
        self,
        page: int = 1,
        per_page: int = 100,
        status: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        List products.

        Args:
            page: Page number
            per_page: Items per page
            status: Post status filter (e.g. "publish")

        Returns:
            Dict with 'items' list and pagination info
        """
        params: Dict[str, Any] = {
            "page": page,
            "per_page": per_page,
            "orderby": "id",
            "order": "asc"
        }
        if status:
            params["status"] = status

        response = await self._request("GET", "/wp-json/wc/v3/products", params=params)
        try:
            products = response.json()
        except ValueError as e:
            raise WooCommerceError(f"Invalid JSON in product listing (page {page}): {e}")

        total = int(response.headers.get("X-WP-Total", 0))
        total_pages = int(response.headers.get("X-WP-TotalPages", 0))  # 0 = header missing

        return {
            "items": products if isinstance(products, list) else [],
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages
        }

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        """
        Get product by ID.

        Args:
            product_id: Product ID

        Returns:
            Product dict
        """
        response = await self._request("GET", f"/wp-json/wc/v3/products/{product_id}")
        return response.json()

    async def get_setting(self, group: str, option: str) -> Any:
        """
        Read a single WooCommerce setting value (e.g. general / woocommerce_currency).

        Returns:
            The option's 'value', or None if the response has none
        """
        response = await self._request("GET", f"/wp-json/wc/v3/settings/{group}/{option}")
        data = response.json()
        if isinstance(data, dict):
            return data.get("value")
        return None

    async def test_connection(self) -> Tuple[bool, str]:
        """
        Test WooCommerce API connection.

        Returns:
            (success, message)
        """
        try:
            await self._request("GET", "/wp-json/wc/v3/system_status", max_retries=0)
            return True, "Connected"
        except WooCommerceError as e:
            error_str = str(e)
            if "401" in error_str:
                return False, "Authentication failed: check consumer key and secret"
            elif "404" in error_str:
                return False, "API endpoint not found: check store_url"
            else:
                return False, f"Connection error: {error_str[:200]}"

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
