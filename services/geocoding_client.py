import httpx

from config import (
    GEOCODER_USER_AGENT,
    HTTP_TIMEOUT_SECONDS,
    NOMINATIM_BASE_URL,
    OVERPASS_API_URL,
)


def safe_get(d: dict, *keys, default=None):
    """Safely get a nested value from a dictionary."""
    cur = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


class GeocodingClient:
    """Async client for Nominatim (geocoding) and Overpass (points of interest)."""

    def __init__(
        self,
        nominatim_base_url: str = NOMINATIM_BASE_URL,
        overpass_url: str = OVERPASS_API_URL,
        user_agent: str = GEOCODER_USER_AGENT,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.nominatim_base_url = nominatim_base_url.rstrip("/")
        self.overpass_url = overpass_url
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "User-Agent": user_agent,
            "Accept": "application/json",
        }

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
            **kwargs,
        )

    async def _request(
        self, method: str, url: str, params: dict | None = None, data: dict | None = None
    ) -> dict | list:
        async with self._client() as client:
            resp = await client.request(method, url, params=params, data=data)
            resp.raise_for_status()
            return resp.json()

    async def expand_url(self, url: str) -> str:
        """Follow redirects of a short link and return the final URL."""
        async with self._client(follow_redirects=True) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return str(resp.url)

    async def search(self, query: str) -> dict | None:
        """Return the best Nominatim match for a free-form query, if any."""
        results = await self._request(
            "GET",
            f"{self.nominatim_base_url}/search",
            params={"q": query, "format": "jsonv2", "limit": 1, "addressdetails": 0},
        )
        if isinstance(results, list) and results:
            return results[0]
        return None

    async def reverse(self, latitude: float, longitude: float) -> dict | None:
        result = await self._request(
            "GET",
            f"{self.nominatim_base_url}/reverse",
            params={"lat": latitude, "lon": longitude, "format": "jsonv2"},
        )
        # Nominatim answers 200 with an "error" key when nothing is there
        if not isinstance(result, dict) or "error" in result:
            return None
        return result

    async def points_of_interest(
        self, latitude: float, longitude: float, radius: int, limit: int
    ) -> list[dict]:
        """Named tourism/amenity/leisure nodes around a point, as raw Overpass elements."""
        around = f"(around:{radius},{latitude},{longitude})"
        query = (
            "[out:json][timeout:25];"
            "("
            f'node{around}["tourism"]["name"];'
            f'node{around}["amenity"~"restaurant|cafe|bar|pub|fast_food|place_of_worship"]["name"];'
            f'node{around}["leisure"~"park|garden|nature_reserve"]["name"];'
            ");"
            f"out body {limit * 3};"
        )
        result = await self._request("POST", self.overpass_url, data={"data": query})
        return safe_get(result, "elements", default=[]) or []
