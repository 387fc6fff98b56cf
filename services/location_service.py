import logging
import math
import re
from urllib.parse import parse_qs, unquote, urlparse

import httpx
from fastapi import HTTPException, status

from config import NEARBY_RADIUS_METERS, NEARBY_RESULT_LIMIT
from models import ExtractedLocation, LatLng, StreetLocations
from services.geocoding_client import GeocodingClient

logger = logging.getLogger("journeycraft_api.location")

_NUMBER = r"-?\d+(?:\.\d+)?"
PIN_RE = re.compile(rf"!3d({_NUMBER})!4d({_NUMBER})")
VIEWPORT_RE = re.compile(rf"@({_NUMBER}),({_NUMBER})")
PAIR_RE = re.compile(rf"^\s*({_NUMBER})\s*,\s*({_NUMBER})\s*$")
PLACE_PATH_RE = re.compile(r"/place/([^/@]+)")

COORDINATE_PARAMS = ("q", "query", "ll", "center", "destination", "daddr")

POI_CATEGORY_TAGS = ("tourism", "amenity", "leisure")

EARTH_RADIUS_METERS = 6_371_000


def _to_lat_lng(lat: str, lng: str) -> LatLng | None:
    latitude, longitude = float(lat), float(lng)
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return None
    return LatLng(latitude=latitude, longitude=longitude)


def find_coordinates(url: str) -> LatLng | None:
    """
        Pull coordinates out of a map URL.

        Precedence: the last !3d/!4d place pin, then the @lat,lng viewport,
        then a "lat,lng" value in one of the known query parameters.
        Out-of-range values are skipped.
    """
    decoded = unquote(url)

    for lat, lng in reversed(PIN_RE.findall(decoded)):
        found = _to_lat_lng(lat, lng)
        if found:
            return found

    for lat, lng in VIEWPORT_RE.findall(decoded):
        found = _to_lat_lng(lat, lng)
        if found:
            return found

    params = parse_qs(urlparse(url).query)
    for name in COORDINATE_PARAMS:
        for value in params.get(name, []):
            match = PAIR_RE.match(value)
            if match:
                found = _to_lat_lng(*match.groups())
                if found:
                    return found

    return None


def find_place_query(url: str) -> str | None:
    """The place name or free-text query a map URL refers to, if any."""
    parsed = urlparse(url)

    match = PLACE_PATH_RE.search(parsed.path)
    if match:
        return unquote(match.group(1)).replace("+", " ").strip() or None

    params = parse_qs(parsed.query)
    for name in COORDINATE_PARAMS:
        for value in params.get(name, []):
            if value.strip() and not PAIR_RE.match(value):
                return value.strip()

    return None


def is_short_link(url: str) -> bool:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host == "maps.app.goo.gl":
        return True
    return host == "goo.gl" and parsed.path.startswith("/maps")


def distance_meters(a: LatLng, b: LatLng) -> float:
    """Great-circle distance (haversine)."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


def _format_address(tags: dict) -> str | None:
    street = " ".join(
        part for part in (tags.get("addr:housenumber"), tags.get("addr:street")) if part
    )
    parts = [p for p in (street, tags.get("addr:city"), tags.get("addr:postcode")) if p]
    return ", ".join(parts) or None


def _poi_to_street_location(element: dict) -> StreetLocations | None:
    tags = element.get("tags") or {}
    name = tags.get("name")
    if not name or "lat" not in element or "lon" not in element:
        return None

    category = next((tags[t] for t in POI_CATEGORY_TAGS if t in tags), None)
    return StreetLocations(
        name=name,
        address=_format_address(tags),
        latitude=element["lat"],
        longitude=element["lon"],
        category=category,
    )


class LocationExtractorService:
    def __init__(
        self,
        client: GeocodingClient | None = None,
        nearby_radius: int = NEARBY_RADIUS_METERS,
        nearby_limit: int = NEARBY_RESULT_LIMIT,
    ):
        self.client = client or GeocodingClient()
        self.nearby_radius = nearby_radius
        self.nearby_limit = nearby_limit

    async def _call_upstream(self, source: str, coro):
        try:
            return await coro
        except httpx.HTTPStatusError as err:
            logger.error(
                "%s failed: status=%s body=%s",
                source,
                err.response.status_code,
                err.response.text,
            )
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"source": source, "error": err.response.text},
            )
        except httpx.RequestError as err:
            logger.exception("%s request error", source)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"source": source, "error": str(err)},
            )

    async def _resolve_url(self, url: str) -> str:
        if is_short_link(url):
            expanded = await self._call_upstream("maps", self.client.expand_url(url))
            logger.info(f"Expanded short link {url} -> {expanded}")
            return expanded
        return url

    async def extract_lat_lng(self, id: int | None, url: str) -> ExtractedLocation:
        """Coordinates carried by the URL itself, paired with the caller's id."""
        resolved = await self._resolve_url(url)
        lat_lng = find_coordinates(resolved)
        if lat_lng is None:
            logger.warning(f"No coordinates found in url={url}")
            raise HTTPException(status.HTTP_404_NOT_FOUND, "No coordinates found in URL")
        return ExtractedLocation(id=id, lat_lng=lat_lng)

    async def extract_lat_lng_for_places(self, url: str) -> LatLng:
        """Like extract_lat_lng, but geocodes the place name when the URL has no coordinates."""
        resolved = await self._resolve_url(url)
        lat_lng = find_coordinates(resolved)
        if lat_lng is not None:
            return lat_lng

        query = find_place_query(resolved)
        if query is None:
            logger.warning(f"No coordinates or place found in url={url}")
            raise HTTPException(status.HTTP_404_NOT_FOUND, "No coordinates found in URL")

        match = await self._call_upstream("nominatim", self.client.search(query))
        if match is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Place not found: {query}")
        return LatLng(latitude=float(match["lat"]), longitude=float(match["lon"]))

    async def get_street_locations(self, location: StreetLocations) -> StreetLocations:
        if location.latitude is not None and location.longitude is not None:
            if location.address:
                return location

            result = await self._call_upstream(
                "nominatim", self.client.reverse(location.latitude, location.longitude)
            )
            if result is None:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "No address found for coordinates")
            return location.model_copy(
                update={
                    "address": result.get("display_name"),
                    "name": location.name or result.get("name") or None,
                    "category": location.category or result.get("type"),
                }
            )

        query = location.address or location.name
        if not query:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                "A street location needs an address, a name or coordinates",
            )

        result = await self._call_upstream("nominatim", self.client.search(query))
        if result is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"Location not found: {query}")
        return location.model_copy(
            update={
                "latitude": float(result["lat"]),
                "longitude": float(result["lon"]),
                "address": location.address or result.get("display_name"),
                "category": location.category or result.get("type"),
            }
        )

    async def get_nearby_locations(self, lat_lng: LatLng) -> list[StreetLocations]:
        elements = await self._call_upstream(
            "overpass",
            self.client.points_of_interest(
                lat_lng.latitude, lat_lng.longitude, self.nearby_radius, self.nearby_limit
            ),
        )

        seen = set()
        locations = []
        for element in elements:
            location = _poi_to_street_location(element)
            if location is None:
                continue
            key = (location.name, location.latitude, location.longitude)
            if key in seen:
                continue
            seen.add(key)
            locations.append(location)

        locations.sort(
            key=lambda loc: distance_meters(
                lat_lng, LatLng(latitude=loc.latitude, longitude=loc.longitude)
            )
        )
        logger.info(
            f"Found {len(locations)} nearby locations around "
            f"{lat_lng.latitude},{lat_lng.longitude}"
        )
        return locations[: self.nearby_limit]
