from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict

import httpx
from redis.asyncio import Redis
from redis.exceptions import RedisError

from cad.core.config import Settings, get_settings
from cad.core.exceptions import GeocodeFailure
from cad.models.navigation import Location
from cad.services.address_index import AddressIndex

logger = logging.getLogger(__name__)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class Geocoder:
    """Resolves free text through the external geocoding endpoint.

    Only consulted once the local index has come up empty. Without an API key
    it never touches the network and re-runs the local search with the looser
    fallback threshold instead.
    """

    def __init__(
        self,
        address_index: AddressIndex,
        redis: Redis | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.address_index = address_index
        self.redis = redis
        self.settings = settings or get_settings()
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.settings.geocoder_api_key)

    @staticmethod
    def _normalize_text(value: str) -> str:
        return " ".join(value.strip().lower().split())

    def _local_fallback(self, text: str) -> list[Location]:
        return self.address_index.search(text, threshold=self.settings.address_fallback_threshold)

    async def _search_request(self, text: str) -> list[dict]:
        params = {
            "key": self.settings.geocoder_api_key,
            "q": f"{text}, {self.settings.geocoder_region_qualifier}",
            "format": "json",
            "limit": self.settings.geocoder_result_limit,
            "accept-language": "fr,en",
        }
        try:
            async with httpx.AsyncClient(timeout=self.settings.geocoder_timeout_sec, transport=self.transport) as client:
                response = await client.get(self.settings.geocoder_base_url, params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise GeocodeFailure(
                "Geocoding service returned an error",
                details={"status_code": exc.response.status_code},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodeFailure("Geocoding service is unreachable", details={"error": str(exc)}) from exc

        if not isinstance(payload, list) or not payload:
            raise GeocodeFailure("Geocoding service returned no candidates")
        return payload

    def _parse_candidates(self, items: list[dict]) -> list[Location]:
        region = self.settings.geocoder_region_filter.lower()
        result: list[Location] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            display_name = str(item.get("display_name", "")).strip()
            if not display_name or region not in display_name.lower():
                continue
            try:
                lat = float(item["lat"])
                lng = float(item["lon"])
            except (KeyError, TypeError, ValueError):
                continue

            parts = [part.strip() for part in display_name.split(",") if part.strip()]
            name = parts[0] if parts else display_name
            place_id = item.get("place_id") or _slug(display_name)
            result.append(Location(id=f"geo-{place_id}", name=name, lat=lat, lng=lng, address=display_name))
        return result

    async def _cache_get(self, key: str) -> list[Location] | None:
        if self.redis is None:
            return None
        try:
            cached = await self.redis.get(key)
        except RedisError as exc:
            logger.warning("Geocode cache read failed", extra={"error": str(exc)})
            return None
        if not cached:
            return None
        try:
            return [Location(**item) for item in json.loads(cached)]
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Discarding corrupt geocode cache entry", extra={"key": key, "error": str(exc)})
            return None

    async def _cache_set(self, key: str, locations: list[Location]) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(
                key,
                self.settings.geocode_cache_ttl_sec,
                json.dumps([asdict(item) for item in locations]),
            )
        except RedisError as exc:
            logger.warning("Geocode cache write failed", extra={"error": str(exc)})

    async def resolve(self, text: str) -> list[Location]:
        normalized = self._normalize_text(text)
        if not normalized:
            return []

        if not self.configured:
            logger.info("Geocoder API key not configured, using local search")
            return self._local_fallback(normalized)

        key = f"geocode:search:{normalized}"
        cached = await self._cache_get(key)
        if cached is not None:
            return cached

        items = await self._search_request(normalized)
        locations = self._parse_candidates(items)
        if not locations:
            logger.info("Geocoder candidates outside region", extra={"query": normalized, "candidates": len(items)})
            return []

        await self._cache_set(key, locations)
        return locations
