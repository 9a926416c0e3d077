"""HTTP client for third-party sports-data providers.

Each call is classified as FetchSuccess (with the extracted entity list) or
FetchFailure (with status and message). Nothing raises past ``fetch``: the
caller decides what to try next.

Providers wrap their payloads differently:
- API-Sports: ``{"errors": [...], "response": [...]}``, standings as a list
  of groups (list of lists)
- Ergast/Jolpica: ``{"MRData": {"StandingsTable": {"StandingsLists": [...]}}}``
- some endpoints: a bare top-level array
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass
class SourceDescriptor:
    """One candidate upstream request."""
    name: str
    url: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    extract: Optional[str] = None  # dotted path to the entity list


@dataclass
class FetchSuccess:
    source: SourceDescriptor
    data: list[Any]


@dataclass
class FetchFailure:
    source: SourceDescriptor
    status_code: Optional[int]
    message: str


FetchOutcome = Union[FetchSuccess, FetchFailure]


class PayloadError(ValueError):
    """Response body did not contain an entity list."""


def get_path(obj: Any, path: str) -> Any:
    """Walk a dotted path through dicts and lists; None when absent.

    Integer segments index into lists: ``"StandingsLists.0.ConstructorStandings"``.
    """
    current = obj
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.lstrip("-").isdigit():
            index = int(part)
            current = current[index] if -len(current) <= index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def _flatten(items: list) -> list:
    flat = []
    for item in items:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


def unwrap_payload(body: Any, extract: Optional[str] = None) -> list:
    """Pull the entity list out of a provider envelope."""
    if isinstance(body, dict):
        errors = body.get("errors")
        if errors:
            raise PayloadError(f"provider reported errors: {errors}")

    if extract:
        items = get_path(body, extract)
        if items is None:
            # Ergast returns an empty StandingsLists for unknown seasons
            return []
    elif isinstance(body, list):
        items = body
    elif isinstance(body, dict) and "response" in body:
        items = body["response"]
    else:
        raise PayloadError("unrecognized response envelope")

    if isinstance(items, dict):
        # teams/statistics returns a single object
        items = [items]
    if not isinstance(items, list):
        raise PayloadError(f"expected a list, got {type(items).__name__}")
    return _flatten(items)


class UpstreamClient:
    """Fetches candidate sources; each one is attempted exactly once.

    Args:
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def fetch(self, source: SourceDescriptor) -> FetchOutcome:
        """Issue one GET for ``source`` and classify the outcome."""
        try:
            async with httpx.AsyncClient(
                timeout=source.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    source.url,
                    params=source.params or None,
                    headers=source.headers or None,
                )
        except httpx.TimeoutException as e:
            return FetchFailure(source, None, f"timeout after {source.timeout}s: {e}")
        except httpx.HTTPError as e:
            return FetchFailure(source, None, f"{type(e).__name__}: {e}")

        if not response.is_success:
            return FetchFailure(source, response.status_code, response.text[:200] or response.reason_phrase)

        try:
            items = unwrap_payload(response.json(), source.extract)
        except ValueError as e:
            # json.JSONDecodeError and PayloadError are both ValueErrors
            return FetchFailure(source, response.status_code, f"bad payload: {e}")

        return FetchSuccess(source, items)

    async def fetch_first(
        self,
        sources: list[SourceDescriptor],
        accept: Optional[Callable[[list], bool]] = None,
    ) -> Optional[FetchSuccess]:
        """Try sources in order; return the first success with usable data.

        Sources are attempted sequentially, never raced. ``accept`` decides
        whether a non-empty list is usable; a rejected source counts as a
        miss and the next candidate is tried. Returns None when every
        candidate fails, comes back empty or is rejected.
        """
        for source in sources:
            outcome = await self.fetch(source)
            if isinstance(outcome, FetchSuccess):
                if not outcome.data:
                    logger.warning("Source %s returned no records", source.name)
                elif accept is not None and not accept(outcome.data):
                    logger.warning("Source %s returned no usable records", source.name)
                else:
                    logger.info("Fetched %d records from %s", len(outcome.data), source.name)
                    return outcome
            else:
                logger.warning(
                    "Source %s failed (status=%s): %s",
                    source.name, outcome.status_code, outcome.message,
                )
        return None
