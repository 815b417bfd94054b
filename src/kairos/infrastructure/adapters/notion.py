"""
Notion Card Source: Infrastructure adapter for the Notion REST API.

Implements CardSource by querying Notion databases, one database per
source collection.
"""

import logging
import re
import time
import unicodedata
from datetime import datetime
from typing import Any

import httpx

from kairos.domain.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_STATE_PROPERTY,
    LAST_REVIEW_PROPERTY_NAMES,
    NOTES_PROPERTY_NAMES,
    NOTION_API_URL,
    NOTION_PAGE_SIZE,
    NOTION_VERSION,
    RELATED_PROPERTY_NAMES,
    REQUEST_TIMEOUT,
    STATE_PROPERTY_NAMES,
    VIEW_COUNT_PROPERTY_NAMES,
)
from kairos.domain.exceptions import CardSourceError, StatePropertyMissingError
from kairos.domain.knowledge import KnowledgeState, parse_state, state_label
from kairos.domain.models import Flashcard, parse_timestamp
from kairos.domain.ports import CardSource

# Block types whose rich_text carries readable content
TEXT_BLOCK_TYPES = {
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "to_do",
    "toggle",
    "quote",
    "callout",
    "code",
}


def normalize_property_name(name: str) -> str:
    """'Tipo concepto' -> 'tipo_concepto', 'Último repaso' -> 'ultimo_repaso'."""
    decomposed = unicodedata.normalize("NFKD", name)
    plain = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"\s+", "_", plain.strip().lower())


def extract_text(prop: dict[str, Any] | None) -> str:
    """Plain-text rendering of a Notion property value."""
    if not prop:
        return ""

    kind = prop.get("type")
    if kind in ("title", "rich_text"):
        return "".join(t.get("plain_text", "") for t in prop.get(kind) or [])
    if kind == "select":
        return (prop.get("select") or {}).get("name", "")
    if kind == "multi_select":
        return ", ".join(s.get("name", "") for s in prop.get("multi_select") or [])
    if kind == "date":
        return (prop.get("date") or {}).get("start") or ""
    if kind == "number":
        value = prop.get("number")
        return "" if value is None else str(value)
    if kind == "checkbox":
        return "Yes" if prop.get("checkbox") else "No"
    if kind in ("url", "email", "phone_number"):
        return prop.get(kind) or ""
    if kind == "relation":
        return ", ".join(r.get("id", "") for r in prop.get("relation") or [])
    return ""


def find_property(
    properties: dict[str, Any], kind: str, names: tuple[str, ...]
) -> tuple[str, dict[str, Any]] | None:
    """First property of the given type whose normalized name is in `names`."""
    for key, prop in properties.items():
        if prop.get("type") == kind and normalize_property_name(key) in names:
            return key, prop
    return None


def page_to_flashcard(
    page: dict[str, Any],
    collection_id: str | None = None,
    state_property: str | None = DEFAULT_STATE_PROPERTY,
) -> Flashcard:
    """
    Map a Notion page object to a Flashcard.

    The state is read from `state_property` when the page has it as a select;
    other candidate names are only tried when it is absent.
    """
    properties = page.get("properties") or {}

    title_prop = next((p for p in properties.values() if p.get("type") == "title"), None)
    title = extract_text(title_prop) or "Untitled"

    state = KnowledgeState.TOUCHED
    configured = properties.get(state_property) if state_property else None
    if configured and configured.get("type") == "select":
        state = parse_state(extract_text(configured))
    else:
        found = find_property(properties, "select", STATE_PROPERTY_NAMES)
        if found:
            state = parse_state(extract_text(found[1]))

    notes = ""
    found = find_property(properties, "rich_text", NOTES_PROPERTY_NAMES)
    if found:
        notes = extract_text(found[1])

    related: list[str] = []
    found = find_property(properties, "multi_select", RELATED_PROPERTY_NAMES)
    if found:
        related = [s.get("name", "") for s in found[1].get("multi_select") or []]

    view_count = 0
    found = find_property(properties, "number", VIEW_COUNT_PROPERTY_NAMES)
    if found and isinstance(found[1].get("number"), (int, float)):
        view_count = int(found[1]["number"])

    last_reviewed = None
    found = find_property(properties, "date", LAST_REVIEW_PROPERTY_NAMES)
    if found:
        last_reviewed = parse_timestamp(extract_text(found[1]))

    return Flashcard(
        id=page["id"],
        title=title,
        content="",
        state=state.value,
        collection_id=collection_id,
        created_at=parse_timestamp(page.get("created_time")),
        view_count=view_count,
        last_reviewed=last_reviewed,
        notes=notes,
        related_concepts=related,
    )


class NotionCardSource(CardSource):
    """Adapter for reading and updating flashcards stored in Notion databases."""

    def __init__(
        self,
        token: str | None,
        api_url: str = NOTION_API_URL,
        notion_version: str = NOTION_VERSION,
        state_property: str = DEFAULT_STATE_PROPERTY,
        cache_ttl: float = DEFAULT_CACHE_TTL,
    ):
        self.logger = logging.getLogger(__name__)
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.notion_version = notion_version
        self.state_property = state_property
        self.cache_ttl = cache_ttl
        self._cache: dict[str, tuple[float, list[Flashcard]]] = {}
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Notion-Version": self.notion_version,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        collection_id: str | None = None,
    ) -> dict[str, Any]:
        if not self.token:
            raise CardSourceError("Notion token is not configured", collection_id)
        try:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

            resp = await self._client.request(
                method,
                f"{self.api_url}{path}",
                headers=self._headers(),
                json=payload,
                params=params,
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            self.logger.error(f"Notion call {method} {path} failed: {e}")
            raise CardSourceError(f"Notion request failed: {e}", collection_id) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cached(self, collection_id: str) -> list[Flashcard] | None:
        if self.cache_ttl <= 0:
            return None
        entry = self._cache.get(collection_id)
        if entry and time.monotonic() - entry[0] < self.cache_ttl:
            return list(entry[1])
        return None

    async def fetch_cards_for_collection(self, collection_id: str) -> list[Flashcard]:
        cached = self._cached(collection_id)
        if cached is not None:
            self.logger.debug(f"Cache hit for collection {collection_id}")
            return cached

        cards: list[Flashcard] = []
        cursor: str | None = None
        while True:
            body: dict[str, Any] = {"page_size": NOTION_PAGE_SIZE}
            if cursor:
                body["start_cursor"] = cursor
            data = await self._request(
                "POST", f"/databases/{collection_id}/query", body, collection_id=collection_id
            )
            for page in data.get("results", []):
                if page.get("object", "page") != "page" or "id" not in page:
                    continue
                cards.append(page_to_flashcard(page, collection_id, self.state_property))

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

        self.logger.info(f"Fetched {len(cards)} cards from collection {collection_id}")
        if self.cache_ttl > 0:
            self._cache[collection_id] = (time.monotonic(), list(cards))
        return cards

    async def get_card_content(self, card_id: str) -> str:
        """Body text of a card page, fetched lazily from its child blocks."""
        lines: list[str] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": NOTION_PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            data = await self._request("GET", f"/blocks/{card_id}/children", params=params)
            for block in data.get("results", []):
                kind = block.get("type")
                if kind not in TEXT_BLOCK_TYPES:
                    continue
                rich = (block.get(kind) or {}).get("rich_text") or []
                text = "".join(t.get("plain_text", "") for t in rich)
                if text:
                    lines.append(text)

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
        return "\n".join(lines)

    def _invalidate(self, card_id: str) -> None:
        for cid, (_, cards) in list(self._cache.items()):
            if any(c.id == card_id for c in cards):
                del self._cache[cid]

    async def update_card_state(self, card_id: str, state: KnowledgeState | str) -> None:
        """
        Write a new knowledge state to the card's state property.

        Raises:
            StatePropertyMissingError: If the page has no such property.
        """
        await self.complete_review(card_id, state=state, touch_review_date=False)

    async def complete_review(
        self,
        card_id: str,
        state: KnowledgeState | str | None = None,
        reviewed_at: datetime | None = None,
        touch_review_date: bool = True,
    ) -> list[str]:
        """
        Record a finished review in one page update: the new state (if any)
        and the last-review date (when the page has such a property).

        Returns:
            Names of the properties that were updated.
        """
        page = await self._request("GET", f"/pages/{card_id}")
        properties = page.get("properties") or {}
        updates: dict[str, Any] = {}

        if state is not None:
            if self.state_property not in properties:
                raise StatePropertyMissingError(card_id, self.state_property)
            updates[self.state_property] = {"select": {"name": state_label(state)}}

        if touch_review_date:
            found = find_property(properties, "date", LAST_REVIEW_PROPERTY_NAMES)
            if found:
                when = reviewed_at or datetime.now().astimezone()
                updates[found[0]] = {"date": {"start": when.isoformat()}}
            else:
                self.logger.debug(f"Page {card_id} has no last-review date property")

        if not updates:
            return []

        await self._request("PATCH", f"/pages/{card_id}", {"properties": updates})
        self._invalidate(card_id)
        self.logger.info(f"Updated {sorted(updates)} on card {card_id}")
        return list(updates)
