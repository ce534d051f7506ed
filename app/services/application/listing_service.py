"""
Application service: read-only views over the trees collection.

Every listing decodes the whole collection. Records that fail schema
validation are skipped with a warning so one bad document cannot break a
page.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

from app.domain.errors import RecordSchemaError
from app.domain.models import TreeRecord
from app.infrastructure.api_constants import StorePaths
from app.infrastructure.document_store_client import DocumentStoreClient

logger = logging.getLogger(__name__)

DISPLAY_TIME_FORMAT = "%d %b %Y, %I:%M %p"

GROUP_FIELDS = ("family", "genus", "species")


def first_sentence(text: str) -> str:
    """Text up to and including the first full stop."""
    index = text.find(".")
    if index == -1:
        return text
    return text[:index + 1].strip()


def same_volunteer(record: TreeRecord, email: str) -> bool:
    return (record.volunteer_name or "").lower() == email.lower()


def format_display_time(timestamp: Optional[str]) -> str:
    """Render an ISO-8601 timestamp for the dashboard; other text is kept as is."""
    if not timestamp:
        return ""
    try:
        return datetime.fromisoformat(timestamp).strftime(DISPLAY_TIME_FORMAT)
    except ValueError:
        return timestamp


@dataclass
class DashboardRow:
    """One tree on the admin dashboard."""
    id: str
    family: str
    botanical: str
    common: str
    volunteer: str
    site: str
    published: bool
    publish_time: str
    image_url: str
    lat: float = 0.0
    lng: float = 0.0


@dataclass
class DashboardData:
    tree_count: int
    volunteer_count: int
    site_count: int
    current_time: str
    trees: List[DashboardRow] = field(default_factory=list)


class ListingService:
    """Filters and groupings of tree records for the listing pages."""

    def __init__(self, store: DocumentStoreClient):
        self.store = store

    async def load_trees(self) -> List[TreeRecord]:
        """
        Decode every record in the collection.

        Returns:
            Valid records; malformed ones are logged and left out
        """
        raw = await self.store.get(StorePaths.TREES)
        if not isinstance(raw, dict):
            return []
        return list(self._decode_all(raw))

    @staticmethod
    def _decode_all(raw: Dict[str, object]) -> Iterator[TreeRecord]:
        for key, document in raw.items():
            try:
                yield TreeRecord.from_store(key, document)
            except RecordSchemaError as e:
                logger.warning(f"Skipping malformed record: {e.message}")

    async def _filter(self, predicate: Callable[[TreeRecord], bool]) -> List[TreeRecord]:
        return [record for record in await self.load_trees() if predicate(record)]

    async def drafts(self, email: str) -> List[TreeRecord]:
        """Unpublished records of a volunteer that still show a QR card."""
        return await self._filter(
            lambda r: not r.published and r.qr and same_volunteer(r, email)
        )

    async def qr_listing(self, email: str) -> List[TreeRecord]:
        """Published records of a volunteer with a QR card."""
        return await self._filter(
            lambda r: r.published and r.qr and same_volunteer(r, email)
        )

    async def library(self, email: str) -> List[TreeRecord]:
        """
        Published, saved records of a volunteer.

        Descriptions are shortened to their first sentence.
        """
        records = await self._filter(
            lambda r: r.published and r.qr and r.saved and same_volunteer(r, email)
        )
        for record in records:
            if record.description:
                record.description = first_sentence(record.description)
        return records

    async def published_count(self, email: str) -> int:
        """Number of published records whose volunteer matches ``email`` exactly."""
        records = await self._filter(lambda r: r.published and r.volunteer_name == email)
        return len(records)

    async def by_category(self, category: str, group_by: str = "family") -> List[TreeRecord]:
        """
        One published record per taxonomic group within a category.

        Args:
            category: Tree category, compared trimmed and case-insensitively
            group_by: ``family``, ``genus`` or ``species``

        Returns:
            First record seen for every non-empty group value
        """
        if group_by not in GROUP_FIELDS:
            raise ValueError(f"Cannot group by '{group_by}'")

        wanted = category.strip().lower()
        seen = set()
        grouped = []
        for record in await self.load_trees():
            if not record.published:
                continue
            if (record.category or "").strip().lower() != wanted:
                continue
            group = (getattr(record.classification, group_by) or "").strip()
            if not group or group in seen:
                continue
            seen.add(group)
            grouped.append(record)
        return grouped

    async def dashboard(self) -> DashboardData:
        """Counts and per-tree rows for the admin dashboard."""
        records = await self.load_trees()

        verified = await self.store.get(StorePaths.VERIFIED_VOLUNTEERS)
        volunteers = set()
        if isinstance(verified, dict):
            for entry in verified.values():
                if isinstance(entry, dict) and entry.get("email"):
                    volunteers.add(entry["email"])

        rows = []
        sites = set()
        for record in records:
            site = record.location.site or ""
            if site:
                sites.add(site)
            lat, lng = record.location.lat_lng() or (0.0, 0.0)
            rows.append(DashboardRow(
                id=record.key,
                family=record.classification.family or "",
                botanical=record.botanical_name or "",
                common=record.name or "Unknown",
                volunteer=record.volunteer_name or "",
                site=site,
                published=record.published,
                publish_time=format_display_time(record.timestamp),
                image_url=record.first_image_url,
                lat=lat,
                lng=lng,
            ))

        return DashboardData(
            tree_count=len(rows),
            volunteer_count=len(volunteers),
            site_count=len(sites),
            current_time=datetime.now().strftime(DISPLAY_TIME_FORMAT),
            trees=rows,
        )
