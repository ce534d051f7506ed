"""
Application service: the tree record lifecycle.

A record moves through Created -> Classified -> Located -> Imaged ->
Completed and ends up either as a draft or published. Steps are not gated;
each one is a partial update of the same ``trees/<uid>`` document.
"""
import logging
import random
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from app.config import settings
from app.domain.errors import (
    MissingTreeNameError,
    NoIdentificationResultsError,
    PublicIdExhaustedError,
    PublicIdTakenError,
    TreeNotFoundError,
)
from app.domain.models import (
    Classification,
    ImageEntry,
    Location,
    TreeDetails,
    TreeRecord,
    TreeSuggestion,
    decode_images,
)
from app.infrastructure.api_constants import StorePaths
from app.infrastructure.document_store_client import DocumentStoreClient
from app.infrastructure.media_store_client import MediaStoreClient
from app.infrastructure.plant_identification_client import PlantIdentificationClient
from app.infrastructure.text_generation_client import TextGenerationClient
from app.services.domain import image_list
from app.services.domain.public_id import generate_public_id, slugify
from app.services.domain.response_parser import build_tree_info_prompt, parse_ai_response

logger = logging.getLogger(__name__)

LAST_UPDATED_FORMAT = "%Y-%m-%d %H:%M:%S"

TREE_IMAGE_TYPE = "tree"


def creation_timestamp() -> str:
    """Local time with offset, e.g. ``2024-05-01T10:20:30+05:30``."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


def last_updated_timestamp() -> str:
    return datetime.now().strftime(LAST_UPDATED_FORMAT)


def media_folder(uid: str) -> str:
    """Media host folder holding the photos of one tree."""
    return f"{settings.media_upload_folder}/{uid}"


class TreeService:
    """
    Application service for tree records.

    Coordinates the document store, the media host and the AI collaborators.
    Business rules live in the domain modules (image list, public IDs,
    response parser); this class only sequences the remote calls.
    """

    def __init__(
        self,
        store: DocumentStoreClient,
        media: MediaStoreClient,
        text_generator: Optional[TextGenerationClient] = None,
        plant_identifier: Optional[PlantIdentificationClient] = None,
        max_images: Optional[int] = None,
        public_id_attempts: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            store: Document store client
            media: Media host client
            text_generator: Chat-completion client (identify flow only)
            plant_identifier: Plant identification client (identify flow only)
            max_images: Photo limit per tree
            public_id_attempts: Tries before giving up on a free public ID
            rng: Random source for public ID suffixes
        """
        self.store = store
        self.media = media
        self.text_generator = text_generator
        self.plant_identifier = plant_identifier
        self.max_images = max_images or settings.max_images_per_tree
        self.public_id_attempts = public_id_attempts or settings.public_id_max_attempts
        self.rng = rng

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_tree(self, uid: str) -> TreeRecord:
        """
        Load one record.

        Raises:
            TreeNotFoundError: If nothing is stored under ``uid``
            RecordSchemaError: If the stored document is malformed
        """
        raw = await self.store.get(StorePaths.tree(uid))
        if raw is None:
            raise TreeNotFoundError(uid)
        return TreeRecord.from_store(uid, raw)

    async def get_completed_tree(self, uid: str) -> TreeRecord:
        """Record as shown on the review page, benefit texts trimmed."""
        record = await self.get_tree(uid)
        if record.medicinal_benefits:
            record.medicinal_benefits = record.medicinal_benefits.strip()
        if record.environmental_benefits:
            record.environmental_benefits = record.environmental_benefits.strip()
        return record

    async def get_images(self, uid: str) -> List[ImageEntry]:
        """Current photo list; a missing record has no photos."""
        raw = await self.store.get(StorePaths.tree_field(uid, "images"))
        return decode_images(raw)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_tree(self, name: str, volunteer: str) -> TreeRecord:
        """
        Create a record from a typed-in tree name.

        Args:
            name: Common name
            volunteer: Email of the volunteer creating it

        Returns:
            The new record
        """
        if not name.strip():
            raise MissingTreeNameError()

        uid = str(uuid.uuid4())
        document = {
            "uid": uid,
            "Name": name,
            "botanical": "",
            "Published": False,
            "QR": True,
            "Saved": True,
            "volunteerName": volunteer,
            "timestamp": creation_timestamp(),
        }
        await self.store.set(StorePaths.tree(uid), document)
        logger.info(f"Created tree {uid} ({name}) for {volunteer}")
        return TreeRecord.from_store(uid, document)

    async def identify_tree(
        self,
        image: bytes,
        filename: str,
        volunteer: str,
    ) -> Tuple[TreeRecord, List[TreeSuggestion]]:
        """
        Start a record from a photo.

        The photo is uploaded, the species is looked up and a record holding
        only the photo is created so the volunteer can pick a suggestion.

        Args:
            image: Raw photo bytes
            filename: Uploaded file name
            volunteer: Email of the volunteer

        Returns:
            Tuple of (new record, suggestions ordered by score)

        Raises:
            NoIdentificationResultsError: If the photo matched nothing
            ExternalServiceError: If a remote call fails
        """
        uid = str(uuid.uuid4())
        url = await self.media.upload(image, filename, folder=media_folder(uid))
        suggestions = await self.plant_identifier.identify(image, filename)
        if not suggestions:
            raise NoIdentificationResultsError()

        document = {
            "uid": uid,
            "volunteerName": volunteer,
            "Saved": False,
            "Published": False,
            "QR": False,
            "timestamp": creation_timestamp(),
            "images": [ImageEntry(url=url, image_type=TREE_IMAGE_TYPE).to_store()],
        }
        await self.store.set(StorePaths.tree(uid), document)
        logger.info(f"Identified tree {uid}: {len(suggestions)} suggestion(s)")
        return TreeRecord.from_store(uid, document), suggestions[:settings.plant_id_max_suggestions]

    async def select_suggestion(
        self,
        uid: str,
        scientific_name: str,
        common_names: str,
    ) -> Tuple[TreeRecord, str]:
        """
        Adopt a species suggestion and describe it.

        Args:
            uid: Record created by ``identify_tree``
            scientific_name: Botanical name of the chosen suggestion
            common_names: Comma separated common names; the first one names
                the tree

        Returns:
            Tuple of (updated record, generated description text)
        """
        common_name = next(
            (part.strip() for part in common_names.split(",") if part.strip()),
            scientific_name,
        )
        await self.store.update(StorePaths.tree(uid), {
            "uid": uid,
            "Name": common_name,
            "botanical": scientific_name,
            "Saved": True,
            "QR": True,
        })
        text = await self.text_generator.complete(build_tree_info_prompt(scientific_name))
        record = await self.get_tree(uid)
        return record, text

    # ------------------------------------------------------------------
    # Workflow steps
    # ------------------------------------------------------------------

    async def save_details(self, uid: str, details: TreeDetails) -> None:
        """Merge the data-entry form and mark the record saved."""
        await self.store.update(StorePaths.tree(uid), {
            **details.to_store(),
            "Saved": True,
            "lastUpdated": last_updated_timestamp(),
        })

    async def classify(self, uid: str, classification: Classification) -> None:
        await self.store.update(
            StorePaths.tree(uid), {"classification": classification.to_store()}
        )

    async def locate(self, uid: str, location: Location) -> None:
        await self.store.update(StorePaths.tree(uid), {"location": location.to_store()})

    async def save_ai_response(
        self,
        uid: str,
        response_text: str,
        location: Optional[Location] = None,
    ) -> None:
        """
        Store a reviewed AI description.

        The text is split into sections and taxonomy; all of them, plus the
        location if given, are merged into the record in one update.
        """
        parsed = parse_ai_response(response_text)
        payload = {
            "description": parsed.description,
            "medicinalBenefits": parsed.medicinal_benefits,
            "environmentalBenefits": parsed.environmental_benefits,
            "native": parsed.native,
            "category": parsed.category,
            "classification": Classification.from_mapping(parsed.classification).to_store(),
            "lastUpdated": last_updated_timestamp(),
        }
        if location is not None:
            payload["location"] = location.to_store()
        await self.store.update(StorePaths.tree(uid), payload)
        logger.info(f"Saved AI description for tree {uid}")

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def add_images(
        self,
        uid: str,
        files: Sequence[Tuple[str, bytes]],
        image_type: str,
    ) -> List[ImageEntry]:
        """
        Upload photos and append them to the record.

        Capacity is checked before anything is uploaded. Uploads stop at the
        first failure; photos already uploaded by then stay on the media host.

        Args:
            uid: Record key
            files: (filename, bytes) pairs in upload order
            image_type: Label stored with each photo (leaf, bark...)

        Returns:
            The stored list

        Raises:
            ImageLimitExceededError: If the files do not fit
        """
        existing = await self.get_images(uid)
        image_list.check_capacity(existing, len(files), self.max_images)

        uploaded = []
        for filename, data in files:
            url = await self.media.upload(data, filename, folder=media_folder(uid))
            uploaded.append(ImageEntry(url=url, image_type=image_type))

        images = image_list.append_images(existing, uploaded, self.max_images)
        await self.store.set(StorePaths.tree_field(uid, "images"), image_list.to_store(images))
        logger.info(f"Tree {uid} now has {len(images)} image(s)")
        return images

    async def append_image(self, uid: str, filename: str, data: bytes) -> str:
        """Upload one photo of the whole tree; returns its URL."""
        images = await self.add_images(uid, [(filename, data)], TREE_IMAGE_TYPE)
        return images[-1].url

    async def remove_image(self, uid: str, url: str) -> List[ImageEntry]:
        """
        Remove a photo from the record and from the media host.

        Raises:
            ImageNotFoundError: If ``url`` is not in the list (nothing changes)
        """
        existing = await self.get_images(uid)
        images = image_list.remove_image(existing, url)

        public_id = self.media.public_id_from_url(url)
        if public_id:
            await self.media.destroy(public_id)
        else:
            logger.warning(f"Not a media host URL, skipping asset deletion: {url}")

        await self.store.set(StorePaths.tree_field(uid, "images"), image_list.to_store(images))
        return images

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def ensure_public_id(self, record: TreeRecord) -> str:
        """
        Public ID of a record, assigning a fresh one if it has none.

        An existing ID is never replaced. Candidates are checked against the
        store and regenerated on collision.

        Raises:
            MissingTreeNameError: If the record has no name to derive from
            PublicIdExhaustedError: If every candidate was taken
        """
        if record.public_id:
            return record.public_id

        name = record.name or record.botanical_name or ""
        if not name.strip():
            raise MissingTreeNameError()

        for attempt in range(1, self.public_id_attempts + 1):
            candidate = generate_public_id(name, self.rng)
            taken = await self.store.query_equal(StorePaths.TREES, "ID", candidate)
            if not taken:
                await self.store.update(StorePaths.tree(record.key), {"ID": candidate})
                record.public_id = candidate
                logger.info(f"Assigned public ID {candidate} to tree {record.key}")
                return candidate
            logger.debug(f"Public ID {candidate} taken (attempt {attempt})")

        raise PublicIdExhaustedError(name, self.public_id_attempts)

    async def assign_public_id(self, uid: str) -> TreeRecord:
        """Load a record and make sure it has a public ID."""
        record = await self.get_tree(uid)
        await self.ensure_public_id(record)
        return record

    async def publish(self, uid: str) -> str:
        """
        Publish a record.

        Safe to repeat: the public ID assigned the first time is kept.

        Returns:
            The record's public ID
        """
        record = await self.assign_public_id(uid)
        await self.store.update(StorePaths.tree(uid), {"Published": True})
        logger.info(f"Published tree {uid} as {record.public_id}")
        return record.public_id

    async def rename_public_id(self, uid: str, name: str) -> str:
        """
        Set the public ID to the plain slug of ``name``.

        Other fields of the record are left untouched.

        Raises:
            PublicIdTakenError: If another record already carries the slug
        """
        slug = slugify(name)
        if not slug:
            raise MissingTreeNameError()
        await self.get_tree(uid)
        holders = await self.store.query_equal(StorePaths.TREES, "ID", slug)
        if any(key != uid for key in holders):
            raise PublicIdTakenError(slug)
        await self.store.update(StorePaths.tree(uid), {"ID": slug})
        return slug

    # ------------------------------------------------------------------
    # Deletion and admin edits
    # ------------------------------------------------------------------

    async def delete_tree(self, uid: str) -> None:
        await self.store.delete(StorePaths.tree(uid))

    async def delete_by_public_id(self, public_id: str, volunteer: Optional[str] = None) -> str:
        """
        Delete one record carrying ``public_id``.

        Public IDs are not guaranteed unique, so only the first match (by
        store key) is removed.

        Args:
            public_id: Public ID of the tree
            volunteer: When given, only a record tagged by this volunteer
                (case-insensitive email) qualifies

        Returns:
            Store key of the deleted record

        Raises:
            TreeNotFoundError: If no qualifying record has that public ID
        """
        matches = await self.store.query_equal(StorePaths.TREES, "ID", public_id)
        candidates = sorted(
            key for key, document in matches.items()
            if not volunteer
            or (document.get("volunteerName") or "").lower() == volunteer.lower()
        )
        if not candidates:
            raise TreeNotFoundError(public_id)
        uid = candidates[0]
        if len(matches) > 1:
            logger.warning(f"Public ID {public_id} is shared by {len(matches)} records")
        await self.store.delete(StorePaths.tree(uid))
        logger.info(f"Deleted tree {uid} ({public_id})")
        return uid

    async def admin_edit(self, uid: str, details: TreeDetails, site: Optional[str] = None) -> None:
        """Merge an admin's corrections; ``site`` goes into the location sub-map."""
        payload = details.to_store()
        if site is not None:
            payload["location/site"] = site
        await self.store.update(StorePaths.tree(uid), payload)
        logger.info(f"Admin edited tree {uid}: {sorted(payload)}")
