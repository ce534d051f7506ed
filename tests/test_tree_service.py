"""
Unit tests for the tree record lifecycle.

Tests cover:
- Creation from a name and from a photo
- Workflow step updates
- Photo append and removal against the media host
- Public ID assignment and publishing
- Deletion and admin edits
"""
import pytest

from app.domain.errors import (
    ImageLimitExceededError,
    ImageNotFoundError,
    MissingTreeNameError,
    NoIdentificationResultsError,
    PublicIdExhaustedError,
    PublicIdTakenError,
    RecordSchemaError,
    TreeNotFoundError,
)
from app.domain.models import Classification, Location, TreeDetails
from app.infrastructure.errors import ExternalServiceError
from app.services.application.tree_service import media_folder

from tests.conftest import MEDIA_URL_PREFIX, SAMPLE_AI_RESPONSE, make_images, make_tree


# ============================================================
# Read Tests
# ============================================================

class TestGetTree:
    """Tests for loading records."""

    @pytest.mark.asyncio
    async def test_missing_tree(self, tree_service):
        with pytest.raises(TreeNotFoundError):
            await tree_service.get_tree("nope")

    @pytest.mark.asyncio
    async def test_malformed_tree(self, tree_service, store):
        store.data["trees"] = {"bad": make_tree("bad", QR="true")}

        with pytest.raises(RecordSchemaError):
            await tree_service.get_tree("bad")

    @pytest.mark.asyncio
    async def test_completed_tree_trims_benefits(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree(
            "t1",
            medicinalBenefits="  Heals wounds. ",
            environmentalBenefits="\nShade.\n",
        )}

        record = await tree_service.get_completed_tree("t1")

        assert record.medicinal_benefits == "Heals wounds."
        assert record.environmental_benefits == "Shade."


# ============================================================
# Creation Tests
# ============================================================

class TestCreateTree:
    """Tests for creating records."""

    @pytest.mark.asyncio
    async def test_create_from_name(self, tree_service, store):
        record = await tree_service.create_tree("Rain Tree", "vol@example.com")

        stored = store.data["trees"][record.key]
        assert stored["uid"] == record.key
        assert stored["Name"] == "Rain Tree"
        assert stored["Published"] is False
        assert stored["QR"] is True
        assert stored["Saved"] is True
        assert stored["volunteerName"] == "vol@example.com"
        assert "T" in stored["timestamp"]
        assert "ID" not in stored

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, tree_service, store):
        with pytest.raises(MissingTreeNameError):
            await tree_service.create_tree("   ", "vol@example.com")

        assert store.writes == []

    @pytest.mark.asyncio
    async def test_identify_creates_photo_only_record(self, tree_service, store, media):
        record, suggestions = await tree_service.identify_tree(b"jpeg", "leaf.jpg", "vol@example.com")

        stored = store.data["trees"][record.key]
        assert stored["Saved"] is False
        assert stored["QR"] is False
        assert stored["images"] == [{"url": f"{MEDIA_URL_PREFIX}leaf.jpg", "imageType": "tree"}]
        assert suggestions[0].scientific_name == "Ficus benghalensis"
        media.upload.assert_awaited_once()
        assert media.upload.await_args.kwargs["folder"] == media_folder(record.key)

    @pytest.mark.asyncio
    async def test_identify_without_results_creates_nothing(
        self, tree_service, store, plant_identifier
    ):
        plant_identifier.identify.return_value = []

        with pytest.raises(NoIdentificationResultsError):
            await tree_service.identify_tree(b"jpeg", "leaf.jpg", "vol@example.com")

        assert "trees" not in store.data

    @pytest.mark.asyncio
    async def test_select_suggestion_names_tree(self, tree_service, store, text_generator):
        store.data["trees"] = {"t1": {"uid": "t1", "Saved": False, "QR": False}}

        record, text = await tree_service.select_suggestion(
            "t1", "Ficus religiosa", "Peepal, Sacred fig"
        )

        assert record.name == "Peepal"
        assert record.botanical_name == "Ficus religiosa"
        assert record.saved is True
        assert record.qr is True
        assert text == SAMPLE_AI_RESPONSE
        prompt = text_generator.complete.await_args.args[0]
        assert "Ficus religiosa" in prompt

    @pytest.mark.asyncio
    async def test_select_suggestion_without_common_name(self, tree_service, store):
        store.data["trees"] = {"t1": {"uid": "t1"}}

        record, _ = await tree_service.select_suggestion("t1", "Ficus religiosa", " , ")

        assert record.name == "Ficus religiosa"

    @pytest.mark.asyncio
    async def test_text_generation_failure_propagates(self, tree_service, store, text_generator):
        store.data["trees"] = {"t1": {"uid": "t1"}}
        text_generator.complete.side_effect = ExternalServiceError(
            "text generation request failed: 500", service="text generation"
        )

        with pytest.raises(ExternalServiceError):
            await tree_service.select_suggestion("t1", "Ficus religiosa", "Peepal")


# ============================================================
# Workflow Step Tests
# ============================================================

class TestWorkflowSteps:
    """Tests for partial updates made by each workflow page."""

    @pytest.mark.asyncio
    async def test_save_details_merges(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", Saved=False, category="Shade Trees")}

        await tree_service.save_details("t1", TreeDetails(description="Big", native="Yes"))

        stored = store.data["trees"]["t1"]
        assert stored["description"] == "Big"
        assert stored["native"] == "Yes"
        assert stored["category"] == "Shade Trees"
        assert stored["Saved"] is True
        assert "lastUpdated" in stored

    @pytest.mark.asyncio
    async def test_classify_replaces_sub_map(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", classification={"genus": "Old"})}

        await tree_service.classify("t1", Classification(kingdom="Plantae", class_="Magnoliopsida"))

        assert store.data["trees"]["t1"]["classification"] == {
            "kingdom": "Plantae",
            "class": "Magnoliopsida",
        }

    @pytest.mark.asyncio
    async def test_locate(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1")}

        await tree_service.locate("t1", Location(coordinates="12.9,77.5", site="Campus"))

        assert store.data["trees"]["t1"]["location"] == {"coordinates": "12.9,77.5", "site": "Campus"}

    @pytest.mark.asyncio
    async def test_save_ai_response(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1")}

        await tree_service.save_ai_response(
            "t1", SAMPLE_AI_RESPONSE, location=Location(site="Lake")
        )

        stored = store.data["trees"]["t1"]
        assert stored["description"] == "A tall tree."
        assert stored["medicinalBenefits"] == "Bark extract treats fever."
        assert stored["environmentalBenefits"] == ""
        assert stored["native"] == "Yes"
        assert stored["category"] == "Shade Trees"
        assert stored["classification"] == {"kingdom": "Plantae", "genus": "Ficus"}
        assert stored["location"] == {"site": "Lake"}
        assert stored["Name"] == "Neem"


# ============================================================
# Image Tests
# ============================================================

class TestImages:
    """Tests for photo uploads and removal."""

    @pytest.mark.asyncio
    async def test_add_images(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", images=make_images(1))}

        images = await tree_service.add_images(
            "t1", [("bark.jpg", b"1"), ("leaf.jpg", b"2")], "bark"
        )

        assert len(images) == 3
        assert store.data["trees"]["t1"]["images"][-1] == {
            "url": f"{MEDIA_URL_PREFIX}leaf.jpg",
            "imageType": "bark",
        }

    @pytest.mark.asyncio
    async def test_same_file_name_on_two_trees_uploads_to_separate_folders(
        self, tree_service, store, media
    ):
        store.data["trees"] = {"a": make_tree("a"), "b": make_tree("b")}

        await tree_service.add_images("a", [("image.jpg", b"1")], "leaf")
        await tree_service.add_images("b", [("image.jpg", b"2")], "leaf")

        folders = [call.kwargs["folder"] for call in media.upload.await_args_list]
        assert folders == [media_folder("a"), media_folder("b")]
        assert folders[0] != folders[1]

    @pytest.mark.asyncio
    async def test_append_to_full_list_is_rejected(self, tree_service, store, media):
        """A fifth photo is refused before upload and the list is unchanged."""
        store.data["trees"] = {"t1": make_tree("t1", images=make_images(4))}

        with pytest.raises(ImageLimitExceededError):
            await tree_service.append_image("t1", "extra.jpg", b"5")

        media.upload.assert_not_awaited()
        assert store.data["trees"]["t1"]["images"] == make_images(4)

    @pytest.mark.asyncio
    async def test_too_many_files_rejected_before_upload(self, tree_service, store, media):
        store.data["trees"] = {"t1": make_tree("t1", images=make_images(3))}

        with pytest.raises(ImageLimitExceededError):
            await tree_service.add_images("t1", [("a.jpg", b"1"), ("b.jpg", b"2")], "leaf")

        media.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_append_image_returns_url(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1")}

        url = await tree_service.append_image("t1", "whole.jpg", b"1")

        assert url == f"{MEDIA_URL_PREFIX}whole.jpg"
        assert store.data["trees"]["t1"]["images"] == [{"url": url, "imageType": "tree"}]

    @pytest.mark.asyncio
    async def test_remove_image_keeps_order_and_destroys_asset(self, tree_service, store, media):
        images = make_images(3)
        store.data["trees"] = {"t1": make_tree("t1", images=images)}

        await tree_service.remove_image("t1", images[1]["url"])

        assert store.data["trees"]["t1"]["images"] == [images[0], images[2]]
        media.destroy.assert_awaited_once_with("treeqr/photo1")

    @pytest.mark.asyncio
    async def test_remove_image_from_mapping_shape(self, tree_service, store):
        images = make_images(2)
        store.data["trees"] = {"t1": make_tree("t1", images={"0": images[0], "3": images[1]})}

        remaining = await tree_service.remove_image("t1", images[0]["url"])

        assert [image.url for image in remaining] == [images[1]["url"]]
        assert store.data["trees"]["t1"]["images"] == [images[1]]

    @pytest.mark.asyncio
    async def test_remove_unknown_image(self, tree_service, store, media):
        store.data["trees"] = {"t1": make_tree("t1", images=make_images(2))}

        with pytest.raises(ImageNotFoundError):
            await tree_service.remove_image("t1", "https://elsewhere.example.com/x.jpg")

        media.destroy.assert_not_awaited()
        assert store.data["trees"]["t1"]["images"] == make_images(2)

    @pytest.mark.asyncio
    async def test_remove_foreign_url_skips_destroy(self, tree_service, store, media):
        store.data["trees"] = {"t1": make_tree("t1", images=[{"url": "https://cdn.example.com/a.jpg"}])}

        await tree_service.remove_image("t1", "https://cdn.example.com/a.jpg")

        media.destroy.assert_not_awaited()
        assert store.data["trees"]["t1"]["images"] == []


# ============================================================
# Publishing Tests
# ============================================================

class TestPublishing:
    """Tests for public IDs and publishing."""

    @pytest.mark.asyncio
    async def test_publish_assigns_id(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", Name="Rain Tree")}

        public_id = await tree_service.publish("t1")

        stored = store.data["trees"]["t1"]
        assert stored["Published"] is True
        assert stored["ID"] == public_id
        assert public_id.startswith("rain-tree-")

    @pytest.mark.asyncio
    async def test_publish_is_idempotent(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1")}

        first = await tree_service.publish("t1")
        second = await tree_service.publish("t1")

        assert first == second
        assert store.data["trees"]["t1"]["ID"] == first

    @pytest.mark.asyncio
    async def test_existing_id_never_replaced(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", ID="custom-id")}

        assert await tree_service.publish("t1") == "custom-id"

    @pytest.mark.asyncio
    async def test_botanical_name_used_when_no_common_name(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", Name="")}

        record = await tree_service.assign_public_id("t1")

        assert record.public_id.startswith("azadirachta-indica-")

    @pytest.mark.asyncio
    async def test_nameless_record_cannot_publish(self, tree_service, store):
        store.data["trees"] = {"t1": {"uid": "t1"}}

        with pytest.raises(MissingTreeNameError):
            await tree_service.publish("t1")

        assert store.data["trees"]["t1"] == {"uid": "t1"}

    @pytest.mark.asyncio
    async def test_collisions_exhaust_attempts(self, tree_service, store, monkeypatch):
        monkeypatch.setattr(
            "app.services.application.tree_service.generate_public_id",
            lambda name, rng=None: "neem-0001",
        )
        store.data["trees"] = {
            "other": make_tree("other", ID="neem-0001"),
            "t1": make_tree("t1"),
        }

        with pytest.raises(PublicIdExhaustedError):
            await tree_service.publish("t1")

        assert "ID" not in store.data["trees"]["t1"]
        assert store.data["trees"]["t1"]["Published"] is False

    @pytest.mark.asyncio
    async def test_collision_retries_with_new_candidate(self, tree_service, store, monkeypatch):
        candidates = iter(["neem-0001", "neem-0002"])
        monkeypatch.setattr(
            "app.services.application.tree_service.generate_public_id",
            lambda name, rng=None: next(candidates),
        )
        store.data["trees"] = {
            "other": make_tree("other", ID="neem-0001"),
            "t1": make_tree("t1"),
        }

        assert await tree_service.publish("t1") == "neem-0002"

    @pytest.mark.asyncio
    async def test_rename_public_id(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", ID="neem-0001", description="Keep me")}

        slug = await tree_service.rename_public_id("t1", "Old Neem by Gate")

        assert slug == "old-neem-by-gate"
        assert store.data["trees"]["t1"]["ID"] == "old-neem-by-gate"
        assert store.data["trees"]["t1"]["description"] == "Keep me"

    @pytest.mark.asyncio
    async def test_rename_missing_tree(self, tree_service):
        with pytest.raises(TreeNotFoundError):
            await tree_service.rename_public_id("nope", "Neem")

    @pytest.mark.asyncio
    async def test_rename_to_taken_public_id(self, tree_service, store):
        store.data["trees"] = {
            "t1": make_tree("t1", ID="neem-0001"),
            "t2": make_tree("t2", ID="neem", volunteerName="other@example.com"),
        }

        with pytest.raises(PublicIdTakenError) as exc_info:
            await tree_service.rename_public_id("t1", "Neem")

        assert exc_info.value.status_code == 409
        assert store.data["trees"]["t1"]["ID"] == "neem-0001"

    @pytest.mark.asyncio
    async def test_rename_to_own_public_id(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", ID="neem")}

        assert await tree_service.rename_public_id("t1", "Neem") == "neem"


# ============================================================
# Deletion and Admin Tests
# ============================================================

class TestDeletionAndAdmin:
    """Tests for deletes and admin edits."""

    @pytest.mark.asyncio
    async def test_delete_tree(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1"), "t2": make_tree("t2")}

        await tree_service.delete_tree("t1")

        assert list(store.data["trees"]) == ["t2"]

    @pytest.mark.asyncio
    async def test_delete_by_public_id(self, tree_service, store):
        store.data["trees"] = {
            "t1": make_tree("t1", ID="neem-0001"),
            "t2": make_tree("t2", ID="neem-0002"),
        }

        deleted = await tree_service.delete_by_public_id("neem-0001")

        assert deleted == "t1"
        assert list(store.data["trees"]) == ["t2"]

    @pytest.mark.asyncio
    async def test_shared_public_id_deletes_one_record(self, tree_service, store):
        store.data["trees"] = {
            "a": make_tree("a", ID="neem"),
            "b": make_tree("b", ID="neem"),
        }

        deleted = await tree_service.delete_by_public_id("neem")

        assert deleted == "a"
        assert list(store.data["trees"]) == ["b"]

    @pytest.mark.asyncio
    async def test_delete_only_touches_own_record(self, tree_service, store):
        store.data["trees"] = {
            "a": make_tree("a", ID="neem", volunteerName="x@example.com"),
            "b": make_tree("b", ID="neem", volunteerName="y@example.com"),
        }

        deleted = await tree_service.delete_by_public_id("neem", volunteer="Y@Example.com")

        assert deleted == "b"
        assert list(store.data["trees"]) == ["a"]

    @pytest.mark.asyncio
    async def test_delete_someone_elses_tree(self, tree_service, store):
        store.data["trees"] = {"a": make_tree("a", ID="neem", volunteerName="x@example.com")}

        with pytest.raises(TreeNotFoundError):
            await tree_service.delete_by_public_id("neem", volunteer="y@example.com")

        assert list(store.data["trees"]) == ["a"]

    @pytest.mark.asyncio
    async def test_delete_unknown_public_id(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree("t1", ID="neem-0001")}

        with pytest.raises(TreeNotFoundError):
            await tree_service.delete_by_public_id("neem-9999")

    @pytest.mark.asyncio
    async def test_admin_edit_sets_site_only(self, tree_service, store):
        store.data["trees"] = {"t1": make_tree(
            "t1", location={"coordinates": "1,2", "site": "Old"}
        )}

        await tree_service.admin_edit("t1", TreeDetails(name="Neem Tree"), site="New")

        stored = store.data["trees"]["t1"]
        assert stored["Name"] == "Neem Tree"
        assert stored["location"] == {"coordinates": "1,2", "site": "New"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
