"""Tests for the edit session state machine.

The design service is replaced by AsyncMocks returning opaque byte strings;
the session never decodes image bytes itself.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from tilevision.catalog import HALL_BEDROOM_TILES, PARKING_TILES, ROOM_CONFIGS
from tilevision.errors import (
    DesignServiceError,
    InvalidInputError,
    InvalidStateError,
    SessionBusyError,
)
from tilevision.models.contracts import (
    BoundingBox,
    ColorSuggestion,
    DesignTheme,
    DetectedFurnitureSet,
    DetectedObject,
)
from tilevision.services.base import ImageData, ModifyResult
from tilevision.session.controller import EditSession, normalize_error
from tilevision.session.intents import ColorChange, CustomPrompt, ProductPlace, TileApply
from tilevision.utils.image import ImageStore

SOFA = DetectedObject(
    name="sofa",
    bounding_box=BoundingBox(x_min=0.2, y_min=0.5, x_max=0.6, y_max=0.9),
    is_primary=True,
)
WALL = DetectedObject(
    name="Back wall",
    bounding_box=BoundingBox(x_min=0, y_min=0, x_max=1, y_max=0.6),
    category="interior",
)
THEME = DesignTheme(
    name="Calm",
    description="Soft tones.",
    suggestions=[ColorSuggestion(object_name="sofa", color_name="Sage", hex="#B2AC88")],
)


def _modified(image, prompt, overlay=None):
    return ModifyResult(image=ImageData(b"modified", "image/png"), prompt=prompt)


class FakeDesignService:
    def __init__(self):
        self.detect_objects = AsyncMock(return_value=[SOFA, WALL])
        self.detect_furniture_sets = AsyncMock(
            return_value=[
                DetectedFurnitureSet(
                    name="Dining set",
                    bounding_box=BoundingBox(x_min=0.1, y_min=0.1, x_max=0.5, y_max=0.5),
                )
            ]
        )
        self.get_design_themes = AsyncMock(return_value=[THEME])
        self.analyze_structure = AsyncMock(return_value=ImageData(b"structure", "image/png"))
        self.change_color = AsyncMock(return_value=ImageData(b"img2", "image/png"))
        self.modify_image = AsyncMock(side_effect=_modified)


def _session(room="hall-bedroom", policy="lenient", service=None):
    images = ImageStore()
    service = service or FakeDesignService()
    session = EditSession(
        "s1", ROOM_CONFIGS[room], service, images, detection_failure_policy=policy
    )
    return session, service, images


async def _ready(room="hall-bedroom", **kwargs):
    session, service, images = _session(room, **kwargs)
    await session.upload(b"img0", "image/png")
    return session, service, images


class TestUpload:
    @pytest.mark.asyncio
    async def test_success_enters_editing(self):
        session, service, images = await _ready()
        assert session.step == "editing"
        assert session.detected_objects == [SOFA, WALL]
        assert session.design_themes == [THEME]
        assert len(session.history) == 1
        assert images.data(session.history.current()) == b"img0"
        assert session.original == session.history.current()
        assert session.error is None
        service.detect_furniture_sets.assert_not_called()

    @pytest.mark.asyncio
    async def test_kitchen_detects_furniture_sets(self):
        session, service, _ = await _ready("kitchen")
        service.detect_furniture_sets.assert_awaited_once()
        assert [f.name for f in session.furniture_sets] == ["Dining set"]

    @pytest.mark.asyncio
    async def test_strict_detection_failure_returns_to_initial(self):
        session, service, images = _session(policy="strict")
        service.detect_objects.side_effect = DesignServiceError("Gemini rate limited")
        await session.upload(b"img0", "image/png")
        assert session.step == "initial"
        assert session.error is not None
        assert session.error.message == "Gemini rate limited"
        assert session.detected_objects == []
        assert len(session.history) == 0
        assert session.original is None
        assert len(images) == 0

    @pytest.mark.asyncio
    async def test_strict_failure_allows_retry(self):
        session, service, _ = _session(policy="strict")
        service.detect_objects.side_effect = [RuntimeError("boom"), [SOFA]]
        await session.upload(b"img0", "image/png")
        await session.upload(b"img0", "image/png")
        assert session.step == "editing"
        assert session.error is None
        assert session.detected_objects == [SOFA]

    @pytest.mark.asyncio
    async def test_lenient_detection_failure_keeps_image(self):
        session, service, _ = _session(policy="lenient")
        service.detect_objects.side_effect = RuntimeError("model overloaded")
        await session.upload(b"img0", "image/png")
        assert session.step == "editing"
        assert session.error.message == "model overloaded"
        assert session.detected_objects == []
        assert len(session.history) == 1
        service.get_design_themes.assert_not_called()

    @pytest.mark.asyncio
    async def test_theme_failure_is_not_fatal(self):
        session, service, _ = _session()
        service.get_design_themes.side_effect = DesignServiceError("no themes")
        await session.upload(b"img0", "image/png")
        assert session.step == "editing"
        assert session.design_themes == []
        assert session.error is None

    @pytest.mark.asyncio
    async def test_second_upload_requires_reset(self):
        session, _, _ = await _ready()
        with pytest.raises(InvalidStateError):
            await session.upload(b"img1", "image/png")

    @pytest.mark.asyncio
    async def test_non_image_rejected(self):
        session, service, images = _session()
        with pytest.raises(InvalidInputError):
            await session.upload(b"text", "text/plain")
        assert session.step == "initial"
        assert len(images) == 0
        service.detect_objects.assert_not_called()

    @pytest.mark.asyncio
    async def test_parking_pushes_structure_image(self):
        session, service, images = await _ready("parking")
        service.detect_objects.assert_not_called()
        service.get_design_themes.assert_not_called()
        assert len(session.history) == 2
        assert session.history.cursor == 1
        assert images.data(session.structure_image) == b"structure"
        assert session.history.current() == session.structure_image

    @pytest.mark.asyncio
    async def test_parking_has_no_themes(self):
        session, service, _ = await _ready("parking")
        with pytest.raises(InvalidInputError):
            await session.generate_themes()
        assert session.design_themes == []
        service.get_design_themes.assert_not_called()


class TestApplyEdit:
    @pytest.mark.asyncio
    async def test_success_pushes_one_entry_and_clears_error(self):
        session, _, _ = await _ready()
        session.error = normalize_error(RuntimeError("old"), "x")
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        assert len(session.history) == 2
        assert session.error is None
        assert session.step == "editing"
        assert session.last_modification == "#336699 to sofa"
        assert "Change the color of the **sofa** to **#336699**." in session.last_prompt

    @pytest.mark.asyncio
    async def test_select_object_and_color_end_to_end(self):
        session, service, images = await _ready()
        session.select_objects(["sofa"])
        session.select_color("#336699")
        await session.apply_selection("objects")

        entries = session.history.entries
        assert [images.data(ref) for ref in entries] == [b"img0", b"img2"]
        assert session.history.cursor == 1
        assert session.step == "editing"
        _, target, hex_color, prompt = service.change_color.await_args.args
        assert (target, hex_color) == ("sofa", "#336699")
        assert "**sofa**" in prompt

    @pytest.mark.asyncio
    async def test_service_failure_sets_error_and_keeps_history(self):
        session, service, _ = await _ready()
        service.change_color.side_effect = RuntimeError("rate limited")
        before = session.history.entries
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        assert session.error.message == "rate limited"
        assert session.step == "editing"
        assert session.history.entries == before

    @pytest.mark.asyncio
    async def test_empty_exception_message_uses_fallback(self):
        session, service, _ = await _ready()
        service.change_color.side_effect = RuntimeError()
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        assert session.error.message == "Failed to apply #336699 to sofa"

    @pytest.mark.asyncio
    async def test_service_error_keeps_kind(self):
        session, service, _ = await _ready()
        service.modify_image.side_effect = DesignServiceError(
            "Request was blocked. Reason: SAFETY.", kind="content_rejected", retryable=False
        )
        await session.apply_edit(TileApply(tiles=HALL_BEDROOM_TILES[:1]))
        assert session.error.kind == "content_rejected"
        assert session.error.retryable is False
        assert session.gallery == []

    @pytest.mark.asyncio
    async def test_edit_before_upload_rejected(self):
        session, _, _ = _session()
        with pytest.raises(InvalidStateError):
            await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))

    @pytest.mark.asyncio
    async def test_tile_edit_recorded_in_gallery(self):
        session, service, images = await _ready()
        session.toggle_selection("tiles", HALL_BEDROOM_TILES[0].id)
        await session.apply_selection("tiles")
        assert len(session.gallery) == 1
        design = session.gallery[0]
        assert (design.tile_name, design.tile_code) == ("Solitaire Plus", "K-16801")
        assert design.image == session.history.current()
        assert images.data(design.image) == b"modified"
        service.modify_image.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_color_edit_not_recorded_in_gallery(self):
        session, _, _ = await _ready()
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        assert session.gallery == []

    @pytest.mark.asyncio
    async def test_custom_prompt_draft_wins_and_is_cleared(self):
        session, service, _ = await _ready()
        session.set_custom_prompt("  paint the ceiling gold ")
        intent = session.selection_intent("objects")
        assert intent == CustomPrompt(text="paint the ceiling gold")
        await session.apply_edit(intent)
        assert session.custom_prompt == ""
        service.change_color.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_objects_without_color_rejected(self):
        session, _, _ = await _ready()
        session.select_objects(["sofa"])
        with pytest.raises(InvalidInputError, match="Select an object and a color"):
            session.selection_intent("objects")

    @pytest.mark.asyncio
    async def test_product_placement_sends_overlay(self):
        session, service, _ = await _ready()
        product = session.add_product("Lamp", b"lamp-bytes", "image/png")
        assert session.selected_product == product.id
        await session.apply_edit(ProductPlace(product=product, x=0.5, y=0.5))
        image, _, overlay = service.modify_image.await_args.args
        assert image == ImageData(b"img0", "image/png")
        assert overlay == ImageData(b"lamp-bytes", "image/png")
        assert session.selected_product is None

    @pytest.mark.asyncio
    async def test_parking_tile_downloads_overlay(self):
        session, service, _ = await _ready("parking")
        session.toggle_selection("parking_tiles", PARKING_TILES[3].id)
        with patch(
            "tilevision.session.controller.download_image",
            AsyncMock(return_value=(b"tile", "image/jpeg")),
        ) as download:
            await session.apply_selection("parking_tiles")
        download.assert_awaited_once_with(PARKING_TILES[3].url)
        assert service.modify_image.await_args.args[2] == ImageData(b"tile", "image/jpeg")
        assert session.gallery[0].tile_code == "PCT-004"
        assert len(session.history) == 3

    @pytest.mark.asyncio
    async def test_parking_history_is_bounded(self):
        session, _, images = await _ready("parking")
        for _ in range(12):
            await session.apply_edit(CustomPrompt(text="brighter"))
        assert len(session.history) == 10
        assert session.history.cursor == 9
        # original and structure images are still held by the session itself
        assert session.original.image_id in images
        assert session.structure_image.image_id in images


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_second_edit_rejected_while_generating(self):
        session, service, _ = await _ready()
        release = asyncio.Event()

        async def slow_change(*args):
            await release.wait()
            return ImageData(b"slow", "image/png")

        service.change_color.side_effect = slow_change
        task = asyncio.create_task(
            session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        )
        await asyncio.sleep(0)
        assert session.step == "generating"
        with pytest.raises(SessionBusyError):
            await session.apply_edit(ColorChange(object_name="sofa", hex="#000000"))
        with pytest.raises(SessionBusyError):
            session.undo()

        release.set()
        await task
        assert session.step == "editing"
        assert len(session.history) == 2
        service.change_color.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_result_after_reset_is_discarded(self):
        session, service, images = await _ready()
        release = asyncio.Event()

        async def slow_change(*args):
            await release.wait()
            return ImageData(b"late", "image/png")

        service.change_color.side_effect = slow_change
        task = asyncio.create_task(
            session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        )
        await asyncio.sleep(0)
        session.reset()
        assert session.step == "initial"

        release.set()
        await task
        assert session.step == "initial"
        assert len(session.history) == 0
        assert session.last_modification == ""
        assert len(images) == 0

    @pytest.mark.asyncio
    async def test_failure_after_reset_is_discarded(self):
        session, service, _ = await _ready()
        release = asyncio.Event()

        async def slow_failure(*args):
            await release.wait()
            raise RuntimeError("too late")

        service.change_color.side_effect = slow_failure
        task = asyncio.create_task(
            session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        )
        await asyncio.sleep(0)
        session.reset()
        release.set()
        await task
        assert session.error is None
        assert session.step == "initial"


class TestHistoryNavigation:
    @pytest.mark.asyncio
    async def test_undo_redo_select(self):
        session, _, _ = await _ready()
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        await session.apply_edit(ColorChange(object_name="sofa", hex="#000000"))
        assert session.undo() is True
        assert session.history.cursor == 1
        assert session.redo() is True
        assert session.redo() is False
        assert session.select_history(0) is True
        assert session.history.cursor == 0
        with pytest.raises(InvalidInputError):
            session.select_history(7)

    @pytest.mark.asyncio
    async def test_edit_after_undo_drops_redo_branch(self):
        session, _, images = await _ready()
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        dropped = session.history.current()
        session.undo()
        await session.apply_edit(ColorChange(object_name="sofa", hex="#000000"))
        assert len(session.history) == 2
        assert dropped.image_id not in images


class TestSelectionsAndReset:
    @pytest.mark.asyncio
    async def test_toggle_unknown_item(self):
        session, _, _ = await _ready()
        with pytest.raises(InvalidInputError):
            session.toggle_selection("tiles", "no-such-tile")
        with pytest.raises(InvalidInputError):
            session.toggle_selection("widgets", "x")

    @pytest.mark.asyncio
    async def test_toggle_detected_object(self):
        session, _, _ = await _ready()
        assert session.toggle_selection("objects", "sofa") is True
        assert session.snapshot().selected_objects == ["sofa"]
        assert session.toggle_selection("objects", "sofa") is False

    @pytest.mark.asyncio
    async def test_select_unknown_object(self):
        session, _, _ = await _ready()
        with pytest.raises(InvalidInputError, match="lamp"):
            session.select_objects(["sofa", "lamp"])

    @pytest.mark.asyncio
    async def test_furniture_sets_cannot_be_applied(self):
        session, _, _ = await _ready("kitchen")
        session.toggle_selection("furniture_sets", "Dining set")
        with pytest.raises(InvalidInputError, match="cannot be applied"):
            session.selection_intent("furniture_sets")

    @pytest.mark.asyncio
    async def test_reset_releases_every_image(self):
        session, _, images = await _ready()
        session.toggle_selection("tiles", HALL_BEDROOM_TILES[0].id)
        await session.apply_selection("tiles")
        session.add_product("Lamp", b"lamp", "image/png")
        session.select_color("#336699")
        assert len(images) > 0

        session.reset()
        assert len(images) == 0
        state = session.snapshot()
        assert state.step == "initial"
        assert state.history == []
        assert state.gallery == []
        assert state.products == []
        assert state.selected_color is None
        assert all(ids == [] for ids in state.selections.values())
        assert state.version == 2

    @pytest.mark.asyncio
    async def test_snapshot_reflects_history(self):
        session, _, _ = await _ready()
        await session.apply_edit(ColorChange(object_name="sofa", hex="#336699"))
        state = session.snapshot()
        assert state.history_index == 1
        assert state.can_undo is True
        assert state.can_redo is False
        assert state.current_image == state.history[1]
        assert state.original_image == state.history[0]
