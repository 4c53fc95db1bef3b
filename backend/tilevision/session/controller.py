"""Edit session: the per-upload state machine.

States run initial -> detecting -> editing <-> generating. One controller
serves every room type; the RoomConfig decides which catalogs exist, how
detection runs and how long the history may grow.

There is no lock. The step is switched to detecting/generating before the
first await, which rejects a second edit, and every in-flight call captures
``version`` so a result that lands after a reset or re-upload is dropped.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

import structlog

from tilevision.catalog import (
    RoomConfig,
    find_kitchen_set,
    find_parking_tile,
    find_tile,
    find_tile_set,
)
from tilevision.config import settings
from tilevision.errors import (
    DesignServiceError,
    InvalidInputError,
    InvalidStateError,
    SessionBusyError,
)
from tilevision.models.contracts import (
    DesignTheme,
    DetectedFurnitureSet,
    DetectedObject,
    EditError,
    GeneratedDesign,
    ImageRef,
    Product,
    SessionState,
    SessionStep,
)
from tilevision.services.base import DesignService, ImageData
from tilevision.session.history import HistoryStack
from tilevision.session.intents import (
    ColorChange,
    CustomPrompt,
    EditIntent,
    KitchenSetApply,
    ParkingTileApply,
    ProductPlace,
    TileApply,
    TileSetApply,
    color_target,
    describe,
    design_source,
    render_prompt,
)
from tilevision.session.selection import SelectionRegistry
from tilevision.utils.color import normalize_hex
from tilevision.utils.http import download_image
from tilevision.utils.image import ImageStore

logger = structlog.get_logger()


def normalize_error(exc: BaseException, fallback: str) -> EditError:
    """Reduce any failure to the message shown to the user."""
    if isinstance(exc, DesignServiceError):
        return exc.to_edit_error()
    return EditError(message=str(exc) or fallback, kind="unknown", retryable=True)


class EditSession:
    def __init__(
        self,
        session_id: str,
        config: RoomConfig,
        service: DesignService,
        images: ImageStore,
        *,
        detection_failure_policy: Literal["lenient", "strict"] | None = None,
    ) -> None:
        self.session_id = session_id
        self.config = config
        self._service = service
        self._images = images
        self.detection_failure_policy = detection_failure_policy or settings.detection_failure_policy
        self._log = logger.bind(session_id=session_id, room_type=config.room_type)

        self.step: SessionStep = "initial"
        self.version = 0
        self.original: ImageRef | None = None
        self.structure_image: ImageRef | None = None
        self.history: HistoryStack[ImageRef] = HistoryStack(
            release=images.release, max_entries=config.history_limit
        )
        self.detected_objects: list[DetectedObject] = []
        self.furniture_sets: list[DetectedFurnitureSet] = []
        self.design_themes: list[DesignTheme] = []
        self.selections: dict[str, SelectionRegistry[Any]] = {
            "tiles": SelectionRegistry(lambda tile: tile.id),
            "tile_sets": SelectionRegistry(lambda tile_set: tile_set.id),
            "kitchen_sets": SelectionRegistry(lambda kitchen_set: kitchen_set.id),
            "furniture_sets": SelectionRegistry(lambda furniture: furniture.name),
            "parking_tiles": SelectionRegistry(lambda tile: tile.id),
            "objects": SelectionRegistry(lambda name: name),
        }
        self.products: list[Product] = []
        self.selected_product: str | None = None
        self.custom_prompt = ""
        self.selected_color: str | None = None
        self.last_modification = ""
        self.last_prompt: str | None = None
        self.gallery: list[GeneratedDesign] = []
        self.error: EditError | None = None

    # === Guards ===

    @property
    def busy(self) -> bool:
        return self.step in ("detecting", "generating")

    def _require_idle(self, action: str) -> None:
        if self.busy:
            raise SessionBusyError(f"Cannot {action} while {self.step}")

    def _require_editing(self, action: str) -> ImageRef:
        self._require_idle(action)
        current = self.history.current()
        if self.step != "editing" or current is None:
            raise InvalidStateError(f"Cannot {action}: upload an image first")
        return current

    def _is_stale(self, version: int, operation: str) -> bool:
        if version == self.version:
            return False
        self._log.info(
            "stale_result_discarded",
            operation=operation,
            issued_version=version,
            current_version=self.version,
        )
        return True

    def _image_data(self, ref: ImageRef) -> ImageData:
        return ImageData(data=self._images.data(ref), mime_type=ref.mime_type)

    # === Upload & detection ===

    async def upload(self, data: bytes, mime_type: str) -> None:
        """Store the original image and run detection for this room type."""
        self._require_idle("upload an image")
        if self.step != "initial":
            raise InvalidStateError("Session already has an image; reset it first")
        if not mime_type.startswith("image/"):
            raise InvalidInputError(f"Expected an image upload, got {mime_type}")

        self.version += 1
        version = self.version
        self.error = None
        self.original = self._images.put(data, mime_type)
        self.history.push(self._images.retain(self.original))
        self.step = "detecting"
        self._log.info("image_uploaded", mime_type=mime_type, size_bytes=len(data))

        image = ImageData(data=data, mime_type=mime_type)
        analyzed: ImageData | None = None
        objects: list[DetectedObject] = []
        furniture: list[DetectedFurnitureSet] = []
        try:
            if self.config.detection == "structure":
                analyzed = await self._service.analyze_structure(image)
            else:
                objects = await self._service.detect_objects(image)
                if self.config.detect_furniture_sets:
                    furniture = await self._service.detect_furniture_sets(image)
        except Exception as exc:
            if self._is_stale(version, "detection"):
                return
            self._detection_failed(exc)
            return

        if self._is_stale(version, "detection"):
            return

        if analyzed is not None:
            ref = self._images.put(analyzed.data, analyzed.mime_type)
            self.history.push(ref)
            self.structure_image = self._images.retain(ref)
        self.detected_objects = objects
        self.furniture_sets = furniture
        self.step = "editing"
        self._log.info(
            "detection_completed",
            objects=len(objects),
            furniture_sets=len(furniture),
            structure=analyzed is not None,
        )

        if self.config.generate_themes:
            await self._load_themes(version)

    def _detection_failed(self, exc: Exception) -> None:
        self.error = normalize_error(exc, "Failed to analyze the image")
        self.detected_objects = []
        self.furniture_sets = []
        self._log.warning(
            "detection_failed",
            policy=self.detection_failure_policy,
            error=self.error.message,
            error_type=type(exc).__name__,
        )
        if self.detection_failure_policy == "strict":
            self._release_scene()
            self.step = "initial"
        else:
            self.step = "editing"

    async def _load_themes(self, version: int) -> None:
        if self.original is None:
            return
        image = self._image_data(self.original)
        try:
            themes = await self._service.get_design_themes(image, self.detected_objects)
        except Exception as exc:
            self._log.warning("themes_failed", error=str(exc)[:200], error_type=type(exc).__name__)
            themes = []
        if self._is_stale(version, "themes"):
            return
        self.design_themes = themes
        self._log.info("themes_generated", count=len(themes))

    async def generate_themes(self) -> list[DesignTheme]:
        """Re-run theme generation for the uploaded image."""
        self._require_editing("generate themes")
        if not self.config.generate_themes:
            raise InvalidInputError(f"Design themes are not available for {self.config.room_type}")
        await self._load_themes(self.version)
        return self.design_themes

    # === Edits ===

    async def apply_edit(self, intent: EditIntent) -> None:
        """Send one edit to the design service and record the outcome.

        Service failures are stored on ``error`` and never raised; only
        requests the session cannot accept raise.
        """
        current = self._require_editing("apply an edit")
        prompt = render_prompt(intent)
        description = describe(intent)
        image = self._image_data(current)

        self.step = "generating"
        version = self.version
        self.error = None
        self._log.info("edit_started", kind=intent.kind, description=description)

        try:
            overlay = await self._overlay(intent)
            if intent.service == "change_color":
                target, hex_color = color_target(intent)
                result = await self._service.change_color(image, target, hex_color, prompt)
                used_prompt = prompt
            else:
                modified = await self._service.modify_image(image, prompt, overlay)
                result, used_prompt = modified.image, modified.prompt
        except Exception as exc:
            if self._is_stale(version, intent.kind):
                return
            self.error = normalize_error(exc, f"Failed to apply {description}")
            self.step = "editing"
            self._log.warning(
                "edit_failed",
                kind=intent.kind,
                error=self.error.message,
                error_kind=self.error.kind,
                error_type=type(exc).__name__,
            )
            return

        if self._is_stale(version, intent.kind):
            return

        ref = self._images.put(result.data, result.mime_type)
        self.history.push(ref)
        self.custom_prompt = ""
        self.selected_product = None
        self.last_prompt = used_prompt
        self.last_modification = description
        if intent.records_design:
            self._record_design(intent, ref)
        self.step = "editing"
        self._log.info(
            "edit_applied",
            kind=intent.kind,
            description=description,
            history_length=len(self.history),
        )

    async def _overlay(self, intent: EditIntent) -> ImageData | None:
        if isinstance(intent, ProductPlace):
            return self._image_data(intent.product.image)
        if isinstance(intent, ParkingTileApply):
            data, mime_type = await download_image(intent.tile.url)
            return ImageData(data=data, mime_type=mime_type)
        return None

    def _record_design(self, intent: EditIntent, ref: ImageRef) -> None:
        source = design_source(intent)
        if source is None:
            return
        name, code, series = source
        self.gallery.append(
            GeneratedDesign(
                design_id=uuid.uuid4().hex,
                image=self._images.retain(ref),
                tile_name=name,
                tile_code=code,
                tile_series=series,
            )
        )

    # === Selections ===

    def registry(self, name: str) -> SelectionRegistry[Any]:
        registry = self.selections.get(name)
        if registry is None:
            raise InvalidInputError(f"Unknown selection registry: {name}")
        return registry

    def toggle_selection(self, name: str, item_id: str) -> bool:
        """Toggle a catalog item or detected object by id; returns whether it is now selected."""
        registry = self.registry(name)
        item = registry.get(item_id)
        if item is None:
            item = self._lookup(name, item_id)
        selected = registry.toggle(item)
        self._log.debug("selection_toggled", registry=name, item_id=item_id, selected=selected)
        return selected

    def _lookup(self, name: str, item_id: str) -> Any:
        if name == "tiles":
            return find_tile(self.config, item_id)
        if name == "tile_sets":
            return find_tile_set(self.config, item_id)
        if name == "kitchen_sets":
            return find_kitchen_set(self.config, item_id)
        if name == "parking_tiles":
            return find_parking_tile(self.config, item_id)
        if name == "furniture_sets":
            for furniture in self.furniture_sets:
                if furniture.name == item_id:
                    return furniture
            raise InvalidInputError(f"Unknown furniture set: {item_id}")
        for obj in self.detected_objects:
            if obj.name == item_id:
                return obj.name
        raise InvalidInputError(f"Unknown detected object: {item_id}")

    def select_objects(self, names: list[str]) -> None:
        known = {obj.name for obj in self.detected_objects}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise InvalidInputError(f"Unknown detected object(s): {', '.join(unknown)}")
        self.selections["objects"].replace(list(dict.fromkeys(names)))

    def select_color(self, hex_color: str) -> None:
        self.selected_color = normalize_hex(hex_color)

    def set_custom_prompt(self, text: str) -> None:
        self.custom_prompt = text

    def selection_intent(self, name: str) -> EditIntent:
        """Build the intent that applies the current contents of a registry."""
        registry = self.registry(name)
        items = registry.items()
        if name == "objects":
            if self.custom_prompt.strip():
                return CustomPrompt(text=self.custom_prompt.strip())
            if not items or self.selected_color is None:
                raise InvalidInputError("Select an object and a color first")
            return ColorChange(object_name=", ".join(items), hex=self.selected_color)
        if not items:
            raise InvalidInputError(f"Select at least one item from {name} first")
        if name == "tiles":
            return TileApply(tiles=items)
        if name == "tile_sets":
            return TileSetApply(tile_sets=items)
        if name == "kitchen_sets":
            return KitchenSetApply(kitchen_sets=items)
        if name == "parking_tiles":
            return ParkingTileApply(tile=items[0])
        raise InvalidInputError(f"Selections in {name} cannot be applied")

    async def apply_selection(self, name: str) -> None:
        self._require_editing("apply a selection")
        await self.apply_edit(self.selection_intent(name))

    # === Products ===

    def add_product(self, name: str, data: bytes, mime_type: str) -> Product:
        product = Product(
            id=uuid.uuid4().hex,
            name=name,
            image=self._images.put(data, mime_type),
        )
        self.products.append(product)
        self.selected_product = product.id
        self._log.info("product_added", product_id=product.id, name=name)
        return product

    # === History navigation ===

    def undo(self) -> bool:
        self._require_idle("undo")
        moved = self.history.undo()
        if moved:
            self._log.info("history_undo", cursor=self.history.cursor)
        return moved

    def redo(self) -> bool:
        self._require_idle("redo")
        moved = self.history.redo()
        if moved:
            self._log.info("history_redo", cursor=self.history.cursor)
        return moved

    def select_history(self, index: int) -> bool:
        self._require_idle("select a history entry")
        try:
            return self.history.jump(index)
        except IndexError as exc:
            raise InvalidInputError(str(exc)) from exc

    # === Teardown ===

    def reset(self) -> None:
        """Return to ``initial``; allowed at any time and invalidates in-flight calls."""
        was = self.step
        self.version += 1
        self._release_images()
        for registry in self.selections.values():
            registry.clear()
        self.detected_objects = []
        self.furniture_sets = []
        self.design_themes = []
        self.selected_product = None
        self.custom_prompt = ""
        self.selected_color = None
        self.last_modification = ""
        self.last_prompt = None
        self.error = None
        self.step = "initial"
        self._log.info("session_reset", previous_step=was, version=self.version)

    def _release_scene(self) -> None:
        self.history.clear()
        for ref in (self.original, self.structure_image):
            if ref is not None:
                self._images.release(ref)
        self.original = None
        self.structure_image = None

    def _release_images(self) -> None:
        self._release_scene()
        for design in self.gallery:
            self._images.release(design.image)
        self.gallery = []
        for product in self.products:
            self._images.release(product.image)
        self.products = []

    def close(self) -> None:
        self.reset()
        self._log.info("session_closed")

    # === Snapshot ===

    def snapshot(self) -> SessionState:
        current = self.history.current()
        return SessionState(
            session_id=self.session_id,
            room_type=self.config.room_type,  # type: ignore[arg-type]
            step=self.step,
            version=self.version,
            original_image=self.original,
            current_image=current,
            history=self.history.entries,
            history_index=self.history.cursor,
            can_undo=self.history.can_undo,
            can_redo=self.history.can_redo,
            detected_objects=self.detected_objects,
            furniture_sets=self.furniture_sets,
            design_themes=self.design_themes,
            structure_image=self.structure_image,
            selected_objects=self.selections["objects"].ids(),
            selections={name: registry.ids() for name, registry in self.selections.items()},
            products=self.products,
            selected_product=self.selected_product,
            custom_prompt=self.custom_prompt,
            selected_color=self.selected_color,
            last_modification=self.last_modification,
            last_prompt=self.last_prompt,
            gallery=self.gallery,
            error=self.error,
        )
