"""Tests for the Pydantic contract models.

Validates that models accept valid data, reject invalid data and enforce
field constraints (hex format, bounding box ranges, discriminated edits).
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from tilevision.models.contracts import (
    BoundingBox,
    ColorChangeRequest,
    ColorSuggestion,
    CreateSessionRequest,
    CustomPromptRequest,
    EditRequest,
    ErrorResponse,
    ProductPlaceRequest,
    SelectColorRequest,
    SessionState,
    TileApplyRequest,
)

EDIT_REQUEST = TypeAdapter(EditRequest)


class TestBoundingBox:
    def test_valid(self):
        box = BoundingBox(x_min=0, y_min=0.25, x_max=1, y_max=0.75)
        assert box.y_max == 0.75

    def test_min_must_not_exceed_max(self):
        with pytest.raises(ValidationError):
            BoundingBox(x_min=0.8, y_min=0, x_max=0.2, y_max=1)

    def test_range(self):
        with pytest.raises(ValidationError):
            BoundingBox(x_min=0, y_min=0, x_max=1.5, y_max=1)


class TestHexFields:
    def test_suggestion_hex_normalized(self):
        assert ColorSuggestion(object_name="a", color_name="b", hex="b2ac88").hex == "#B2AC88"

    def test_select_color_rejects_garbage(self):
        with pytest.raises(ValidationError):
            SelectColorRequest(hex="#12345")


class TestEditRequest:
    def test_discriminated_by_kind(self):
        request = EDIT_REQUEST.validate_python(
            {"kind": "color_change", "object_name": "Sofa", "hex": "#336699"}
        )
        assert isinstance(request, ColorChangeRequest)
        request = EDIT_REQUEST.validate_python({"kind": "tile_apply", "tile_ids": ["t1"]})
        assert isinstance(request, TileApplyRequest)

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            EDIT_REQUEST.validate_python({"kind": "repaint"})

    def test_empty_tile_ids_rejected(self):
        with pytest.raises(ValidationError):
            TileApplyRequest(tile_ids=[])

    def test_custom_prompt_length(self):
        with pytest.raises(ValidationError):
            CustomPromptRequest(text="")
        with pytest.raises(ValidationError):
            CustomPromptRequest(text="x" * 2001)

    @pytest.mark.parametrize(("x", "y"), [(-0.1, 0.5), (0.5, 1.01)])
    def test_placement_coordinates_normalized(self, x, y):
        with pytest.raises(ValidationError):
            ProductPlaceRequest(product_id="p", x=x, y=y)


class TestSessionModels:
    def test_room_type_literal(self):
        assert CreateSessionRequest(room_type="god-room").room_type == "god-room"
        with pytest.raises(ValidationError):
            CreateSessionRequest(room_type="garage")

    def test_session_state_defaults(self):
        state = SessionState(session_id="s", room_type="kitchen", step="initial")
        assert state.history == []
        assert state.history_index == -1
        assert state.error is None
        assert state.current_image is None

    def test_error_response_detail_optional(self):
        body = ErrorResponse(error="x", message="y", retryable=False).model_dump()
        assert body["detail"] is None
