"""Pointer-driven drag state machine for moving fields."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

from field_editor.model import layout
from field_editor.state.session import EditorSession

logger = logging.getLogger(__name__)


class PointerButton(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    AUXILIARY = "auxiliary"


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Dragging:
    field_id: str
    # pointer minus the field box's top-left corner, in pixels
    offset_x: float
    offset_y: float


DragState = Idle | Dragging


class DragController:
    """Turns press/move/release into position updates on an ``EditorSession``.

    At most one field is dragged at a time. Every move writes the position
    straight into the session, so release has nothing left to commit.
    """

    def __init__(self) -> None:
        self.state: DragState = Idle()

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    def press(
        self,
        session: EditorSession,
        field_id: str,
        pointer: tuple[float, float],
        page_px: tuple[float, float],
        button: PointerButton = PointerButton.PRIMARY,
    ) -> bool:
        if button is not PointerButton.PRIMARY or self.is_dragging:
            return False

        field = layout.find_field(session.fields, field_id)
        left, top, _, _ = layout.field_rect_to_pixels(field, *page_px)
        session.select(field_id)
        self.state = Dragging(
            field_id=field_id,
            offset_x=pointer[0] - left,
            offset_y=pointer[1] - top,
        )
        logger.debug("Drag started on %s", field_id)
        return True

    def move(
        self,
        session: EditorSession,
        pointer: tuple[float, float],
        page_px: tuple[float, float],
    ) -> bool:
        state = self.state
        if not isinstance(state, Dragging):
            return False

        if not any(field.id == state.field_id for field in session.fields):
            # the dragged field was deleted underneath the pointer
            logger.debug("Drag target %s is gone", state.field_id)
            self.state = Idle()
            return False

        page_width, page_height = page_px
        session.update_field(
            state.field_id,
            x=layout.pixels_to_percent(pointer[0] - state.offset_x, page_width),
            y=layout.pixels_to_percent(pointer[1] - state.offset_y, page_height),
        )
        return True

    def release(self) -> bool:
        if not self.is_dragging:
            return False
        logger.debug("Drag ended on %s", self.state.field_id)
        self.state = Idle()
        return True
