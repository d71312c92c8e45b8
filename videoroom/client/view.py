"""Presentation model of the room page.

Controls and media containers are plain objects so the room controller can
drive any front end (a browser bridge, a terminal UI, or tests).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

MUTE_AUDIO_LABEL = "Mute Audio"
UNMUTE_AUDIO_LABEL = "Unmute Audio"
MUTE_VIDEO_LABEL = "Mute Video"
UNMUTE_VIDEO_LABEL = "Unmute Video"


@dataclass
class Button:
    label: str
    disabled: bool = False


@dataclass
class TextInput:
    value: str = ""

    def clear(self) -> None:
        self.value = ""


@dataclass
class _Slot:
    element: Any
    owner: Optional[str]


class MediaContainer:
    """Ordered media elements, optionally grouped by the participant that owns them."""

    def __init__(self) -> None:
        self._slots: List[_Slot] = []

    def append(self, element: Any, owner: Optional[str] = None) -> None:
        self._slots.append(_Slot(element=element, owner=owner))

    def remove(self, element: Any) -> bool:
        """Remove ``element``; return False when it was not present."""

        for index, slot in enumerate(self._slots):
            if slot.element is element:
                del self._slots[index]
                return True
        return False

    def remove_owned_by(self, owner: str) -> list[Any]:
        removed = [slot.element for slot in self._slots if slot.owner == owner]
        self._slots = [slot for slot in self._slots if slot.owner != owner]
        return removed

    def owned_by(self, owner: str) -> list[Any]:
        return [slot.element for slot in self._slots if slot.owner == owner]

    @property
    def elements(self) -> list[Any]:
        return [slot.element for slot in self._slots]

    def __contains__(self, element: object) -> bool:
        return any(slot.element is element for slot in self._slots)

    def __len__(self) -> int:
        return len(self._slots)


def _log_notification(message: str) -> None:
    logger.info("Notification: %s", message)


@dataclass
class RoomView:
    join_button: Button = field(default_factory=lambda: Button("Join"))
    leave_button: Button = field(default_factory=lambda: Button("Leave", disabled=True))
    mute_audio_button: Button = field(default_factory=lambda: Button(MUTE_AUDIO_LABEL, disabled=True))
    mute_video_button: Button = field(default_factory=lambda: Button(MUTE_VIDEO_LABEL, disabled=True))
    room_name_input: TextInput = field(default_factory=TextInput)
    identity_input: TextInput = field(default_factory=TextInput)
    local_media: MediaContainer = field(default_factory=MediaContainer)
    remote_media: MediaContainer = field(default_factory=MediaContainer)
    notify: Callable[[str], None] = _log_notification
    before_unload: Optional[Callable[[], None]] = None

    def show_pre_join(self) -> None:
        self.join_button.disabled = False
        self.leave_button.disabled = True
        self.mute_audio_button.disabled = True
        self.mute_video_button.disabled = True

    def show_joined(self) -> None:
        self.join_button.disabled = True
        self.leave_button.disabled = False
        self.mute_audio_button.disabled = False
        self.mute_video_button.disabled = False

    def reset_mute_labels(self) -> None:
        self.mute_audio_button.label = MUTE_AUDIO_LABEL
        self.mute_video_button.label = MUTE_VIDEO_LABEL

    def clear_inputs(self) -> None:
        self.room_name_input.clear()
        self.identity_input.clear()

    def unload(self) -> None:
        """Run the page-unload handler, if one is installed."""

        handler = self.before_unload
        if handler is not None:
            handler()
