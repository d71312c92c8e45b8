"""Structural types for the external video SDK.

The room client never talks to media transport directly. It consumes an SDK
adapter through the protocols below: a ``connect`` coroutine that returns a
:class:`Room`, participants exposing track publications, and tracks that can
be attached to (and detached from) the page. Event callbacks are registered
with ``on(event, handler)`` and return a :class:`Subscription` so callers can
unregister them explicitly.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


class TrackKind(str, enum.Enum):
    AUDIO = "audio"
    VIDEO = "video"
    DATA = "data"

    @property
    def is_attachable(self) -> bool:
        """Whether tracks of this kind render into a media element."""

        return self in _ATTACHABLE_KINDS


_ATTACHABLE_KINDS = frozenset({TrackKind.AUDIO, TrackKind.VIDEO})


class RoomEvent(str, enum.Enum):
    PARTICIPANT_CONNECTED = "participantConnected"
    PARTICIPANT_DISCONNECTED = "participantDisconnected"


class ParticipantEvent(str, enum.Enum):
    TRACK_SUBSCRIBED = "trackSubscribed"
    TRACK_UNSUBSCRIBED = "trackUnsubscribed"


class TrackEvent(str, enum.Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass(slots=True)
class VideoConstraints:
    width: int = 640


@dataclass(slots=True)
class ConnectOptions:
    name: str
    audio: bool = True
    video: VideoConstraints = field(default_factory=VideoConstraints)


class Subscription(Protocol):
    def cancel(self) -> None:
        ...


class RemoteTrack(Protocol):
    kind: TrackKind
    name: str
    is_enabled: bool

    def attach(self) -> Any:
        """Render the track and return the element that hosts it."""
        ...

    def detach(self) -> Iterable[Any]:
        """Stop rendering and return every element the track was attached to."""
        ...

    def on(self, event: TrackEvent, handler: Callable[..., Any]) -> Subscription:
        ...


class RemoteTrackPublication(Protocol):
    is_subscribed: bool
    track: Optional[RemoteTrack]


class RemoteParticipant(Protocol):
    sid: str
    identity: str
    tracks: Mapping[str, RemoteTrackPublication]

    def on(self, event: ParticipantEvent, handler: Callable[..., Any]) -> Subscription:
        ...


class LocalTrack(Protocol):
    kind: TrackKind
    is_enabled: bool

    def enable(self) -> None:
        ...

    def disable(self) -> None:
        ...

    def attach(self) -> Any:
        ...


class LocalTrackPublication(Protocol):
    track: LocalTrack


class LocalParticipant(Protocol):
    identity: str
    audio_tracks: Mapping[str, LocalTrackPublication]
    video_tracks: Mapping[str, LocalTrackPublication]


class Room(Protocol):
    name: str
    participants: Mapping[str, RemoteParticipant]
    local_participant: Optional[LocalParticipant]

    def on(self, event: RoomEvent, handler: Callable[..., Any]) -> Subscription:
        ...

    def disconnect(self) -> None:
        ...


Connector = Callable[[str, ConnectOptions], Awaitable[Room]]
LocalVideoTrackFactory = Callable[[VideoConstraints], Awaitable[LocalTrack]]


def is_attachable(track: Optional[RemoteTrack]) -> bool:
    """Return True when ``track`` exists and its kind renders into the page."""

    if track is None:
        return False
    try:
        return TrackKind(track.kind).is_attachable
    except ValueError:
        logger.debug("Ignoring track of unknown kind %r", track.kind)
        return False
