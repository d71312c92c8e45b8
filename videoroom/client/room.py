"""Room session controller.

Drives a single video room session for the page: fetches a token, connects
through the SDK, attaches remote tracks as participants come and go, and
keeps the page controls in step with the session state.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..core.config import settings
from .media import (
    ConnectOptions,
    Connector,
    LocalTrackPublication,
    LocalVideoTrackFactory,
    ParticipantEvent,
    RemoteParticipant,
    RemoteTrack,
    Room,
    RoomEvent,
    Subscription,
    TrackEvent,
    VideoConstraints,
    is_attachable,
)
from .view import (
    MUTE_AUDIO_LABEL,
    MUTE_VIDEO_LABEL,
    UNMUTE_AUDIO_LABEL,
    UNMUTE_VIDEO_LABEL,
    RoomView,
)

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    JOINING = "joining"
    JOINED = "joined"
    LEAVING = "leaving"


class SessionStateError(RuntimeError):
    """Raised when join or leave is requested from the wrong state."""


class NotConnectedError(RuntimeError):
    """Raised when a local track operation needs a room and none is connected."""


class TokenSource(Protocol):
    async def get_token(self, room_name: str, identity: str) -> str:
        ...


@dataclass(frozen=True, slots=True)
class TrackSelection:
    """Which local track kinds a mute or unmute applies to."""

    audio: bool
    video: bool


AUDIO_ONLY = TrackSelection(audio=True, video=False)
VIDEO_ONLY = TrackSelection(audio=False, video=True)


@dataclass
class _ParticipantEntry:
    participant: RemoteParticipant
    subscriptions: List[Subscription] = field(default_factory=list)
    observed: List[RemoteTrack] = field(default_factory=list)
    attached: List[tuple[RemoteTrack, Any]] = field(default_factory=list)

    def element_for(self, track: RemoteTrack) -> Any:
        for attached_track, element in self.attached:
            if attached_track is track:
                return element
        return None


@dataclass
class RoomSession:
    """An active connection to a named room."""

    room: Room
    room_name: str
    identity: str
    audio_muted: bool = False
    video_muted: bool = False
    subscriptions: List[Subscription] = field(default_factory=list)
    participants: Dict[str, _ParticipantEntry] = field(default_factory=dict)


class RoomController:
    """Owns the page's room session and mirrors it into a :class:`RoomView`."""

    def __init__(
        self,
        view: RoomView,
        token_client: TokenSource,
        connect: Connector,
        create_local_video_track: Optional[LocalVideoTrackFactory] = None,
        *,
        video_width: Optional[int] = None,
    ) -> None:
        self.view = view
        self.token_client = token_client
        self._connect = connect
        self._create_local_video_track = create_local_video_track
        self.video_width = video_width or settings.video_width
        self.state = SessionState.IDLE
        self.session: Optional[RoomSession] = None

    # ------------------------------------------------------------------
    # Page lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Put the controls in their pre-join state and show a camera preview."""

        self.view.show_pre_join()
        self.view.reset_mute_labels()

        if self._create_local_video_track is None:
            return
        preview = await self._create_local_video_track(VideoConstraints(width=self.video_width))
        self.view.local_media.append(preview.attach())

    async def join(self, room_name: Optional[str] = None, identity: Optional[str] = None) -> RoomSession:
        """Connect to a room using the values typed into the page."""

        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"Cannot join while {self.state.value}")

        room_name = room_name if room_name is not None else self.view.room_name_input.value
        identity = identity if identity is not None else self.view.identity_input.value

        self.view.join_button.disabled = True
        self._transition(SessionState.JOINING)

        try:
            token = await self.token_client.get_token(room_name, identity)
            room = await self._connect(
                token,
                ConnectOptions(name=room_name, audio=True, video=VideoConstraints(width=self.video_width)),
            )
        except Exception:
            logger.exception("Joining room %s as %s failed", room_name, identity)
            self._transition(SessionState.IDLE)
            self.view.join_button.disabled = False
            raise

        session = RoomSession(room=room, room_name=room_name, identity=identity)
        self.session = session

        try:
            # Existing participants are handled before listening for new ones.
            for participant in list(room.participants.values()):
                self._manage_participant(session, participant)

            session.subscriptions.append(
                room.on(
                    RoomEvent.PARTICIPANT_CONNECTED,
                    lambda participant, *_: self._on_participant_connected(session, participant),
                )
            )
            session.subscriptions.append(
                room.on(
                    RoomEvent.PARTICIPANT_DISCONNECTED,
                    lambda participant, *_: self._on_participant_disconnected(session, participant),
                )
            )
        except Exception:
            logger.exception("Setting up room %s as %s failed; disconnecting", room_name, identity)
            try:
                self._teardown(session)
            finally:
                self._transition(SessionState.IDLE)
                self.view.join_button.disabled = False
            raise

        self.view.before_unload = self._on_unload

        self.view.show_joined()
        self.view.clear_inputs()
        self._transition(SessionState.JOINED)
        logger.info(
            "Joined room %s as %s with %d remote participant(s)", room_name, identity, len(session.participants)
        )
        return session

    def leave(self) -> None:
        """Disconnect from the room and restore the pre-join controls."""

        session = self.session
        if self.state is not SessionState.JOINED or session is None:
            raise SessionStateError(f"Cannot leave while {self.state.value}")

        self._transition(SessionState.LEAVING)

        try:
            self._teardown(session)
        finally:
            self.view.before_unload = None
            self.view.show_pre_join()
            self.view.reset_mute_labels()
            self.view.clear_inputs()
            self._transition(SessionState.IDLE)
        logger.info("Left room %s", session.room_name)

    def _teardown(self, session: RoomSession) -> None:
        """Unregister handlers, disconnect and drop every remote element of ``session``."""

        self.session = None
        try:
            for entry in session.participants.values():
                self._cancel_all(entry.subscriptions)
            self._cancel_all(session.subscriptions)
            session.room.disconnect()
        finally:
            for sid in list(session.participants):
                self.view.remote_media.remove_owned_by(sid)
            session.participants.clear()

    def _on_unload(self) -> None:
        if self.state is SessionState.JOINED:
            self.leave()

    # ------------------------------------------------------------------
    # Local track controls
    # ------------------------------------------------------------------
    def mute(self, selection: TrackSelection) -> None:
        """Disable the local participant's audio and/or video tracks."""

        for publication in self._local_publications(selection, "mute"):
            publication.track.disable()

    def unmute(self, selection: TrackSelection) -> None:
        """Enable the local participant's audio and/or video tracks."""

        for publication in self._local_publications(selection, "unmute"):
            publication.track.enable()

    def toggle_audio(self) -> bool:
        """Handle a click on the audio mute button; return the new muted flag."""

        session = self._require_session("mute")
        if session.audio_muted:
            self.unmute(AUDIO_ONLY)
        else:
            self.mute(AUDIO_ONLY)
        session.audio_muted = not session.audio_muted
        self.view.mute_audio_button.label = UNMUTE_AUDIO_LABEL if session.audio_muted else MUTE_AUDIO_LABEL
        return session.audio_muted

    def toggle_video(self) -> bool:
        """Handle a click on the video mute button; return the new muted flag."""

        session = self._require_session("mute")
        if session.video_muted:
            self.unmute(VIDEO_ONLY)
        else:
            self.mute(VIDEO_ONLY)
        session.video_muted = not session.video_muted
        self.view.mute_video_button.label = UNMUTE_VIDEO_LABEL if session.video_muted else MUTE_VIDEO_LABEL
        return session.video_muted

    def _require_session(self, action: str) -> RoomSession:
        session = self.session
        if session is None or session.room.local_participant is None:
            raise NotConnectedError(f"You must be connected to a room to {action} tracks.")
        return session

    def _local_publications(self, selection: TrackSelection, action: str) -> list[LocalTrackPublication]:
        local = self._require_session(action).room.local_participant
        publications: list[LocalTrackPublication] = []
        if selection.audio:
            publications.extend(local.audio_tracks.values())
        if selection.video:
            publications.extend(local.video_tracks.values())
        return publications

    # ------------------------------------------------------------------
    # Remote participants and tracks
    # ------------------------------------------------------------------
    def _on_participant_connected(self, session: RoomSession, participant: RemoteParticipant) -> None:
        logger.info("Participant %s connected", participant.identity)
        self._manage_participant(session, participant)

    def _on_participant_disconnected(self, session: RoomSession, participant: RemoteParticipant) -> None:
        logger.info("Participant %s disconnected", participant.identity)
        entry = session.participants.pop(participant.sid, None)
        if entry is not None:
            self._cancel_all(entry.subscriptions)
        self.view.remote_media.remove_owned_by(participant.sid)

    def _manage_participant(self, session: RoomSession, participant: RemoteParticipant) -> None:
        if participant.sid in session.participants:
            logger.debug("Participant %s is already managed", participant.sid)
            return

        entry = _ParticipantEntry(participant=participant)
        session.participants[participant.sid] = entry

        for publication in list(participant.tracks.values()):
            if not publication.is_subscribed or publication.track is None:
                continue
            self._observe_track(entry, publication.track)
            if is_attachable(publication.track):
                self._attach_track(entry, publication.track)

        entry.subscriptions.append(
            participant.on(
                ParticipantEvent.TRACK_SUBSCRIBED,
                lambda track, *_: self._on_track_subscribed(entry, track),
            )
        )
        entry.subscriptions.append(
            participant.on(
                ParticipantEvent.TRACK_UNSUBSCRIBED,
                lambda track, *_: self._on_track_unsubscribed(entry, track),
            )
        )

    def _on_track_subscribed(self, entry: _ParticipantEntry, track: RemoteTrack) -> None:
        self._observe_track(entry, track)
        if not is_attachable(track):
            return
        self._attach_track(entry, track)

    def _on_track_unsubscribed(self, entry: _ParticipantEntry, track: RemoteTrack) -> None:
        if not is_attachable(track):
            return
        element = entry.element_for(track)
        if element is None:
            return

        entry.attached = [(attached, el) for attached, el in entry.attached if attached is not track]
        detached = list(track.detach())
        if element not in detached:
            detached.append(element)
        for node in detached:
            self.view.remote_media.remove(node)

    def _attach_track(self, entry: _ParticipantEntry, track: RemoteTrack) -> None:
        if entry.element_for(track) is not None:
            return
        element = track.attach()
        entry.attached.append((track, element))
        self.view.remote_media.append(element, owner=entry.participant.sid)

    def _observe_track(self, entry: _ParticipantEntry, track: RemoteTrack) -> None:
        if any(observed is track for observed in entry.observed):
            return
        entry.observed.append(track)
        participant = entry.participant
        entry.subscriptions.append(
            track.on(TrackEvent.ENABLED, lambda *_: self._notify_track_state(track, participant, "enabled"))
        )
        entry.subscriptions.append(
            track.on(TrackEvent.DISABLED, lambda *_: self._notify_track_state(track, participant, "disabled"))
        )

    def _notify_track_state(self, track: RemoteTrack, participant: RemoteParticipant, change: str) -> None:
        kind = getattr(track.kind, "value", track.kind)
        self.view.notify(f"Track type {kind} {change} for participant {participant.identity}")

    # ------------------------------------------------------------------
    def _transition(self, state: SessionState) -> None:
        logger.debug("Room session %s -> %s", self.state.value, state.value)
        self.state = state

    @staticmethod
    def _cancel_all(subscriptions: List[Subscription]) -> None:
        for subscription in subscriptions:
            subscription.cancel()
        subscriptions.clear()
