"""Rooms: two participants sharing one ``BanqiGame``.

The registry is the only place rooms are created, looked up and torn down.
A room owns its game exclusively; every intent goes through the room, which
checks who is asking, applies the action and broadcasts the resulting state
through a ``Notifier``.
"""
import logging
import random
import string
import threading
import time
from typing import Dict, List, Optional

from banqi.models import Color
from .errors import (
    GameError,
    GameInactiveError,
    GameOverError,
    NotYourTurnError,
    RoomFullError,
    RoomNotFoundError,
)
from .state import BanqiGame, Phase

logger = logging.getLogger(__name__)

MAX_PARTICIPANTS = 2


class Notifier:
    """Outbound side of a room. The transport overrides these."""

    def state_changed(self, room_id: str, payload: dict) -> None:
        pass

    def action_rejected(self, room_id: str, participant_id: str, payload: dict) -> None:
        pass

    def participant_left(self, room_id: str, participant_id: str) -> None:
        pass

    def session_ended(self, room_id: str) -> None:
        pass


class Room:
    def __init__(self, room_id: str, notifier: Optional[Notifier] = None, game: Optional[BanqiGame] = None):
        self.room_id = room_id
        self.notifier = notifier or Notifier()
        self.game = game or BanqiGame()
        self.participants: List[str] = []
        self.bindings: Dict[str, Color] = {}
        self.active = False
        self.created_at = time.time()
        self.last_activity = self.created_at
        self._abandoned = False
        self._lock = threading.RLock()

    # ---- membership ----

    def join(self, participant_id: str) -> int:
        """Seat a participant and return their player number (1 or 2)."""
        with self._lock:
            if participant_id in self.participants:
                return self.participants.index(participant_id) + 1
            if len(self.participants) >= MAX_PARTICIPANTS:
                raise RoomFullError(self.room_id)
            if self._abandoned:
                # A new opponent takes the vacant seat: start over.
                self._reset_game()
                self._abandoned = False
            self.participants.append(participant_id)
            self.active = len(self.participants) == MAX_PARTICIPANTS
            self._touch()
            logger.info(f"[join] room={self.room_id} participant={participant_id} seats={len(self.participants)}")
            return len(self.participants)

    def leave(self, participant_id: str) -> bool:
        with self._lock:
            if participant_id not in self.participants:
                return False
            self.participants.remove(participant_id)
            self.active = False
            self._abandoned = True
            self._touch()
            logger.info(f"[leave] room={self.room_id} participant={participant_id} remaining={len(self.participants)}")
        self.notifier.participant_left(self.room_id, participant_id)
        return True

    @property
    def is_empty(self) -> bool:
        return not self.participants

    def color_of(self, participant_id: str) -> Optional[Color]:
        return self.bindings.get(participant_id)

    def participant_for(self, color: Optional[Color]) -> Optional[str]:
        if color is None:
            return None
        for participant_id, bound in self.bindings.items():
            if bound == color:
                return participant_id
        return None

    # ---- intents ----

    def reveal(self, participant_id: str, row: int, col: int) -> Optional[dict]:
        """Apply a reveal. Returns the accepted action, or None if rejected."""
        return self._dispatch(participant_id, lambda: self._reveal(participant_id, row, col))

    def move(self, participant_id: str, from_row: int, from_col: int, to_row: int, to_col: int) -> Optional[dict]:
        """Apply a move. A move whose source and target coincide is a reveal."""
        if (from_row, from_col) == (to_row, to_col):
            return self.reveal(participant_id, to_row, to_col)
        return self._dispatch(
            participant_id,
            lambda: self._move(participant_id, (from_row, from_col), (to_row, to_col)),
        )

    def reset(self) -> None:
        with self._lock:
            self._reset_game()
            self._touch()
            logger.info(f"[reset] room={self.room_id}")
            self.notifier.state_changed(self.room_id, self.to_dict())

    def _reveal(self, participant_id: str, row: int, col: int) -> dict:
        self._require_playing(participant_id)
        if self.game.phase is Phase.IN_PROGRESS:
            if self.participant_for(self.game.current_color) != participant_id:
                raise NotYourTurnError()
        action = self.game.reveal(row, col, self.color_of(participant_id))
        if action['bound_color']:
            self._bind(participant_id, Color(action['bound_color']))
        return action

    def _move(self, participant_id: str, src, dst) -> dict:
        self._require_playing(participant_id)
        # Bound colors come from participant identity, never from the client.
        return self.game.move(src, dst, self.color_of(participant_id))

    def _require_playing(self, participant_id: str) -> None:
        if participant_id not in self.participants:
            raise NotYourTurnError('You are not playing in this game')
        if not self.active:
            raise GameInactiveError()
        if self.game.is_over:
            raise GameOverError()

    def _bind(self, participant_id: str, color: Color) -> None:
        opponent = next(p for p in self.participants if p != participant_id)
        self.bindings = {participant_id: color, opponent: color.opponent}
        logger.info(
            f"[bind] room={self.room_id} {participant_id}->{color.value} {opponent}->{color.opponent.value}"
        )

    def _dispatch(self, participant_id: str, apply) -> Optional[dict]:
        with self._lock:
            try:
                action = apply()
            except GameError as exc:
                logger.info(f"[reject] room={self.room_id} participant={participant_id} reason={exc.reason} message={exc.message}")
                payload = dict(exc.to_dict(), participant_id=participant_id)
                self.notifier.action_rejected(self.room_id, participant_id, payload)
                return None
            self._touch()
            logger.info(
                f"[{action['kind']}] room={self.room_id} participant={participant_id} "
                f"from={tuple(action['from'])} to={tuple(action['to'])} turn={self.game.turn_count}"
            )
            if self.game.is_over:
                logger.info(f"[game-over] room={self.room_id} winner={self.game.winner.value}")
            self.notifier.state_changed(self.room_id, self.to_dict())
            return action

    def _reset_game(self) -> None:
        self.game.reset()
        self.bindings = {}

    def _touch(self) -> None:
        self.last_activity = time.time()

    def to_dict(self) -> dict:
        payload = self.game.to_dict()
        payload.update({
            'game_code': self.room_id,
            'participants': list(self.participants),
            'bindings': {pid: color.value for pid, color in self.bindings.items()},
            'current_participant': self.participant_for(self.game.current_color),
            'active': self.active,
        })
        return payload


def generate_room_code(length: int = 4, taken=(), rng=None) -> str:
    """Generate a short room code not already in ``taken``."""
    rng = rng or random
    while True:
        code = ''.join(rng.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


class RoomRegistry:
    """Room code -> Room, plus which room each participant sits in."""

    def __init__(self, notifier: Optional[Notifier] = None, code_length: int = 4, rng=None):
        self.notifier = notifier or Notifier()
        self.code_length = code_length
        self._rng = rng
        self._rooms: Dict[str, Room] = {}
        self._participant_rooms: Dict[str, str] = {}
        self._lock = threading.RLock()

    @staticmethod
    def normalize(room_id: Optional[str]) -> str:
        return (room_id or '').strip().upper()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        return self.normalize(room_id) in self._rooms

    def create(self) -> Room:
        with self._lock:
            code = generate_room_code(self.code_length, self._rooms, self._rng)
            room = Room(code, self.notifier, BanqiGame(rng=self._rng))
            self._rooms[code] = room
            logger.info(f"[room-create] room={code}")
            return room

    def get(self, room_id: Optional[str]) -> Room:
        room = self._rooms.get(self.normalize(room_id))
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    def room_of(self, participant_id: str) -> Optional[Room]:
        code = self._participant_rooms.get(participant_id)
        return self._rooms.get(code) if code else None

    def join(self, room_id: Optional[str], participant_id: str) -> Room:
        with self._lock:
            room = self.get(room_id)
            current = self.room_of(participant_id)
            # Take the new seat first so a rejected join keeps the old one.
            room.join(participant_id)
            if current is not None and current is not room:
                self.leave(participant_id)
            self._participant_rooms[participant_id] = room.room_id
            return room

    def leave(self, participant_id: str) -> Optional[Room]:
        """Remove a participant from their room; empty rooms are torn down."""
        with self._lock:
            code = self._participant_rooms.pop(participant_id, None)
            room = self._rooms.get(code) if code else None
            if room is None:
                return None
            room.leave(participant_id)
            if room.is_empty:
                self.destroy(room.room_id, notify=False)
            return room

    def destroy(self, room_id: Optional[str], notify: bool = True) -> Optional[Room]:
        with self._lock:
            room = self._rooms.pop(self.normalize(room_id), None)
            if room is None:
                return None
            for participant_id in list(room.participants):
                self._participant_rooms.pop(participant_id, None)
            room.active = False
            logger.info(f"[room-destroy] room={room.room_id}")
        if notify:
            self.notifier.session_ended(room.room_id)
        return room

    def available(self) -> List[dict]:
        """Rooms waiting for a second participant."""
        return [
            {'game_code': room.room_id, 'created_at': room.created_at}
            for room in list(self._rooms.values())
            if len(room.participants) == 1
        ]

    def idle(self, max_idle_sec: float, now: Optional[float] = None) -> List[str]:
        now = time.time() if now is None else now
        return [code for code, room in list(self._rooms.items()) if now - room.last_activity >= max_idle_sec]
