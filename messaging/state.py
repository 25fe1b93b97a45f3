# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionPhase(Enum):
    """Lifecycle phase of the WhatsApp session."""

    UNINITIALIZED = "UNINITIALIZED"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    READY = "READY"
    DISCONNECTED = "DISCONNECTED"
    AUTH_FAILED = "AUTH_FAILED"


class SessionEvent(Enum):
    """Inputs that drive the session state machine."""

    INITIALIZE = "INITIALIZE"
    PAIRING_CODE = "PAIRING_CODE"
    READY = "READY"
    AUTH_FAILURE = "AUTH_FAILURE"
    DISCONNECTED = "DISCONNECTED"
    INIT_FAILED = "INIT_FAILED"
    LOGOUT = "LOGOUT"


# Events after which the manager schedules a fresh initialization.
RETRY_EVENTS = frozenset(
    {SessionEvent.AUTH_FAILURE, SessionEvent.DISCONNECTED, SessionEvent.INIT_FAILED}
)

_PAIRABLE_PHASES = frozenset(
    {SessionPhase.UNINITIALIZED, SessionPhase.AWAITING_PAIRING}
)


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the session. Replaced, never mutated."""

    phase: SessionPhase = SessionPhase.UNINITIALIZED
    pairing_code: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.phase == SessionPhase.READY

    def as_status(self) -> dict:
        """Status payload exposed over HTTP."""
        if self.phase == SessionPhase.READY:
            return {"ready": True}
        if self.phase == SessionPhase.AWAITING_PAIRING and self.pairing_code:
            return {"pairingCode": self.pairing_code}
        return {"waiting": True}


def transition(
    state: SessionState,
    event: SessionEvent,
    pairing_code: Optional[str] = None,
) -> SessionState:
    """
    Return the state that follows `state` after `event`.

    A pairing code only moves the machine while it is still waiting to pair;
    codes that arrive after ready or after a failure are stale and ignored.
    Every other event clears the pairing code.
    """
    if event == SessionEvent.PAIRING_CODE:
        if state.phase not in _PAIRABLE_PHASES or not pairing_code:
            return state
        return SessionState(SessionPhase.AWAITING_PAIRING, pairing_code)
    if event == SessionEvent.INITIALIZE:
        return SessionState(SessionPhase.UNINITIALIZED)
    if event == SessionEvent.READY:
        return SessionState(SessionPhase.READY)
    if event == SessionEvent.AUTH_FAILURE:
        return SessionState(SessionPhase.AUTH_FAILED)
    if event in (SessionEvent.DISCONNECTED, SessionEvent.LOGOUT):
        return SessionState(SessionPhase.DISCONNECTED)
    if event == SessionEvent.INIT_FAILED:
        return SessionState(SessionPhase.UNINITIALIZED)
    raise ValueError(f"Unknown session event: {event}")
