from __future__ import annotations

from enum import Enum


class PresenceStatus(str, Enum):
    """Presence shown on the board."""

    AVAILABLE = "AVAILABLE"
    ON_BREAK = "ON_BREAK"


class ChangeKind(str, Enum):
    """Kind of a remote change delivered by the change feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ConnectionState(str, Enum):
    """Reconciler connection lifecycle."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    SYNCED = "SYNCED"
    DEGRADED = "DEGRADED"
