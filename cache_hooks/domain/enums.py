"""Domain enumerations for cache-hooks.

Enums represent fixed sets of domain values (e.g. controller access mode).
"""

from enum import Enum


class AccessMode(str, Enum):
    """Access mode of a cache controller.

    Gates which storage operations reach the backend. A gated operation
    behaves as a miss and never touches the client.
    """

    READ_WRITE = "read-write"
    READ_ONLY = "read-only"
    WRITE_ONLY = "write-only"
    DISABLED = "disabled"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid mode values as strings."""
        return [mode.value for mode in cls]

    @property
    def can_read(self) -> bool:
        """exists/read are allowed."""
        return self in (AccessMode.READ_WRITE, AccessMode.READ_ONLY)

    @property
    def can_write(self) -> bool:
        """write/remove are allowed."""
        return self in (AccessMode.READ_WRITE, AccessMode.WRITE_ONLY)

    @property
    def can_increment(self) -> bool:
        """increment needs both read and write."""
        return self is AccessMode.READ_WRITE
