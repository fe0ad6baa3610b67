"""Exceptions raised by the serial-to-WebSocket bridge."""


class BridgeError(Exception):
    """Base exception for bridge errors."""
    pass


class LinkError(BridgeError):
    """Base exception for serial link faults."""
    pass


class LinkOpenError(LinkError):
    """Raised when the serial link cannot be opened."""
    pass


class LinkRuntimeError(LinkError):
    """Raised when an open serial link fails or is used after closing."""
    pass


class ClientSendError(BridgeError):
    """Raised when a frame cannot be delivered to one client."""
    pass


class CommandError(BridgeError):
    """Base exception for command submission failures."""
    pass


class LinkUnavailableError(CommandError):
    """Raised when a command arrives while the serial link is not open."""
    pass


class CommandWriteError(CommandError):
    """Raised when writing a command to the serial link fails."""
    pass
