"""Exception hierarchy shared by every layer."""


class WhatsAppBotError(Exception):
    """Base exception for bot errors."""
    pass


class SessionNotReadyError(WhatsAppBotError):
    """Raised when a send is attempted before a connection is open."""
    pass


class MediaError(WhatsAppBotError):
    """Raised when a media reference cannot be understood or decoded."""
    pass


class MediaNotFoundError(MediaError):
    """Raised when a local media file does not exist."""
    pass


class MediaDownloadError(MediaError):
    """Raised when a remote media URL cannot be fetched."""
    pass
