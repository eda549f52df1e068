"""Custom exception classes for the virtual filesystem."""


class HookFSError(Exception):
    """
    Base exception class for all filesystem-related errors.
    """
    pass


class EntryNotFoundError(HookFSError):
    """
    Raised when path resolution reaches a missing segment.
    """
    pass


class TypeMismatchError(HookFSError):
    """
    Raised when an operation expected a file but found a directory, or vice versa.
    """
    pass


class InvalidPathError(HookFSError):
    """
    Raised when a malformed path is supplied to a mutating operation.
    """
    pass


class MetadataParseError(HookFSError):
    """
    Raised when a metadata line or piece index blob does not match the expected format.
    """
    pass


class TransportError(HookFSError):
    """
    Raised when the webhook backend cannot be reached or rejects a request.
    """
    pass


class EncryptionConfigError(HookFSError):
    """
    Raised when encryption is requested without a usable key and IV pair.
    """
    pass
