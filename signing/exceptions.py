"""
Exceptions raised while building or signing file URLs.

Validation of a received URL never raises these to the caller:
UrlSigner.validate() collapses every failure into a single None result.
"""


class FileSignerError(Exception):
    """Base exception for file signer errors."""
    pass


class ConfigurationError(FileSignerError):
    """The signer is misconfigured."""
    pass


class EmptyKeyError(ConfigurationError):
    """The signature key is empty."""
    pass


class ParameterError(FileSignerError):
    """Base exception for parameter registry and collection errors."""
    pass


class DuplicateNameError(ParameterError):
    """Parameter name is already registered."""
    pass


class DuplicateAliasError(ParameterError):
    """Parameter alias is already used by another parameter."""
    pass


class UnknownParameterError(ParameterError):
    """Parameter name is not registered."""
    pass


class UnknownOrUnsetParameterError(ParameterError):
    """Parameter is not registered or has no value set."""
    pass


class InvalidParameterValueError(ParameterError):
    """Parameter value has characters other than letters and digits."""
    pass


class ReservedParameterError(ParameterError):
    """A caller supplied query parameter uses a reserved alias."""
    pass


class FileError(FileSignerError):
    """Base exception for file identifier errors."""
    pass


class MissingExtensionError(FileError):
    """File has no extension."""
    pass


class InvalidPathError(FileError):
    """Encoded path cannot be decoded."""
    pass
