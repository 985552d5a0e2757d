class OrgpackError(Exception):
    """Base class for orgpack-specific errors."""


class PathError(OrgpackError):
    """A source or target path is missing, empty, or cannot be named in an archive."""


class FormatError(OrgpackError):
    """The container bytes do not match the expected layout."""


# Codec failures
class CompressionError(OrgpackError):
    pass


class UnsupportedCodecError(CompressionError):
    pass
