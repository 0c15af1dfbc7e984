"""Exceptions raised at the export boundary."""


class TokenExportError(Exception):
    """Base class for errors that abort an export run."""


class SourceError(TokenExportError):
    """The design source returned data that cannot be used at all."""


class ExportFetchError(TokenExportError):
    """Fetching raw styles, variables or collections failed.

    This is the only fatal error of a run; no partial document is returned.
    """
