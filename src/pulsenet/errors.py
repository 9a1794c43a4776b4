"""
Internal exceptions.

Raised inside components and caught at their boundary, where they are
folded into result fields. None of them escape a public operation.
"""

from .models import ErrorKind


class PulseNetError(Exception):
    """Base class for engine failures carrying an ErrorKind."""

    kind: ErrorKind = ErrorKind.TRANSPORT_ERROR


class ResolutionFailed(PulseNetError):
    """Hostname lookup errored or returned no address."""

    kind = ErrorKind.RESOLUTION_FAILED


class InvalidServerAddress(PulseNetError, ValueError):
    """Resolver string is not ``ip[:port]``."""

    kind = ErrorKind.INVALID_SERVER


class InvalidDomain(PulseNetError, ValueError):
    """Domain is empty once scheme, path, query and fragment are stripped."""

    kind = ErrorKind.INVALID_DOMAIN
