"""Resource URI grammar: ``scheme://category/segment[/segment...]``."""

from dataclasses import dataclass

from .exceptions import InvalidResourceUriError, UnsupportedSchemeError


@dataclass(frozen=True)
class ResourceUri:
    """A parsed resource URI."""

    raw: str
    scheme: str
    category: str
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, uri: str, expected_scheme: str | None = None) -> "ResourceUri":
        """Split ``uri`` into scheme, category and trailing segments.

        Raises:
            UnsupportedSchemeError: If the scheme is missing or differs from
                ``expected_scheme``
            InvalidResourceUriError: If there is no category segment
        """
        if not isinstance(uri, str) or "://" not in uri:
            raise UnsupportedSchemeError(str(uri), "")

        scheme, _, path = uri.partition("://")
        if not scheme or (expected_scheme is not None and scheme != expected_scheme):
            raise UnsupportedSchemeError(uri, scheme)

        parts = path.split("/")
        if not parts or not parts[0]:
            raise InvalidResourceUriError(uri)

        return cls(raw=uri, scheme=scheme, category=parts[0], segments=tuple(parts[1:]))

    def match(self, category: str, arity: int) -> tuple[str, ...] | None:
        """Return the segments if this URI has ``category`` and exactly
        ``arity`` non-empty segments."""
        if self.category != category or len(self.segments) != arity:
            return None
        if not all(self.segments):
            return None
        return self.segments


def build_uri(scheme: str, category: str, *segments: str) -> str:
    return "/".join([f"{scheme}://{category}", *segments])
