"""Version dispatch shared by the job index and job detail parsers."""

from typing import Any, Callable, Dict, List, TypeVar

from ..errors import UnsupportedVersionError, ValidationError

T = TypeVar("T")

ParseFunc = Callable[[Dict[str, Any]], Any]


class VersionedParser:
    """
    Routes a raw document to the parser registered for its declared version.

    The dispatcher knows only where the version lives and how to turn its raw
    value into a lookup key; field shapes belong to the per-version parsers.
    Supporting a new version means registering one more parser:

        @INDEX_PARSER.register("2")
        def parse_index_v2(data): ...

    Args:
        document: Human-readable document kind used in error messages
        version_field: Name of the field carrying the version
        version_key: Turns the raw version value into a registry key;
            raises ValidationError when the value has the wrong type
    """

    def __init__(self, document: str, version_field: str, version_key: Callable[[Any], Any]):
        self.document = document
        self.version_field = version_field
        self._version_key = version_key
        self._parsers: Dict[Any, ParseFunc] = {}

    def register(self, version: Any) -> Callable[[ParseFunc], ParseFunc]:
        def decorator(func: ParseFunc) -> ParseFunc:
            if version in self._parsers:
                raise ValueError(f"{self.document} version {version} is already registered")
            self._parsers[version] = func
            return func
        return decorator

    @property
    def supported_versions(self) -> List[Any]:
        return list(self._parsers)

    def parse(self, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValidationError(self.document, ["Data must be an object"])

        raw_version = data.get(self.version_field)
        if raw_version is None:
            raise ValidationError(self.document, [f"Missing version field: {self.version_field}"])

        key = self._version_key(raw_version)
        parser = self._parsers.get(key)
        if parser is None:
            raise UnsupportedVersionError(self.document, raw_version, self.supported_versions)
        return parser(data)
