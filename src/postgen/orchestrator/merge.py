from __future__ import annotations

from typing import Iterable, Iterator

from postgen.domain.models import ANY_METHOD, HTTP_VERBS, Endpoint

EndpointKey = tuple[str, str, str, str]


def normalize_endpoint(e: Endpoint) -> Endpoint:
    method = (e.method or "").strip().upper()
    if method not in HTTP_VERBS:
        method = ANY_METHOD
    path = e.path if e.path.startswith("/") else "/" + e.path
    return e.model_copy(update={"method": method, "path": path, "kind": e.kind or "REST"})


def endpoint_key(e: Endpoint) -> EndpointKey:
    return (e.method, e.path, e.source_file, ",".join(e.tags))


class EndpointSet:
    """
    Ordered, deduplicated endpoint collection.

    Endpoints are normalized on the way in; the first endpoint seen for a
    (method, path, source file, tags) key wins and later ones are dropped.
    """

    def __init__(self, endpoints: Iterable[Endpoint] = ()) -> None:
        self._seen: set[EndpointKey] = set()
        self._items: list[Endpoint] = []
        self.extend(endpoints)

    def add(self, endpoint: Endpoint) -> bool:
        e = normalize_endpoint(endpoint)
        key = endpoint_key(e)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._items.append(e)
        return True

    def extend(self, endpoints: Iterable[Endpoint]) -> int:
        return sum(1 for e in endpoints if self.add(e))

    def to_list(self) -> list[Endpoint]:
        return list(self._items)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
