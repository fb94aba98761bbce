from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import List, Optional

from . import repo


class LocalStorage(MutableMapping):
    """localStorage-style facade over the key-value repository.

    Exposes ``get_item/set_item/remove_item/clear/keys`` and also behaves as a
    mutable mapping, so it can be handed to anything that expects a dict-like
    session (see ``tracker.auth``).
    """

    def __init__(self, database_url: str, *, create: bool = True) -> None:
        self.database_url = database_url
        if create:
            repo.init_db(database_url)

    def get_item(self, key: str) -> Optional[str]:
        return repo.get_item(self.database_url, key)

    def set_item(self, key: str, value: str) -> None:
        repo.set_item(self.database_url, key, value)

    def remove_item(self, key: str) -> bool:
        return repo.remove_item(self.database_url, key)

    def clear(self) -> None:
        repo.clear(self.database_url)

    def keys(self) -> List[str]:  # type: ignore[override]
        return repo.list_keys(self.database_url)

    # ---- mapping protocol ----

    def __getitem__(self, key: str) -> str:
        value = self.get_item(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: str) -> None:
        self.set_item(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.remove_item(key):
            raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get_item(key) is not None

    def __repr__(self) -> str:
        return f"LocalStorage({self.database_url!r})"
