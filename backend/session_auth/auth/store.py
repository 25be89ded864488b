"""Key/value stores backing the token service.

The service only needs ``get``/``put``/``delete`` by key. ``delete`` hands back the
value it removed, and only one caller can ever receive a given value, which is what
makes refresh tokens single-use under concurrent requests. ``update`` applies a
read-modify-write to one record without losing concurrent writers.
"""

import threading
from typing import Callable, Generic, Protocol, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from session_auth.auth.models import RefreshTokenRecord, Tenant, User, UserId
from session_auth.auth.security import hash_token
from session_auth.db.models import KVEntry

V = TypeVar("V", bound=BaseModel)


class KeyValueStore(Protocol[V]):
    def get(self, key: str) -> V | None: ...

    def put(self, key: str, value: V) -> None: ...

    def delete(self, key: str) -> V | None: ...

    def update(self, key: str, fn: Callable[[V], V]) -> V | None: ...


class InMemoryStore(Generic[V]):
    def __init__(self) -> None:
        self._items: dict[str, V] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        with self._lock:
            value = self._items.get(key)
        return value.model_copy(deep=True) if value is not None else None

    def put(self, key: str, value: V) -> None:
        with self._lock:
            self._items[key] = value.model_copy(deep=True)

    def delete(self, key: str) -> V | None:
        with self._lock:
            return self._items.pop(key, None)

    def update(self, key: str, fn: Callable[[V], V]) -> V | None:
        with self._lock:
            current = self._items.get(key)
            if current is None:
                return None
            updated = fn(current.model_copy(deep=True))
            self._items[key] = updated
        return updated.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SqlStore(Generic[V]):
    """Namespace of the ``kv_entries`` table holding one record type as JSON."""

    def __init__(self, session_factory: sessionmaker, namespace: str, model: type[V]) -> None:
        self._session_factory = session_factory
        self.namespace = namespace
        self.model = model

    def _where(self, key: str):
        return (KVEntry.namespace == self.namespace, KVEntry.key_hash == hash_token(key))

    def get(self, key: str) -> V | None:
        with self._session_factory() as db:
            raw = db.execute(select(KVEntry.value).where(*self._where(key))).scalar_one_or_none()
        if raw is None:
            return None
        return self.model.model_validate_json(raw)

    def put(self, key: str, value: V) -> None:
        payload = value.model_dump_json()
        with self._session_factory() as db:
            row = db.execute(select(KVEntry).where(*self._where(key))).scalar_one_or_none()
            if row is None:
                row = KVEntry(namespace=self.namespace, key_hash=hash_token(key), value=payload)
            else:
                row.value = payload
            db.add(row)
            db.commit()

    def delete(self, key: str) -> V | None:
        with self._session_factory() as db:
            raw = db.execute(select(KVEntry.value).where(*self._where(key))).scalar_one_or_none()
            if raw is None:
                return None
            result = db.execute(delete(KVEntry).where(*self._where(key)))
            db.commit()
        # Another consumer deleted it between our read and our delete.
        if result.rowcount != 1:
            return None
        return self.model.model_validate_json(raw)

    def update(self, key: str, fn: Callable[[V], V]) -> V | None:
        with self._session_factory() as db:
            while True:
                raw = db.execute(
                    select(KVEntry.value).where(*self._where(key)).with_for_update()
                ).scalar_one_or_none()
                if raw is None:
                    return None
                updated = fn(self.model.model_validate_json(raw))
                # compare-and-swap on the previous value; sqlite ignores FOR UPDATE
                result = db.execute(
                    update(KVEntry)
                    .where(*self._where(key), KVEntry.value == raw)
                    .values(value=updated.model_dump_json())
                )
                db.commit()
                if result.rowcount == 1:
                    return updated


class AuthStores:
    def __init__(
        self,
        users: KeyValueStore[User],
        user_emails: KeyValueStore[UserId],
        tenants: KeyValueStore[Tenant],
        refresh_tokens: KeyValueStore[RefreshTokenRecord],
    ) -> None:
        self.users = users
        self.user_emails = user_emails
        self.tenants = tenants
        self.refresh_tokens = refresh_tokens

    @classmethod
    def in_memory(cls) -> "AuthStores":
        return cls(
            users=InMemoryStore(),
            user_emails=InMemoryStore(),
            tenants=InMemoryStore(),
            refresh_tokens=InMemoryStore(),
        )

    @classmethod
    def sql(cls, session_factory: sessionmaker) -> "AuthStores":
        return cls(
            users=SqlStore(session_factory, "users", User),
            user_emails=SqlStore(session_factory, "user_emails", UserId),
            tenants=SqlStore(session_factory, "tenants", Tenant),
            refresh_tokens=SqlStore(session_factory, "refresh_tokens", RefreshTokenRecord),
        )
