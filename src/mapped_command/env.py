"""Child-process environment: per-key updates on top of optional inheritance."""

import enum
import os
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from types import MappingProxyType


class EnvUpdateKind(enum.Enum):
    SET = "set"
    UNSET = "unset"
    INHERIT = "inherit"


@dataclass(frozen=True)
class EnvUpdate:
    """How one env variable of the child differs from the default.

    - ``SET`` writes ``value``, replacing any inherited value.
    - ``UNSET`` removes the variable, even if it would be inherited.
    - ``INHERIT`` copies the current process value (if any), even when
      inheritance is disabled for the rest of the environment.
    """

    kind: EnvUpdateKind
    value: str | None = None

    @classmethod
    def set(cls, value: str | os.PathLike) -> "EnvUpdate":
        return cls(EnvUpdateKind.SET, os.fspath(value))

    @classmethod
    def coerce(cls, value) -> "EnvUpdate":
        """Accept an ``EnvUpdate``, a string/path (SET) or ``None`` (UNSET)."""
        if isinstance(value, EnvUpdate):
            return value
        if value is None:
            return cls.UNSET
        if isinstance(value, (str, os.PathLike)):
            return cls.set(value)
        raise TypeError(f"cannot use {type(value).__name__} as an env update")

    def __repr__(self) -> str:
        if self.kind is EnvUpdateKind.SET:
            return f"EnvUpdate.set({self.value!r})"
        return f"EnvUpdate.{self.kind.name}"


EnvUpdate.UNSET = EnvUpdate(EnvUpdateKind.UNSET)
EnvUpdate.INHERIT = EnvUpdate(EnvUpdateKind.INHERIT)


Ambient = Mapping[str, str] | Callable[[], Mapping[str, str]]


def _snapshot(ambient: Ambient | None) -> Mapping[str, str]:
    if ambient is None:
        return os.environ
    if callable(ambient):
        return ambient()
    return ambient


class EnvBuilder:
    """Collects env updates; resolution happens only in :meth:`build`."""

    def __init__(self, inherit_env: bool = True):
        self._inherit_env = inherit_env
        self._updates: dict[str, EnvUpdate] = {}

    @property
    def inherit_env(self) -> bool:
        return self._inherit_env

    def set_inherit_env(self, do_inherit: bool) -> None:
        self._inherit_env = bool(do_inherit)

    def insert_update(self, key: str, update) -> None:
        self._updates[key] = EnvUpdate.coerce(update)

    def extend(self, updates: Mapping | Iterable[tuple]) -> None:
        """Merge updates, later entries win on key conflicts."""
        items = updates.items() if isinstance(updates, Mapping) else updates
        for key, update in items:
            self.insert_update(key, update)

    @property
    def env_updates(self) -> Mapping[str, EnvUpdate]:
        return MappingProxyType(self._updates)

    def iter_env_updates(self) -> Iterator[tuple[str, EnvUpdate]]:
        return iter(list(self._updates.items()))

    def build_on(self, target: MutableMapping[str, str], ambient: Ambient | None = None) -> None:
        """Write the resolved environment into ``target``.

        ``ambient`` is the current process environment, a mapping or a
        callable returning one. It defaults to ``os.environ`` read now.
        """
        current = _snapshot(ambient)
        if self._inherit_env:
            target.update(current)
        for key, update in self._updates.items():
            if update.kind is EnvUpdateKind.SET:
                target[key] = update.value
            elif update.kind is EnvUpdateKind.UNSET:
                target.pop(key, None)
            elif key in current:
                target[key] = current[key]
            else:
                target.pop(key, None)

    def build(self, ambient: Ambient | None = None) -> dict[str, str]:
        env: dict[str, str] = {}
        self.build_on(env, ambient)
        return env

    def copy(self) -> "EnvBuilder":
        new = EnvBuilder(self._inherit_env)
        new._updates = dict(self._updates)
        return new

    def __len__(self) -> int:
        return len(self._updates)

    def __eq__(self, other) -> bool:
        if not isinstance(other, EnvBuilder):
            return NotImplemented
        return self._inherit_env == other._inherit_env and self._updates == other._updates

    def __repr__(self) -> str:
        return f"EnvBuilder(inherit_env={self._inherit_env!r}, updates={self._updates!r})"
