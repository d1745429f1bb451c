"""The shell's variable table."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

STATUS_KEY = "?"


class Environment:
    """Ordered shell variables; a value of None marks a name exported without a value."""

    def __init__(self) -> None:
        self._vars: dict[str, str | None] = {}

    @classmethod
    def from_envp(cls, envp: Iterable[str] | None) -> Environment:
        """Build from ``KEY=VALUE`` strings and set the last status to ``0``."""
        env = cls()
        if envp is None:
            return env
        for line in envp:
            key, sep, value = line.partition("=")
            env._vars[key] = value if sep else ""
        env.set(STATUS_KEY, "0")
        return env

    def get(self, key: str) -> str | None:
        return self._vars.get(key)

    def set(self, key: str, value: str | None) -> None:
        """Assign a variable; a None value never overwrites an existing one."""
        if key in self._vars:
            if value is not None:
                self._vars[key] = value
            return
        self._vars[key] = value

    def unset(self, key: str) -> None:
        self._vars.pop(key, None)

    def to_envp(self) -> list[str]:
        """Return ``KEY=VALUE`` strings for the variables that have values."""
        return [
            f"{key}={value}"
            for key, value in self._vars.items()
            if key != STATUS_KEY and value is not None
        ]

    def items(self) -> Iterator[tuple[str, str | None]]:
        return iter(list(self._vars.items()))

    def __len__(self) -> int:
        return len(self._vars)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._vars))

    def __contains__(self, key: object) -> bool:
        return key in self._vars