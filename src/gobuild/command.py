"""Typed, ordered command-line construction.

A ``CommandLine`` is an immutable sequence of segments. Each segment knows
how to flatten itself, so the external argument order is exactly the order
in which segments were added.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Arg:
    value: str

    def flatten(self) -> tuple[str, ...]:
        return (self.value,)


@dataclass(frozen=True, slots=True)
class Option:
    flag: str
    value: str

    def flatten(self) -> tuple[str, ...]:
        return (self.flag, self.value)


@dataclass(frozen=True, slots=True)
class Args:
    values: tuple[str, ...]

    def flatten(self) -> tuple[str, ...]:
        return self.values


Segment = Arg | Option | Args


@dataclass(frozen=True, slots=True)
class CommandLine:
    segments: tuple[Segment, ...] = ()

    @classmethod
    def of(cls, *values: str) -> CommandLine:
        return cls(tuple(Arg(value) for value in values))

    def arg(self, *values: str) -> CommandLine:
        return CommandLine(self.segments + tuple(Arg(value) for value in values))

    def option(self, flag: str, value: str) -> CommandLine:
        return CommandLine((*self.segments, Option(flag, value)))

    def args(self, values: Iterable[str]) -> CommandLine:
        values = tuple(values)
        if not values:
            return self
        return CommandLine((*self.segments, Args(values)))

    def argv(self) -> tuple[str, ...]:
        flattened: list[str] = []
        for segment in self.segments:
            flattened.extend(segment.flatten())
        return tuple(flattened)

    @property
    def tool(self) -> str:
        argv = self.argv()
        return argv[0] if argv else ""

    def __str__(self) -> str:
        return " ".join(self.argv())
