"""Helpers that combine several errors into one exception."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Iterable, Mapping, Optional


def _describe(err: Optional[BaseException]) -> str:
    return "<nil>" if err is None else str(err)


class GatheredError(Exception):
    """Several errors wrapped into a single exception, joined by ", "."""

    def __init__(self, errors: Iterable[Optional[BaseException]]) -> None:
        self.errors = list(errors)
        super().__init__(*self.errors)

    def __str__(self) -> str:
        return ", ".join(_describe(err) for err in self.errors)


class PrefixedError(Exception):
    """An error whose message is preceded by a fixed prefix."""

    def __init__(self, prefix: str, err: Optional[BaseException]) -> None:
        super().__init__(prefix, err)
        self.prefix = prefix
        self.err = err
        if err is not None:
            self.__cause__ = err

    def __str__(self) -> str:
        return self.prefix + _describe(self.err)


@dataclass
class PrefixErr:
    """A prefix paired with an error, which may be None."""

    prefix: str
    err: Optional[BaseException]


def gather(*errs: Optional[BaseException]) -> Optional[GatheredError]:
    """Wrap the non-None errors into one; None when there are none."""
    filtered = [err for err in errs if err is not None]
    if not filtered:
        return None
    return GatheredError(filtered)


def gather_checked(*errs: Optional[BaseException]) -> Optional[GatheredError]:
    """Like gather, but keeps None entries when any error is present."""
    if not any(err is not None for err in errs):
        return None
    return gather_unchecked(*errs)


def gather_unchecked(*errs: Optional[BaseException]) -> GatheredError:
    """Always wrap errs, even when all are None or there are none."""
    return GatheredError(errs)


def to_pairs(
    errs: Mapping[str, Optional[BaseException]],
    cmp_key: Optional[Callable[[str, str], int]] = None,
) -> list[PrefixErr]:
    """Turn a prefix-to-error mapping into pairs sorted by prefix."""
    if not errs:
        return []
    pairs = [PrefixErr(key, value) for key, value in errs.items()]
    if cmp_key is None:
        pairs.sort(key=lambda pair: pair.prefix)
    else:
        pairs.sort(key=cmp_to_key(lambda a, b: cmp_key(a.prefix, b.prefix)))
    return pairs


def gather_prefixed(errs: Iterable[PrefixErr]) -> Optional[GatheredError]:
    """Like gather_checked, with each error prefixed by its pair's prefix."""
    pairs = list(errs)
    if not any(pair.err is not None for pair in pairs):
        return None
    return gather_unchecked(*(prefix_unchecked(pair.prefix, pair.err) for pair in pairs))


def prefix(prefix: str, err: Optional[BaseException]) -> Optional[PrefixedError]:
    """Prefix err with prefix; None if err is None."""
    if err is None:
        return None
    return prefix_unchecked(prefix, err)


def prefix_unchecked(prefix: str, err: Optional[BaseException]) -> PrefixedError:
    """Prefix err with prefix, even when err is None."""
    return PrefixedError(prefix, err)