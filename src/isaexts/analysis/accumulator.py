"""First-occurrence bookkeeping for observed instruction groups."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from isaexts.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ObservedExtension:
    name: str
    group: int
    mnemonic: str | None = None
    address: int | None = None

    def describe(self) -> str:
        if self.mnemonic:
            return f"{self.name} ({self.mnemonic})"
        return self.name


class ExtensionAccumulator:
    """Collect the distinct groups seen during one scan.

    Only the first sighting of a group is kept. Groups missing from the
    classification table are remembered as seen so they are looked up once,
    but never reported.
    """

    def __init__(self, groups: Mapping[int, str], report_unclassified: bool = False) -> None:
        self._groups = groups
        self._report_unclassified = report_unclassified
        self._seen: set[int] = set()
        self._names: set[str] = set()
        self._observed: list[ObservedExtension] = []

    def record(
        self, group: int, mnemonic: str | None, address: int | None = None
    ) -> ObservedExtension | None:
        """Note one group sighting; return the extension if it is newly observed."""
        if group in self._seen:
            return None
        self._seen.add(group)

        name = self._groups.get(group)
        if name is None:
            level = log.warning if self._report_unclassified else log.debug
            level("unclassified_group", group=group, mnemonic=mnemonic)
            return None

        if name in self._names:
            return None
        self._names.add(name)

        observed = ObservedExtension(name=name, group=group, mnemonic=mnemonic, address=address)
        self._observed.append(observed)
        return observed

    def finalize(self) -> tuple[tuple[ObservedExtension, ...], tuple[str, ...]]:
        """Return extensions in first-seen order and their names sorted lexically."""
        first_order = tuple(self._observed)
        return first_order, tuple(sorted(self._names))
