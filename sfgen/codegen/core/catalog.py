"""
Package catalog.

Loads every distinct source location once, concurrently, and freezes the
results into a read-only snapshot shared by the resolver and assembler.
"""

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Union

from ...logging_config import get_logger
from ..languages.go.loader import load_package
from .errors import LoadError
from .schema import GoPackage, SourceLocation

logger = get_logger(__name__)

PackageLoaderFunc = Callable[[SourceLocation], GoPackage]


class _Pending:
    """Marks a location whose load has been claimed but not finished."""

    def __repr__(self) -> str:
        return "PENDING"


PENDING = _Pending()


class PackageCatalog:
    """Immutable mapping of source locations to loaded packages."""

    def __init__(self, packages: Mapping[SourceLocation, GoPackage]):
        self._packages = MappingProxyType(dict(packages))

    def get(self, location: SourceLocation) -> Optional[GoPackage]:
        return self._packages.get(location)

    def __contains__(self, location: object) -> bool:
        return location in self._packages

    def __iter__(self) -> Iterator[SourceLocation]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    @property
    def packages(self) -> Mapping[SourceLocation, GoPackage]:
        return self._packages


def load_catalog(
    locations: Iterable[SourceLocation],
    loader: Optional[PackageLoaderFunc] = None,
    max_workers: Optional[int] = None,
) -> PackageCatalog:
    """
    Load each distinct location once and return the frozen catalog.

    Locations are deduplicated by equality. Each one is claimed with a
    pending marker before its load is submitted, so duplicates never load
    twice. The first failure cancels loads that have not started and is
    re-raised once the running ones have finished.

    Args:
        locations: Source locations, duplicates allowed
        loader: Function loading one location, the Go loader by default
        max_workers: Thread pool size, the executor default if omitted

    Returns:
        PackageCatalog holding one package per distinct location

    Raises:
        LoadError: The first load failure
    """
    loader = loader or load_package

    slots: Dict[SourceLocation, Union[GoPackage, _Pending]] = {}
    for location in locations:
        if location not in slots:
            slots[location] = PENDING

    if not slots:
        return PackageCatalog({})

    logger.info("Loading %d package location(s)", len(slots))

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sfgen-load") as executor:
        futures: Dict[Future, SourceLocation] = {
            executor.submit(loader, location): location for location in slots
        }

        try:
            for future in as_completed(futures):
                location = futures[future]
                slots[location] = future.result()
                logger.debug("Loaded %s", location)
        except BaseException:
            for pending in futures:
                pending.cancel()
            raise

    unfinished = [str(location) for location, package in slots.items() if package is PENDING]
    if unfinished:
        raise LoadError(f"packages were not loaded: {', '.join(unfinished)}")

    return PackageCatalog(slots)
