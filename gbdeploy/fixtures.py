"""Deploy once, snapshot, restore before every run.

A :class:`FixtureManager` runs a builder function once, takes a snapshot of the
chain right after it and, before every test body using the fixture, reverts the
chain to that snapshot. The value returned by the builder (contracts, addresses)
stays valid because the snapshot holds exactly the state it was built in.

Hardhat, Anvil and Ganache drop every snapshot taken after the one reverted to.
On such clients restoring a fixture forgets the snapshots of the fixtures
created after it, and those are built again the next time they are used.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import attr

from gbdeploy.client import ChainClient
from gbdeploy.exceptions import AmbiguousFixture, FixtureNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


@attr.s(auto_attribs=True)
class CachedFixture:
    value: Any
    snapshot_id: Optional[Any]
    # every value the builder returned, earlier ones stay usable after a rebuild
    values: List[Any] = attr.Factory(list)


class FixtureManager:
    def __init__(self, client: ChainClient):
        self.client = client
        # ordered by the time their snapshot was taken
        self._fixtures: Dict[Callable, CachedFixture] = {}

    def _build(self, builder: Callable[[], T]) -> CachedFixture:
        value = builder()
        snapshot_id = self.client.snapshot()
        logger.debug("Built fixture %s at snapshot %s", builder, snapshot_id)

        cached = self._fixtures.pop(builder, None)
        if cached is None:
            cached = CachedFixture(value=value, snapshot_id=snapshot_id)
        else:
            cached.value = value
            cached.snapshot_id = snapshot_id
        cached.values.append(value)
        self._fixtures[builder] = cached
        return cached

    def get_or_create_fixture(self, builder: Callable[[], T]) -> T:
        """Return the value of `builder`, calling it only the first time.

        If the builder raises, nothing is cached and no snapshot is taken.
        """
        cached = self._fixtures.get(builder)
        if cached is None:
            cached = self._build(builder)
        return cached.value

    def _find(self, fixture) -> Callable:
        builders = [
            builder
            for builder, cached in self._fixtures.items()
            if any(value is fixture for value in cached.values)
        ]
        if not builders:
            raise FixtureNotFound(f"{fixture!r} was not created by this fixture manager")
        if len(builders) > 1:
            raise AmbiguousFixture(
                f"{fixture!r} was returned by {len(builders)} builders, use load_fixture"
            )
        return builders[0]

    def _forget_later_snapshots(self, builder: Callable) -> None:
        builders = list(self._fixtures)
        for later in builders[builders.index(builder) + 1 :]:
            self._fixtures[later].snapshot_id = None

    def _restore(self, builder: Callable) -> CachedFixture:
        cached = self._fixtures[builder]
        if cached.snapshot_id is None:
            logger.debug("Snapshot of fixture %s was discarded, building again", builder)
            return self._build(builder)

        self.client.revert_to_snapshot(cached.snapshot_id)
        if self.client.revert_discards_later_snapshots:
            self._forget_later_snapshots(builder)
        # reverting consumes the snapshot on json rpc nodes
        cached.snapshot_id = self.client.snapshot()
        return cached

    def run_with_fixture(self, fixture: T, test_body: Callable[[T], Any]):
        cached = self._restore(self._find(fixture))
        return test_body(cached.value)

    def load_fixture(self, builder: Callable[[], T]) -> T:
        """Get the fixture of `builder` with the chain restored to its snapshot"""
        if builder not in self._fixtures:
            return self._build(builder).value
        return self._restore(builder).value
