"""NameAllocator - collision-free names for newly registered nominal schemas."""

from collections.abc import Container

from typeshape.kernel.logging import get_logger

logger = get_logger(__name__)


class NameAllocator:
    """Allocates ``Name``, ``Name_1``, ``Name_2``... against taken names.

    Examples
    --------
    >>> NameAllocator.allocate("Pair", taken={"Pair", "Pair_1"})
    'Pair_2'
    >>> NameAllocator.allocate("Pair", taken=set())
    'Pair'
    """

    SEPARATOR = "_"

    @classmethod
    def allocate(cls, declared_name: str, taken: Container[str]) -> str:
        """Return *declared_name* or the first free suffixed variant of it."""
        if declared_name not in taken:
            return declared_name

        index = 1
        while f"{declared_name}{cls.SEPARATOR}{index}" in taken:
            index += 1
        name = f"{declared_name}{cls.SEPARATOR}{index}"
        logger.debug("Name {declared} already taken, using {name}", declared=declared_name, name=name)
        return name
