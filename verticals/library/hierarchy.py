"""Topic hierarchy queries.

Topics form a tree through their ``parent`` pointers. Nothing stops a
caller from wiring a cycle, so every walk keeps a visited set and stops
when it meets a topic twice.
"""

from typing import Iterator

from loguru import logger

from verticals.library.models.entities import Topic


def ancestors(topic: Topic) -> Iterator[Topic]:
    """Yield the strict ancestors of ``topic``, nearest first.

    Stops early, with a warning, if the parent chain loops.
    """
    seen = {id(topic)}
    current = topic.parent
    while current is not None:
        if id(current) in seen:
            logger.warning("Cycle in topic hierarchy at {!r} (walking up from {!r})", current.name, topic.name)
            return
        seen.add(id(current))
        yield current
        current = current.parent


def is_ancestor_of(candidate: Topic, topic: Topic) -> bool:
    """True if ``candidate`` is a strict ancestor of ``topic``.

    A topic is never its own ancestor. A cycle in the chain counts as no
    relation.
    """
    if candidate is topic:
        return False
    return any(a is candidate for a in ancestors(topic))


def are_related(a: Topic, b: Topic) -> bool:
    """Same topic, or one is an ancestor of the other."""
    return a is b or is_ancestor_of(a, b) or is_ancestor_of(b, a)
