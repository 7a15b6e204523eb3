"""Test topic hierarchy queries."""
from verticals.library.hierarchy import ancestors, are_related, is_ancestor_of
from verticals.library.models.entities import Topic


def _chain():
    science = Topic("Science")
    math = science.subtopic("Mathematics")
    algebra = math.subtopic("Algebra")
    return science, math, algebra


def test_topic_is_not_its_own_ancestor():
    science, math, algebra = _chain()
    for topic in (science, math, algebra):
        assert not is_ancestor_of(topic, topic)


def test_ancestor_along_chain():
    science, math, algebra = _chain()
    assert is_ancestor_of(science, algebra)
    assert is_ancestor_of(math, algebra)
    assert is_ancestor_of(science, math)


def test_descendant_is_not_ancestor():
    science, _, algebra = _chain()
    assert not is_ancestor_of(algebra, science)


def test_unrelated_roots():
    assert not is_ancestor_of(Topic("Art"), Topic("History"))


def test_ancestors_nearest_first():
    science, math, algebra = _chain()
    assert list(ancestors(algebra)) == [math, science]
    assert list(ancestors(science)) == []


def test_cycle_does_not_hang():
    a = Topic("A")
    b = Topic("B", parent=a)
    a.parent = b
    outsider = Topic("Outsider")

    assert not is_ancestor_of(outsider, a)
    assert is_ancestor_of(b, a)
    assert list(ancestors(a)) == [b]


def test_same_name_different_topic_is_not_ancestor():
    science, math, algebra = _chain()
    other_science = Topic("Science")
    assert not is_ancestor_of(other_science, algebra)


def test_related_topics():
    science, math, algebra = _chain()
    geometry = math.subtopic("Geometry")

    assert are_related(math, math)
    assert are_related(science, algebra)
    assert are_related(algebra, science)
    assert not are_related(algebra, geometry)  # siblings
    assert not are_related(algebra, Topic("History"))
