from types import SimpleNamespace
from services.ranking import rank

def d(name, priority, stackable):
    return SimpleNamespace(name=name, priority=priority, stackable=stackable)

def test_rank_orders_by_priority_ascending():
    ranked = rank([d("low", 3, False), d("high", 1, False), d("medium", 2, False)])
    assert [x.name for x in ranked] == ["high", "medium", "low"]

def test_non_stackable_precedes_stackable_on_equal_priority():
    ranked = rank([d("a", 1, True), d("stack", 2, True), d("exclusive", 2, False), d("z", 3, False)])
    assert [x.name for x in ranked] == ["a", "exclusive", "stack", "z"]

def test_ties_keep_input_order():
    items = [d("s1", 2, True), d("n1", 2, False), d("s2", 2, True), d("n2", 2, False), d("s3", 2, True)]
    ranked = rank(items)
    assert [x.name for x in ranked] == ["n1", "n2", "s1", "s2", "s3"]

def test_rank_does_not_mutate_input():
    items = [d("b", 2, False), d("a", 1, False)]
    rank(items)
    assert [x.name for x in items] == ["b", "a"]

def test_rank_empty():
    assert rank([]) == []
