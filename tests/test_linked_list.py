from zlutil.linked_list import List


def test_splice_moves_items_and_empties_other():
    first = List(["a", "b"])
    second = List(["c", "d"])
    first.splice(second)
    assert first == ["a", "b", "c", "d"]
    assert second == []


def test_splice_into_empty_list():
    first = List()
    second = List([1, 2, 3])
    first.splice(second)
    assert first == [1, 2, 3]
    assert len(second) == 0


def test_splice_empty_other_leaves_list_unchanged():
    first = List([1, 2])
    second = List()
    first.splice(second)
    assert first == [1, 2]
    assert second == []


def test_for_each_visits_in_order():
    items = List([3, 1, 2])
    seen = []
    items.for_each(seen.append)
    assert seen == [3, 1, 2]


def test_for_each_on_empty_list_calls_nothing():
    seen = []
    List().for_each(seen.append)
    assert seen == []


def test_list_behaves_as_builtin_list():
    items = List(range(4))
    items.append(4)
    assert list(items) == list(range(5))
    assert items[0] == 0