import pytest

from pdf_merger.services.ordering import move_down, move_up, remove


FILES = ["a.pdf", "b.pdf", "c.pdf"]


def test_move_up_swaps_with_previous():
    assert move_up(FILES, 2) == ["a.pdf", "c.pdf", "b.pdf"]


def test_move_down_swaps_with_next():
    assert move_down(FILES, 0) == ["b.pdf", "a.pdf", "c.pdf"]


def test_edges_are_left_in_place():
    assert move_up(FILES, 0) == FILES
    assert move_down(FILES, 2) == FILES


def test_operations_do_not_mutate_input():
    files = list(FILES)
    move_up(files, 1)
    move_down(files, 1)
    remove(files, 1)
    assert files == FILES


@pytest.mark.parametrize("index", [0, 1, 2])
def test_moves_are_permutations(index):
    for operation in (move_up, move_down):
        result = operation(FILES, index)
        assert sorted(result) == sorted(FILES)
        assert len(result) == len(FILES)


def test_remove_keeps_relative_order_of_others():
    assert remove(FILES, 1) == ["a.pdf", "c.pdf"]
    assert remove(["only.pdf"], 0) == []


@pytest.mark.parametrize("operation", [move_up, move_down, remove])
@pytest.mark.parametrize("index", [-1, 3])
def test_out_of_range_index_raises(operation, index):
    with pytest.raises(IndexError):
        operation(FILES, index)
