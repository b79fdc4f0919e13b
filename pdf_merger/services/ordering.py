from __future__ import annotations

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def _check_index(files: Sequence[T], index: int) -> None:
    if index < 0 or index >= len(files):
        raise IndexError(f"رقم الملف {index} خارج نطاق القائمة ({len(files)} ملف).")


def move_up(files: Sequence[T], index: int) -> List[T]:
    """نقل الملف خطوة إلى الأعلى؛ الملف الأول يبقى في مكانه."""
    _check_index(files, index)
    reordered = list(files)
    if index > 0:
        reordered[index - 1], reordered[index] = reordered[index], reordered[index - 1]
    return reordered


def move_down(files: Sequence[T], index: int) -> List[T]:
    """نقل الملف خطوة إلى الأسفل؛ الملف الأخير يبقى في مكانه."""
    _check_index(files, index)
    reordered = list(files)
    if index < len(reordered) - 1:
        reordered[index], reordered[index + 1] = reordered[index + 1], reordered[index]
    return reordered


def remove(files: Sequence[T], index: int) -> List[T]:
    _check_index(files, index)
    return [entry for position, entry in enumerate(files) if position != index]
