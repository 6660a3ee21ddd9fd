from __future__ import annotations

import pytest

from chit8.cpu.cpu import CallStack


def test_push_pop_order() -> None:
    stack = CallStack()
    stack.push(0x202)
    stack.push(0x304)
    assert stack.depth == 2
    assert stack.peek() == 0x304
    assert list(stack) == [0x202, 0x304]
    assert stack.pop() == 0x304
    assert stack.pop() == 0x202
    assert len(stack) == 0


def test_zero_return_address_is_a_real_entry() -> None:
    stack = CallStack()
    stack.push(0x000)
    assert stack.depth == 1
    assert stack.pop() == 0x000


def test_bounds() -> None:
    stack = CallStack(capacity=2)
    stack.push(1)
    stack.push(2)
    with pytest.raises(OverflowError):
        stack.push(3)
    stack.clear()
    with pytest.raises(IndexError):
        stack.pop()
    with pytest.raises(IndexError):
        stack.peek()
