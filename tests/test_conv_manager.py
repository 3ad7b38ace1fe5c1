import pytest

from conv_manager import ConversationManager


def _manager(**kwargs):
    return ConversationManager("be dumb", **kwargs)


def test_get_or_create_seeds_system_message():
    manager = _manager()

    assert manager.get_or_create("s1") == [{"role": "system", "content": "be dumb"}]
    assert len(manager) == 1


def test_get_history_does_not_create():
    manager = _manager()

    assert manager.get_history("missing") == []
    assert len(manager) == 0


@pytest.mark.parametrize("turns", [1, 6, 7, 25])
def test_window_keeps_system_plus_most_recent(turns):
    manager = _manager(max_history=6)
    for i in range(turns):
        manager.append("s1", "user" if i % 2 == 0 else "assistant", f"m{i}")

    window = manager.get_history("s1")

    assert window[0] == {"role": "system", "content": "be dumb"}
    kept = min(turns, 6)
    assert [m["content"] for m in window[1:]] == [f"m{i}" for i in range(turns - kept, turns)]


def test_append_returns_snapshot():
    manager = _manager()
    snapshot = manager.append("s1", "user", "hi")
    snapshot.append({"role": "user", "content": "sneaky"})

    assert len(manager.get_history("s1")) == 2


def test_reset():
    manager = _manager()
    manager.append("s1", "user", "hi")

    assert manager.reset("s1") is True
    assert manager.reset("s1") is False
    assert manager.get_history("s1") == []


def test_evict_idle(clock):
    manager = _manager(ttl_seconds=100, clock=clock)
    manager.append("old", "user", "hi")
    clock.advance(60)
    manager.append("fresh", "user", "hi")
    clock.advance(60)

    assert manager.evict_idle() == 1
    assert manager.get_history("old") == []
    assert manager.get_history("fresh") != []


def test_max_history_must_be_positive():
    with pytest.raises(ValueError):
        _manager(max_history=0)
