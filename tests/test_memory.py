import threading
from datetime import datetime, timedelta

from assistant.core.memory import ChatTurn, SessionStore


def test_history_of_unseen_session_is_empty_and_not_created(sessions):
    assert sessions.history("nobody") == []
    assert sessions.active_count == 0


def test_append_keeps_chronological_order(sessions):
    sessions.append("s1", ChatTurn(role="user", content="hi"))
    sessions.append("s1", ChatTurn(role="assistant", content="hello"))
    sessions.append("s2", ChatTurn(role="user", content="other"))

    assert [t.content for t in sessions.history("s1")] == ["hi", "hello"]
    assert [t.content for t in sessions.history("s2")] == ["other"]


def test_history_returns_a_copy(sessions):
    sessions.append("s1", ChatTurn(role="user", content="hi"))
    sessions.history("s1").clear()
    assert len(sessions.history("s1")) == 1


def test_get_or_create_returns_same_session(sessions):
    assert sessions.get_or_create("s1") is sessions.get_or_create("s1")


def test_evict(sessions):
    sessions.append("s1", ChatTurn(role="user", content="hi"))
    assert sessions.evict("s1") is True
    assert sessions.evict("s1") is False
    assert sessions.history("s1") == []


def test_lru_bound_drops_oldest_session():
    store = SessionStore(max_sessions=2)
    store.get_or_create("a")
    store.get_or_create("b")
    store.get_or_create("a")
    store.get_or_create("c")

    assert store.get("b") is None
    assert store.get("a") is not None
    assert store.get("c") is not None


def test_cleanup_expired_removes_idle_sessions(sessions):
    stale = sessions.get_or_create("stale")
    sessions.get_or_create("fresh")
    stale.last_activity = datetime.now() - timedelta(hours=2)

    assert sessions.cleanup_expired() == 1
    assert sessions.get("stale") is None
    assert sessions.get("fresh") is not None


def test_session_lock_keeps_exchanges_paired(sessions):
    def exchange(n):
        with sessions.lock("shared"):
            sessions.append("shared", ChatTurn(role="user", content=f"q{n}"))
            sessions.append("shared", ChatTurn(role="assistant", content=f"a{n}"))

    threads = [threading.Thread(target=exchange, args=(n,)) for n in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    turns = sessions.history("shared")
    assert len(turns) == 40
    for user, assistant in zip(turns[::2], turns[1::2]):
        assert user.role == "user" and assistant.role == "assistant"
        assert user.content[1:] == assistant.content[1:]


def test_session_lock_survives_eviction_of_the_session():
    store = SessionStore(max_sessions=1)
    first_holds = threading.Event()
    release_first = threading.Event()
    second_acquired = threading.Event()

    def first():
        with store.lock("s"):
            store.append("s", ChatTurn(role="user", content="A-user"))
            first_holds.set()
            release_first.wait(5)
            store.append("s", ChatTurn(role="assistant", content="A-reply"))

    def second():
        with store.lock("s"):
            second_acquired.set()
            store.append("s", ChatTurn(role="user", content="B-user"))

    thread_a = threading.Thread(target=first)
    thread_a.start()
    assert first_holds.wait(5)

    # pushes "s" out of the LRU while the first exchange still holds its lock
    store.get_or_create("other")
    assert store.get("s") is None

    thread_b = threading.Thread(target=second)
    thread_b.start()
    assert not second_acquired.wait(0.2)

    release_first.set()
    thread_a.join(5)
    thread_b.join(5)

    assert second_acquired.is_set()
    assert [t.content for t in store.history("s")] == ["A-reply", "B-user"]


def test_evict_while_locked_does_not_let_a_second_exchange_in(sessions):
    sessions.append("s", ChatTurn(role="user", content="old"))
    with sessions.lock("s"):
        sessions.evict("s")
        entered = threading.Event()

        def contender():
            with sessions.lock("s"):
                entered.set()

        thread = threading.Thread(target=contender)
        thread.start()
        assert not entered.wait(0.2)
    thread.join(5)
    assert entered.is_set()


def test_lock_does_not_create_a_session(sessions):
    with sessions.lock("ghost"):
        pass
    assert sessions.get("ghost") is None
    assert sessions.active_count == 0


def test_append_adds_several_turns_at_once(sessions):
    sessions.append(
        "s1",
        ChatTurn(role="user", content="q"),
        ChatTurn(role="assistant", content="a"),
    )
    assert [t.role for t in sessions.history("s1")] == ["user", "assistant"]
