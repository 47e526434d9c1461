"""
Tests for the session store transitions.
"""

import random

from exploding_kitten.client.session import (
    ALREADY_REGISTERED,
    CANNOT_DRAW,
    INVALID_USERNAME,
    MALFORMED,
    STALE_EPOCH,
    Session,
    SessionStore,
)
from exploding_kitten.shared.constants import EVT_CARD_DRAWN, EVT_LEADERBOARD, EVT_LOST, EVT_REGISTERED
from exploding_kitten.shared.protocols import LeaderboardEntry


def assert_invariant(session: Session) -> None:
    if session.can_draw:
        assert session.username
        assert not session.game_over
    if not session.username or session.game_over:
        assert not session.can_draw


class TestRegistration:
    def test_initial_session_is_empty(self, store):
        session = store.session
        assert session.username == ""
        assert session.last_card_drawn is None
        assert session.deck_size == 0
        assert not session.can_draw
        assert not session.game_over

    def test_register(self, store):
        seen = []
        store.on(EVT_REGISTERED, seen.append)
        result = store.apply_registration("alice", 52)
        assert result.ok
        assert store.session.username == "alice"
        assert store.session.deck_size == 52
        assert store.can_draw
        assert [s.username for s in seen] == ["alice"]

    def test_register_twice_is_rejected(self, store):
        store.apply_registration("alice", 52)
        store.apply_draw_result("😼", "You drew a Cat card!")
        before = store.session
        epoch = store.epoch

        result = store.apply_registration("mallory", 5)

        assert not result.ok
        assert result.error == ALREADY_REGISTERED
        assert store.session == before
        assert store.epoch == epoch

    def test_blank_username_is_rejected(self, store):
        assert store.apply_registration("   ", 5).error == INVALID_USERNAME
        assert store.apply_registration("", 5).error == INVALID_USERNAME
        assert store.session == Session()

    def test_check_does_not_mutate(self, store):
        assert store.check_registration("alice").ok
        assert store.session.username == ""

    def test_bad_deck_size_is_reported_not_raised(self, store):
        assert store.apply_registration("alice", "abc").error == MALFORMED
        assert store.apply_registration("alice", True).error == MALFORMED
        assert store.apply_registration("alice", -3).error == MALFORMED
        assert store.session == Session()
        assert store.epoch == 0


class TestDraw:
    def test_draw_requires_registration(self, store):
        result = store.apply_draw_result("K♠", "safe")
        assert result.error == CANNOT_DRAW
        assert store.session.last_card_drawn is None

    def test_safe_draw(self, store):
        store.apply_registration("alice", 52)
        assert store.apply_draw_result("K♠", "safe").ok
        assert store.session.last_card_drawn == "K♠"
        assert store.session.username == "alice"
        # deck size is whatever the server reported at registration
        assert store.session.deck_size == 52

    def test_elimination_clears_session_and_notifies_once(self, store):
        lost = []
        store.on(EVT_LOST, lost.append)
        store.apply_registration("alice", 52)
        store.apply_draw_result("K♠", "safe")

        assert store.apply_draw_result("💥", "You lose!").ok

        session = store.session
        assert session.username == ""
        assert session.last_card_drawn is None
        assert session.game_over is False
        assert not session.can_draw
        assert len(lost) == 1
        assert lost[0]["username"] == "alice"

        # a further draw result for the old session is rejected and does not notify again
        assert store.apply_draw_result("💥", "You lose!").error == CANNOT_DRAW
        assert len(lost) == 1

    def test_loss_handler_sees_consistent_session(self, store):
        snapshots = []
        store.on(EVT_LOST, lambda _: snapshots.append(store.session))
        store.apply_registration("alice", 5)
        store.apply_draw_result("💣", "You drew an Exploding Kitten! You lose!")
        assert snapshots[0].username == ""
        assert snapshots[0].last_card_drawn is None

    def test_can_register_again_after_loss(self, store):
        store.apply_registration("alice", 5)
        store.apply_draw_result("💣", "You lose!")
        assert store.apply_registration("alice", 5).ok

    def test_stale_epoch_is_discarded(self, store):
        store.apply_registration("alice", 5)
        epoch = store.epoch
        store.apply_draw_result("💣", "You lose!")
        store.apply_registration("bob", 5)

        result = store.apply_draw_result("😼", "late cat", epoch=epoch)

        assert result.error == STALE_EPOCH
        assert store.session.username == "bob"
        assert store.session.last_card_drawn is None

    def test_defuse_tracking(self, store):
        store.apply_registration("alice", 5)
        store.apply_draw_result("🙅‍♂️", "You drew a Defuse card! Keep this to defuse an Exploding Kitten.")
        assert store.session.has_defuse
        store.apply_draw_result("💣", "You defused the Exploding Kitten using your Defuse card!")
        assert not store.session.has_defuse
        assert store.session.username == "alice"

    def test_resumed_game_keeps_drawing_after_shuffle(self, store):
        drawn = []
        store.on(EVT_CARD_DRAWN, drawn.append)
        # resumed game: the server sent back a partial deck
        store.apply_registration("alice", 2)
        store.apply_draw_result("🔀", "You drew a Shuffle card! The deck is reshuffled.")
        store.apply_draw_result("😼", "You drew a Cat card!")
        assert store.apply_draw_result("😼", "You drew a Cat card!").ok

        session = store.session
        assert session.username == "alice"
        assert session.deck_size == 2
        assert not session.game_over
        assert session.can_draw
        assert len(drawn) == 3

    def test_bad_draw_result_is_reported_not_raised(self, store):
        store.apply_registration("alice", 5)
        before = store.session
        assert store.apply_draw_result(["x"], "safe").error == MALFORMED
        assert store.apply_draw_result("", "safe").error == MALFORMED
        assert store.apply_draw_result("😼", 42).error == MALFORMED
        assert store.session is before

    def test_reset_leaves_game(self, store):
        store.apply_registration("alice", 5)
        store.apply_draw_result("😼", "cat")
        epoch = store.epoch
        assert store.reset().ok
        assert store.session == Session()
        assert store.epoch == epoch + 1
        assert store.apply_registration("alice", 5).ok


class TestLeaderboard:
    def test_wholesale_replace(self, store):
        store.apply_leaderboard([{"username": "x", "wins": 9, "losses": 9}] * 3)
        store.apply_leaderboard([{"username": "bob", "wins": 3, "losses": 1}])
        assert store.leaderboard == (LeaderboardEntry("bob", 3, 1),)

    def test_incomplete_entries_dropped(self, store, sample_leaderboard):
        result = store.apply_leaderboard(sample_leaderboard + [{"username": "dave", "wins": 1}])
        assert result.ok
        assert [e.username for e in store.leaderboard] == ["bob", "carol"]

    def test_non_list_is_reported_not_raised(self, store):
        store.apply_leaderboard([{"username": "bob", "wins": 3, "losses": 1}])
        result = store.apply_leaderboard("Top players")
        assert result.error == MALFORMED
        assert len(store.leaderboard) == 1

    def test_leaderboard_does_not_touch_session(self, store):
        store.apply_registration("alice", 5)
        before = store.session
        store.apply_leaderboard([])
        assert store.session is before

    def test_broken_handler_does_not_break_store(self, store):
        def boom(_):
            raise RuntimeError("renderer crashed")

        store.on(EVT_LEADERBOARD, boom)
        assert store.apply_leaderboard([{"username": "bob", "wins": 1, "losses": 0}]).ok
        assert len(store.leaderboard) == 1


def test_invariant_holds_for_random_sequences():
    rng = random.Random(1234)
    cards = [("😼", "cat"), ("🙅‍♂️", "defuse"), ("🔀", "shuffle"), ("💣", "You lose!"), ("K♠", "safe")]
    for _ in range(50):
        store = SessionStore()
        for _ in range(40):
            op = rng.choice(["register", "draw", "draw", "draw", "leaderboard", "reset"])
            if op == "register":
                store.apply_registration(rng.choice(["alice", "bob", ""]), rng.randint(0, 6))
            elif op == "draw":
                card, message = rng.choice(cards)
                store.apply_draw_result(card, message)
            elif op == "leaderboard":
                store.apply_leaderboard([{"username": "bob", "wins": 1, "losses": 1}])
            else:
                store.reset()
            assert_invariant(store.session)
