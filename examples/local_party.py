"""
local_party.py — Play a full round locally
==========================================

Runs two clients against one SQLite file and walks them through
PREP → GAME → VOTING → RESULTS → PREP (round 2) by completing
stages by hand instead of waiting for the timers.

Run with:  python local_party.py
"""

import logging
import os
import tempfile

from party_rounds import (
    HistoryNavigator,
    MemoryCache,
    PlayController,
    RoundLifecycleManager,
    SqliteRoundStore,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)


def show(name, controller):
    state = controller.render_state()
    props = state["props"]
    print(f"    {name:<6} {state['view'].value:<8} round {props['current_round']} "
          f"answers={props.get('answers', [])}")


def main():
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    try:
        store = SqliteRoundStore(db_path)
        RoundLifecycleManager(store).create_game("ABCD", ["alice", "bob"])

        alice = PlayController(store, "ABCD", "alice", HistoryNavigator(), cache=MemoryCache())
        bob = PlayController(store, "ABCD", "bob", HistoryNavigator(), cache=MemoryCache())
        alice.start()
        bob.start()

        print("\n── PREP ──")
        show("alice", alice)
        alice.complete_stage()

        print("\n── GAME ──")
        alice.submit_answer("Shiver me timbers")
        show("alice", alice)
        show("bob", bob)
        bob.complete_stage()

        print("\n── VOTING ──")
        show("bob", bob)
        bob.cast_vote("Shiver me timbers")

        print("\n── RESULTS ──")
        show("alice", alice)
        transition = alice.next_stage()

        print("\n── NEXT ROUND ──")
        show("alice", alice)
        print(f"    both clients at {transition.redirect_to}: "
              f"{alice.navigator.location == bob.navigator.location}")

        alice.stop()
        bob.stop()
    finally:
        os.unlink(db_path)


if __name__ == "__main__":
    main()
