from monikers.game import service

from helpers import card_ids, make_cards, seat_players


def test_start_drafting_needs_two_players():
    seat_players("AB12", 1)
    assert service.start_drafting("AB12") is False
    assert service.get_room("AB12").phase == "LOBBY"

    service.join("AB12", "Player 2", "p2", "sid2")
    assert service.start_drafting("AB12") is True
    assert service.get_room("AB12").phase == "DRAFTING"


def test_start_drafting_missing_room_or_wrong_phase():
    assert service.start_drafting("NOPE") is False

    seat_players("AB12", 2)
    assert service.start_drafting("AB12") is True
    assert service.start_drafting("AB12") is False


def test_both_players_submit_disjoint_cards_starts_game():
    room = seat_players("AB12", 2)
    service.start_drafting("AB12")

    p1_cards = make_cards("a", 8)
    p2_cards = make_cards("b", 8)
    assert service.submit_draft("AB12", "p1", p1_cards) is True
    assert room.phase == "DRAFTING"
    assert len(room.deck) == 8

    assert service.submit_draft("AB12", "p2", p2_cards) is True

    assert room.phase == "GAME"
    assert len(room.deck) == 16
    assert len(room.all_cards) == 16
    assert card_ids(room.deck) == card_ids(room.all_cards)
    assert card_ids(room.all_cards) == sorted(c["id"] for c in p1_cards + p2_cards)


def test_game_start_shuffles_the_deck():
    room = seat_players("AB12", 2)
    service.start_drafting("AB12")
    service.submit_draft("AB12", "p1", make_cards("a", 8))
    service.submit_draft("AB12", "p2", make_cards("b", 8))

    # 1 in 16! chance of a false failure
    assert [c.id for c in room.deck] != [c.id for c in room.all_cards]


def test_duplicate_ids_first_submission_wins():
    room = seat_players("AB12", 2)
    service.start_drafting("AB12")

    service.submit_draft("AB12", "p1", [{"id": "x", "name": "First"}, {"id": "y", "name": "Y"}])
    service.submit_draft("AB12", "p2", [{"id": "x", "name": "Second"}, {"id": "z", "name": "Z"}])

    assert card_ids(room.all_cards) == ["x", "y", "z"]
    assert next(c for c in room.all_cards if c.id == "x").name == "First"


def test_submit_is_idempotent_per_player():
    room = seat_players("AB12", 3)
    service.start_drafting("AB12")

    service.submit_draft("AB12", "p1", make_cards("a", 2))
    service.submit_draft("AB12", "p1", make_cards("a", 3))

    assert room.submitted_players == ["p1"]
    assert len(room.deck) == 3
    assert room.phase == "DRAFTING"


def test_game_waits_for_a_card():
    room = seat_players("AB12", 2)
    service.start_drafting("AB12")

    service.submit_draft("AB12", "p1", [])
    service.submit_draft("AB12", "p2", [])

    assert room.phase == "DRAFTING"
    assert room.submitted_players == ["p1", "p2"]


def test_malformed_cards_are_ignored():
    room = seat_players("AB12", 3)
    service.start_drafting("AB12")

    service.submit_draft(
        "AB12",
        "p1",
        [None, "card", {"name": "no id"}, {"id": ""}, {"id": ["x"]}, {"id": 7, "name": "Seven"}],
    )
    service.submit_draft("AB12", "p2", "not a list")

    assert [c.id for c in room.deck] == [7]
    assert room.deck[0].description == ""


def test_submit_rejected_outside_drafting_or_for_strangers():
    room = seat_players("AB12", 2)
    assert service.submit_draft("AB12", "p1", make_cards("a", 2)) is False
    assert list(room.deck) == []

    service.start_drafting("AB12")
    assert service.submit_draft("AB12", "stranger", make_cards("s", 2)) is False
    assert service.submit_draft("NOPE", "p1", make_cards("a", 2)) is False

    service.submit_draft("AB12", "p1", make_cards("a", 2))
    service.submit_draft("AB12", "p2", make_cards("b", 2))
    assert room.phase == "GAME"

    assert service.submit_draft("AB12", "p1", make_cards("late", 2)) is False
    assert len(room.all_cards) == 4


def test_leaving_player_releases_the_draft():
    room = seat_players("AB12", 3)
    service.start_drafting("AB12")
    service.submit_draft("AB12", "p1", make_cards("a", 2))
    service.submit_draft("AB12", "p2", make_cards("b", 2))
    assert room.phase == "DRAFTING"

    service.leave("AB12", "sid3")

    assert room.phase == "GAME"
    assert len(room.all_cards) == 4
