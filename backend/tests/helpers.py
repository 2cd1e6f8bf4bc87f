from monikers.game import service


def make_cards(prefix, count):
    return [
        {"id": f"{prefix}{i}", "name": f"{prefix.upper()} {i}", "description": f"about {prefix}{i}"}
        for i in range(1, count + 1)
    ]


def seat_players(code, count):
    """Join players p1..pN on connections sid1..sidN (teams alternate 1, 2, 1, ...)."""
    for i in range(1, count + 1):
        service.join(code, f"Player {i}", f"p{i}", f"sid{i}")
    return service.get_room(code)


def start_game(code="AB12", players=2, cards_per_player=4, turn_team=1):
    room = seat_players(code, players)
    room.turn_team = turn_team
    assert service.start_drafting(code)
    for player in list(room.players):
        service.submit_draft(code, player.player_id, make_cards(f"{player.player_id}-c", cards_per_player))
    assert room.phase == "GAME"
    return room


def card_ids(cards):
    return sorted(c.id for c in cards)


def in_play(room):
    cards = list(room.deck)
    if room.current_card is not None:
        cards.append(room.current_card)
    return cards
