# Inbound
JOIN_ROOM = "join_room"
SWITCH_TEAM = "switch_team"
START_DRAFTING = "start_drafting"
SUBMIT_DRAFT = "submit_draft"
START_TURN = "start_turn"
DRAW_CARD = "draw_card"
PASS_CARD = "pass_card"
SCORE_CARD = "score_card"
LEAVE_ROOM = "leave_room"

# Outbound
ROOM_UPDATE = "room_update"
TIMER_UPDATE = "timer_update"
