"""API paths, relative to Config.API_BASE_URL."""

# Tickets
TICKETS = "/api/tickets"


def ticket_by_id(ticket_id: str) -> str:
    return f"/api/tickets/{ticket_id}"


# Credits
CREDITS_BALANCE = "/api/credits/balance"
CREDITS_HISTORY = "/api/credits/history"
CREDITS_PACKS = "/api/credits/packs"
CREDITS_SPEND = "/api/credits/spend"
CREDITS_COSTS = "/api/credits/costs"


def credits_check(content_type: str, content_id: str) -> str:
    return f"/api/credits/check/{content_type}/{content_id}"


# Content unlocks
def unlock_prediction(match_id: int) -> str:
    return f"/api/predictions/{match_id}/unlock"


def unlock_tip(tip_id: str) -> str:
    return f"/api/tips/{tip_id}/unlock"


# AI match chat (expert tier)
AI_CHAT_USAGE = "/api/ai-chat/usage"
AI_CHAT_CONVERT_CREDITS = "/api/ai-chat/convert-credits"


def ai_chat_history(match_id: int) -> str:
    return f"/api/ai-chat/match/{match_id}/history"


def ai_chat_message(match_id: int) -> str:
    return f"/api/ai-chat/match/{match_id}/message"


def ai_chat_delete(match_id: int) -> str:
    return f"/api/ai-chat/match/{match_id}"


def ai_chat_ticket_status(message_id: str) -> str:
    return f"/api/ai-chat/ticket-proposal/{message_id}/status"
