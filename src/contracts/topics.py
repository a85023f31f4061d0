"""Bus topic names and their payload shapes.

Core → presentation
───────────────────
  event:added          {"event": Event}
  event:handled        {"event": Event}
  events:escalated     {"events": [Event, ...]}
  escalation:started   {"event": Event, "escalation": dict}
  score:updated        {"totalScore": int, "earnedPoints": int}
  uptime:updated       {"uptime": float, "cause": str}
  level:changed        {"level": Level}
  settings:updated     {"level": Level}
  game:started / game:paused / game:reset / game:completed   {}
  game:over            {"reason": str, "event": Event}
  state:reset          {"state": GameState}
  rule:added           {"rule": Rule}
  rules:triggered      {"event": Event, "rules": [Rule, ...]}
  rule:testResults     {"rule": Rule, "results": [{"event", "rule"}, ...]}
  brief:new            {"id", "title", "message", "severity", "timestamp"}
  alerts:cleared       {}
  notification:*       {"message": str}

Presentation → core (commands)
──────────────────────────────
  ui:startGame, ui:pauseGame, ui:resetGame, ui:nextLevel   {}
  ui:saveRule, ui:testRule                                 {"rule": dict}
  ui:handleEvent                                           {"event": Event | dict, "action": str}
  request:gameState                                        {"reply": callable}
"""

from __future__ import annotations

EVENT_ADDED = "event:added"
EVENT_HANDLED = "event:handled"
EVENTS_ESCALATED = "events:escalated"
ESCALATION_STARTED = "escalation:started"
SCORE_UPDATED = "score:updated"
UPTIME_UPDATED = "uptime:updated"
LEVEL_CHANGED = "level:changed"
SETTINGS_UPDATED = "settings:updated"
GAME_STARTED = "game:started"
GAME_PAUSED = "game:paused"
GAME_RESET = "game:reset"
GAME_COMPLETED = "game:completed"
GAME_OVER = "game:over"
STATE_RESET = "state:reset"
RULE_ADDED = "rule:added"
RULES_TRIGGERED = "rules:triggered"
RULE_TEST_RESULTS = "rule:testResults"
BRIEF_NEW = "brief:new"
ALERTS_CLEARED = "alerts:cleared"

NOTIFY_SUCCESS = "notification:success"
NOTIFY_INFO = "notification:info"
NOTIFY_WARNING = "notification:warning"
NOTIFY_ERROR = "notification:error"

UI_START = "ui:startGame"
UI_PAUSE = "ui:pauseGame"
UI_RESET = "ui:resetGame"
UI_NEXT_LEVEL = "ui:nextLevel"
UI_SAVE_RULE = "ui:saveRule"
UI_TEST_RULE = "ui:testRule"
UI_HANDLE_EVENT = "ui:handleEvent"
REQUEST_GAME_STATE = "request:gameState"
