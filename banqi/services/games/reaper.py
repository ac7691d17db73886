import time
from typing import List, Optional

from banqi import get_rooms, socketio


def reap_idle_rooms(app, now: Optional[float] = None) -> List[str]:
    """Tear down rooms idle for at least ROOM_IDLE_TIMEOUT_SEC. Returns their codes."""
    try:
        timeout = int(app.config.get('ROOM_IDLE_TIMEOUT_SEC', 0))
    except (TypeError, ValueError):
        timeout = 0
    if timeout <= 0:
        return []
    rooms = get_rooms(app)
    reaped = []
    for code in rooms.idle(timeout, now=now):
        room = rooms.destroy(code)
        if room is None:
            continue
        reaped.append(code)
        idle_for = int((now or time.time()) - room.last_activity)
        app.logger.info(f"[reaper] room={code} idle={idle_for}s participants={len(room.participants)}")
    return reaped


def start_idle_reaper(app) -> bool:
    """Start the background sweep for idle rooms.

    - No-ops in TESTING mode unless ENABLE_REAPER_IN_TESTS is set
    - No-ops when ROOM_IDLE_TIMEOUT_SEC is 0
    - Sweeps every REAPER_INTERVAL_SEC seconds
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_REAPER_IN_TESTS'):
        return False
    try:
        timeout = int(app.config.get('ROOM_IDLE_TIMEOUT_SEC', 0))
        interval = max(1, int(app.config.get('REAPER_INTERVAL_SEC', 30)))
    except (TypeError, ValueError):
        app.logger.warning("[reaper] invalid timeout/interval config, reaper disabled")
        return False
    if timeout <= 0:
        return False

    def _worker():
        while True:
            socketio.sleep(interval)
            with app.app_context():
                reap_idle_rooms(app)

    app.logger.info(f"[reaper-start] timeout={timeout}s interval={interval}s")
    socketio.start_background_task(_worker)
    return True
