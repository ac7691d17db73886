import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Length of generated room codes
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '4'))
    # Tear down rooms with no activity for this long (seconds). 0 disables.
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get('ROOM_IDLE_TIMEOUT_SEC', '0'))
    # How often the idle-room reaper sweeps (seconds)
    REAPER_INTERVAL_SEC = int(os.environ.get('REAPER_INTERVAL_SEC', '30'))
