import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    PORT = int(os.environ.get('PORT', '3000'))
    ALLOWED_ORIGINS = os.environ.get('ALLOWED_ORIGINS', '*').split(',')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Round timers (seconds)
    START_DELAY_SEC = float(os.environ.get('START_DELAY_SEC', '0.5'))
    COUNTDOWN_SEC = float(os.environ.get('COUNTDOWN_SEC', '3'))
    GUESS_WINDOW_SEC = float(os.environ.get('GUESS_WINDOW_SEC', '30'))
    TIMEOUT_PAUSE_SEC = float(os.environ.get('TIMEOUT_PAUSE_SEC', '5'))
    WINNER_PAUSE_SEC = float(os.environ.get('WINNER_PAUSE_SEC', '1'))
    # Round count bounds
    DEFAULT_ROUNDS = int(os.environ.get('DEFAULT_ROUNDS', '10'))
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '50'))
    # Answer matching thresholds
    MATCH_WORD_OVERLAP = float(os.environ.get('MATCH_WORD_OVERLAP', '0.6'))
    MATCH_SIMILARITY = float(os.environ.get('MATCH_SIMILARITY', '0.7'))
    # Track provider
    TRACK_SEARCH_URL = os.environ.get('TRACK_SEARCH_URL', 'https://itunes.apple.com/search')
    TRACK_POOL_SIZE = int(os.environ.get('TRACK_POOL_SIZE', '50'))
    TRACK_FETCH_TIMEOUT_SEC = float(os.environ.get('TRACK_FETCH_TIMEOUT_SEC', '10'))
    # Idle room reclamation (seconds). 0 disables.
    ROOM_IDLE_TTL_SEC = float(os.environ.get('ROOM_IDLE_TTL_SEC', '3600'))
    ROOM_SWEEP_INTERVAL_SEC = float(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '300'))
