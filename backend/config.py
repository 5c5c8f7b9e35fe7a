import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///trivia.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173')
    # Room defaults (host may override per room)
    DEFAULT_QUESTION_COUNT = int(os.environ.get('DEFAULT_QUESTION_COUNT', '10'))
    DEFAULT_TIME_PER_QUESTION_SEC = int(os.environ.get('DEFAULT_TIME_PER_QUESTION_SEC', '20'))
    # Extra time after the visible countdown before results are forced (seconds)
    QUESTION_TIMER_BUFFER_SEC = float(os.environ.get('QUESTION_TIMER_BUFFER_SEC', '1'))
    # How long a dropped player's score is held for reconnection (seconds)
    RECONNECT_GRACE_SEC = int(os.environ.get('RECONNECT_GRACE_SEC', '60'))
    # Idle rooms are evicted after this long (seconds), checked every SWEEP_INTERVAL_SEC
    STALE_SESSION_SEC = int(os.environ.get('STALE_SESSION_SEC', '1800'))
    SWEEP_INTERVAL_SEC = int(os.environ.get('SWEEP_INTERVAL_SEC', '300'))
    NICKNAME_MAX_LENGTH = int(os.environ.get('NICKNAME_MAX_LENGTH', '20'))
