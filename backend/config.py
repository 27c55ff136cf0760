import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///reaction_game.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Randomized cue delay window (ms)
    REACTION_MIN_DELAY_MS = int(os.environ.get('REACTION_MIN_DELAY_MS', '1000'))
    REACTION_MAX_DELAY_MS = int(os.environ.get('REACTION_MAX_DELAY_MS', '5000'))
    # Reactions above this are treated as clock anomalies (ms)
    REACTION_MAX_VALID_MS = int(os.environ.get('REACTION_MAX_VALID_MS', '60000'))
    # Session attempts kept per client
    REACTION_HISTORY_SIZE = int(os.environ.get('REACTION_HISTORY_SIZE', '10'))
    # Storage key of the persisted best time
    REACTION_BEST_KEY = os.environ.get('REACTION_BEST_KEY', 'rg_best_ms_v1')
    # Step of the cancellable cue-timer sleep (ms)
    REACTION_TIMER_POLL_MS = int(os.environ.get('REACTION_TIMER_POLL_MS', '50'))
    # Timers only fire when triggered explicitly (tests)
    REACTION_MANUAL_TIMERS = False
