import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Match length
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '5'))
    # Pause between a round result and the next round (seconds)
    NEXT_ROUND_DELAY_SEC = float(os.environ.get('NEXT_ROUND_DELAY_SEC', '3'))
    # Room reclamation (seconds)
    GRACE_PERIOD_SEC = float(os.environ.get('GRACE_PERIOD_SEC', '300'))
    ROOM_TTL_SEC = float(os.environ.get('ROOM_TTL_SEC', '7200'))
    SWEEP_INTERVAL_SEC = float(os.environ.get('SWEEP_INTERVAL_SEC', '3600'))
    # Computer opponent: 'counter' or 'random'
    COMPUTER_STRATEGY = os.environ.get('COMPUTER_STRATEGY', 'counter')
