import os


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')
    
    # Database
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///songwars.db')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    
    # Socket.IO
    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'threading')
    CORS_ALLOWED_ORIGINS = os.getenv('CORS_ALLOWED_ORIGINS', '*')
    
    # Game rooms
    DEFAULT_TIME_LIMIT = int(os.getenv('DEFAULT_TIME_LIMIT', '60'))
    MIN_TIME_LIMIT = 30
    MAX_TIME_LIMIT = 300
    MIN_PLAYERS = int(os.getenv('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.getenv('MAX_PLAYERS', '10'))
    MAX_SONG_SECONDS = 600
    GAME_CODE_ATTEMPTS = 10
    EMPTY_ROOM_TTL = int(os.getenv('EMPTY_ROOM_TTL', '600'))
    
    # Ranked mode
    ELO_K_FACTOR = int(os.getenv('ELO_K_FACTOR', '32'))
    DEFAULT_ELO = 1000
    LEADERBOARD_SIZE = int(os.getenv('LEADERBOARD_SIZE', '100'))


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    LOGIN_DISABLED = True
    SOCKETIO_ASYNC_MODE = 'threading'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
