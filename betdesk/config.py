import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///betdesk.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Signed bearer tokens issued by the identity provider
    AUTH_TOKEN_SALT = os.getenv("AUTH_TOKEN_SALT", "dev_auth_salt")
    AUTH_TOKEN_MAX_AGE = int(os.getenv("AUTH_TOKEN_MAX_AGE", "43200"))
    MIN_PASSWORD_LENGTH = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))

    DEFAULT_BANK_NAME = os.getenv("DEFAULT_BANK_NAME", "Inter")
    BET_LIST_LIMIT = int(os.getenv("BET_LIST_LIMIT", "100"))
    DEPOSIT_LIST_LIMIT = int(os.getenv("DEPOSIT_LIST_LIMIT", "100"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class Development(Config):
    DEBUG = True


class Production(Config):
    DEBUG = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    }


class Testing(Config):
    TESTING = True
    SECRET_KEY = "test_secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_LEVEL = "WARNING"
