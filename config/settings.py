# config/settings.py
import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
load_dotenv(os.path.join(BASE_DIR, ".env"))  # 自动加载环境变量


def _as_bool(val, default=False):
    if val is None:
        return default
    return str(val).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret-key")
    JWT_EXPIRES_SECONDS = int(os.getenv("JWT_EXPIRES_SECONDS", 8 * 3600))
    REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
    # 关闭后不再查询 Redis 黑名单（本地开发无 Redis 时使用）
    TOKEN_REVOCATION_ENABLED = _as_bool(os.getenv("TOKEN_REVOCATION_ENABLED", "1"), True)

    # 日志相关
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "./logs")
    LOG_JSON = os.getenv("LOG_JSON", "1") == "1"  # 是否 JSON 格式
    LOG_TO_FILE = _as_bool(os.getenv("LOG_TO_FILE", "1"), True)
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", 5 * 1024 * 1024))
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", 5))
    APP_NAME = os.getenv("APP_NAME", "discuss-comment-service")

    # ========= 评论相关 =========
    # 评论内容最大长度
    COMMENT_CONTENT_MAX_LENGTH = int(os.getenv("COMMENT_CONTENT_MAX_LENGTH", 1000))
    # 列表默认每页条数
    COMMENT_PAGE_SIZE = int(os.getenv("COMMENT_PAGE_SIZE", 15))
    # 列表每页最大条数
    COMMENT_PAGE_SIZE_MAX = int(os.getenv("COMMENT_PAGE_SIZE_MAX", 100))
    # 批量操作一次最多处理的 ID 数量
    COMMENT_BULK_LIMIT = int(os.getenv("COMMENT_BULK_LIMIT", 100))
    # =========================================


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI", "sqlite:///" + os.path.join(BASE_DIR, "dev.db"))


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URI", "sqlite:///:memory:")
    TOKEN_REVOCATION_ENABLED = False
    LOG_TO_FILE = False
    LOG_JSON = False


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name):
    return config_map.get(config_name, DevelopmentConfig)
