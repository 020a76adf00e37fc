import os
import pathlib
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = pathlib.Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    # 应用基础配置
    APP_NAME: str = Field(default='Blogify API', description='应用名称')
    APP_VERSION: str = Field(default='1.0.0', description='应用版本')
    ENVIRONMENT: Literal['development', 'staging', 'production', 'testing'] = Field(
        default='development', description='运行环境'
    )
    DEBUG: bool = Field(default=False, description='调试模式')

    # 服务器配置
    HOST: str = Field(default='0.0.0.0', description='服务器主机')
    PORT: int = Field(default=5000, description='服务器端口')

    # 数据库配置
    DATABASE_URL: str = Field(description='数据库连接URL')
    DATABASE_POOL_SIZE: int = Field(default=20, description='数据库连接池大小')
    DATABASE_MAX_OVERFLOW: int = Field(default=10, description='数据库最大溢出连接')

    # JWT
    SECRET_KEY: str = Field(default="your-secret-key-change-in-production", description='JWT密钥')
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31, description='bcrypt 计算轮数')
    RESET_TOKEN_EXPIRE_MINUTES: int = Field(default=60, description='重置密码令牌有效期')

    API_V1_PREFIX: str = Field("/api", description="API 路径前缀")

    # 评论规则
    COMMENT_EDIT_WINDOW_HOURS: int = Field(default=24, description='评论可编辑时间窗口（小时）')
    COMMENT_MAX_DEPTH: int = Field(default=3, ge=1, description='评论树渲染最大层级')
    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1, le=100, description='默认分页大小')

    # Redis
    REDIS_HOST: str = Field(default='localhost', description='Redis 主机')
    REDIS_PORT: int = Field(default=6379, description='Redis 端口')
    REDIS_DB: int = Field(default=0, description='Redis 数据库')
    REDIS_PASSWORD: Optional[str] = Field(default=None, description='Redis 密码')
    CACHE_ENABLED: bool = Field(default=True, description='是否启用 Redis 缓存')
    TAG_CACHE_TTL: int = Field(default=300, description='标签列表缓存秒数')

    # 日志
    LOG_DIR: str = Field(default='logs', description='日志目录')
    LOG_LEVEL: str = Field(default='INFO', description='日志级别')
    LOG_JSON_FORMAT: bool = Field(default=False, description='是否输出 JSON 日志')
    LOG_TO_FILE: bool = Field(default=True, description='是否写入日志文件')
    LOG_MAX_BYTES: int = Field(default=10 * 1024 * 1024, description='单个日志文件大小')
    LOG_BACKUP_COUNT: int = Field(default=5, description='日志文件保留数量')

    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', case_sensitive=True, extra='ignore')

    @property
    def BASE_DIR(self) -> pathlib.Path:
        return BASE_DIR

    @property
    def is_development(self) -> bool:
        """是否为开发环境"""
        return self.ENVIRONMENT == 'development'

    @property
    def is_production(self) -> bool:
        """是否为生产环境"""
        return self.ENVIRONMENT == 'production'

    @property
    def database_url_sync(self) -> str:
        """同步数据库URL (用于Alembic)"""
        return str(self.DATABASE_URL).replace('+asyncpg', '')


# 根据环境加载不同配置文件
def get_settings() -> Settings:
    env = os.getenv('ENVIRONMENT', 'development')

    env_file_map = {
        'development': BASE_DIR / '.env.dev',
        'staging': BASE_DIR / '.env.staging',
        'production': BASE_DIR / '.env.prod',
    }
    env_file = env_file_map.get(env, BASE_DIR / '.env')

    return Settings(_env_file=env_file)


# 全局配置实例
settings = get_settings()
