from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    DATABASE_URL: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 20
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    ALGORITHM: str = "HS256"
    SECRET_KEY: str
    REFRESH_SECRET_KEY: str

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    LOG_LEVEL: str = "INFO"

    # FreeSWITCH event socket
    ESL_HOST: str = "127.0.0.1"
    ESL_PORT: int = 8021
    ESL_PASSWORD: str = "ClueCon"
    ESL_TIMEOUT: int = 5

    RECORDINGS_PATH: str = "/var/lib/freeswitch/recordings"
    IP_DETECTION_URL: str = "https://api.ipify.org"
    IP_DETECTION_TIMEOUT: float = 5.0

    LDAP_ENABLED: bool = False
    LDAP_SERVER: str = "localhost"
    LDAP_PORT: int = 389
    LDAP_USE_SSL: bool = False
    LDAP_ADMIN_DN: str = ""
    LDAP_ADMIN_PASSWORD: str = ""
    LDAP_SEARCH_BASE: str = ""
    LDAP_SEARCH_FILTER: str = "(uid={username})"
    LDAP_ATTRIBUTES: list[str] = ["cn", "mail"]


config = Config()
