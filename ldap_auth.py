from typing import Any, Optional
from ldap3 import Connection, Server, ALL
from ldap3.core.exceptions import LDAPException
from config import config
from loguru import logger


# Аутентификация операторов через корпоративный каталог
class LDAPAuth:
    def __init__(self):
        self.server = Server(
            config.LDAP_SERVER,
            port=config.LDAP_PORT,
            use_ssl=config.LDAP_USE_SSL,
            get_info=ALL,
        )

    def _search(self, conn: Connection, username: str):
        conn.search(
            search_base=config.LDAP_SEARCH_BASE,
            search_filter=config.LDAP_SEARCH_FILTER.format(username=username),
            attributes=config.LDAP_ATTRIBUTES,
        )
        return conn.entries[0] if conn.entries else None

    def authenticate(self, username: str, password: str) -> Optional[dict[str, Any]]:
        if not password:
            # пустой пароль дает анонимный bind
            return None

        try:
            # 1. bind под сервисной учеткой
            admin_conn = Connection(
                self.server,
                config.LDAP_ADMIN_DN,
                config.LDAP_ADMIN_PASSWORD,
                auto_bind=True,
            )

            # 2. ищем оператора
            entry = self._search(admin_conn, username)
            admin_conn.unbind()
            if entry is None:
                return None

            # 3. bind под найденным DN с паролем оператора
            user_conn = Connection(
                self.server,
                entry.entry_dn,
                password,
                auto_bind=True,
            )
            user_conn.unbind()

            return {
                "username": username,
                "full_name": str(entry.cn) if hasattr(entry, "cn") else username,
                "email": str(entry.mail) if hasattr(entry, "mail") else None,
                "auth_method": "ldap",
            }

        except LDAPException as e:
            logger.warning(f"LDAP auth failed for {username}: {e}")
            return None


def get_ldap_auth() -> LDAPAuth:
    return LDAPAuth()
