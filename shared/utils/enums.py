from enum import Enum


class UserRole(str, Enum):
    TENANT = "tenant"
    OWNER = "owner"
    MANAGER = "manager"

    @classmethod
    def _missing_(cls, value):
        # auth service issues "property_owner" / "property_manager"
        if isinstance(value, str):
            normalized = value.strip().lower()
            aliases = {
                "property_owner": cls.OWNER,
                "property_manager": cls.MANAGER,
            }
            if normalized in aliases:
                return aliases[normalized]
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class IdentityMode(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
