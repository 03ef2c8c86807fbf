"""Runtime configuration for external backends.

Values come from two places: the ``tbl_api_configs`` table (edited by admins at
runtime) and the process-level ``Settings``. A row in the table always wins over
the environment default. Only the keys registered in ``CONFIG_KEYS`` are
administrable; each one has a kind so callers read it through a typed accessor.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, settings
from app.core.db import get_session_factory
from app.core.security import mask_secret
from app.database.api_config_repo import api_config_repository
from app.models.models import ApiConfig
from app.schemas.admin import ApiConfigEntry
from app.utils.exceptions import NotFoundException, ValidationException

logger = logging.getLogger(__name__)

_BOOL = TypeAdapter(bool)

ConfigSource = Literal["database", "environment", "unset"]


class ConfigKind(str, enum.Enum):
    SECRET = "secret"
    FLAG = "flag"
    VALUE = "value"


@dataclass(frozen=True)
class ConfigKey:
    name: str
    kind: ConfigKind
    description: str


CONFIG_KEYS: dict[str, ConfigKey] = {
    key.name: key
    for key in (
        ConfigKey("DEEPSEEK_API_KEY", ConfigKind.SECRET, "API key for the default text backend (DeepSeek)"),
        ConfigKey("DEEPSEEK_MODEL", ConfigKind.VALUE, "Chat model used by the default text backend"),
        ConfigKey("XAI_API_KEY", ConfigKind.SECRET, "API key for the premium text backend (Grok)"),
        ConfigKey("GROK_MODEL", ConfigKind.VALUE, "Chat model used by the premium text backend"),
        ConfigKey("GROK_ENABLED", ConfigKind.FLAG, "Enable the premium enhancement backend"),
        ConfigKey("HUGGINGFACE_API_KEY", ConfigKind.SECRET, "API key for the text-to-image backend"),
        ConfigKey("HUGGINGFACE_IMAGE_MODEL", ConfigKind.VALUE, "Text-to-image model id"),
        ConfigKey("GEMINI_API_KEY", ConfigKind.SECRET, "API key for render completion notes"),
    )
}


def _lookup(name: str) -> ConfigKey:
    key = CONFIG_KEYS.get(name)
    if key is None:
        raise NotFoundException(f"Unknown configuration key '{name}'")
    return key


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    return text or None


class ResolvedConfig:
    """A point-in-time view of every registered key.

    Built once per unit of work (a request, a job batch) so one decision never
    mixes values read at different times.
    """

    def __init__(self, overrides: dict[str, Optional[str]], defaults: Settings):
        self._overrides = overrides
        self._defaults = defaults

    def source(self, name: str) -> ConfigSource:
        _lookup(name)
        if self._overrides.get(name) is not None:
            return "database"
        if _as_text(getattr(self._defaults, name, None)) is not None:
            return "environment"
        return "unset"

    def raw(self, name: str) -> Optional[str]:
        _lookup(name)
        override = self._overrides.get(name)
        if override is not None:
            return override
        return _as_text(getattr(self._defaults, name, None))

    def get_secret(self, name: str) -> Optional[str]:
        self._expect(name, ConfigKind.SECRET)
        value = self.raw(name)
        return value.strip() if value and value.strip() else None

    def get_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        self._expect(name, ConfigKind.VALUE)
        value = self.raw(name)
        return value if value else default

    def get_flag(self, name: str) -> bool:
        self._expect(name, ConfigKind.FLAG)
        value = self.raw(name)
        if value is None:
            return False
        try:
            return _BOOL.validate_python(value.strip())
        except ValidationError:
            fallback = bool(getattr(self._defaults, name, False))
            logger.warning("Invalid boolean %r for %s; using default %s", value, name, fallback)
            return fallback

    @staticmethod
    def _expect(name: str, kind: ConfigKind) -> None:
        key = _lookup(name)
        if key.kind is not kind:
            raise TypeError(f"{name} is a {key.kind.value}, not a {kind.value}")


class ConfigProvider:
    """Resolves administrable keys with precedence ApiConfig row > Settings."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], async_sessionmaker[AsyncSession]]] = None,
        defaults: Settings = settings,
    ):
        self._session_factory = session_factory or get_session_factory
        self._defaults = defaults

    async def load(self, db: Optional[AsyncSession] = None) -> ResolvedConfig:
        """Read every override from the database and return a resolved view."""
        if db is not None:
            overrides = await api_config_repository.get_values(db)
        else:
            async with self._session_factory()() as session:
                overrides = await api_config_repository.get_values(session)
        return ResolvedConfig(overrides, self._defaults)

    async def describe(self, db: AsyncSession, name: Optional[str] = None) -> list[ApiConfigEntry]:
        """
        List administrable keys with their effective values for the back office.

        Secret values are always masked.

        Args:
            db: Database session
            name: Restrict the listing to one key (404 when unknown)

        Returns:
            One ApiConfigEntry per key, ordered by name
        """
        keys = [_lookup(name)] if name else sorted(CONFIG_KEYS.values(), key=lambda k: k.name)
        rows = {row.name: row for row in await api_config_repository.list_configs(db)}
        resolved = ResolvedConfig({n: r.value for n, r in rows.items()}, self._defaults)
        return [self._entry(key, resolved, rows.get(key.name)) for key in keys]

    async def update(
        self, db: AsyncSession, name: str, value: str, updated_by=None
    ) -> ApiConfigEntry:
        key = _lookup(name)
        if key.kind is ConfigKind.FLAG:
            try:
                value = "true" if _BOOL.validate_python(value.strip()) else "false"
            except ValidationError:
                raise ValidationException(f"'{value}' is not a valid boolean for {name}")
        row = await api_config_repository.upsert_config(
            db, name, value, updated_by=updated_by, description=key.description
        )
        logger.info("API config %s updated by %s", name, updated_by)
        resolved = ResolvedConfig({name: row.value}, self._defaults)
        return self._entry(key, resolved, row)

    @staticmethod
    def _entry(key: ConfigKey, resolved: ResolvedConfig, row: Optional[ApiConfig]) -> ApiConfigEntry:
        value = resolved.raw(key.name) or ""
        if key.kind is ConfigKind.SECRET:
            value = mask_secret(value)
        return ApiConfigEntry(
            name=key.name,
            kind=key.kind.value,
            value=value,
            source=resolved.source(key.name),
            description=(row.description if row and row.description else key.description),
            updated_at=row.updated_at if row else None,
        )


config_provider = ConfigProvider()
