import pytest

from app.core.config import Settings
from app.core.security import mask_secret
from app.database.api_config_repo import api_config_repository
from app.database.seed import seed_api_configs
from app.services.config_provider import ConfigProvider, ResolvedConfig
from app.utils.exceptions import NotFoundException, ValidationException


def resolved(overrides=None, **settings_kwargs) -> ResolvedConfig:
    return ResolvedConfig(overrides or {}, Settings(**settings_kwargs))


def test_database_value_wins_over_environment():
    config = resolved({"DEEPSEEK_API_KEY": "from-db"}, DEEPSEEK_API_KEY="from-env")
    assert config.get_secret("DEEPSEEK_API_KEY") == "from-db"
    assert config.source("DEEPSEEK_API_KEY") == "database"


def test_null_row_does_not_override_environment():
    config = resolved({"DEEPSEEK_API_KEY": None}, DEEPSEEK_API_KEY="from-env")
    assert config.get_secret("DEEPSEEK_API_KEY") == "from-env"
    assert config.source("DEEPSEEK_API_KEY") == "environment"


def test_blank_secret_counts_as_missing():
    config = resolved({"XAI_API_KEY": "   "}, XAI_API_KEY="")
    assert config.get_secret("XAI_API_KEY") is None


def test_unset_key_reports_unset():
    assert resolved(GEMINI_API_KEY="").source("GEMINI_API_KEY") == "unset"


@pytest.mark.parametrize("stored, expected", [("true", True), ("1", True), ("yes", True), ("false", False), ("off", False)])
def test_flags_are_parsed_as_booleans(stored, expected):
    assert resolved({"GROK_ENABLED": stored}, GROK_ENABLED=not expected).get_flag("GROK_ENABLED") is expected


def test_unparsable_flag_uses_the_environment_default():
    assert resolved({"GROK_ENABLED": "maybe"}, GROK_ENABLED=False).get_flag("GROK_ENABLED") is False


def test_accessor_must_match_the_key_kind():
    config = resolved(DEEPSEEK_API_KEY="k")
    with pytest.raises(TypeError):
        config.get_flag("DEEPSEEK_API_KEY")
    with pytest.raises(TypeError):
        config.get_secret("GROK_ENABLED")


def test_unknown_key_is_not_found():
    with pytest.raises(NotFoundException):
        resolved().raw("OPENAI_API_KEY")


def test_mask_secret_hides_the_middle():
    masked = mask_secret("sk-1234567890abcd")
    assert masked.startswith("sk-1")
    assert masked.endswith("abcd")
    assert "567890" not in masked
    assert mask_secret("short") == "*****"
    assert mask_secret(None) == ""


async def test_load_reads_rows_from_the_database(session):
    provider = ConfigProvider(defaults=Settings(HUGGINGFACE_API_KEY="env-key"))
    await seed_api_configs(session)

    assert (await provider.load(session)).get_secret("HUGGINGFACE_API_KEY") == "env-key"

    await api_config_repository.upsert_config(session, "HUGGINGFACE_API_KEY", "db-key")
    assert (await provider.load()).get_secret("HUGGINGFACE_API_KEY") == "db-key"


async def test_describe_masks_secrets(session):
    provider = ConfigProvider(defaults=Settings(DEEPSEEK_API_KEY="sk-live-secret-9876"))

    entries = {entry.name: entry for entry in await provider.describe(session)}

    assert entries["DEEPSEEK_API_KEY"].value == mask_secret("sk-live-secret-9876")
    assert "secret" not in entries["DEEPSEEK_API_KEY"].value
    assert entries["DEEPSEEK_API_KEY"].source == "environment"
    assert entries["GROK_MODEL"].value == "grok-2-1212"


async def test_update_normalises_flags(session):
    provider = ConfigProvider(defaults=Settings(GROK_ENABLED=True))

    entry = await provider.update(session, "GROK_ENABLED", "No")

    assert entry.value == "false"
    assert entry.source == "database"
    assert (await provider.load(session)).get_flag("GROK_ENABLED") is False


async def test_update_rejects_invalid_flag(session):
    with pytest.raises(ValidationException):
        await ConfigProvider().update(session, "GROK_ENABLED", "sometimes")


async def test_update_rejects_unknown_key(session):
    with pytest.raises(NotFoundException):
        await ConfigProvider().update(session, "NOT_A_KEY", "x")
