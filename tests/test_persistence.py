"""Tests for persistence providers."""

import tempfile

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from agentflow.errors import PersistenceError
from agentflow.persistence import (
    FilePersistenceProvider,
    PersistenceSettings,
    PersistenceType,
    RedisPersistenceProvider,
    TemporaryPersistenceProvider,
    create_persistence_provider,
    settings_from_env,
)


class FakeRedis:
    """The subset of redis.asyncio.Redis the provider uses."""

    def __init__(self, fail: bool = False):
        self.data: dict[str, str] = {}
        self.expiries: dict[str, int | None] = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        self.expiries[key] = ex

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def delete(self, *keys):
        self._check()
        for key in keys:
            self.data.pop(key, None)

    async def scan_iter(self, match=None):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def aclose(self):
        self.closed = True


class TestTemporaryPersistence:
    async def test_save_load_delete(self):
        provider = TemporaryPersistenceProvider()

        await provider.save("a", "one")
        assert await provider.load("a") == "one"
        await provider.delete("a")
        assert await provider.load("a") is None

    async def test_entries_expire(self):
        expired = TemporaryPersistenceProvider(ttl_seconds=0)
        kept = TemporaryPersistenceProvider(ttl_seconds=60)

        await expired.save("a", "one")
        await kept.save("a", "one")

        assert await expired.load("a") is None
        assert await kept.load("a") == "one"

    async def test_clear(self):
        provider = TemporaryPersistenceProvider(ttl_seconds=None)
        await provider.save("a", "1")
        await provider.save("b", "2")

        await provider.clear()

        assert await provider.load("a") is None
        assert await provider.load("b") is None


class TestFilePersistence:
    """One file per id under a directory."""

    async def test_round_trip(self, tmp_path):
        provider = FilePersistenceProvider(tmp_path)

        await provider.save("flow-1", '{"id": "flow-1"}')

        assert (tmp_path / "flow-1.data").read_text(encoding="utf-8") == '{"id": "flow-1"}'
        assert await provider.load("flow-1") == '{"id": "flow-1"}'

    async def test_overwrite_leaves_no_temp_files(self, tmp_path):
        provider = FilePersistenceProvider(tmp_path)
        await provider.save("x", "old")
        await provider.save("x", "new")

        assert await provider.load("x") == "new"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["x.data"]

    async def test_missing(self, tmp_path):
        assert await FilePersistenceProvider(tmp_path).load("missing") is None

    async def test_invalid_id(self, tmp_path):
        with pytest.raises(PersistenceError):
            await FilePersistenceProvider(tmp_path).save("../escape", "x")

    async def test_delete_and_clear(self, tmp_path):
        provider = FilePersistenceProvider(tmp_path)
        await provider.save("a", "1")
        await provider.save("b", "2")
        (tmp_path / "notes.txt").write_text("keep")

        await provider.delete("a")
        assert await provider.load("a") is None
        await provider.clear()

        assert [p.name for p in tmp_path.iterdir()] == ["notes.txt"]

    async def test_clear_keeps_files_it_did_not_write(self, tmp_path):
        (tmp_path / "someone_elses.data").write_text("theirs")
        provider = FilePersistenceProvider(tmp_path)
        await provider.save("mine", "x")

        await provider.clear()

        assert await provider.load("mine") is None
        assert (tmp_path / "someone_elses.data").read_text() == "theirs"

    async def test_default_directory_is_private(self, tmp_path, monkeypatch):
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
        (tmp_path / "shared.data").write_text("shared")

        provider = FilePersistenceProvider()
        await provider.save("mine", "x")
        await provider.clear()

        assert provider.directory.parent == tmp_path
        assert provider.directory.name.startswith("agentflow-")
        assert (tmp_path / "shared.data").exists()
        assert FilePersistenceProvider().directory != provider.directory


class TestRedisPersistence:
    async def test_keys_and_ttl(self):
        redis = FakeRedis()
        provider = RedisPersistenceProvider(redis, key_prefix="test", ttl_seconds=30)

        await provider.save("agent-1", "state")

        assert redis.data == {"test:persistence:agent-1": "state"}
        assert redis.expiries["test:persistence:agent-1"] == 30
        assert await provider.load("agent-1") == "state"

    async def test_clear_only_own_keys(self):
        redis = FakeRedis()
        redis.data["other:key"] = "keep"
        provider = RedisPersistenceProvider(redis, key_prefix="test")
        await provider.save("a", "1")

        await provider.clear()

        assert redis.data == {"other:key": "keep"}

    async def test_errors_are_wrapped(self):
        provider = RedisPersistenceProvider(FakeRedis(fail=True))

        with pytest.raises(PersistenceError):
            await provider.save("a", "1")
        with pytest.raises(PersistenceError):
            await provider.load("a")

    async def test_close(self):
        redis = FakeRedis()
        await RedisPersistenceProvider(redis).close()
        assert redis.closed


class TestFactory:
    def test_defaults_to_temporary(self):
        assert isinstance(create_persistence_provider(), TemporaryPersistenceProvider)

    def test_file(self, tmp_path):
        provider = create_persistence_provider(
            PersistenceSettings(type=PersistenceType.FILE, directory=str(tmp_path))
        )
        assert isinstance(provider, FilePersistenceProvider)
        assert provider.directory == tmp_path

    def test_redis(self):
        provider = create_persistence_provider(
            PersistenceSettings(type=PersistenceType.REDIS, redis_url="redis://localhost:6399/0")
        )
        assert isinstance(provider, RedisPersistenceProvider)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AGENTFLOW_PERSISTENCE", "FILE")
        monkeypatch.setenv("AGENTFLOW_PERSISTENCE_DIR", str(tmp_path))

        settings = settings_from_env()

        assert settings.type == PersistenceType.FILE
        assert settings.directory == str(tmp_path)
