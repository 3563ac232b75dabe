"""
Lua Scripts for Redis/Kvrocks

Every ledger and reservation mutation is a single Lua script call, so the script
body is the unit of atomicity. Scripts are registered lazily with redis-py's
register_script() and re-registered after a Kvrocks restart flushes the script cache.
"""

from typing import Any

from redis.asyncio import Redis
from redis.commands.core import AsyncScript
from redis.exceptions import NoScriptError

from src.platform.logging.loguru_io import Logger


class LuaScripts:
    """Registry of named Lua scripts, shared by all Kvrocks adapters in the process"""

    def __init__(self) -> None:
        self._sources: dict[str, str] = {}
        self._scripts: dict[str, AsyncScript] = {}

    def register(self, *, script_name: str, source: str) -> None:
        """Record a script source (idempotent; a changed source replaces the cached script)"""
        if self._sources.get(script_name) == source:
            return
        self._sources[script_name] = source
        self._scripts.pop(script_name, None)

    def _load(self, *, script_name: str, client: Redis) -> AsyncScript:
        if script_name not in self._sources:
            raise RuntimeError(f'Lua script not registered: {script_name}')
        script = client.register_script(self._sources[script_name])
        self._scripts[script_name] = script
        return script

    async def run(
        self, *, script_name: str, client: Redis, keys: list[str], args: list[Any]
    ) -> Any:
        """Execute a registered script with auto-retry on NoScriptError"""
        script = self._scripts.get(script_name) or self._load(
            script_name=script_name, client=client
        )
        try:
            return await script(keys=keys, args=args, client=client)
        except NoScriptError:
            Logger.base.warning(f'⚠️ [LUA] {script_name} not found, re-registering...')
            script = self._load(script_name=script_name, client=client)
            return await script(keys=keys, args=args, client=client)


# Global singleton
lua_script_executor = LuaScripts()
