"""Lua script loader for inventory ledger Kvrocks operations"""

from pathlib import Path


def load_lua_script(*, script_name: str) -> str:
    """
    Load a Lua script from the lua_script directory

    Raises:
        FileNotFoundError: If the script file doesn't exist
    """
    script_path = Path(__file__).parent / f'{script_name}.lua'

    if not script_path.exists():
        raise FileNotFoundError(f'Lua script not found: {script_path}')

    return script_path.read_text(encoding='utf-8')


_SETTLE_COMMON = load_lua_script(script_name='settle_common')

LEDGER_SCRIPTS = {
    'reserve_stock': load_lua_script(script_name='reserve_stock'),
    'reserve_units': load_lua_script(script_name='reserve_units'),
    'settle_token': _SETTLE_COMMON + load_lua_script(script_name='settle_token'),
    'settle_owner': _SETTLE_COMMON + load_lua_script(script_name='settle_owner'),
    'restock': load_lua_script(script_name='restock'),
    'initialize_stock': load_lua_script(script_name='initialize_stock'),
    'register_units': load_lua_script(script_name='register_units'),
}
