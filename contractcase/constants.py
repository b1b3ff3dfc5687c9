"""
contractcase Constants

This module consolidates global constants and environment configuration used
throughout the harness. Logger settings are read once from `.env`; chain and
gas constants describe the in-process development chain.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE':                        '',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# DEVELOPMENT CHAIN PARAMETERS
# ==================================================================================
DEFAULT_CHAIN_ID = 1337
DEFAULT_BLOCK_GAS_LIMIT = 30_000_000
DEFAULT_GAS = 3_000_000
DEFAULT_GAS_PRICE = 1_000_000_000  # 1 gwei
DEFAULT_ACCOUNT_COUNT = 10
DEFAULT_INITIAL_BALANCE = 10**24  # 1,000,000 ether in wei
DEFAULT_ACCOUNT_SEED = 'contractcase-dev'

# BLOCKHASH can only see this many ancestors
BLOCK_HASH_HISTORY = 256

# Receipt polling
DEFAULT_RECEIPT_ATTEMPTS = 40
DEFAULT_RECEIPT_INTERVAL = 0.0


# ==================================================================================
# INTRINSIC GAS (Istanbul / Shanghai pricing)
# ==================================================================================
GAS_TX = 21_000
GAS_TX_CREATE = 32_000
GAS_TX_DATA_ZERO = 4
GAS_TX_DATA_NONZERO = 16
GAS_INITCODE_WORD = 2
MAX_REFUND_QUOTIENT = 5


# ==================================================================================
# ABI
# ==================================================================================
# Selector of Error(string), prefixed to revert reasons
ERROR_STRING_SELECTOR = bytes.fromhex('08c379a0')


# ==================================================================================
# DATA SOURCE
# ==================================================================================
DEFAULT_SHEET_NAME = 'Sheet1'
CASE_COLUMN = 'case'
RUN_COLUMN = 'run'
SKIP_VALUES = frozenset({'n', 'no', 'false', '0', 'off'})


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Only known literals reach ast.literal_eval.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
