# Utils package
from .case_insensitive import CaseInsensitiveSet
from .paths import (
    get_data_dir,
    get_games_cache_path,
    get_log_dir,
    GAMES_CACHE_FILE,
    DATA_DIR_ENV,
)

__all__ = [
    'CaseInsensitiveSet',
    'get_data_dir',
    'get_games_cache_path',
    'get_log_dir',
    'GAMES_CACHE_FILE',
    'DATA_DIR_ENV',
]
