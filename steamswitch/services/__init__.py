# Services package
from .library_service import (
    GameLibraryService,
    aggregate_owned_games,
    update_installed_status,
    populate_available_accounts,
)

__all__ = [
    'GameLibraryService',
    'aggregate_owned_games',
    'update_installed_status',
    'populate_available_accounts',
]
