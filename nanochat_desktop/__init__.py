from .config_manager import (
    Config,
    ConfigError,
    PathResolutionError,
    LoadError,
    SaveError,
    resolve_path,
    load,
    save,
    is_valid,
)
from .backend_comm import (
    ValidationError,
    BackendConnectionError,
    AuthError,
    EndpointNotFoundError,
    ServerError,
    validate_connection,
)
