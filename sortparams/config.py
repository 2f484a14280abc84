import os


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default) == '1'


def _env_int(name: str, default: str) -> int:
    raw_value = os.environ.get(name, default)
    try:
        return int(raw_value)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{name} must be an integer value, got {raw_value!r}.") from exc


def _env_csv(name: str, default: str = '') -> list[str]:
    raw_value = os.environ.get(name, default)
    return [part.strip() for part in raw_value.split(',') if part.strip()]


class Config:
    # Debug should only be enabled for local development.
    DEBUG = os.environ.get('FLASK_DEBUG') == '1' or os.environ.get('FLASK_ENV') == 'development'

    # Sort parameters
    # Name of the query parameter holding sort expressions, e.g. ?sort=lastname,desc.
    SORT_PARAMETER = os.environ.get('SORT_PARAMETER', 'sort')
    # Separates properties (and the trailing direction) inside one sort value.
    SORT_PROPERTY_DELIMITER = os.environ.get('SORT_PROPERTY_DELIMITER', ',')
    # Joins a qualifier to the parameter name: members + _ + sort = members_sort.
    SORT_QUALIFIER_DELIMITER = os.environ.get('SORT_QUALIFIER_DELIMITER', '_')
    # Used when a sort value carries no (or an unknown) direction.
    SORT_DEFAULT_DIRECTION = os.environ.get('SORT_DEFAULT_DIRECTION', 'asc')

    # Listing
    PEOPLE_PER_PAGE = _env_int('PEOPLE_PER_PAGE', '50')
    PEOPLE_DEFAULT_SORT = _env_csv('PEOPLE_DEFAULT_SORT', 'lastname,firstname')

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        # Relative SQLite paths resolve inside the app instance folder.
        "sqlite:///sortparams.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }
    if str(SQLALCHEMY_DATABASE_URI).startswith('sqlite'):
        SQLALCHEMY_ENGINE_OPTIONS['connect_args'] = {
            'timeout': _env_int('SQLITE_TIMEOUT', '30'),
        }

    SEED_DEMO_DATA = _env_bool('SEED_DEMO_DATA', '0')
