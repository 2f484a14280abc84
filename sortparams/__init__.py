from pathlib import Path

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

DEMO_PEOPLE = (
    ('dmatthews', 'Dave', 'Matthews', 'member'),
    ('ctauber', 'Carter', 'Tauber', 'member'),
    ('bbeauford', 'Boyd', 'Beauford', 'admin'),
    ('alefort', 'Alicia', 'Lefort', 'admin'),
)


def _validate_sort_config(app: Flask) -> None:
    errors: list[str] = []

    def expect_text(name: str) -> None:
        value = app.config.get(name)
        if not isinstance(value, str) or not value:
            errors.append(f"{name} must be a non-empty string.")

    expect_text("SORT_PARAMETER")
    expect_text("SORT_PROPERTY_DELIMITER")

    direction = str(app.config.get("SORT_DEFAULT_DIRECTION") or "").strip().lower()
    if direction not in {"asc", "desc"}:
        errors.append(
            f"SORT_DEFAULT_DIRECTION must be asc or desc. Current value: {app.config.get('SORT_DEFAULT_DIRECTION')!r}."
        )

    property_delimiter = app.config.get("SORT_PROPERTY_DELIMITER")
    qualifier_delimiter = app.config.get("SORT_QUALIFIER_DELIMITER")
    if property_delimiter and property_delimiter == qualifier_delimiter:
        errors.append("SORT_QUALIFIER_DELIMITER must differ from SORT_PROPERTY_DELIMITER.")

    per_page = app.config.get("PEOPLE_PER_PAGE")
    if not isinstance(per_page, int) or per_page < 1:
        errors.append("PEOPLE_PER_PAGE must be a positive integer.")

    if errors:
        details = "\n - ".join(errors)
        raise RuntimeError(f"Sort configuration is invalid:\n - {details}")


def create_app(run_startup_tasks: bool = True):
    app = Flask(__name__)

    # Load configuration
    from sortparams.config import Config

    app.config.from_object(Config)

    _validate_sort_config(app)

    # Ensure instance folder exists
    instance_path = Path(app.instance_path)
    instance_path.mkdir(parents=True, exist_ok=True)

    # Initialize extensions
    db.init_app(app)

    from sortparams.sort_utils import init_sort_resolver

    resolver = init_sort_resolver(app)
    app.logger.info(
        "Sort parameter: %s (qualified as <qualifier>%s%s), default direction %s",
        resolver.parameter_name,
        resolver.qualifier_delimiter,
        resolver.parameter_name,
        resolver.default_direction.value,
    )

    # Register routes
    from sortparams import routes

    app.register_blueprint(routes.bp)

    if run_startup_tasks:
        with app.app_context():
            from sortparams.models import Person

            db.create_all()
            app.logger.info("Database in use: %s", app.config.get("SQLALCHEMY_DATABASE_URI"))

            if app.config.get("SEED_DEMO_DATA") and Person.query.count() == 0:
                for username, firstname, lastname, role in DEMO_PEOPLE:
                    db.session.add(
                        Person(username=username, firstname=firstname, lastname=lastname, role=role)
                    )
                db.session.commit()
                app.logger.info("Seeded %s demo people", len(DEMO_PEOPLE))

    return app
