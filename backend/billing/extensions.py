# Overview: Shared Flask extension singletons; bound to the app in create_app().

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Billing models and services share this session
db = SQLAlchemy()
# Picks up migrations/versions for `flask db upgrade`
migrate = Migrate()
