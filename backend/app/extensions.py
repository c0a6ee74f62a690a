# Overview: Flask extension instances for the database and schema migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

# Range of the signed 64-bit INTEGER columns
DB_INTEGER_MIN = -(2 ** 63)
DB_INTEGER_MAX = 2 ** 63 - 1
