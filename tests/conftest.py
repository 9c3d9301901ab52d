import sqlite3

import pytest

from crudmodel.connection import connect

SEED = """
CREATE TABLE countries (iso CHAR(2) PRIMARY KEY, name TEXT);
CREATE TABLE offices (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, country_iso CHAR(2), city TEXT);
CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, office_id INTEGER);
INSERT INTO countries (iso, name) VALUES ('UK', 'United Kingdom'), ('US', 'United States');
INSERT INTO offices (name, country_iso, city) VALUES
    ('HQ', 'UK', 'London'),
    ('North', 'UK', 'Manchester'),
    ('East Coast', 'US', 'New York');
INSERT INTO users (name, office_id) VALUES ('Ada', 1), ('Brian', 1), ('Carol', 3);
"""


@pytest.fixture(scope="function")
def setup_db(tmp_path):
    """Register a fresh SQLite file database as the default connection."""
    path = tmp_path / "test.sqlite3"
    connect(f"sqlite:///{path}")
    yield path


@pytest.fixture(scope="function")
def office_db(setup_db):
    """setup_db seeded with countries, offices and users."""
    connection = sqlite3.connect(setup_db)
    connection.executescript(SEED)
    connection.commit()
    connection.close()
    yield setup_db
