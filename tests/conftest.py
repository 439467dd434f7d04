"""Fixtures for the tests.

The app is configured at import, so the settings file is written
before 'dbindex.app' is imported. Each test gets its own databases directory.
"""

import json
import os
import sqlite3
import tempfile

import pytest

SETTINGS_DIRPATH = tempfile.mkdtemp()
SETTINGS_FILEPATH = os.path.join(SETTINGS_DIRPATH, "settings.json")
with open(SETTINGS_FILEPATH, "w") as outfile:
    json.dump({"SECRET_KEY": "testing", "DATABASES_DIR": SETTINGS_DIRPATH}, outfile)
os.environ["SETTINGS_FILEPATH"] = SETTINGS_FILEPATH

import dbindex.alter
import dbindex.app

# Table 't1' has the indexes 'idx_a' and 'idx_b' with equal definitions,
# and an index implementing a UNIQUE constraint on column 'z'.
# Table 't2' has a composite primary key, and hence a primary key index.
DATABASE_SQL = """
CREATE TABLE t1 (i INTEGER PRIMARY KEY, x TEXT, y TEXT, z TEXT UNIQUE);
CREATE INDEX idx_a ON t1 (x);
CREATE INDEX idx_b ON t1 (x);
CREATE INDEX idx_y ON t1 (y);
CREATE INDEX idx_x ON t1 (x, y);
CREATE INDEX idx_x_dup ON t1 (y DESC);
CREATE UNIQUE INDEX idx_u ON t1 (y, x);
CREATE TABLE t2 (a TEXT, b TEXT, PRIMARY KEY (a, b));
INSERT INTO t1 (x, y, z) VALUES ('a', 'b', 'c');
INSERT INTO t1 (x, y, z) VALUES ('a', 'c', 'd');
"""


class RecordingAlteration(dbindex.alter.AlterationService):
    "Alteration service which records the arguments of each call."

    def __init__(self):
        self.calls = []

    def apply(self, index, is_edit, dbname, tablename, preview_only=False, old_name=""):
        self.calls.append(
            dict(
                name=index.name,
                is_edit=is_edit,
                dbname=dbname,
                tablename=tablename,
                preview_only=preview_only,
                old_name=old_name,
            )
        )
        return super().apply(
            index, is_edit, dbname, tablename, preview_only, old_name
        )


@pytest.fixture
def app(tmp_path):
    "The app, with a databases directory of its own."
    app = dbindex.app.app
    app.config["TESTING"] = True
    app.config["DATABASES_DIR"] = str(tmp_path)
    yield app
    app.config["DATABASES_DIR"] = SETTINGS_DIRPATH


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield


@pytest.fixture
def database(app, tmp_path):
    "Create the database 'test'; return its name."
    cnx = sqlite3.connect(str(tmp_path / "test.sqlite3"))
    cnx.executescript(DATABASE_SQL)
    cnx.close()
    return "test"


@pytest.fixture
def alteration():
    return RecordingAlteration()


def get_index_names(app, dbname, tablename):
    "Return the names of the indexes of the table, read directly from the file."
    dbpath = os.path.join(app.config["DATABASES_DIR"], f"{dbname}.sqlite3")
    cnx = sqlite3.connect(dbpath)
    try:
        sql = "SELECT name FROM sqlite_master WHERE type=? AND tbl_name=?"
        return {row[0] for row in cnx.execute(sql, ("index", tablename))}
    finally:
        cnx.close()
