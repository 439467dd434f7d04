"Database access; connection, existence checks, and the database HTML endpoint."

import os
import os.path

import flask

from dbindex import constants
from dbindex import utils


blueprint = flask.Blueprint("db", __name__)


@blueprint.route("/<name:dbname>")
def display(dbname):
    "List the tables in the database."
    if not has_database(dbname):
        utils.flash_error("no such database")
        return flask.redirect(flask.url_for("home"))
    return flask.render_template(
        "db.html", dbname=dbname, tables=get_tables(dbname)
    )


def get_cnx(dbname, write=False):
    """Get the connection for the database given by name.
    Only one connection to a database is open at any time in a request.
    If the database or the 'write' mode differs, then close and re-open.
    """
    try:
        if dbname == flask.g.dbname and write == flask.g.dbwrite:
            return flask.g.dbcnx
        else:
            flask.g.dbcnx.close()
    except AttributeError:
        pass
    flask.g.dbcnx = utils.get_cnx(dbname, write=write)
    flask.g.dbname = dbname
    flask.g.dbwrite = write
    return flask.g.dbcnx


def close_cnx(exception=None):
    "Close the connection, if any; called at teardown of the app context."
    cnx = flask.g.pop("dbcnx", None)
    flask.g.pop("dbname", None)
    flask.g.pop("dbwrite", None)
    if cnx is not None:
        cnx.close()


def get_dbs():
    "Return a list of the databases, sorted by name."
    dirpath = flask.current_app.config["DATABASES_DIR"]
    try:
        filenames = os.listdir(dirpath)
    except OSError:
        return []
    result = []
    for filename in filenames:
        name, ext = os.path.splitext(filename)
        if ext != constants.DBFILE_EXT:
            continue
        if not constants.NAME_RX.match(name):
            continue
        filepath = os.path.join(dirpath, filename)
        result.append({"name": name, "size": os.path.getsize(filepath)})
    result.sort(key=lambda db: db["name"])
    return result


def has_database(dbname):
    "Is the name valid, and does the database exist and is it readable?"
    if not dbname or not constants.NAME_RX.match(dbname):
        return False
    dbpath = utils.get_dbpath(dbname)
    return os.path.isfile(dbpath) and os.access(dbpath, os.R_OK)


def has_table(dbname, tablename):
    "Is the name valid, and does the table exist in the database?"
    if not tablename or not constants.NAME_RX.match(tablename):
        return False
    if tablename.lower().startswith("sqlite_"):
        return False
    sql = (
        "SELECT COUNT(*) FROM sqlite_master"
        " WHERE type=? AND name=? COLLATE NOCASE"
    )
    cursor = get_cnx(dbname).execute(sql, ("table", tablename))
    return cursor.fetchone()[0] > 0


def get_tables(dbname):
    "Return the names of the tables in the database, except the internal ones."
    sql = "SELECT name FROM sqlite_master WHERE type=? ORDER BY name"
    cursor = get_cnx(dbname).execute(sql, ("table",))
    return [row[0] for row in cursor if not row[0].startswith("sqlite_")]


def get_columns(dbname, tablename):
    "Return the column definitions of the table."
    cursor = get_cnx(dbname).execute(f'PRAGMA table_info("{tablename}")')
    return [
        {
            "name": row["name"],
            "type": row["type"],
            "notnull": bool(row["notnull"]),
            "primarykey": bool(row["pk"]),
        }
        for row in cursor
    ]
