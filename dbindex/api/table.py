"Table API endpoints."

import http.client
import sqlite3

import flask
import flask_cors

import dbindex.db
import dbindex.index
from dbindex import utils


blueprint = flask.Blueprint("api_table", __name__)

flask_cors.CORS(blueprint, methods=["GET"])


@blueprint.route("/<name:dbname>/<name:tablename>/indexes")
def indexes(dbname, tablename):
    "Return the indexes of the table in JSON format, with the duplicates."
    if not dbindex.db.has_database(dbname):
        flask.abort(http.client.NOT_FOUND)
    try:
        if not dbindex.db.has_table(dbname, tablename):
            flask.abort(http.client.NOT_FOUND)
        indexes = dbindex.index.IndexRepository(dbname).get_indexes(tablename)
    except sqlite3.Error as error:
        utils.abort_json(http.client.INTERNAL_SERVER_ERROR, error)
    duplicates = dbindex.index.find_duplicate_pairs(indexes)
    names = set()
    for pair in duplicates:
        names.update(pair)
    result = []
    for index in indexes:
        item = index.as_dict()
        item.pop("table")
        item["duplicate"] = index.name in names
        result.append(item)
    return flask.jsonify(
        utils.get_json(
            database=dbname,
            table={
                "href": utils.url_for(
                    "table.structure", dbname=dbname, tablename=tablename
                )
            },
            indexes=result,
            duplicates=[list(pair) for pair in duplicates],
        )
    )
