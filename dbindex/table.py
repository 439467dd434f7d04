"Table HTML endpoints: structure display, and index rename."

import http.client
import sqlite3

import flask

import dbindex.db
import dbindex.index
import dbindex.rename

from dbindex import constants
from dbindex import utils


blueprint = flask.Blueprint("table", __name__)


@blueprint.route("/<name:dbname>/<name:tablename>/structure")
def structure(dbname, tablename):
    "Display the columns and the indexes of the table."
    if not dbindex.db.has_database(dbname):
        utils.flash_error("no such database")
        return flask.redirect(flask.url_for("home"))
    try:
        if not dbindex.db.has_table(dbname, tablename):
            raise ValueError("no such table")
        columns = dbindex.db.get_columns(dbname, tablename)
        indexes = dbindex.index.IndexRepository(dbname).get_indexes(tablename)
    except (ValueError, sqlite3.Error) as error:
        utils.flash_error(error)
        return flask.redirect(flask.url_for("db.display", dbname=dbname))
    return flask.render_template(
        "table/structure.html",
        dbname=dbname,
        tablename=tablename,
        columns=columns,
        indexes=indexes,
        duplicates=dbindex.index.find_duplicate_pairs(indexes),
    )


@blueprint.route("/indexes/rename", methods=["GET", "POST"])
def index_rename():
    """Rename an index of a table.
    Display the form, preview the SQL, or save, depending on the parameters.
    The database and table are given as parameters 'db' and 'table'.
    """
    context, payload = dbindex.rename.handle_request()

    if isinstance(payload, dbindex.rename.FormRender):
        params = dict(
            index=payload.index,
            form_params=payload.form_params,
            dbname=context.dbname,
            tablename=context.tablename,
        )
        if context.is_ajax:
            html = flask.render_template("table/index_rename_form.html", **params)
            return flask.jsonify(success=True, message=html)
        return flask.render_template("table/index_rename.html", **params)

    elif isinstance(payload, dbindex.rename.SqlPreview):
        html = flask.render_template("preview_sql.html", sql=payload.sql)
        return flask.jsonify(success=True, sql_data=html)

    elif isinstance(payload, dbindex.rename.ErrorMessage):
        if context.is_ajax:
            response = flask.jsonify(success=False, message=str(payload.message))
            response.status_code = http.client.BAD_REQUEST
            return response
        utils.flash_error(payload.message)
        # Back to the form after a failed save; else to the table itself.
        if context.mode == constants.SAVE and context.old_index:
            url = flask.url_for(
                ".index_rename",
                db=context.dbname,
                table=context.tablename,
                index=context.old_index,
            )
        elif constants.NAME_RX.match(context.dbname) and constants.NAME_RX.match(
            context.tablename
        ):
            url = flask.url_for(
                ".structure", dbname=context.dbname, tablename=context.tablename
            )
        else:
            url = flask.url_for("home")
        return flask.redirect(url)

    elif isinstance(payload, dbindex.rename.Redirect):
        return flask.redirect(flask.url_for(payload.endpoint, **payload.params))

    elif isinstance(payload, dbindex.rename.SuccessJson):
        message = flask.render_template(
            "message.html", message=payload.message, sql=payload.sql
        )
        index_table = flask.render_template(
            "table/indexes.html",
            dbname=context.dbname,
            tablename=context.tablename,
            indexes=payload.indexes,
            duplicates=payload.duplicates,
        )
        return flask.jsonify(success=True, message=message, index_table=index_table)

    elif isinstance(payload, dbindex.rename.StructureHandoff):
        flask.flash(str(payload.message), payload.message.category)
        flask.flash(payload.sql, "sql")
        return flask.redirect(
            flask.url_for(
                ".structure", dbname=payload.dbname, tablename=payload.tablename
            )
        )

    raise TypeError(f"unknown payload {payload!r}")
