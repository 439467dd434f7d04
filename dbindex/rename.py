"""Rename or redefine an index: the request handling core.

A request is parsed once into a RequestContext. The IndexEditor then checks
the selected database and table, resolves the index to operate on, and
dispatches on the mode: display the form, preview the SQL, or save.
The outcome is exactly one payload object; converting it into an HTTP
response is done by the caller.
"""

import sqlite3

import flask
import jsonschema

import dbindex.alter
import dbindex.db
import dbindex.index
import dbindex.schema.index

from dbindex import constants
from dbindex import utils
from dbindex.message import Message


class SelectionError(ValueError):
    "No database or no table could be selected."


class BareRef:
    "Reference to an existing index by its name; open the form for it."

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"BareRef({self.name!r})"


class StructuredRef:
    "A resubmitted index form; the existing index is to get the new name."

    def __init__(self, old_name, data):
        self.old_name = old_name
        self.data = data

    def __repr__(self):
        return f"StructuredRef({self.old_name!r}, {self.data!r})"

    @property
    def name(self):
        return self.data.get("Key_name")


def get_key_name(value):
    "Return the index name of a flat or structured form value, or None."
    if isinstance(value, dict):
        value = value.get("Key_name")
    if value is None:
        return None
    return str(value)


def get_name(value):
    "Return the value if it is a non-empty string, else None."
    if isinstance(value, str) and value:
        return value
    return None


class RequestContext:
    "The validated intent of one index edit request."

    def __init__(
        self,
        dbname=None,
        tablename=None,
        index_ref=None,
        old_index=None,
        mode=constants.DISPLAY_FORM,
        is_ajax=False,
        bypass=False,
    ):
        self.dbname = dbname
        self.tablename = tablename
        self.index_ref = index_ref
        self.old_index = old_index
        self.mode = mode
        self.is_ajax = is_ajax
        self.bypass = bypass

    @classmethod
    def parse(cls, params, is_ajax=False):
        """Return the context for the given request parameters.
        The shape of the 'index' field is decided here, once.
        """
        value = params.get("index")
        if isinstance(value, dict):
            index_ref = StructuredRef(
                get_key_name(params.get("old_index")) or "", value
            )
        elif value is not None:
            index_ref = BareRef(str(value))
        else:
            index_ref = None
        if "do_save_data" not in params:
            mode = constants.DISPLAY_FORM
        elif "preview_sql" in params:
            mode = constants.PREVIEW
        else:
            mode = constants.SAVE
        return cls(
            dbname=get_name(params.get("db")),
            tablename=get_name(params.get("table")),
            index_ref=index_ref,
            old_index=get_key_name(params.get("old_index")),
            mode=mode,
            is_ajax=is_ajax,
            bypass="create_edit_table" in params,
        )

    @property
    def old_index_name(self):
        "The name of the index before the edit; an empty string if none."
        return self.old_index or ""

    def get_form_params(self):
        "Return the hidden parameters of the index rename form."
        result = {"db": self.dbname, "table": self.tablename}
        if self.old_index is not None:
            result["old_index"] = self.old_index
        elif self.index_ref is not None and self.index_ref.name is not None:
            result["old_index"] = self.index_ref.name
        return result


def check_selection(context):
    """Check that the database and table of the context exist.
    The names must always be valid; the bypass flag skips only the
    existence checks. Raise SelectionError if not.
    """
    if not context.dbname or not constants.NAME_RX.match(context.dbname):
        raise SelectionError("No databases selected.")
    if not context.tablename or not constants.NAME_RX.match(context.tablename):
        raise SelectionError("No table selected.")
    if context.bypass:
        return
    if not dbindex.db.has_database(context.dbname):
        raise SelectionError("No databases selected.")
    try:
        if not dbindex.db.has_table(context.dbname, context.tablename):
            raise SelectionError("No table selected.")
    except sqlite3.Error:
        raise SelectionError("No databases selected.")


class FormRender:
    "Display the rename form for the index."

    def __init__(self, index, form_params):
        self.index = index
        self.form_params = form_params


class SqlPreview:
    "Display the SQL that the save would execute."

    def __init__(self, sql):
        self.sql = sql


class ErrorMessage:
    "The request failed; display the error message."

    def __init__(self, message):
        self.message = message


class Redirect:
    "Redirect to the given endpoint with the given parameters."

    def __init__(self, endpoint, **params):
        self.endpoint = endpoint
        self.params = params


class SuccessJson:
    "The index was altered; the current indexes of the table are included."

    def __init__(self, message, sql, indexes, duplicates):
        self.message = message
        self.sql = sql
        self.indexes = indexes
        self.duplicates = duplicates


class StructureHandoff:
    "The index was altered; hand over to the table structure display."

    def __init__(self, dbname, tablename, message, sql):
        self.dbname = dbname
        self.tablename = tablename
        self.message = message
        self.sql = sql


class IndexEditor:
    "Handle one index edit request; return exactly one payload."

    def __init__(self, alteration=None):
        self.alteration = alteration or dbindex.alter.AlterationService()

    def __call__(self, context):
        try:
            check_selection(context)
        except SelectionError as error:
            if context.is_ajax:
                return ErrorMessage(Message.error(str(error)))
            return Redirect("home", reload=True, message=str(error))

        repository = dbindex.index.IndexRepository(context.dbname)
        try:
            index = self.resolve_index(context, repository)
        except (ValueError, sqlite3.Error) as error:
            return ErrorMessage(Message.error(str(error)))

        if context.mode == constants.DISPLAY_FORM:
            return FormRender(index, context.get_form_params())

        preview_only = context.mode == constants.PREVIEW
        result = self.alteration.apply(
            index,
            True,
            context.dbname,
            context.tablename,
            preview_only=preview_only,
            old_name=context.old_index_name,
        )
        if preview_only:
            return SqlPreview(result)
        if isinstance(result, Message):
            return ErrorMessage(result)

        message = Message.success("Table %s has been altered successfully.")
        message.add_param(context.tablename)
        if not context.is_ajax:
            return StructureHandoff(
                context.dbname, context.tablename, message, result
            )
        try:
            indexes = repository.get_indexes(context.tablename)
        except sqlite3.Error as error:
            return ErrorMessage(Message.error(str(error)))
        duplicates = dbindex.index.find_duplicate_pairs(indexes)
        return SuccessJson(message, result, indexes, duplicates)

    def resolve_index(self, context, repository):
        """Return the index to operate on.
        A resubmitted form gets a renamed clone of the existing index;
        the index held by the repository is never modified.
        Raise ValueError if the index data is invalid or no such index.
        """
        ref = context.index_ref
        if isinstance(ref, StructuredRef):
            try:
                utils.json_validate(ref.data, dbindex.schema.index.input)
            except jsonschema.ValidationError as error:
                raise ValueError(f"Invalid index data: {error.message}")
            if ref.old_name:
                index = repository.get_index(context.tablename, ref.old_name)
            else:
                index = dbindex.index.Index(table=context.tablename)
            return index.renamed(ref.name)
        elif isinstance(ref, BareRef):
            return repository.get_index(context.tablename, ref.name)
        else:
            return dbindex.index.Index(table=context.tablename)


def handle_request():
    "Build the context from the current request, and handle it."
    context = RequestContext.parse(utils.get_params(), is_ajax=utils.is_ajax())
    flask.current_app.logger.debug(
        f"Index edit {context.mode} for {context.dbname}.{context.tablename}"
    )
    return context, IndexEditor()(context)
