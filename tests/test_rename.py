"Test the index edit request context and the index editor state machine."

import os.path

import pytest

from dbindex import constants
from dbindex.index import IndexRepository
from dbindex.message import Message
from dbindex.rename import (
    BareRef,
    ErrorMessage,
    FormRender,
    IndexEditor,
    Redirect,
    RequestContext,
    SelectionError,
    SqlPreview,
    StructureHandoff,
    StructuredRef,
    SuccessJson,
    check_selection,
)

from conftest import get_index_names


def edit(alteration, is_ajax=False, **params):
    "Handle a request with the given parameters; return the payload."
    context = RequestContext.parse(params, is_ajax=is_ajax)
    return IndexEditor(alteration)(context)


def test_parse_modes():
    "The mode depends only on which fields are present."
    assert RequestContext.parse({}).mode == constants.DISPLAY_FORM
    assert RequestContext.parse({"preview_sql": "1"}).mode == constants.DISPLAY_FORM
    assert RequestContext.parse({"do_save_data": "1"}).mode == constants.SAVE
    context = RequestContext.parse({"do_save_data": "", "preview_sql": ""})
    assert context.mode == constants.PREVIEW


def test_parse_index_ref():
    "The index field is either a bare name or a structured form."
    context = RequestContext.parse({"db": "test", "table": "t1"})
    assert context.index_ref is None
    assert context.old_index is None

    context = RequestContext.parse({"index": "idx_a"})
    assert isinstance(context.index_ref, BareRef)
    assert context.index_ref.name == "idx_a"

    context = RequestContext.parse(
        {"index": {"Key_name": "idx_new"}, "old_index": {"Key_name": "idx_a"}}
    )
    assert isinstance(context.index_ref, StructuredRef)
    assert context.index_ref.name == "idx_new"
    assert context.index_ref.old_name == "idx_a"
    assert context.old_index == "idx_a"

    context = RequestContext.parse({"index": {"Key_name": "idx_new"}, "old_index": "idx_a"})
    assert context.index_ref.old_name == "idx_a"
    assert context.old_index_name == "idx_a"


def test_form_params():
    "The old index name is the explicit field, else the submitted index name."
    context = RequestContext.parse({"db": "test", "table": "t1", "index": "idx_a"})
    assert context.get_form_params() == {"db": "test", "table": "t1", "old_index": "idx_a"}
    context = RequestContext.parse(
        {"db": "test", "table": "t1", "index": "idx_a", "old_index": "idx_b"}
    )
    assert context.get_form_params()["old_index"] == "idx_b"
    context = RequestContext.parse({"db": "test", "table": "t1"})
    assert context.get_form_params() == {"db": "test", "table": "t1"}


@pytest.mark.parametrize(
    "params,text",
    [
        ({"table": "t1"}, "No databases selected."),
        ({"db": "test"}, "No table selected."),
        ({"db": "bad name", "table": "t1"}, "No databases selected."),
        ({"db": "missing", "table": "t1"}, "No databases selected."),
        ({"db": "test", "table": "missing"}, "No table selected."),
        ({"db": "test", "table": "sqlite_master"}, "No table selected."),
        ({"db": "test", "table": "t1;drop"}, "No table selected."),
    ],
)
def test_no_selection(database, app_context, alteration, params, text):
    "Without a database and table, no alteration is attempted."
    params.update({"index": {"Key_name": "idx_new"}, "old_index": "idx_a"})
    params["do_save_data"] = "1"
    with pytest.raises(SelectionError, match=text):
        check_selection(RequestContext.parse(params))

    payload = edit(alteration, is_ajax=True, **params)
    assert isinstance(payload, ErrorMessage)
    assert payload.message == Message.error(text)

    payload = edit(alteration, is_ajax=False, **params)
    assert isinstance(payload, Redirect)
    assert payload.endpoint == "home"
    assert payload.params == {"reload": True, "message": text}
    assert alteration.calls == []


def test_bypass_selection(database, app_context, alteration):
    "The create/edit table flag skips the existence checks, but not the names."
    check_selection(
        RequestContext.parse({"db": "nodb", "table": "y", "create_edit_table": "1"})
    )
    with pytest.raises(SelectionError):
        check_selection(RequestContext.parse({"table": "y", "create_edit_table": "1"}))
    payload = edit(alteration, db="test", table="t1", index="idx_a", create_edit_table="1")
    assert isinstance(payload, FormRender)


@pytest.mark.parametrize(
    "params,text",
    [
        ({"db": "../x", "table": "t1"}, "No databases selected."),
        ({"db": "/tmp/x", "table": "t1"}, "No databases selected."),
        ({"db": "test", "table": "t1; DROP TABLE t1"}, "No table selected."),
    ],
)
def test_bypass_invalid_names(database, app_context, alteration, params, text):
    "Names that are not identifiers are rejected also with the bypass flag."
    params.update(
        {
            "create_edit_table": "1",
            "index": {"Key_name": "idx_new"},
            "old_index": "idx_y",
            "do_save_data": "1",
        }
    )
    with pytest.raises(SelectionError, match=text):
        check_selection(RequestContext.parse(params))
    payload = edit(alteration, is_ajax=True, **params)
    assert isinstance(payload, ErrorMessage)
    assert payload.message == Message.error(text)
    assert alteration.calls == []


def test_bypass_missing_database(app, database, app_context, alteration):
    "A database that does not exist gives an error message, and is not created."
    payload = edit(
        alteration,
        is_ajax=True,
        db="nodb",
        table="t1",
        index={"Key_name": "idx_new"},
        do_save_data="1",
        create_edit_table="1",
    )
    assert isinstance(payload, ErrorMessage)
    assert payload.message.is_error
    assert "unable to open database file" in str(payload.message)
    assert [c["dbname"] for c in alteration.calls] == ["nodb"]
    assert not os.path.exists(os.path.join(app.config["DATABASES_DIR"], "nodb.sqlite3"))


def test_parse_non_string_names():
    "Database and table names that are not strings count as missing."
    context = RequestContext.parse({"db": 5, "table": ["t1"]})
    assert context.dbname is None
    assert context.tablename is None
    with pytest.raises(SelectionError, match="No databases selected."):
        check_selection(context)


def test_display_form(database, app_context, alteration):
    "Opening the form for an index gives the current definition of it."
    payload = edit(alteration, db="test", table="t1", index="idx_x")
    assert isinstance(payload, FormRender)
    assert payload.form_params["old_index"] == "idx_x"
    assert payload.index == IndexRepository(database).get_index("t1", "idx_x")
    assert alteration.calls == []


def test_display_form_new_index(database, app_context, alteration):
    "Without an index reference, the form is for a new, empty index."
    payload = edit(alteration, db="test", table="t1")
    assert isinstance(payload, FormRender)
    assert payload.index.name == ""
    assert payload.index.columns == []
    assert "old_index" not in payload.form_params


def test_display_form_missing_index(database, app_context, alteration):
    payload = edit(alteration, db="test", table="t1", index="idx_gone")
    assert isinstance(payload, ErrorMessage)
    assert str(payload.message) == "no such index 'idx_gone' in table 't1'"


def test_invalid_index_data(database, app_context, alteration):
    "A structured index without a name is rejected before any alteration."
    payload = edit(
        alteration, db="test", table="t1", index={"Kind": "x"}, do_save_data="1"
    )
    assert isinstance(payload, ErrorMessage)
    assert str(payload.message).startswith("Invalid index data:")
    assert alteration.calls == []


def test_preview(app, database, app_context, alteration):
    "A preview gives the SQL, and does not modify the index or the schema."
    params = dict(
        db="test",
        table="t1",
        index={"Key_name": "idx_new"},
        old_index="idx_y",
        do_save_data="1",
        preview_sql="1",
    )
    first = edit(alteration, **params)
    second = edit(alteration, is_ajax=True, **params)
    assert isinstance(first, SqlPreview)
    assert first.sql == 'DROP INDEX "idx_y";\nCREATE INDEX "idx_new" ON "t1" ("y");'
    assert second.sql == first.sql
    assert [c["preview_only"] for c in alteration.calls] == [True, True]
    assert alteration.calls[0] == dict(
        name="idx_new",
        is_edit=True,
        dbname="test",
        tablename="t1",
        preview_only=True,
        old_name="idx_y",
    )
    # The old index is still there, under its old name.
    assert IndexRepository(database).get_index("t1", "idx_y").name == "idx_y"
    assert "idx_new" not in get_index_names(app, database, "t1")


def test_save(app, database, app_context, alteration):
    "A save that is not AJAX hands over to the table structure."
    payload = edit(
        alteration,
        db="test",
        table="t1",
        index={"Key_name": "idx_new"},
        old_index={"Key_name": "idx_y"},
        do_save_data="1",
    )
    assert isinstance(payload, StructureHandoff)
    assert payload.dbname == "test"
    assert payload.tablename == "t1"
    assert str(payload.message) == "Table t1 has been altered successfully."
    assert payload.sql.startswith('DROP INDEX "idx_y";')
    assert [c["preview_only"] for c in alteration.calls] == [False]
    names = get_index_names(app, database, "t1")
    assert "idx_new" in names
    assert "idx_y" not in names


def test_save_ajax_refreshes_duplicates(app, database, app_context, alteration):
    "The duplicates after an AJAX save reflect the state after the alteration."
    payload = edit(
        alteration,
        is_ajax=True,
        db="test",
        table="t1",
        index={"Key_name": "idx_c"},
        old_index="idx_a",
        do_save_data="1",
    )
    assert isinstance(payload, SuccessJson)
    assert str(payload.message) == "Table t1 has been altered successfully."
    assert payload.duplicates == [("idx_b", "idx_c")]
    assert "idx_c" in [i.name for i in payload.indexes]
    assert "idx_a" not in [i.name for i in payload.indexes]


def test_save_failure(app, database, app_context, alteration):
    "A rejected alteration gives its error message; the index is unchanged."
    for is_ajax in (True, False):
        payload = edit(
            alteration,
            is_ajax=is_ajax,
            db="test",
            table="t1",
            index={"Key_name": "idx_x_dup"},
            old_index="idx_x",
            do_save_data="1",
        )
        assert isinstance(payload, ErrorMessage)
        assert payload.message == Message.error("Index idx_x_dup already defined.")
    index = IndexRepository(database).get_index("t1", "idx_x")
    assert [c.name for c in index.columns] == ["x", "y"]


def test_save_missing_old_index(database, app_context, alteration):
    "An old index that has disappeared is reported as an error."
    payload = edit(
        alteration,
        db="test",
        table="t1",
        index={"Key_name": "idx_new"},
        old_index="idx_gone",
        do_save_data="1",
    )
    assert isinstance(payload, ErrorMessage)
    assert "no such index" in str(payload.message)
    assert alteration.calls == []
