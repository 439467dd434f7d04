"Various utility functions and classes."

import datetime
import json
import os.path
import re
import sqlite3
import threading

import flask
import jsonschema
import werkzeug.routing

from dbindex import constants


# Form field key with a PHP-style subscript, e.g. 'index[Key_name]'.
SUBSCRIPT_KEY_RX = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


class NameConverter(werkzeug.routing.BaseConverter):
    "URL route converter for a name; simply check for valid identifier value."

    def to_python(self, value):
        if not constants.NAME_RX.match(value):
            raise werkzeug.routing.ValidationError
        return value


def get_cnx(dbname, write=False):
    """Return a new connection to the database by the given name.
    Unless 'write' is True, the connection is read-only,
    and it is an error if the database file does not exist.
    """
    dbpath = get_dbpath(dbname)
    if write:
        cnx = sqlite3.connect(dbpath)
    else:
        cnx = sqlite3.connect(f"file:{dbpath}?mode=ro", uri=True)
    cnx.row_factory = sqlite3.Row
    return cnx


def get_dbpath(dbname):
    "Return the full file path of the database given by name."
    return os.path.join(
        flask.current_app.config["DATABASES_DIR"], f"{dbname}{constants.DBFILE_EXT}"
    )


def to_bool(s):
    "Convert string value into boolean."
    if not s:
        return False
    if isinstance(s, bool):
        return s
    return str(s).lower() in ("true", "t", "yes", "y", "1", "on")


def get_time(offset=None):
    """Current date and time (UTC) in ISO format, with millisecond precision.
    Add the specified offset in seconds, if given.
    """
    instant = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    if offset:
        instant += datetime.timedelta(seconds=offset)
    instant = instant.isoformat()
    return instant[:17] + "{:06.3f}".format(float(instant[17:])) + "Z"


def name_in_nocase(name, names):
    "Using a non-case sensitive comparison, is the 'name' among the 'names'?"
    return name.lower() in [n.lower() for n in names]


def accept_json():
    "Return True if the header Accept contains the JSON content type."
    acc = flask.request.accept_mimetypes
    best = acc.best_match([constants.JSON_MIMETYPE, constants.HTML_MIMETYPE])
    return best == constants.JSON_MIMETYPE and acc[best] > acc[constants.HTML_MIMETYPE]


def is_ajax():
    """Does the client expect a JSON fragment rather than a full page?
    Signalled by the 'ajax_request' parameter, the X-Requested-With header,
    or an Accept header preferring JSON.
    """
    if to_bool(flask.request.values.get("ajax_request")):
        return True
    if flask.request.headers.get("X-Requested-With") == "XMLHttpRequest":
        return True
    return accept_json()


def get_params():
    """Return the request parameters as a dictionary.
    A JSON object body is used as is; otherwise form fields and query
    arguments, see 'parse_params'.
    """
    if flask.request.is_json:
        data = flask.request.get_json(silent=True)
        if isinstance(data, dict):
            return data
    return parse_params(flask.request.values)


def parse_params(values):
    """Return a dictionary of the given multi-dictionary of parameters.
    A key with a subscript, such as 'index[Key_name]', puts its value into
    a nested dictionary. A nested dictionary overrides a flat value.
    """
    result = {}
    nested = []
    for key in values.keys():
        match = SUBSCRIPT_KEY_RX.match(key)
        if match:
            nested.append((match.group(1), match.group(2), values.get(key)))
        else:
            result[key] = values.get(key)
    for name, subkey, value in nested:
        if not isinstance(result.get(name), dict):
            result[name] = {}
        result[name][subkey] = value
    return result


def get_json(**items):
    "Return the JSON structure adding standard entries."
    result = {"$id": flask.request.url, "timestamp": get_time()}
    result.update(items)
    return result


def flash_error(msg):
    "Flash error message."
    flask.flash(str(msg), "error")


def json_validate(instance, schema):
    "Validate the JSON instance versus the given JSON schema."
    jsonschema.validate(
        instance=instance,
        schema=schema,
        format_checker=jsonschema.Draft7Validator.FORMAT_CHECKER,
    )


def abort_json(status_code, error):
    "Raise abort with given status code and error message."
    response = flask.Response(status=status_code, mimetype=constants.JSON_MIMETYPE)
    response.set_data(json.dumps({"message": str(error)}))
    flask.abort(response)


def _timeout_interrupt(cnx, done, timeout, increment, backoff):
    "Background thread to interrupt the Sqlite3 query when timeout."
    assert timeout > 0.0
    assert increment > 0.0
    assert backoff > 1.0
    elapsed = 0.0
    while elapsed < timeout:
        if done.wait(increment):
            return
        elapsed += increment
        increment *= backoff
    if not done.is_set():
        cnx.interrupt()


def execute_timeout(cnx, command, **kwargs):
    """Perform Sqlite3 command to be interrupted if running too long.
    If the given command is a string, it is executed as SQL.
    If the command is a callable, call it with the cnx and any given
    keyword arguments.
    Raises SystemError if interrupted by timeout.
    """
    config = flask.current_app.config
    done = threading.Event()
    timeout = config["EXECUTE_TIMEOUT"]
    args = (
        cnx,
        done,
        timeout,
        config["EXECUTE_TIMEOUT_INCREMENT"],
        config["EXECUTE_TIMEOUT_BACKOFF"],
    )
    thread = threading.Thread(target=_timeout_interrupt, args=args)
    thread.start()
    try:
        if isinstance(command, str):  # SQL
            result = cnx.execute(command)
        else:
            result = command(cnx, **kwargs)
    except sqlite3.OperationalError as error:
        # The sqlite3 module signals the interrupt as an OperationalError;
        # only the error message tells it apart.
        if str(error) == "interrupted":
            raise SystemError(f"execution exceeded {timeout} seconds; interrupted")
        else:
            raise
    finally:
        done.set()
        thread.join()
    return result


def url_for(endpoint, **kwargs):
    "Same as 'flask.url_for', but with '_external' set to True."
    return flask.url_for(endpoint, _external=True, **kwargs)
