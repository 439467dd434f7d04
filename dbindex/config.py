"Configuration from defaults and a JSON settings file."

import json
import logging
import os
import os.path

from dbindex import constants


# Default configurable values; modified by reading JSON file in 'init'.
DEFAULT_SETTINGS = dict(
    DATABASES_DIR="data",
    SITE_NAME="DbIndex",
    SECRET_KEY=None,
    LOG_LEVEL="INFO",
    JSON_AS_ASCII=False,
    JSON_SORT_KEYS=False,
    # Interrupt an index alteration running longer than the timeout.
    # The watchdog polls at the increment, multiplied by backoff each time.
    EXECUTE_TIMEOUT=2.0,
    EXECUTE_TIMEOUT_INCREMENT=0.010,
    EXECUTE_TIMEOUT_BACKOFF=1.75,
)


def init(app):
    """Configure the Flask app.
    Start from the defaults, update from the first settings file found,
    then check the result. Raise ValueError if the setup is bad.
    """
    app.config.from_mapping(DEFAULT_SETTINGS)
    for filepath in get_settings_filepaths():
        settings = read_settings(filepath)
        if settings is None:
            continue
        for key in settings:
            if key not in DEFAULT_SETTINGS:
                app.logger.warning(f"Obsolete item '{key}' in settings file.")
        app.config.from_mapping(settings)
        app.config["SETTINGS_FILEPATH"] = filepath
        break
    dirpath = app.config["DATABASES_DIR"]
    app.config["DATABASES_DIR"] = os.path.expandvars(os.path.expanduser(dirpath))
    check_settings(app.config)
    app.logger.setLevel(app.config["LOG_LEVEL"])


def get_settings_filepaths():
    """Return the list of candidate settings file paths, in priority order.
    If the environment variable is defined, only that one.
    """
    try:
        return [os.environ["SETTINGS_FILEPATH"]]
    except KeyError:
        return [
            os.path.normpath(os.path.join(constants.ROOT, filepath))
            for filepath in ["settings.json", "../site/settings.json"]
        ]


def read_settings(filepath):
    "Return the settings in the JSON file, or None if it cannot be read."
    try:
        with open(filepath) as infile:
            return json.load(infile)
    except OSError:
        return None


def check_settings(config):
    "Raise ValueError if any setting has an invalid value."
    if not config["SECRET_KEY"]:
        raise ValueError("SECRET_KEY not set.")
    if not isinstance(logging.getLevelName(config["LOG_LEVEL"]), int):
        raise ValueError(f"LOG_LEVEL '{config['LOG_LEVEL']}' is not a level name.")
    if config["EXECUTE_TIMEOUT"] <= 0:
        raise ValueError("EXECUTE_TIMEOUT must be positive.")
    if config["EXECUTE_TIMEOUT_INCREMENT"] <= 0:
        raise ValueError("EXECUTE_TIMEOUT_INCREMENT must be positive.")
    if config["EXECUTE_TIMEOUT_BACKOFF"] <= 1.0:
        raise ValueError("EXECUTE_TIMEOUT_BACKOFF must be greater than 1.")
