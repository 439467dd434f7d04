"DbIndex web app."

import flask

import dbindex
import dbindex.config
import dbindex.db
import dbindex.table

import dbindex.api.table

from dbindex import constants
from dbindex import utils

app = flask.Flask(__name__)

# Add URL map converters.
app.url_map.converters["name"] = utils.NameConverter

# Get the configuration.
dbindex.config.init(app)

# Close the database connection, if any, when done.
app.teardown_appcontext(dbindex.db.close_cnx)


@app.context_processor
def setup_template_context():
    "Add useful stuff to the global context of Jinja2 templates."
    return dict(constants=constants, enumerate=enumerate, len=len)


@app.route("/")
def home():
    """Home page; display the list of databases.
    A 'message' parameter is flashed; with 'reload', the page is
    reloaded without the parameters.
    """
    message = flask.request.args.get("message")
    if message:
        utils.flash_error(message)
    if utils.to_bool(flask.request.args.get("reload")):
        return flask.redirect(flask.url_for("home"))
    return flask.render_template("home.html", dbs=dbindex.db.get_dbs())


@app.route("/status")
def status():
    "Return JSON for the current status and the number of databases."
    return dict(status="ok", version=dbindex.__version__, n_dbs=len(dbindex.db.get_dbs()))


# Set up the URL map.
app.register_blueprint(dbindex.db.blueprint, url_prefix="/db")
app.register_blueprint(dbindex.table.blueprint, url_prefix="/table")

app.register_blueprint(dbindex.api.table.blueprint, url_prefix="/api/table")


# This code is used only during development.
if __name__ == "__main__":
    app.run()
