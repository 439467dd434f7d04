"""Alteration of an index: produce the DDL, and execute it unless previewing.

SQLite3 has no statement to rename or redefine an index, so an edit of an
existing index drops it and creates the new definition, in one transaction.
"""

import sqlite3

import flask

import dbindex.db
import dbindex.index

from dbindex import constants
from dbindex import utils
from dbindex.message import Message


class AlterationService:
    "Turn an edited index into DDL statements, and execute them."

    def apply(self, index, is_edit, dbname, tablename, preview_only=False, old_name=""):
        """Return the SQL text when previewing, or when the alteration succeeded.
        Return an error Message if the alteration is invalid or failed;
        the schema is then unchanged.
        A preview is never validated, and never touches the schema.
        """
        logger = flask.current_app.logger
        repository = dbindex.index.IndexRepository(dbname)
        old = None
        if is_edit and old_name:
            try:
                old = repository.get_index(tablename, old_name)
            except (ValueError, sqlite3.Error) as error:
                if not preview_only:
                    logger.warning(f"Alter index in {dbname}: {error}")
                    return Message.error(str(error))
        statements = self.get_statements(index, tablename, is_edit, old_name, old)
        sql = ";\n".join(statements) + ";"
        if preview_only:
            logger.debug(f"Preview alter index in {dbname}: {sql}")
            return sql

        try:
            message = self.validate(index, old, repository)
        except sqlite3.Error as error:
            logger.warning(f"Alter index in {dbname} failed: {error}")
            return Message.error(str(error))
        if message is not None:
            logger.warning(f"Alter index in {dbname} rejected: {message}")
            return message
        try:
            utils.execute_timeout(
                dbindex.db.get_cnx(dbname, write=True),
                execute_statements,
                statements=statements,
            )
        except (SystemError, sqlite3.Error) as error:
            logger.warning(f"Alter index in {dbname} failed: {error}")
            return Message.error(str(error))
        logger.info(f"Altered index in {dbname}: {sql}")
        return sql

    def get_statements(self, index, tablename, is_edit, old_name, old=None):
        "Return the list of SQL statements to perform the alteration."
        result = []
        if is_edit and old_name:
            if old is not None:
                old_name = old.name
            result.append(dbindex.index.get_sql_drop_index(old_name))
        result.append(dbindex.index.get_sql_create_index(tablename, index))
        return result

    def validate(self, index, old, repository):
        "Return an error Message if the alteration is not possible, else None."
        if old is not None and old.origin != constants.ORIGIN_CREATED:
            if old.is_primary and index.name != old.name:
                return Message.error("The name of the primary key cannot be changed.")
            message = Message.error(
                "The index %s implements a PRIMARY KEY or UNIQUE constraint"
                " of the table, and cannot be altered."
            )
            message.add_param(old.name)
            return message
        if index.is_primary:
            return Message.error("A primary key cannot be added to an existing table.")
        if index.kind not in constants.INDEX_KINDS:
            message = Message.error("Invalid index kind %s.")
            message.add_param(index.kind)
            return message
        if index.kind in (constants.FULLTEXT, constants.SPATIAL):
            message = Message.error("Index kind %s is not supported by SQLite3.")
            message.add_param(index.kind)
            return message
        if not index.name:
            return Message.error("The index name must not be empty.")
        if index.name.upper() == constants.PRIMARY:
            return Message.error("Can't rename index to PRIMARY!")
        if not constants.NAME_RX.match(index.name):
            message = Message.error("Invalid index name %s.")
            message.add_param(index.name)
            return message
        if index.name.lower().startswith("sqlite_"):
            return Message.error("Index names beginning with 'sqlite_' are reserved.")
        names = repository.get_index_names()
        if old is not None:
            names = [n for n in names if n.lower() != old.name.lower()]
        if utils.name_in_nocase(index.name, names):
            message = Message.error("Index %s already defined.")
            message.add_param(index.name)
            return message
        if not index.columns:
            return Message.error("No index parts defined!")
        if index.has_expression:
            return Message.error("An index on an expression cannot be altered.")
        return None


def execute_statements(cnx, statements):
    "Execute the statements in one transaction; roll back if any fails."
    cursor = cnx.cursor()
    cursor.execute("BEGIN")
    try:
        for sql in statements:
            cursor.execute(sql)
    except sqlite3.Error:
        if cnx.in_transaction:
            cursor.execute("ROLLBACK")
        raise
    cursor.execute("COMMIT")
