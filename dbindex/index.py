"""Index value objects, and the repository of the current index definitions.

The definitions are read directly from the SQLite3 catalog on every call;
there is no cache. An Index obtained from the repository is never modified;
an edit works on a clone, see 'Index.renamed'.
"""

import copy
import re

import dbindex.db

from dbindex import constants
from dbindex.message import Message


WHERE_RX = re.compile(r"\bWHERE\b(.*)$", re.IGNORECASE | re.DOTALL)


class Column:
    "A column of an index. The name is None for an expression."

    def __init__(self, name, descending=False, collation=None):
        self.name = name
        self.descending = bool(descending)
        self.collation = collation

    def __eq__(self, other):
        if not isinstance(other, Column):
            return NotImplemented
        return self.compare_data == other.compare_data

    def __repr__(self):
        return f"Column({self.name!r}, descending={self.descending})"

    @property
    def compare_data(self):
        return (self.name, self.descending, (self.collation or "BINARY").upper())

    def as_dict(self):
        return {
            "name": self.name,
            "descending": self.descending,
            "collation": self.collation,
        }


class Index:
    "An index on a table."

    def __init__(
        self,
        name="",
        table=None,
        kind=constants.INDEX,
        columns=None,
        origin=constants.ORIGIN_CREATED,
        where=None,
        sql=None,
    ):
        self.name = name
        self.table = table
        self.kind = kind
        self.columns = list(columns or [])
        self.origin = origin
        self.where = where
        self.sql = sql

    def __repr__(self):
        return f"Index({self.name!r}, table={self.table!r}, kind={self.kind!r})"

    def __eq__(self, other):
        if not isinstance(other, Index):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def copy(self):
        "Return a deep copy of this index."
        return copy.deepcopy(self)

    def renamed(self, name):
        "Return a clone of this index with the new name."
        result = self.copy()
        result.name = name
        return result

    @property
    def is_primary(self):
        return self.kind == constants.PRIMARY

    @property
    def is_unique(self):
        return self.kind in (constants.PRIMARY, constants.UNIQUE)

    @property
    def has_expression(self):
        return any(c.name is None for c in self.columns)

    @property
    def compare_data(self):
        """The definition of the index, disregarding its name.
        None for an index on an expression; such an index is never compared.
        """
        if self.has_expression:
            return None
        return (
            self.kind,
            tuple(c.compare_data for c in self.columns),
            (self.where or "").strip(),
        )

    def as_dict(self):
        return {
            "name": self.name,
            "table": self.table,
            "kind": self.kind,
            "columns": [c.as_dict() for c in self.columns],
            "origin": self.origin,
            "where": self.where,
        }


class IndexRepository:
    "Read access to the current index definitions in a database."

    def __init__(self, dbname):
        self.dbname = dbname

    @property
    def cnx(self):
        "Fetched for each operation; the request connection may have been reopened."
        return dbindex.db.get_cnx(self.dbname)

    def get_indexes(self, tablename):
        "Return the indexes of the table; primary key first, then by name."
        cnx = self.cnx
        sql = (
            "SELECT name, sql FROM sqlite_master"
            " WHERE type=? AND tbl_name=? COLLATE NOCASE"
        )
        sqls = {row[0]: row[1] for row in cnx.execute(sql, ("index", tablename))}
        result = []
        rows = cnx.execute(f"PRAGMA index_list({quote(tablename)})").fetchall()
        for row in rows:
            if row["origin"] == constants.ORIGIN_PRIMARYKEY:
                kind = constants.PRIMARY
            elif row["unique"]:
                kind = constants.UNIQUE
            else:
                kind = constants.INDEX
            index = Index(
                name=row["name"],
                table=tablename,
                kind=kind,
                origin=row["origin"],
                sql=sqls.get(row["name"]),
            )
            if row["partial"] and index.sql:
                match = WHERE_RX.search(index.sql)
                if match:
                    index.where = match.group(1).strip()
            xinfo = cnx.execute(f"PRAGMA index_xinfo({quote(row['name'])})")
            for item in xinfo:
                if not item["key"]:  # Auxiliary column, e.g. the rowid.
                    continue
                index.columns.append(
                    Column(item["name"], descending=item["desc"], collation=item["coll"])
                )
            result.append(index)
        result.sort(key=lambda i: (not i.is_primary, i.name.lower()))
        return result

    def get_index(self, tablename, name):
        """Return the index of the table by its name.
        The exact name is preferred; else the non-case sensitive match.
        Raise ValueError if no such index.
        """
        indexes = self.get_indexes(tablename)
        for index in indexes:
            if index.name == name:
                return index
        for index in indexes:
            if name and index.name.lower() == name.lower():
                return index
        raise ValueError(f"no such index '{name}' in table '{tablename}'")

    def get_index_names(self):
        "Return the names of all indexes in the database."
        sql = "SELECT name FROM sqlite_master WHERE type=?"
        return [row[0] for row in self.cnx.execute(sql, ("index",))]

    def find_duplicates(self, tablename):
        "Return the set of names of indexes that duplicate another index."
        result = set()
        for pair in find_duplicate_pairs(self.get_indexes(tablename)):
            result.update(pair)
        return result


def find_duplicate_pairs(indexes):
    """Return the pairs of names of indexes having equal definitions.
    Take the last index off the list and compare with each remaining one;
    once a duplicate for it has been found, go on with the next.
    """
    indexes = list(indexes)
    result = []
    while indexes:
        last = indexes.pop()
        if last.compare_data is None:
            continue
        for index in indexes:
            if index.compare_data == last.compare_data:
                result.append((index.name, last.name))
                break
    result.reverse()
    return result


def get_duplicate_messages(pairs):
    "Return the notice messages for the pairs of duplicate indexes."
    result = []
    for first, second in pairs:
        message = Message.notice(
            "The indexes %s and %s seem to be equal"
            " and one of them could possibly be removed."
        )
        message.add_param(first)
        message.add_param(second)
        result.append(message)
    return result


def quote(name):
    "Return the identifier quoted for SQL."
    return '"%s"' % name.replace('"', '""')


def get_sql_create_index(tablename, index):
    "Return SQL to create the index on the table."
    sql = ["CREATE"]
    if index.is_unique:
        sql.append("UNIQUE")
    sql.append("INDEX")
    sql.append(f"{quote(index.name)} ON {quote(tablename)}")
    columns = []
    for column in index.columns:
        coldef = [quote(column.name or "")]
        if column.collation and column.collation.upper() != "BINARY":
            coldef.append(f"COLLATE {column.collation}")
        if column.descending:
            coldef.append("DESC")
        columns.append(" ".join(coldef))
    sql.append("(%s)" % ", ".join(columns))
    if index.where:
        sql.append(f"WHERE {index.where}")
    return " ".join(sql)


def get_sql_drop_index(name):
    "Return SQL to drop the index."
    return f"DROP INDEX {quote(name)}"
