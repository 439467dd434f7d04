"Command line interface to the DbIndex instance."

import sqlite3

import click

import dbindex.alter
import dbindex.app
import dbindex.db
import dbindex.index

from dbindex.message import Message


@click.group()
def cli():
    "Command line interface for index operations on the DbIndex instance."
    pass


@cli.command()
def databases():
    "Output the names of the databases."
    with dbindex.app.app.app_context():
        for db in dbindex.db.get_dbs():
            click.echo(db["name"])


@cli.command()
@click.argument("dbname")
@click.argument("tablename")
def indexes(dbname, tablename):
    "Output the indexes of the table; duplicates are marked by an asterisk."
    with dbindex.app.app.app_context():
        check_table(dbname, tablename)
        repository = dbindex.index.IndexRepository(dbname)
        indexes = repository.get_indexes(tablename)
        pairs = dbindex.index.find_duplicate_pairs(indexes)
        names = set()
        for pair in pairs:
            names.update(pair)
        for index in indexes:
            columns = ", ".join(c.name or "<expression>" for c in index.columns)
            mark = "*" if index.name in names else " "
            click.echo(f"{mark} {index.name} {index.kind} ({columns})")
        for message in dbindex.index.get_duplicate_messages(pairs):
            click.echo(str(message))


@cli.command()
@click.argument("dbname")
@click.argument("tablename")
@click.argument("old")
@click.argument("new")
@click.option("--preview", is_flag=True, help="Output the SQL; do not execute.")
def rename(dbname, tablename, old, new, preview):
    "Rename the index OLD of the table to NEW."
    with dbindex.app.app.app_context():
        check_table(dbname, tablename)
        repository = dbindex.index.IndexRepository(dbname)
        try:
            index = repository.get_index(tablename, old).renamed(new)
        except (ValueError, sqlite3.Error) as error:
            raise click.ClickException(str(error))
        result = dbindex.alter.AlterationService().apply(
            index, True, dbname, tablename, preview_only=preview, old_name=old
        )
        if isinstance(result, Message):
            raise click.ClickException(str(result))
        click.echo(result)


def check_table(dbname, tablename):
    "Raise ClickException if no such database or table."
    if not dbindex.db.has_database(dbname):
        raise click.ClickException("No databases selected.")
    try:
        if not dbindex.db.has_table(dbname, tablename):
            raise click.ClickException("No table selected.")
    except sqlite3.Error as error:
        raise click.ClickException(str(error))


if __name__ == "__main__":
    cli()
