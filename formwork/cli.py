"""CLI commands for Formwork."""

import json
import sys

import click

from formwork.forms import FormBindingError, Record, bind, extract_params


def _parse_attrs(attrs: tuple[str, ...]) -> dict[str, str]:
    parsed = {}
    for item in attrs:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}", param_hint="--attr")
        parsed[name] = value
    return parsed


@click.group()
@click.version_option(package_name="formwork")
def cli():
    """Formwork - resolve model-bound forms and strong parameters."""
    pass


@cli.command(name="bind")
@click.argument("fields", nargs=-1, required=True)
@click.option("--type", "record_type", required=True, help="Record type, e.g. post")
@click.option("--id", "record_id", default=None, help="Record id (omit for a new record)")
@click.option("--attr", "attrs", multiple=True, help="Current attribute value as NAME=VALUE")
@click.option("--base", "base_path", default=None, help="Collection path (default: /<plural type>)")
def bind_command(fields, record_type, record_id, attrs, base_path):
    """Show how FIELDS bind to a record, as JSON."""
    record = Record(type=record_type, id=record_id, attributes=_parse_attrs(attrs))
    try:
        bound = bind(record, list(fields), base_path)
    except FormBindingError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(bound.to_dict(), indent=2))


@cli.command()
@click.option("--scope", "param_scope", required=True, help="Param scope, e.g. post")
@click.option("--permit", "permitted", multiple=True, help="Permitted field (repeatable)")
@click.option("--data", default=None, help="Submission as JSON (default: read stdin)")
def permit(param_scope, permitted, data):
    """Filter a JSON submission down to the permitted fields of a scope."""
    raw = data if data is not None else sys.stdin.read()
    try:
        submission = json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON submission: {e}")
    if not isinstance(submission, dict):
        raise click.ClickException("Submission must be a JSON object")

    try:
        params = extract_params(submission, param_scope, set(permitted))
    except FormBindingError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(params, indent=2))


if __name__ == "__main__":
    cli()
