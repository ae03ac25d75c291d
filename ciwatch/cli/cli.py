import sys

import click

import ciwatch
from ciwatch.clients.factory import ClientFactory
from ciwatch.core.config import (
    GlobalConfiguration,
    check_connection,
    check_target_api_url,
)
from ciwatch.core.enums import AlertType, Priority, ServiceCheckStatus
from ciwatch.core.exceptions import CIWatchUsageError
from ciwatch.core.logger import init_logger
from ciwatch.events.models import Event, ServiceCheck
from ciwatch.utils.hostname import is_valid_hostname
from ciwatch.utils.tags import parse_tag_list


def main(args=None):
    """ciwatch CLI entry point.

    Wraps the click group to turn usage errors into a one line message
    and a non-zero exit status."""
    try:
        cli(args=args, standalone_mode=False)
    except click.Abort:  # pragma: no cover
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except CIWatchUsageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def load_config(config_path):
    if config_path:
        return GlobalConfiguration.parse_from_yaml(config_path)
    return GlobalConfiguration.from_env()


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML settings file. Defaults to CIWATCH_* environment variables.",
)


@click.group("ciwatch", help="Check and exercise ciwatch settings")
@click.version_option(ciwatch.__version__, prog_name="ciwatch")
@click.option("--debug", is_flag=True, help="Log HTTP traffic and tracebacks.")
def cli(debug):
    init_logger(debug=debug)


@cli.command(name="test-connection", help="Check an API key against the API URL")
@click.option("--api-url", help="Defaults to the configured target API URL.")
@click.option("--api-key", envvar="CIWATCH_TARGET_API_KEY", help="API key to check.")
@config_option
def test_connection(api_url, api_key, config_path):
    config = load_config(config_path)
    api_url = api_url or config.target_api_url
    api_key = api_key or config.api_key()
    if check_connection(api_url, api_key):
        click.echo("Great! Your API key is valid.")
    else:
        click.echo("Hmmm, your API key seems to be invalid.")
        sys.exit(1)


@cli.command(name="test-hostname", help="Check a hostname against RFC 1123")
@click.argument("hostname")
def test_hostname(hostname):
    if is_valid_hostname(hostname):
        click.echo("Great! Your hostname is valid.")
    else:
        click.echo(
            "Your hostname is invalid, likely because"
            " it violates the format set in RFC 1123."
        )
        sys.exit(1)


@cli.command(name="check-url", help="Check the format of an API URL")
@click.argument("url")
def check_url(url):
    click.echo(check_target_api_url(url))


@cli.command(name="send-event", help="Send a test event with the configured client")
@click.option("--title", required=True)
@click.option("--text", default="")
@click.option(
    "--alert-type",
    type=click.Choice([a.value for a in AlertType]),
    default=AlertType.INFO.value,
)
@click.option(
    "--priority",
    type=click.Choice([p.value for p in Priority]),
    default=Priority.NORMAL.value,
)
@click.option("--tags", help="Comma separated name:value tags.")
@config_option
def send_event(title, text, alert_type, priority, tags, config_path):
    config = load_config(config_path)
    client = ClientFactory().configure(config)
    try:
        event = Event(
            title=title,
            text=text,
            host=config.resolved_hostname(),
            tags=parse_tag_list(tags),
            alert_type=AlertType(alert_type),
            priority=Priority(priority),
        )
        sent = client.send_event(event)
    finally:
        client.close()
    if not sent:
        click.echo("The event could not be sent.")
        sys.exit(1)
    click.echo(f"Sent event: {title}")


@cli.command(name="service-check", help="Send a service check with the configured client")
@click.argument("name")
@click.option(
    "--status",
    type=click.Choice([s.name for s in ServiceCheckStatus], case_sensitive=False),
    default=ServiceCheckStatus.OK.name,
)
@click.option("--tags", help="Comma separated name:value tags.")
@config_option
def service_check(name, status, tags, config_path):
    config = load_config(config_path)
    client = ClientFactory().configure(config)
    try:
        check = ServiceCheck(
            name=name,
            status=ServiceCheckStatus[status.upper()],
            hostname=config.resolved_hostname(),
            tags=parse_tag_list(tags),
        )
        sent = client.send_service_check(check)
    finally:
        client.close()
    if not sent:
        click.echo("The service check could not be sent.")
        sys.exit(1)
    click.echo(f"Sent service check: {name} {status.upper()}")
