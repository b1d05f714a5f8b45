import click
import json

from .config_loader import load_settings
from .logging_setup import FORMATTERS, setup_logging
from .mongo_client import AdminConnection, get_client

_config_option = click.option("--config", default="config.yaml", show_default=True)
_host_option = click.option(
    "--host",
    default=None,
    help="host:port of the node to bootstrap. Overrides mongo.uri.",
)
_log_format_option = click.option(
    "--log-format",
    type=click.Choice(sorted(FORMATTERS)),
    default="text",
    show_default=True,
    help="text: plain log lines. json: one JSON object per line for log collectors.",
)


@click.group()
def cli():
    pass


@cli.group(help="Initialize external resources.")
def bootstrap():
    """Initialize external resources."""
    pass


@bootstrap.command("replica-set")
@_config_option
@_host_option
@click.option("--initial-delay-ms", type=click.IntRange(0, None), default=None)
@click.option("--poll-interval-ms", type=click.IntRange(0, None), default=None)
@click.option(
    "--max-poll-attempts",
    type=click.IntRange(0, None),
    default=None,
    help="Status polls to wait for primary. Use 0 to wait indefinitely.",
)
@_log_format_option
def replica_set(config, host, initial_delay_ms, poll_interval_ms, max_poll_attempts, log_format):
    """Create the replica set if missing and wait until this node is primary."""
    from .bootstrap.replica_bootstrap import bootstrap_replica_set

    log = setup_logging(fmt=log_format)
    s = load_settings(config)
    client = get_client(s, host)
    try:
        res = bootstrap_replica_set(
            AdminConnection(client),
            s,
            initial_delay_ms=initial_delay_ms,
            poll_interval_ms=poll_interval_ms,
            max_poll_attempts=max_poll_attempts,
        )
    except Exception:
        log.warning(
            "bootstrap replica set failed",
            extra={"stage": "bootstrap.replica_set"},
            exc_info=True,
        )
        raise
    finally:
        client.close()

    if not res.ok:
        log.error(
            "replica set bootstrap did not complete",
            extra={
                "stage": "bootstrap.replica_set",
                "kind": res.error.kind.value,
                "result": res.error.result,
            },
        )
        raise click.ClickException(str(res.error))
    log.info(
        "replica set bootstrap complete",
        extra={
            "stage": "bootstrap.replica_set",
            "initiated": res.initiated,
            "polls": res.polls,
        },
    )


@cli.command(help="Query replica set status once.")
@_config_option
@_host_option
@_log_format_option
def status(config, host, log_format):
    log = setup_logging(fmt=log_format)
    s = load_settings(config)
    client = get_client(s, host)
    try:
        query = AdminConnection(client).get_status()
    finally:
        client.close()

    if not query.succeeded:
        log.warning(
            "status query failed",
            extra={"stage": "status", "error": str(query.error)},
        )
        raise click.ClickException(f"status query failed: {query.error}")
    click.echo(json.dumps(query.status.model_dump(by_alias=True)))


def main():
    cli()


if __name__ == "__main__":
    main()
