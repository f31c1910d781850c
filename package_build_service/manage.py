# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import datetime

import click
from flask.cli import FlaskGroup

from package_build_service import conf, log, set_verbosity
from package_build_service.common.errors import PersistenceError, RegistryError
from package_build_service.scheduler.main import main as run_engine
from package_build_service.store import BuildHistory, ResultStore
from package_build_service.web import create_app


def _print_results(results):
    width = max([len(name) for name in results] + [10])
    for name in sorted(results):
        entry = results[name]
        line = "%-*s %s" % (width, name, entry.status.value)
        if entry.detail:
            line += ": %s" % entry.detail
        click.echo(line)


def _format_time(timestamp):
    if timestamp is None:
        return "-"
    return datetime.datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def _run(dispatch):
    try:
        return run_engine(conf, dispatch=dispatch)
    except (RegistryError, PersistenceError) as e:
        log.error("%s", e)
        raise click.ClickException(str(e))


@click.group(cls=FlaskGroup, create_app=create_app)
@click.option("-d", "log_debug", is_flag=True, help="Enable debug logging.")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging.")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
def cli(log_debug, verbose, quiet):
    """ Package build service management. """
    set_verbosity(log_debug, verbose, quiet)


@cli.command()
def build():
    """ Build all packages which need a build, until nothing is building. """
    log.info("Building packages from %s on %d builders", conf.recipes_dir, conf.num_builders)
    _print_results(_run(dispatch=True))


@cli.command()
def check():
    """ Evaluate all packages once without starting any build. """
    _print_results(_run(dispatch=False))


@cli.command()
def status():
    """ Print the results stored by the last pass. """
    results = ResultStore(conf.state_dir).load()
    if not results:
        click.echo("No results in %s" % conf.state_dir)
        return
    _print_results(results)


@cli.command()
@click.argument("package", required=False)
def history(package):
    """ Print the build history of PACKAGE, or list the packages having one. """
    store = BuildHistory(conf.state_dir)
    if package is None:
        for name in store.packages():
            click.echo(name)
        return
    records = store.read(package)
    if not records:
        raise click.ClickException("No build history of %s" % package)
    for record in records:
        click.echo("%s %-9s %5ss %s %s (%s)%s" % (
            _format_time(record.get("start")),
            record.get("status"),
            record.get("duration"),
            record.get("builder"),
            record.get("arch"),
            record.get("reason"),
            ": %s" % record["state_reason"] if record.get("state_reason") else ""))


@cli.command()
@click.option("--host", default=None, help="Address to listen on.")
@click.option("--port", default=None, type=int, help="Port to listen on.")
def serve(host, port):
    """ Serve the reporting views on the configured address. """
    create_app().run(host=host or conf.host, port=port or conf.port)


if __name__ == "__main__":
    cli()
