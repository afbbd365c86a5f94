import json

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from config.loader import load_settings
from config.models import Config
from core.pipeline import PullRequestFoldPipeline, load_payloads
from utils.errors import PRFoldException
from utils.logger import setup_logger, logger


INPUT_PATH = click.Path(exists=True, dir_okay=False, allow_dash=True)


def load_config(ctx: click.Context, config_path: str) -> Config:
    """Loads the merged configuration and applies its logging settings."""
    config = load_settings(custom_config_path=config_path)
    setup_logger(config.logging, verbose=ctx.obj.get("verbose", False))
    return config


def print_reports(console: Console, reports: list) -> None:
    for report in reports:
        console.print(report, markup=False, highlight=False)
        console.print()


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose logging for debugging",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    Fold duplicate dependency-update pull request messages into one.
    """
    setup_logger(verbose=verbose)
    ctx.obj = {'verbose': verbose}


@cli.command("fold")
@click.argument("input_path", type=INPUT_PATH)
@click.option(
    "-o", "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="Write the folded messages here instead of stdout",
)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a custom configuration file",
)
@click.option(
    "--report/--no-report",
    default=None,
    help="Print a report for each folded message (overrides config)",
)
@click.pass_context
def fold(ctx, input_path: str, output_path: str, config_path: str, report: bool):
    """
    Fold the JSON array of pull request messages in INPUT_PATH ("-" for stdin).
    """
    console = Console(stderr=True)
    verbose = ctx.obj.get('verbose', False)

    try:
        config = load_config(ctx, config_path)
        pipeline = PullRequestFoldPipeline(config)

        payloads = load_payloads(input_path)
        messages = pipeline.fold(pipeline.decode(payloads))
        document = json.dumps(pipeline.encode(messages), indent=config.output.indent)

        if output_path:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(document + "\n")
        else:
            click.echo(document)

        console.print(Panel(
            f"{len(payloads)} messages in, {len(messages)} messages out",
            title="[bold cyan]Folded pull requests[/bold cyan]",
            border_style="cyan",
            expand=False,
        ))

        show_report = config.output.report if report is None else report
        if show_report:
            print_reports(console, pipeline.report(messages))

    except PRFoldException as e:
        logger.opt(exception=verbose).error(f"Known error occurred: {e}")
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        ctx.exit(1)
    except Exception as e:
        logger.opt(exception=True).error(f"Unexpected error occurred: {e}")
        console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(e))}")
        ctx.exit(1)


@cli.command("report")
@click.argument("input_path", type=INPUT_PATH)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a custom configuration file",
)
@click.pass_context
def report(ctx, input_path: str, config_path: str):
    """
    Print a report for each pull request message in INPUT_PATH, without folding.
    """
    console = Console()
    verbose = ctx.obj.get('verbose', False)

    try:
        config = load_config(ctx, config_path)
        pipeline = PullRequestFoldPipeline(config)
        messages = pipeline.decode(load_payloads(input_path))
        print_reports(console, pipeline.report(messages))
    except PRFoldException as e:
        logger.opt(exception=verbose).error(f"Known error occurred: {e}")
        Console(stderr=True).print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        ctx.exit(1)
    except Exception as e:
        logger.opt(exception=True).error(f"Unexpected error occurred: {e}")
        Console(stderr=True).print(f"[bold red]Unexpected error:[/bold red] {escape(str(e))}")
        ctx.exit(1)


if __name__ == "__main__":
    cli()
