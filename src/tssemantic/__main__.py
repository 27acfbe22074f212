import click

from tssemantic.cli.lsp import lsp


@click.group(invoke_without_command=True)
@click.version_option(package_name="tssemantic")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """tssemantic CLI"""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(lsp)


if __name__ == "__main__":
    cli()
