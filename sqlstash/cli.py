"""Command line tools for inspecting SQLStash caches."""

import logging
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from click import Group

__all__ = ("get_sqlstash_group", "main")


def get_sqlstash_group() -> "Group":
    """Get the SQLStash CLI group.

    Raises:
        MissingDependencyError: If the `click` package is not installed.

    Returns:
        The SQLStash CLI group.
    """
    from sqlstash.exceptions import MissingDependencyError

    try:
        import rich_click as click
    except ImportError:
        try:
            import click  # type: ignore[no-redef]
        except ImportError as e:
            raise MissingDependencyError(package="click", install_package="cli") from e
    from rich import get_console
    from rich.table import Table

    from sqlstash.config import CacheConfig, load_config_from_env
    from sqlstash.utils.logging import LOG_FORMATS, configure_logging, correlation_context, get_logger, log_with_context

    console = get_console()
    logger = get_logger("sqlstash.cli")

    database_option = click.option(
        "--database", help="Path of the SQLite cache database.", type=click.Path(dir_okay=False), required=True
    )
    table_option = click.option("--table", "table_name", help="Cache table name.", type=str, default=None)

    def open_backend(database: str, table_name: Optional[str]) -> Any:
        from sqlstash.backends.sqlite import DEFAULT_TABLE_NAME, SqliteCacheBackend

        return SqliteCacheBackend(database, table_name=table_name or DEFAULT_TABLE_NAME)

    @click.group(name="sqlstash")
    @click.option(
        "--log-level",
        help="Emit sqlstash logs at this level.",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
        default=None,
    )
    @click.option(
        "--log-format",
        help="Log output format.",
        type=click.Choice(list(LOG_FORMATS)),
        default="text",
        show_default=True,
    )
    @click.pass_context
    def sqlstash_group(ctx: "click.Context", log_level: Optional[str], log_format: str) -> None:
        """SQLStash cache commands."""
        ctx.with_resource(correlation_context())
        if log_level is not None:
            configure_logging(level=log_level, format_style=log_format)

    @sqlstash_group.command(name="key", help="Show the resolved query and cache key for a statement.")
    @click.argument("sql", type=str)
    @click.option(
        "-p", "--param", "params", multiple=True, help="Bound parameter as name=value (repeatable).", type=str
    )
    @click.option("--prefix", help="Key prefix, overriding SQLSTASH_KEY_PREFIX.", type=str, default=None)
    @click.option("--algorithm", help="Hash algorithm, overriding SQLSTASH_HASH_ALGORITHM.", type=str, default=None)
    def show_key(  # pyright: ignore[reportUnusedFunction]
        sql: str, params: "tuple[str, ...]", prefix: Optional[str], algorithm: Optional[str]
    ) -> None:
        """Print the resolved query and its cache key."""
        from sqlstash.core.keys import CacheKeyBuilder
        from sqlstash.exceptions import ImproperConfigurationError

        parameters: dict[str, str] = {}
        for param in params:
            name, sep, value = param.partition("=")
            if not sep or not name:
                console.print(f"[red]Invalid parameter {param!r}, expected name=value[/]")
                raise SystemExit(2)
            parameters[name] = value

        config: CacheConfig = load_config_from_env()
        if prefix is not None:
            config = config.replace(key_prefix=prefix)
        if algorithm is not None:
            config = config.replace(hash_algorithm=algorithm.lower())
        try:
            builder = CacheKeyBuilder(config)
        except ImproperConfigurationError as e:
            console.print(f"[red]{e}[/]")
            raise SystemExit(2) from e

        key = builder.key_for(sql, parameters)
        log_with_context(logger, logging.INFO, "cli.key", cache_key=key, parameters=len(parameters))
        console.print(f"[cyan]Resolved:[/] {builder.resolve(sql, parameters)}")
        console.print(f"[green]Key:[/] {key}")

    @sqlstash_group.command(name="show", help="Show a cached entry from a SQLite cache.")
    @click.argument("key", type=str)
    @database_option
    @table_option
    def show_entry(key: str, database: str, table_name: Optional[str]) -> None:  # pyright: ignore[reportUnusedFunction]
        """Print the rows stored under a cache key."""
        from sqlstash.core.cache import ResultCache

        with open_backend(database, table_name) as backend:
            entry = ResultCache(backend).load(key)
        log_with_context(logger, logging.INFO, "cli.show", cache_key=key, found=entry is not None, database=database)
        if entry is None:
            console.print(f"[red]No cache entry for key: {key}[/]")
            raise SystemExit(1)

        table = Table(title=f"Cache entry {key}")
        names = entry.rows[0].assoc().selectors() if entry.rows else []
        for name in names:
            table.add_column(str(name))
        for row in entry.rows:
            table.add_row(*(str(value) for value in row.assoc().values()))
        console.print(table)
        console.print(f"[green]Rows:[/] {len(entry.rows)}  [green]Result:[/] {entry.result!r}")

    @sqlstash_group.command(name="stats", help="Show how many entries a SQLite cache holds.")
    @database_option
    @table_option
    @click.option("--verbose", help="List every key.", type=bool, default=False, is_flag=True)
    def show_stats(database: str, table_name: Optional[str], verbose: bool) -> None:  # pyright: ignore[reportUnusedFunction]
        """Print the number of cached entries."""
        with open_backend(database, table_name) as backend:
            entries = len(backend)
            log_with_context(logger, logging.INFO, "cli.stats", entries=entries, database=database)
            console.print(f"[green]Entries:[/] {entries}")
            if verbose:
                table = Table(title="Cached Keys")
                table.add_column("Key", style="cyan")
                for key in backend.keys():
                    table.add_row(key)
                console.print(table)

    return sqlstash_group


def main() -> None:
    """Run the SQLStash CLI."""
    get_sqlstash_group()()
