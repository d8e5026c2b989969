"""
Command-line interface for gitc.

This module provides the entry point for gitc, allowing users to clone
repositories into an organized layout and to drive shell completion from the
command line.
"""

import logging
import sys
from typing import Callable, Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from gitc import __version__
from gitc.cache import FileCompletionCache
from gitc.completion import CompletionSourceSelector, build_query, refresh_listing, render_decision
from gitc.config import GitcConfig
from gitc.errors import CloneError, ConfigurationError, ParseError, ProviderError, UnresolvedUserError
from gitc.providers import GitHubDirectoryProvider, RepositoryDirectoryProvider
from gitc.reference import ReferenceParser
from gitc.repo_manager import clone_repository
from gitc.session import TmuxMultiplexer
from gitc.shell import shell_init as render_shell_init

# Load environment variables from .env file
load_dotenv()

# Human-facing output goes to stderr, stdout is kept for paths and completion lines
console = Console(stderr=True)

logger = logging.getLogger("gitc.cli")


def configure_logging(config: GitcConfig) -> None:
    """Configure logging based on settings."""
    logging.basicConfig(
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    logging.getLogger("gitc").setLevel(config.log_level.value)


def _load_config(ctx: click.Context, **overrides) -> GitcConfig:
    """Load and validate configuration, exiting with status 1 when it is invalid."""
    try:
        config = GitcConfig.from_env_and_args(debug=ctx.obj.get("debug", False), **overrides)
    except ConfigurationError as e:
        console.print(f"[bold red]✗ Error:[/] {e}")
        sys.exit(1)

    if not config.validate():
        sys.exit(1)

    configure_logging(config)
    return config


def _make_provider(config: GitcConfig) -> RepositoryDirectoryProvider:
    return GitHubDirectoryProvider(
        api_url=config.github_api_url,
        token=config.github_pat,
        user=config.github_user,
        timeout=config.request_timeout,
    )


def _make_cache(config: GitcConfig) -> FileCompletionCache:
    return FileCompletionCache(config.cache_dir, ttl=config.listing_ttl, count_ttl=config.count_ttl)


def _user_resolver(provider: RepositoryDirectoryProvider) -> Callable[[], Optional[str]]:
    """Wrap the provider's current-user lookup so that failures read as unknown."""

    def resolve() -> Optional[str]:
        try:
            return provider.get_current_user()
        except ProviderError as e:
            logger.warning(f"Could not determine current user: {str(e)}")
            return None

    return resolve


@click.group()
@click.version_option(version=__version__, prog_name="gitc")
@click.option("--debug", help="Enable debug logging.", is_flag=True, default=False)
@click.pass_context
def cli(ctx, debug):
    """gitc - Clone repositories into host/owner/repo and open them in tmux."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--clone-dir", help="Base directory for clones (overrides GITC_CLONE_DIR).", type=str, default=None)
@click.option("--host", help="Default host for short-hand references (overrides GITC_DEFAULT_HOST).", type=str, default=None)
@click.option("--no-tmux", help="Clone in this terminal instead of a tmux session.", is_flag=True, default=False)
@click.option("--cd-file", help="Write the destination path to this file after a direct clone.", type=click.Path(dir_okay=False), default=None)
@click.argument("reference", required=True)
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def clone(ctx, clone_dir, host, no_tmux, cd_file, reference, extra_args):
    """Clone REFERENCE into CLONE_DIR/host/owner/repo.

    REFERENCE is a repository name, owner/repo, an https URL or an ssh
    remote. Any further arguments are passed to git clone.
    """
    config = _load_config(
        ctx,
        clone_dir=clone_dir,
        default_host=host,
        use_tmux=False if no_tmux else None,
    )
    provider = _make_provider(config)
    parser = ReferenceParser(config.default_host, _user_resolver(provider))

    try:
        repo_ref = parser.parse(reference)
    except (ParseError, UnresolvedUserError) as e:
        console.print(f"[bold red]✗ Error:[/] {e}")
        sys.exit(1)

    multiplexer = TmuxMultiplexer() if config.use_tmux else None

    try:
        result = clone_repository(
            repo_ref,
            config.clone_dir,
            extra_args,
            multiplexer=multiplexer,
            git_executable=config.git_executable_path,
        )
    except CloneError as e:
        console.print(f"[bold red]✗ Error:[/] {e}")
        sys.exit(1)

    if result.in_session:
        console.print(f"[dim]Cloned in tmux session '{repo_ref.session_name}': {result.destination}[/]")
        return

    console.print(f"[bold green]✓ Cloned[/] {repo_ref.clone_url}")
    click.echo(result.destination)
    if cd_file:
        with open(cd_file, "w", encoding="utf-8") as f:
            f.write(result.destination)


@cli.command(name="refresh-cache")
@click.option("--owner", help="Owner to refresh (defaults to the current user).", type=str, default=None)
@click.pass_context
def refresh_cache(ctx, owner):
    """Fetch the full repository listing and overwrite the cache."""
    config = _load_config(ctx)
    provider = _make_provider(config)

    if not owner:
        owner = _user_resolver(provider)()
        if not owner:
            console.print("[bold red]✗ Error:[/] Could not get GitHub user. Set GITHUB_PAT or GITC_GITHUB_USER")
            sys.exit(1)

    console.print(f"Refreshing {owner}'s repos cache...")
    try:
        repos = refresh_listing(owner, provider, _make_cache(config), limit=config.listing_limit)
    except (ProviderError, OSError) as e:
        console.print(f"[bold red]✗ Error:[/] Failed to refresh cache: {e}")
        sys.exit(1)

    console.print(f"[bold green]✓ Cache refreshed![/] {len(repos)} repos")


@cli.command(name="clear-cache")
@click.option("--owner", help="Only clear this owner's entries.", type=str, default=None)
@click.pass_context
def clear_cache(ctx, owner):
    """Remove cached repository listings and counts."""
    config = _load_config(ctx)
    _make_cache(config).clear(owner)
    console.print(f"[bold green]✓ Cleared cache[/]{f' for {owner}' if owner else ''}")


@cli.command()
@click.argument("word", required=False, default="")
@click.pass_context
def complete(ctx, word):
    """Print completion candidates for WORD (used by the shell integration)."""
    # Completion must never fail the shell, every error becomes a message line
    try:
        config = GitcConfig.from_env_and_args(debug=ctx.obj.get("debug", False))
        configure_logging(config)
        provider = _make_provider(config)

        query = build_query(word, _user_resolver(provider))
        if query is None:
            click.echo("message\tSet GITHUB_PAT or GITC_GITHUB_USER to complete your repositories")
            return

        selector = CompletionSourceSelector(provider, _make_cache(config), config.thresholds)
        decision = selector.select(query)
        for line in render_decision(decision, query):
            click.echo(line)
    except Exception as e:
        logger.debug("Completion failed", exc_info=True)
        click.echo(f"message\tCompletion unavailable: {e}")


@cli.command()
@click.option("--host", help="Default host for short-hand references.", type=str, default=None)
@click.argument("reference", required=True)
@click.pass_context
def resolve(ctx, host, reference):
    """Show how REFERENCE resolves without cloning it."""
    config = _load_config(ctx, default_host=host)
    parser = ReferenceParser(config.default_host, _user_resolver(_make_provider(config)))

    try:
        repo_ref = parser.parse(reference)
    except (ParseError, UnresolvedUserError) as e:
        console.print(f"[bold red]✗ Error:[/] {e}")
        sys.exit(1)

    click.echo(f"host: {repo_ref.host}")
    click.echo(f"owner: {repo_ref.owner}")
    click.echo(f"name: {repo_ref.name}")
    click.echo(f"clone_url: {repo_ref.clone_url}")
    click.echo(f"destination: {repo_ref.destination(config.clone_dir)}")


@cli.command()
@click.option("--show", help="Show current configuration.", is_flag=True, default=False)
@click.pass_context
def configure(ctx, show):
    """Show the effective gitc configuration."""
    config = _load_config(ctx)
    out = Console()

    if not show:
        out.print("Configure gitc with GITC_* environment variables or a .env file. Use --show to inspect.")
        return

    out.print("[bold blue]Current gitc Configuration:[/]")
    out.print(f"[cyan]Clone Directory:[/] {config.clone_dir}")
    out.print(f"[cyan]Default Host:[/] {config.default_host}")
    out.print(f"[cyan]Full Listing Threshold:[/] {config.max_repos_for_full_listing}")
    out.print(f"[cyan]Minimum Search Characters:[/] {config.min_search_chars}")
    out.print(f"[cyan]Cache Directory:[/] {config.cache_dir}")
    out.print(f"[cyan]Listing Cache Time:[/] {config.listing_ttl:g}s")
    out.print(f"[cyan]Count Cache Time:[/] {config.count_ttl:g}s")
    out.print(f"[cyan]Use tmux:[/] {'Yes' if config.use_tmux else 'No'}")
    out.print(f"[cyan]GitHub API:[/] {config.github_api_url}")
    out.print(f"[cyan]GitHub PAT:[/] {'✅ Configured' if config.github_pat else '❌ Not configured'}")
    out.print(f"[cyan]GitHub User:[/] {config.github_user or 'From API'}")
    out.print(f"[cyan]Log Level:[/] {config.log_level.value}")


@cli.command(name="shell-init")
@click.option("--shell", help="Shell to print the integration for.", type=click.Choice(["zsh"]), default="zsh")
def shell_init(shell):
    """Print the shell integration script."""
    click.echo(render_shell_init(shell), nl=False)


def main():
    """Entry point for the application."""
    cli(obj={})


if __name__ == "__main__":
    main()
