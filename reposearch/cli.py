"""
CLI commands for reposearch.

Provides the `reposearch` command-line interface for rebuilding, updating
and inspecting repository search indexes.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import click
import requests
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from config import ConfigurationLoader
from search_sync.errors import ConfigurationError, SearchServiceError
from search_sync.facet import SearchFacet
from search_sync.metadata import DEFAULT_FORMAT, MetadataProducerRegistry
from search_sync.models import (
    BulkPutResult,
    EntityId,
    QdrantConfig,
    Repository,
    RepositoryConfiguration,
    SearchSyncConfig,
)
from search_sync.search import InMemorySearchService, QdrantSearchService, SearchService
from search_sync.storage import InMemoryStorage, StorageFacet, load_manifest

from . import __version__

logger = logging.getLogger(__name__)

console = Console()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@click.group()
@click.version_option(version=__version__, prog_name="reposearch")
@click.option(
    '--config', 'config_path',
    type=click.Path(dir_okay=False),
    help='Configuration file (default: ~/.reposearch/config.json)'
)
@click.option(
    '--qdrant-url',
    help='Qdrant server URL (overrides the configuration)'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Logging level (overrides the configuration)'
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], qdrant_url: Optional[str], log_level: Optional[str]):
    """
    Repository search index synchronization CLI.

    Keep Qdrant search indexes consistent with repository content.
    """
    try:
        config = ConfigurationLoader().load(config_path)
        overrides = {}
        if qdrant_url:
            overrides['qdrant'] = QdrantConfig(**{**config.qdrant.model_dump(), 'url': qdrant_url})
        if log_level:
            overrides['log_level'] = log_level.upper()
        if overrides:
            config = SearchSyncConfig(**{**config.model_dump(), **overrides})
    except (ConfigurationError, ValidationError) as e:
        console.print(f"[red]❌ Invalid configuration: {e}[/red]")
        sys.exit(1)

    logging.basicConfig(level=getattr(logging, config.log_level), format=LOG_FORMAT)
    ctx.obj = config


@main.command()
@click.pass_obj
def status(config: SearchSyncConfig):
    """Check Qdrant and the index of every configured repository."""
    console.print("[blue]🔍 Checking reposearch status...[/blue]\n")

    table = Table(title="Repository Search Status")
    table.add_column("Component", style="cyan", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    qdrant_available = _check_qdrant_connection(config.qdrant.url)
    if qdrant_available:
        table.add_row("Qdrant Database", "[green]✅ Connected[/green]", config.qdrant.url)
    else:
        table.add_row("Qdrant Database", "[red]❌ Not available[/red]", config.qdrant.url)

    if qdrant_available and config.repositories:
        counts = asyncio.run(_collect_counts(config))
        for name in config.repositories:
            collection_name = config.qdrant.get_collection_name(name)
            count = counts.get(name)
            if count is None:
                table.add_row(f"Repository {name}", "[yellow]⚠️  No index[/yellow]", collection_name)
            else:
                table.add_row(f"Repository {name}", f"[green]✅ {count} documents[/green]", collection_name)
    elif not config.repositories:
        table.add_row("Repositories", "[yellow]⚠️  None configured[/yellow]", "Add names under 'repositories'")

    console.print(table)

    if not qdrant_available:
        console.print("\n[yellow]⚠️  Qdrant is not reachable. To start it:[/yellow]")
        console.print("   docker run -d --name qdrant -p 6333:6333 qdrant/qdrant")


@main.command()
@click.argument('manifest', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--repository', '-r', 'repository_name',
    help='Only rebuild this repository (default: every repository in the manifest)'
)
@click.option(
    '--dry-run', '-n',
    is_flag=True,
    help='Build documents into an in-memory index instead of Qdrant'
)
@click.pass_obj
def rebuild(config: SearchSyncConfig, manifest: str, repository_name: Optional[str], dry_run: bool):
    """Rebuild repository indexes from a storage MANIFEST."""
    if dry_run:
        console.print("[blue]🔍 Dry run mode - documents go to an in-memory index[/blue]")

    console.print("[blue]📚 Rebuilding repository indexes...[/blue]")

    try:
        results = asyncio.run(_run_rebuild(config, Path(manifest), repository_name, dry_run))
    except Exception as e:
        console.print(f"[red]❌ Rebuild failed: {e}[/red]")
        sys.exit(1)

    table = Table(title="Rebuilt Indexes")
    table.add_column("Repository", style="cyan", no_wrap=True)
    table.add_column("Index", style="white")
    table.add_column("Indexed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Docs/s", justify="right")

    for repository, result in results:
        failed = f"[red]{len(result.failed)}[/red]" if result.failed else "0"
        table.add_row(
            repository.name,
            result.index_name,
            str(result.indexed),
            failed,
            f"{result.throughput_per_second:.1f}"
        )

    console.print(table)

    if any(result.failed for _, result in results):
        console.print("[yellow]⚠️  Some documents could not be built, see the log for details[/yellow]")
    else:
        console.print("[green]🎉 Rebuild completed successfully![/green]")


@main.command()
@click.argument('manifest', type=click.Path(exists=True, dir_okay=False))
@click.argument('component_ids', nargs=-1, required=True)
@click.option('--repository', '-r', 'repository_name', required=True, help='Repository holding the components')
@click.pass_obj
def put(config: SearchSyncConfig, manifest: str, component_ids: Tuple[str, ...], repository_name: str):
    """Index the given COMPONENT_IDS of a repository loaded from MANIFEST."""
    try:
        result = asyncio.run(_run_put(config, Path(manifest), repository_name, component_ids))
    except Exception as e:
        console.print(f"[red]❌ Put failed: {e}[/red]")
        sys.exit(1)

    skipped = len(component_ids) - result.requested
    console.print(f"[green]✅ Indexed {result.indexed} documents into '{result.index_name}'[/green]")
    if skipped:
        console.print(f"[dim]{skipped} components no longer in storage were skipped[/dim]")
    if result.failed:
        for failure in result.failed:
            console.print(f"[red]❌ {failure.document_id}: {failure.error}[/red]")
        sys.exit(1)


@main.command()
@click.argument('component_id')
@click.option('--repository', '-r', 'repository_name', required=True, help='Repository whose index holds the document')
@click.pass_obj
def delete(config: SearchSyncConfig, component_id: str, repository_name: str):
    """Remove the document of COMPONENT_ID from a repository index."""
    try:
        asyncio.run(_run_delete(config, repository_name, component_id))
    except Exception as e:
        console.print(f"[red]❌ Delete failed: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]🗑️  Removed {component_id} from '{config.qdrant.get_collection_name(repository_name)}'[/green]")


@main.command()
@click.option('--repository', '-r', 'repository_name', required=True, help='Repository whose index is dropped')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def drop(config: SearchSyncConfig, repository_name: str, yes: bool):
    """Delete a repository's whole index (requires confirmation unless --yes)."""
    collection_name = config.qdrant.get_collection_name(repository_name)

    if not yes and not click.confirm(f"Are you sure you want to delete the index '{collection_name}'?"):
        console.print("[yellow]Aborted.[/yellow]")
        raise click.Abort()

    try:
        asyncio.run(_run_drop(config, repository_name))
    except Exception as e:
        console.print(f"[red]❌ Drop failed: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]🗑️  Index '{collection_name}' removed[/green]")
    console.print("[dim]Tip: You can run 'reposearch rebuild' to re-index the repository[/dim]")


def _create_search_service(config: SearchSyncConfig, dry_run: bool = False) -> SearchService:
    if dry_run:
        return InMemorySearchService()
    return QdrantSearchService(config.qdrant)


def _select_repositories(repositories: Sequence[Repository], repository_name: Optional[str]) -> List[Repository]:
    """Repositories to operate on, optionally narrowed down to one name"""
    if repository_name is None:
        return list(repositories)

    selected = [repository for repository in repositories if repository.name == repository_name]
    if not selected:
        raise ConfigurationError(f"Repository '{repository_name}' is not in the manifest")
    return selected


async def _attach_facet(
    repository: Repository,
    search_service: SearchService,
    storage: StorageFacet,
    registry: MetadataProducerRegistry
) -> SearchFacet:
    """Create and initialize a facet for a repository"""
    facet = SearchFacet(search_service, storage, registry)
    facet.attach(repository)
    await facet.init(RepositoryConfiguration(repository_name=repository.name))
    return facet


async def _run_rebuild(
    config: SearchSyncConfig,
    manifest: Path,
    repository_name: Optional[str],
    dry_run: bool
) -> List[Tuple[Repository, BulkPutResult]]:
    """Run the rebuild operation."""
    storage, repositories = await load_manifest(manifest)
    selected = _select_repositories(repositories, repository_name)

    search_service = _create_search_service(config, dry_run)
    registry = MetadataProducerRegistry.with_defaults()
    results = []

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            for repository in selected:
                task = progress.add_task(f"Rebuilding {repository.name}...", total=None)

                facet = await _attach_facet(repository, search_service, storage, registry)
                try:
                    await facet.start()
                    results.append((repository, await facet.rebuild_index()))
                finally:
                    await facet.destroy()

                progress.update(task, description=f"[green]✅ {repository.name} rebuilt[/green]")
    finally:
        await search_service.close()

    return results


async def _run_put(
    config: SearchSyncConfig,
    manifest: Path,
    repository_name: str,
    component_ids: Sequence[str]
) -> BulkPutResult:
    """Run the bulk put operation."""
    storage, repositories = await load_manifest(manifest)
    repository = _select_repositories(repositories, repository_name)[0]

    search_service = _create_search_service(config)
    try:
        facet = await _attach_facet(repository, search_service, storage, MetadataProducerRegistry.with_defaults())
        try:
            await facet.start()
            result = await facet.bulk_put([EntityId(value=component_id) for component_id in component_ids])
        finally:
            await facet.destroy()
    finally:
        await search_service.close()

    return result


async def _run_delete(config: SearchSyncConfig, repository_name: str, component_id: str) -> None:
    """Run the document delete operation."""
    repository = Repository(name=repository_name, format=DEFAULT_FORMAT)

    search_service = _create_search_service(config)
    try:
        # Deleting a document never reads storage
        facet = await _attach_facet(repository, search_service, InMemoryStorage(), MetadataProducerRegistry.with_defaults())
        try:
            await facet.start()
            await facet.delete_component(EntityId(value=component_id))
        finally:
            await facet.destroy()
    finally:
        await search_service.close()


async def _run_drop(config: SearchSyncConfig, repository_name: str) -> None:
    """Run the index drop operation."""
    repository = Repository(name=repository_name, format=DEFAULT_FORMAT)

    search_service = _create_search_service(config)
    try:
        facet = await _attach_facet(repository, search_service, InMemoryStorage(), MetadataProducerRegistry.with_defaults())
        try:
            await facet.delete()
        finally:
            await facet.destroy()
    finally:
        await search_service.close()


async def _collect_counts(config: SearchSyncConfig) -> Dict[str, Optional[int]]:
    """Document count per configured repository; None when the index is missing"""
    search_service = _create_search_service(config)
    counts: Dict[str, Optional[int]] = {}
    try:
        for name in config.repositories:
            try:
                counts[name] = await search_service.count(Repository(name=name, format=DEFAULT_FORMAT))
            except SearchServiceError as e:
                logger.debug(f"No index for repository {name}: {e}")
                counts[name] = None
    finally:
        await search_service.close()
    return counts


def _check_qdrant_connection(url: str) -> bool:
    """Check if Qdrant is accessible."""
    try:
        response = requests.get(f"{url}/health", timeout=2)
        return response.status_code == 200
    except requests.RequestException:
        return False


if __name__ == "__main__":
    main()
