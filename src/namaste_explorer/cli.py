"""CLI entry point for namaste-explorer."""

import asyncio
import logging
import time
from pathlib import Path

import click

from namaste_explorer.bulk import load_bulk_request, terms_from_pairs
from namaste_explorer.client import TerminologyClient
from namaste_explorer.config import ClientConfig
from namaste_explorer.errors import ApiClientError
from namaste_explorer.render import (
    render_health,
    render_json,
    render_match_info,
    render_search_result,
    render_session,
    render_stats,
)

SOURCES = ["namaste", "icd11", "both"]
AYUSH_SYSTEMS = ["ayurveda", "yoga", "unani", "siddha", "homeopathy"]


def _run(ctx: click.Context, action) -> None:
    """Run one async action against a fresh client and report session telemetry.

    `action` receives the client and returns a coroutine.
    """
    config: ClientConfig = ctx.obj["config"]
    make_client = ctx.obj["client_factory"]

    async def runner():
        async with make_client(config) as client:
            try:
                await action(client)
            finally:
                click.echo(render_session(client.get_request_count(), client.get_average_response_time()))

    try:
        asyncio.run(runner())
    except ApiClientError as e:
        raise click.ClickException(e.message) from e


@click.group()
@click.option("--base-url", default=None, help="API host (defaults to $NAMASTE_API_BASE_URL or the public API).")
@click.option("-v", "--verbose", is_flag=True, help="Log every request.")
@click.pass_context
def main(ctx: click.Context, base_url: str | None, verbose: bool):
    """Explore the NAMASTE / ICD-11 terminology mapping API."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj.setdefault("config", ClientConfig.from_env(base_url))
    ctx.obj.setdefault("client_factory", TerminologyClient)


@main.command()
@click.pass_context
def health(ctx: click.Context):
    """Check API liveness and version."""
    async def action(client: TerminologyClient):
        status = await client.check_health()
        for line in render_health(status):
            click.echo(line)

    _run(ctx, action)


@main.command()
@click.option("--watch", default=0.0, type=click.FloatRange(min=0), help="Refresh every N seconds.")
@click.option("--iterations", default=1, type=click.IntRange(min=1), help="Number of refreshes when watching.")
@click.pass_context
def stats(ctx: click.Context, watch: float, iterations: int):
    """Show the server's request statistics."""
    rounds = iterations if watch else 1

    async def action(client: TerminologyClient):
        for i in range(rounds):
            if i:
                await asyncio.sleep(watch)
                click.echo("")
            server_stats = await client.get_stats()
            for line in render_stats(server_stats):
                click.echo(line)

    _run(ctx, action)


@main.command()
@click.pass_context
def dashboard(ctx: click.Context):
    """Health and statistics side by side, fetched concurrently."""
    async def action(client: TerminologyClient):
        status, server_stats = await asyncio.gather(client.check_health(), client.get_stats())
        click.echo(f"== Health ({time.strftime('%H:%M:%S')})")
        for line in render_health(status):
            click.echo(line)
        click.echo("== Statistics")
        for line in render_stats(server_stats):
            click.echo(line)

    _run(ctx, action)


@main.command()
@click.argument("query")
@click.option("--source", default="both", type=click.Choice(SOURCES), help="Vocabulary to search.")
@click.option("--ayush-system", default=None, type=click.Choice(AYUSH_SYSTEMS), help="Restrict NAMASTE results to one AYUSH system.")
@click.option("--raw", is_flag=True, help="Also print the raw server payload.")
@click.pass_context
def search(ctx: click.Context, query: str, source: str, ayush_system: str | None, raw: bool):
    """Search NAMASTE and ICD-11 terms."""
    async def action(client: TerminologyClient):
        views = await client.search_with_raw({"q": query, "source": source, "ayush_system": ayush_system})
        click.echo(f"Found {len(views.results)} results.")
        for result in views.results:
            click.echo(render_search_result(result))
        if raw:
            click.echo(render_json(views.raw))

    _run(ctx, action)


@main.command("map")
@click.argument("namaste_id")
@click.option("--include-fhir", is_flag=True, help="Embed a FHIR Condition resource in the result.")
@click.option("--json", "as_json", is_flag=True, help="Also print the full mapping payload.")
@click.pass_context
def map_term(ctx: click.Context, namaste_id: str, include_fhir: bool, as_json: bool):
    """Map one NAMASTE code to ICD-11."""
    async def action(client: TerminologyClient):
        result = await client.map_terminology({"namaste_id": namaste_id, "include_fhir": include_fhir})
        for line in render_match_info(result):
            click.echo(line)
        if as_json:
            click.echo(render_json(result))

    _run(ctx, action)


@main.command()
@click.argument("body_path", required=False, type=click.Path(exists=True, path_type=Path))
@click.option("-t", "--term", "terms", multiple=True, help="NAMASTE_ID or NAMASTE_ID:PATIENT_ID (repeatable).")
@click.pass_context
def bulk_map(ctx: click.Context, body_path: Path | None, terms: tuple[str, ...]):
    """Map several NAMASTE codes in one request (JSON/YAML body or --term)."""
    if not body_path and not terms:
        raise click.UsageError("Provide a request body file or at least one --term.")

    try:
        request = load_bulk_request(body_path) if body_path else terms_from_pairs(terms)
    except ApiClientError as e:
        raise click.ClickException(e.message) from e

    async def action(client: TerminologyClient):
        results = await client.bulk_map(request)
        click.echo(f"Mapped {len(results)} of {len(request.terms)} terms.")
        click.echo(render_json(results))

    _run(ctx, action)


@main.command()
@click.argument("namaste_id")
@click.argument("patient_id")
@click.pass_context
def fhir(ctx: click.Context, namaste_id: str, patient_id: str):
    """Fetch a FHIR Condition resource for a patient."""
    async def action(client: TerminologyClient):
        condition = await client.get_fhir_condition({"namaste_id": namaste_id, "patient_id": patient_id})
        click.echo(render_json(condition))

    _run(ctx, action)
