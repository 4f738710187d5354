"""CLI entry point for slsbench."""

import logging
from datetime import datetime
from pathlib import Path

import click

from slsbench.builder.enrich import HintEnricher
from slsbench.builder.scenario import create_scenario
from slsbench.model.graph import CycleError, ScenarioFormatError, ScenarioGraph
from slsbench.selector import LlmSelector, PromptSelector, Selector
from slsbench.spec.loader import ApiSpec, SpecLoadError, load_spec, save_spec

TIMESTAMP_FORMAT = "%Y-%m-%d-%H:%M:%S"


def _load(doc_path: Path) -> ApiSpec:
    """Load a document; a broken document ends the command."""
    try:
        return load_spec(doc_path)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e


def _timestamped(output_dir: Path, stem: str, suffix: str) -> Path:
    return output_dir / f"{stem}-{datetime.now().strftime(TIMESTAMP_FORMAT)}{suffix}"


def _make_selector(kind: str, model: str | None) -> Selector:
    if kind == "llm":
        return LlmSelector(model=model)
    return PromptSelector()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """slsbench: turn OpenAPI documents into benchmark scenarios."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=".", envvar="SLSBENCH_OUTPUT", type=click.Path(file_okay=False, path_type=Path), help="Directory for the enriched specification.")
@click.option("--selector", "selector_kind", default="prompt", type=click.Choice(["prompt", "llm"]), help="Who picks the hints.")
@click.option("--model", default=None, envvar="SLSBENCH_MODEL", help="LLM model to use with --selector llm.")
@click.option("--skip-hinted", is_flag=True, help="Do not ask again for fields that already have a hint.")
def enrich(doc_path: Path, output: Path, selector_kind: str, model: str | None, skip_hinted: bool):
    """Add semantic hints to the fields of an OpenAPI specification."""
    click.echo(f"Enriching specification {doc_path}...")
    spec = _load(doc_path)

    selector = _make_selector(selector_kind, model)
    HintEnricher(spec.document, selector, skip_hinted=skip_hinted).set_hints()

    output_file = _timestamped(output, "enriched-spec", ".yaml")
    save_spec(spec, output_file)
    click.echo(f"Enriched specification saved to {output_file}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=".", envvar="SLSBENCH_OUTPUT", type=click.Path(file_okay=False, path_type=Path), help="Directory for the scenario file.")
def scenario(doc_path: Path, output: Path):
    """Build a scenario graph from an enriched OpenAPI specification."""
    click.echo(f"Generating scenario from specification {doc_path}...")
    spec = _load(doc_path)

    graph = create_scenario(spec.document, PromptSelector(), spec.refs)

    output.mkdir(parents=True, exist_ok=True)
    output_file = _timestamped(output, "scenario", ".json")
    graph.save(output_file)
    click.echo(f"Scenario saved to {output_file}")


@main.command("inspect")
@click.argument("scenario_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect_scenario(scenario_path: Path):
    """Print a scenario file and the order its steps can run in."""
    try:
        graph = ScenarioGraph.load(scenario_path)
    except ScenarioFormatError as e:
        raise click.ClickException(str(e)) from e

    click.echo(graph.render(), nl=False)
    try:
        order = graph.topological_sort()
    except CycleError as e:
        click.echo(f"Warning: {e}")
        return

    click.echo("Execution order:")
    for position, vertex_id in enumerate(order, start=1):
        click.echo(f"  {position}. [{vertex_id}] {graph.get_vertex(vertex_id).label()}")
