"""
Command line entry point: calibrate response files and simulate 2PL data.
"""

import math
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from calibration_service.calibration import (
    CalibrationResult,
    CalibrationService,
    InMemoryCompetencyLookup,
    InMemoryItemStatisticsStore,
    InMemoryResponseSource,
)
from calibration_service.config import CalibrationSettings
from calibration_service.core.data import (
    load_response_records,
    write_response_records,
)
from calibration_service.core.utils import get_rng
from calibration_service.errors import CalibrationError
from calibration_service.irt.config import get_package_version
from calibration_service.irt.parameters import ItemParameterSet
from calibration_service.irt.sampling import generate_response_records

DEFAULT_COMPETENCY_ID = "default"
DEFAULT_N_RESPONDENTS = 1000
DEFAULT_N_ITEMS = 10

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def save_result(result: CalibrationResult, output_path: Path) -> None:
    """Save calibration result to json file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(result.model_dump_json(indent=4))


def _format_se(value: float) -> str:
    return "n/a" if math.isnan(value) else f"{value:.4f}"


def render_result(result: CalibrationResult) -> Table:
    table = Table(title=f"Competency {result.competency_id}")
    table.add_column("Item", style="cyan")
    table.add_column("a", justify="right")
    table.add_column("b", justify="right")
    table.add_column("SE(a)", justify="right")
    table.add_column("SE(b)", justify="right")
    for cal in result.item_calibrations:
        table.add_row(
            cal.question_id,
            f"{cal.discrimination:.4f}",
            f"{cal.difficulty:.4f}",
            _format_se(cal.standard_error_a),
            _format_se(cal.standard_error_b),
        )
    return table


@app.command()
def calibrate(
    input_path: Path = typer.Argument(
        ...,
        help="CSV with columns respondent_id, item_id, response",
    ),
    competency_id: str = typer.Option(
        DEFAULT_COMPETENCY_ID,
        "-c",
        "--competency-id",
        help="Competency identifier reported in the result",
    ),
    output_path: Path | None = typer.Option(
        None,
        "-o",
        "--output",
        help="Write the calibration result as JSON to this path",
    ),
) -> None:
    """Calibrate 2PL item parameters from a response CSV."""
    if not input_path.exists():
        console.print(f"[red]File not found: {input_path}[/red]")
        raise typer.Exit(1)
    if input_path.suffix != ".csv":
        console.print("[red]Only .csv files are supported[/red]")
        raise typer.Exit(1)

    console.print("[dim]Loading data...[/dim]")
    try:
        records = load_response_records(input_path)
    except ValueError as e:
        console.print(f"[red]Error loading CSV: {e}[/red]")
        raise typer.Exit(1) from e

    settings = CalibrationSettings()
    service = CalibrationService(
        responses=InMemoryResponseSource({competency_id: records}),
        competencies=InMemoryCompetencyLookup([competency_id]),
        item_statistics=InMemoryItemStatisticsStore(),
        config=settings.to_domain(),
    )

    console.print("[dim]Running JMLE calibration...[/dim]")
    try:
        result = service.calibrate_with_details(competency_id)
    except CalibrationError as e:
        console.print(f"[red]Calibration failed: {e}[/red]")
        raise typer.Exit(1) from e

    status = "converged" if result.converged else "did not converge"
    console.print(
        Panel(
            f"[bold]2PL JMLE Calibration[/bold]\n\n"
            f"Input: [cyan]{input_path}[/cyan]\n"
            f"Respondents: [cyan]{result.respondent_count}[/cyan]\n"
            f"Items: [cyan]{result.item_count}[/cyan]\n"
            f"Status: [cyan]{status}[/cyan] "
            f"({result.iterations} iterations, "
            f"max change={result.max_parameter_change:.5f})",
            title="Summary",
        )
    )
    console.print(render_result(result))

    if output_path is not None:
        save_result(result, output_path)
        console.print(
            Panel(
                f"[bold green]Result saved[/bold green]\n\n"
                f"Output: [cyan]{output_path}[/cyan]",
                title="Done",
            )
        )


@app.command()
def simulate(
    output_path: Path = typer.Argument(
        ..., help="Destination CSV for the simulated responses"
    ),
    n_respondents: int = typer.Option(
        DEFAULT_N_RESPONDENTS, "-n", "--n-respondents", min=1
    ),
    n_items: int = typer.Option(DEFAULT_N_ITEMS, "-i", "--n-items", min=1),
    seed: int | None = typer.Option(
        None,
        "-s",
        "--seed",
        help="Random seed for reproducibility",
    ),
) -> None:
    """Simulate 2PL responses with evenly spread difficulties."""
    rng = get_rng(seed)
    items = ItemParameterSet(
        discriminations=rng.uniform(0.8, 1.4, size=n_items),
        difficulties=np.linspace(-1.5, 1.5, n_items),
    )
    records = generate_response_records(items, n_respondents, rng)
    n_rows = write_response_records(records, output_path)

    table = Table(title="True item parameters")
    table.add_column("Item", style="cyan")
    table.add_column("a", justify="right")
    table.add_column("b", justify="right")
    for i in range(n_items):
        table.add_row(
            f"item-{i}",
            f"{items.discriminations[i]:.4f}",
            f"{items.difficulties[i]:.4f}",
        )
    console.print(table)
    console.print(f"Wrote [cyan]{n_rows}[/cyan] rows to {output_path}")


@app.command()
def version() -> None:
    """Print the package version."""
    console.print(get_package_version())


if __name__ == "__main__":
    app()
