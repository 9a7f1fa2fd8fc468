from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer

from config.forecast_loader import (
    ConfigError,
    entity_from_config,
    history_loader_from_config,
    load_config_data,
    parameters_from_config,
)
from pathway.errors import InvalidParametersError, MalformedInputError
from pathway.forecast import forecast
from pathway.history import HistoricalDataSource, csv_loader
from pathway.outputs import chart_series, to_frame, write_outputs
from pathway.types import ForecastParameters, ForecastResult
from pathway.validation import validate_parameters

LOGGER = logging.getLogger(__name__)


app = typer.Typer(
    help='Forecast an emissions pathway with target trajectory and offset volumes.',
)


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"Unknown log level '{level}'", param_hint='--log-level')
    logging.basicConfig(
        level=numeric,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def _resolve_parameters(config_data: dict[str, Any], overrides: dict[str, Any]) -> ForecastParameters:
    params = parameters_from_config(config_data, overrides)
    return validate_parameters(params)


def _print_result(result: ForecastResult, entity_id: str) -> None:
    if not result.series:
        typer.secho(f'No historical emissions available for {entity_id}.', fg=typer.colors.YELLOW)
        return

    typer.secho(f'Emissions pathway for {entity_id} (tonnes CO2e):', fg=typer.colors.BLUE)
    frame = to_frame(result)
    typer.echo(frame.to_string(index=False, float_format=lambda value: f'{value:,.2f}'))
    typer.secho(
        f'Total carbon offset: {result.total_carbon_offset:,.2f} t',
        fg=typer.colors.GREEN,
    )
    typer.secho(f'Offset cost per year: {result.cost_per_year:,.2f}', fg=typer.colors.GREEN)


@app.command()
def main(
    config: Path | None = typer.Option(
        None,
        '--config',
        help='TOML file with [forecast] parameters and an optional [history] table.',
    ),
    history: Path | None = typer.Option(
        None,
        '--history',
        help='CSV file with year and emissions columns; overrides [history].',
    ),
    entity: str | None = typer.Option(None, '--entity', help='Entity identifier to forecast.'),
    baseline_year: int | None = typer.Option(None, '--baseline-year'),
    target_year: int | None = typer.Option(None, '--target-year'),
    reduction_target: float | None = typer.Option(
        None, '--reduction-target', help='Reduction target in percent.'
    ),
    activity_growth: float | None = typer.Option(
        None, '--activity-growth', help='Yearly activity growth in percent.'
    ),
    offset_rate: float | None = typer.Option(
        None, '--offset-rate', help='Yearly emissions offset rate in percent.'
    ),
    current_year: int | None = typer.Option(
        None, '--current-year', help='First simulated year (defaults to this year).'
    ),
    out: Path | None = typer.Option(
        None, '--out', help='Directory that receives forecast.csv and summary.json.'
    ),
    chart_json: bool = typer.Option(
        False, '--chart-json', help='Print chart series as JSON instead of a table.'
    ),
    log_level: str = typer.Option('WARNING', '--log-level'),
) -> None:
    """Compute the pathway and print or write it."""

    _configure_logging(log_level)

    try:
        config_data = load_config_data(config)
    except ConfigError as exc:
        typer.secho(f'Failed to load configuration: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    overrides = {
        'baseline_year': baseline_year,
        'target_year': target_year,
        'reduction_target_pct': reduction_target,
        'activity_growth_pct': activity_growth,
        'offset_rate_pct': offset_rate,
    }
    try:
        params = _resolve_parameters(config_data, overrides)
    except ConfigError as exc:
        typer.secho(f'Failed to load configuration: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    except InvalidParametersError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(2)

    try:
        if history is not None:
            loader = csv_loader(history)
        else:
            base_dir = config.parent if config is not None else None
            loader = history_loader_from_config(config_data, base_dir)
    except ConfigError as exc:
        typer.secho(f'Failed to load configuration: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    except MalformedInputError as exc:
        typer.secho(f'Invalid historical data: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(3)

    entity_id = entity or entity_from_config(config_data)
    source = HistoricalDataSource(loader)

    try:
        records = source.fetch(entity_id, params.baseline_year)
        result = forecast(records, params, current_year=current_year)
    except OSError as exc:
        typer.secho(f'Failed to read historical data: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(3)
    except MalformedInputError as exc:
        typer.secho(f'Invalid historical data: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(3)
    except InvalidParametersError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(2)

    if chart_json:
        typer.echo(json.dumps(asdict(chart_series(result)), indent=2))
    else:
        _print_result(result, entity_id)

    if out is not None:
        try:
            written = write_outputs(result, out, params)
        except OSError as exc:
            typer.secho(f'Failed to write outputs: {exc}', err=True, fg=typer.colors.RED)
            raise typer.Exit(4)
        typer.secho(
            f"Outputs written to {written['forecast'].parent}",
            fg=typer.colors.GREEN,
        )


if __name__ == '__main__':  # pragma: no cover - CLI entry point
    app()
