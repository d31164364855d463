import json
import logging
from pathlib import Path

import click

from .cli_utils import reconstruct_command_line
from .pipeline import CodeGenerationError, CodeGeneratorConfig, OutputMode, PipelineGenerator


@click.command()
@click.option("--output-dir", "-o", default=".", type=click.Path(file_okay=False, resolve_path=True))
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option("--schema", "-s", "db_schema", default=None, type=str, help="PostgreSQL schema for the migration")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing module directory")
@click.option("--format/--no-format", "run_format", default=True, help="Run goimports/gofmt over the output")
@click.option("--verify/--no-verify", default=False, help="Run go mod tidy, go build and go vet over the output")
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("module_name", type=str)
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def sql_schema_to_code(output_dir, config, db_schema, force, run_format, verify, verbose, module_name, schema_path):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if config is not None:
        with open(config) as f:
            config = json.load(f)
            config = CodeGeneratorConfig.from_dict(config)
    else:
        config = CodeGeneratorConfig()

    # CLI flags override the config file
    config.module_name = module_name
    if db_schema is not None:
        config.db_schema = db_schema
    if force:
        config.output.mode = OutputMode.FORCE
    if not run_format:
        config.formatter.enabled = False
    if verify:
        config.verify_build = True

    generator = PipelineGenerator(config, generation_command=reconstruct_command_line(sql_schema_to_code))

    try:
        result = generator.generate_file(Path(schema_path), Path(output_dir))
    except CodeGenerationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Generated {len(result.files)} files in {result.module_dir}")
    if result.dropped_lines:
        click.echo(f"Warning: {result.dropped_lines} column line(s) could not be parsed and were skipped", err=True)
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
