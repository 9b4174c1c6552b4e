"""
CLI interface for revrepl.

Provides commands to initialize configuration, validate a job request and
create a reverse replication pipeline from a JSON request file.
"""

import json
from pathlib import Path

import click

from revrepl import __version__


def _load_request(request_file: Path):
    from revrepl.schemas import JobRequest

    return JobRequest.from_json(request_file.read_text())


def _require_config(ctx):
    if "config" not in ctx.obj:
        click.echo(f"✗ Config not loaded: {ctx.obj.get('config_error', 'Unknown error')}", err=True)
        click.echo("Run 'revrepl init' to create a configuration file.", err=True)
        raise SystemExit(1)
    return ctx.obj["config"]


def _build_clients(config, request):
    from revrepl.adapters import Clients

    return Clients.from_config(config, project_id=request.spanner_project_id)


@click.group()
@click.version_option(version=__version__, prog_name="revrepl")
@click.pass_context
def main(ctx):
    """
    revrepl - Reverse replication workflow orchestrator.

    Provisions the change stream, staging bucket, metadata database and
    Dataflow jobs of a Spanner reverse replication pipeline.
    """
    from revrepl.config import load_config
    from revrepl.utils import setup_logging

    ctx.ensure_object(dict)
    try:
        config = load_config()
    except Exception as e:
        # init does not need a config; other commands check ctx.obj
        ctx.obj["config_error"] = str(e)
        return

    ctx.obj["config"] = config
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=Path(config.log_file).expanduser() if config.log_file else None,
    )


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize revrepl configuration."""
    import yaml

    from revrepl.config import RevreplConfig, get_revrepl_home

    home = get_revrepl_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = RevreplConfig(env_file=str(home / ".env")).to_dict()
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# GOOGLE_APPLICATION_CREDENTIALS=...\n# GOOGLE_CLOUD_PROJECT=...\n")

    click.echo(f"Initialized revrepl config at {cfg_path}")


@main.command("validate")
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def validate(ctx, request_file: Path):
    """
    Validate a job request and print it normalized.

    Resolves the Spanner leader location, nothing is provisioned.
    """
    from revrepl.errors import RevreplError
    from revrepl.workflow import plan_workflow

    config = _require_config(ctx)
    try:
        request = _load_request(request_file)
        plan = plan_workflow(request, _build_clients(config, request), config)
    except RevreplError as e:
        click.echo(f"✗ Invalid request: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"✗ Validate failed: {e}", err=True)
        raise SystemExit(1)

    click.echo(json.dumps(plan.to_dict(), indent=2, sort_keys=True))


@main.command("create")
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Normalize and list activities without provisioning")
@click.pass_context
def create(ctx, request_file: Path, dry_run: bool):
    """
    Create a reverse replication pipeline.

    REQUEST_FILE is a JSON job request.

    Examples:

        revrepl create request.json

        revrepl create request.json --dry-run
    """
    from revrepl.errors import SagaExecutionError
    from revrepl.workflow import create_workflow, plan_workflow

    config = _require_config(ctx)

    try:
        request = _load_request(request_file)
        clients = _build_clients(config, request)

        if dry_run:
            plan = plan_workflow(request, clients, config)
            click.echo("=" * 50)
            click.echo("=== DRY RUN MODE === (nothing is provisioned)")
            click.echo("=" * 50)
            click.echo(f"Job id: {plan.job_id}")
            for i, activity in enumerate(plan.activities, start=1):
                click.echo(f"  #{i} {activity.name}")
            return

        result = create_workflow(request, clients, config)
    except SagaExecutionError as e:
        click.echo(f"✗ Create failed at activity #{e.position} ({e.activity_name}): {e.cause}", err=True)
        for comp_error in e.compensation_errors:
            click.echo(f"  ✗ {comp_error}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"✗ Create failed: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ {result.job_id} created")
    click.echo(f"  reader job: {result.reader_job_id}")
    click.echo(f"  writer job: {result.writer_job_id}")


if __name__ == "__main__":
    main()
