from invoke import task
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.absolute()

SETTINGS_MODULE = "courtside.settings"


def project_relative(path):
    """Convert a relative path to an absolute path relative to the project root."""
    return str(PROJECT_ROOT / path)


@task
def update(c):
    """Reinstall the project with its test dependencies."""
    c.run(f"python -m pip install -e {PROJECT_ROOT}[test]")


@task
def up(c):
    """Alias for update."""
    update(c)


@task
def test(c, path=None):
    """Run the engine tests. Optionally specify a specific test path."""
    if path:
        c.run(f"python -m pytest {path}")
    else:
        c.run(f"python -m pytest {project_relative('courtside')}")


@task
def simulate(c, format="americano", players=8, seed=None):
    """Simulate a tournament with the simulate_tournament management command."""
    command = (
        f"python -m django simulate_tournament --settings={SETTINGS_MODULE} "
        f"--format={format} --players={players}"
    )
    if seed is not None:
        command += f" --seed={seed}"
    c.run(command)
